"""Compare two structure snapshots."""

from typing import Any

from ..models.mock_models import ChangeType, DiffStructuresResponse, Endpoint
from .structure_diff import get_structure_differences, group_differences


def _to_endpoints(snapshot: list[dict[str, Any]], name: str) -> list[Endpoint]:
    endpoints = []
    for item in snapshot:
        if not isinstance(item, dict) or "url" not in item:
            raise ValueError(f"Every {name} entry must be an object with a 'url' key")
        endpoints.append(Endpoint.from_dict(item))
    return endpoints


def diff_structures_impl(
    previous: list[dict[str, Any]],
    current: list[dict[str, Any]],
) -> DiffStructuresResponse:
    """
    Classify URLs as created, updated or deleted between two snapshots.

    Args:
        previous: Earlier snapshot, `[{"url": ..., "responseBody": ...}]`
        current: Later snapshot in the same format

    Returns:
        DiffStructuresResponse with the per-URL classification
    """
    difference = get_structure_differences(
        _to_endpoints(previous, "previous"),
        _to_endpoints(current, "current"),
    )
    grouped = group_differences(difference)

    return DiffStructuresResponse(
        difference={url: change.value for url, change in difference.items()},
        created=grouped[ChangeType.CREATE],
        updated=grouped[ChangeType.UPDATE],
        deleted=grouped[ChangeType.DELETE],
    )
