"""Structural difference between two endpoint snapshots."""

from typing import Any

from ..models.mock_models import ChangeType, Endpoint


def structure_to_map(structure: list[Endpoint]) -> dict[str, Any]:
    """url -> response body; a repeated URL keeps its first position and last body."""
    result = {}
    for endpoint in structure:
        result[endpoint.url] = endpoint.response_body
    return result


def get_structure_differences(previous: list[Endpoint], current: list[Endpoint]) -> dict[str, ChangeType]:
    """
    Classify every URL that differs between two snapshots.

    URLs only in `current` are CREATE, URLs in both whose response bodies are
    not deeply equal are UPDATE, URLs only in `previous` are DELETE. Unchanged
    URLs are omitted. Ordering follows `current` for CREATE/UPDATE and then
    `previous` for DELETE.
    """
    previous_map = structure_to_map(previous)
    current_map = structure_to_map(current)

    differences: dict[str, ChangeType] = {}
    for url, body in current_map.items():
        if url not in previous_map:
            differences[url] = ChangeType.CREATE
        elif previous_map[url] != body:
            differences[url] = ChangeType.UPDATE

    for url in previous_map:
        if url not in current_map:
            differences[url] = ChangeType.DELETE

    return differences


def group_differences(difference: dict[str, ChangeType]) -> dict[ChangeType, list[str]]:
    """URLs per change type, each list in difference order."""
    grouped: dict[ChangeType, list[str]] = {change: [] for change in ChangeType}
    for url, change in difference.items():
        grouped[change].append(url)
    return grouped
