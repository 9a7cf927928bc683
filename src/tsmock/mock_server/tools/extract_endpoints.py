"""Extract request endpoints and their response shapes from a TypeScript project."""

from .._security import get_project_root, resolve_tsconfig_path, validate_project_path
from ..config import get_config
from ..models.mock_models import ExtractEndpointsResponse
from .visit_files import get_structure_from_files


def extract_endpoints_impl(
    base_path: str | None = None,
    config_path: str | None = None,
    includes: str | list[str] | None = None,
    excludes: str | list[str] | None = None,
) -> ExtractEndpointsResponse:
    """
    Scan a project and return every endpoint with its canonical response body.

    Args:
        base_path: Directory to scan, relative to the project root
        config_path: tsconfig.json path, relative to the project root
        includes: Class name regexes to scan
        excludes: Class name regexes to skip

    Returns:
        ExtractEndpointsResponse with endpoints in discovery order
    """
    config = get_config()
    project_root = get_project_root()

    try:
        scan_path = validate_project_path(base_path or config.base_path, project_root)
        tsconfig_path = resolve_tsconfig_path(config_path, config.config_path, project_root)

        result = get_structure_from_files(
            str(scan_path),
            str(tsconfig_path) if tsconfig_path else None,
            includes if includes is not None else config.includes,
            excludes if excludes is not None else config.excludes,
        )
    except Exception as e:
        raise ValueError(f"Failed to extract endpoints: {str(e)}") from e

    return ExtractEndpointsResponse(
        endpoints=[endpoint.to_dict() for endpoint in result.endpoints],
        total_endpoints=len(result.endpoints),
        files_analyzed=result.files_analyzed,
        errors=result.errors,
    )
