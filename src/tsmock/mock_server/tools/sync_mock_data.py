"""Run one synchronization pass and persist the mock store."""

from pathlib import Path

from .._security import get_project_root, resolve_tsconfig_path, validate_project_path
from ..config import get_config
from ..models.mock_models import SyncMockDataResponse
from .mock_data_resolver import MockDataResolver, get_active_resolver


def _watch_conflicts(resolver: MockDataResolver, **requested) -> list[str]:
    """Names of explicitly passed settings that differ from the watching resolver's."""
    conflicts = []
    for name, value in requested.items():
        if value is None:
            continue
        current = getattr(resolver, name)
        if name in ("base_path", "config_path"):
            current = str(Path(current).resolve()) if current else None
            value = str(Path(value).resolve())
        elif isinstance(value, str):
            value = [value]
        if value != current:
            conflicts.append(name)
    return conflicts


def sync_mock_data_impl(
    base_path: str | None = None,
    config_path: str | None = None,
    mock_dir: str | None = None,
    includes: str | list[str] | None = None,
    excludes: str | list[str] | None = None,
    seed: int | None = None,
) -> SyncMockDataResponse:
    """
    Rescan the project and bring structure.json and mock.json up to date.

    Unchanged endpoints keep their stored mock values; created and updated
    endpoints get generated values; deleted endpoints are removed. When the
    server is watching the same mock directory the pass runs on the watching
    resolver, after any pass it has in flight.

    Args:
        base_path: Directory to scan, relative to the project root
        config_path: tsconfig.json path, relative to the project root
        mock_dir: Directory holding structure.json and mock.json
        includes: Class name regexes to scan
        excludes: Class name regexes to skip
        seed: Random seed for reproducible generated values

    Returns:
        SyncMockDataResponse with the new mock store and the difference
    """
    config = get_config()
    project_root = get_project_root()

    try:
        scan_path = validate_project_path(base_path or config.base_path, project_root)
        tsconfig_path = resolve_tsconfig_path(config_path, config.config_path, project_root)
        store_path = validate_project_path(mock_dir or config.mock_dir, project_root)

        resolver = get_active_resolver(str(store_path))
        if resolver is not None:
            conflicts = _watch_conflicts(
                resolver,
                base_path=str(scan_path) if base_path else None,
                config_path=str(tsconfig_path) if config_path and tsconfig_path else None,
                includes=includes,
                excludes=excludes,
                seed=seed,
            )
            if conflicts:
                raise ValueError(
                    f"{store_path} is being watched with different settings ({', '.join(conflicts)}); "
                    "omit them or use another mock_dir"
                )
        else:
            resolver = MockDataResolver(
                base_path=str(scan_path),
                config_path=str(tsconfig_path) if tsconfig_path else None,
                includes=includes if includes is not None else config.includes,
                excludes=excludes if excludes is not None else config.excludes,
                mock_dir=str(store_path),
                seed=seed if seed is not None else config.seed,
            )
        result = resolver.run_pass()
    except Exception as e:
        raise ValueError(f"Failed to sync mock data: {str(e)}") from e

    return SyncMockDataResponse(
        mock_data=[entry.to_dict() for entry in result.mock_data],
        difference={url: change.value for url, change in result.difference.items()},
        persisted=result.persisted,
        errors=result.errors,
    )
