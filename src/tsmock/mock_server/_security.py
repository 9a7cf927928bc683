"""Path helpers for the mock server tools."""

import os
from pathlib import Path


def get_project_root() -> str:
    """Get project root from environment or default.

    Returns:
        Project root directory path from MCP_FILE_ROOT environment variable,
        or current directory as fallback
    """
    return os.getenv("MCP_FILE_ROOT", ".")


def validate_project_path(file_path: str, project_root: str | Path) -> Path:
    """Resolve a tool path and make sure it stays inside the project root.

    Args:
        file_path: Absolute path, or path relative to the project root
        project_root: Root directory of the project

    Returns:
        Validated absolute path

    Raises:
        ValueError: If path is outside project root
    """
    project_path = Path(project_root).resolve()
    path = Path(file_path)

    # If it's absolute, it should be within project_root
    if path.is_absolute():
        abs_path = path.resolve()
    else:
        abs_path = (project_path / path).resolve()

    try:
        abs_path.relative_to(project_path)
    except ValueError as e:
        raise ValueError(f"Path outside project root: {file_path}") from e

    return abs_path


def resolve_tsconfig_path(config_path: str | None, default: str | None, project_root: str | Path) -> Path | None:
    """Validated tsconfig path for a tool call.

    An explicit `config_path` is always used. The configured default is
    skipped when the project does not have that file.
    """
    if config_path:
        return validate_project_path(config_path, project_root)
    if not default:
        return None
    path = validate_project_path(default, project_root)
    return path if path.exists() else None
