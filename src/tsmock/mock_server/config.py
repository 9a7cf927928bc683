"""Configuration management for the mock server."""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tsmock.yaml"


def _split_patterns(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class MockServerConfig:
    """Configuration class for the mock server."""

    # Project Configuration
    project_root: str = "."
    base_path: str = "src"
    config_path: str = "tsconfig.json"
    mock_dir: str = ".mock"

    # Class selection (regular expressions matched against class names)
    includes: list[str] = field(default_factory=lambda: [".*"])
    excludes: list[str] = field(default_factory=list)

    # Runtime Configuration
    watch: bool = False  # Keep the mock store in sync while the server runs
    poll_interval: float = 0.5  # seconds
    seed: int | None = None

    def validate(self) -> tuple[bool, list[str]]:
        """Validate configuration settings."""
        errors = []

        if self.poll_interval <= 0:
            errors.append("poll_interval must be positive")

        if not self.base_path:
            errors.append("base_path cannot be empty")

        if not isinstance(self.includes, list) or not all(isinstance(item, str) for item in self.includes):
            errors.append("includes must be a list of regular expressions")

        if not isinstance(self.excludes, list) or not all(isinstance(item, str) for item in self.excludes):
            errors.append("excludes must be a list of regular expressions")

        return len(errors) == 0, errors

    def __post_init__(self):
        """Post-initialization validation."""
        is_valid, errors = self.validate()
        if not is_valid:
            raise ValueError(f"Invalid configuration: {', '.join(errors)}")

    def resolve(self, path: str | None) -> str | None:
        """Resolve a path relative to the project root."""
        if not path:
            return path
        if os.path.isabs(path):
            return path
        return str(Path(self.project_root) / path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MockServerConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))
        values = {key: value for key, value in data.items() if key in known}
        for key in ("includes", "excludes"):
            if isinstance(values.get(key), str):
                values[key] = [values[key]]
        return cls(**values)


def load_config(path: str | None = None) -> MockServerConfig:
    """
    Load configuration from a YAML file with environment variable overrides.

    Args:
        path: YAML file to read. Defaults to tsmock.yaml under MCP_FILE_ROOT;
            a missing default file is not an error.

    Raises:
        ValueError: If the file cannot be parsed or the settings are invalid
    """
    project_root = os.getenv("MCP_FILE_ROOT", ".")
    explicit = path is not None
    config_file = Path(path) if explicit else Path(project_root) / CONFIG_FILE_NAME

    data: dict[str, Any] = {}
    if config_file.exists():
        try:
            with open(config_file, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid configuration file {config_file}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {config_file} must contain a mapping")
    elif explicit:
        raise ValueError(f"Configuration file not found: {config_file}")

    data.setdefault("project_root", project_root)
    return MockServerConfig.from_dict(apply_environment_overrides(data))


def apply_environment_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply TSMOCK_* environment variables on top of file settings."""
    config = data.copy()

    if "TSMOCK_BASE_PATH" in os.environ:
        config["base_path"] = os.environ["TSMOCK_BASE_PATH"]

    if "TSMOCK_CONFIG_PATH" in os.environ:
        config["config_path"] = os.environ["TSMOCK_CONFIG_PATH"]

    if "TSMOCK_MOCK_DIR" in os.environ:
        config["mock_dir"] = os.environ["TSMOCK_MOCK_DIR"]

    if "TSMOCK_INCLUDES" in os.environ:
        config["includes"] = _split_patterns(os.environ["TSMOCK_INCLUDES"])

    if "TSMOCK_EXCLUDES" in os.environ:
        config["excludes"] = _split_patterns(os.environ["TSMOCK_EXCLUDES"])

    if "TSMOCK_WATCH" in os.environ:
        config["watch"] = os.environ["TSMOCK_WATCH"].lower() in ("1", "true", "yes")

    try:
        if "TSMOCK_POLL_INTERVAL" in os.environ:
            config["poll_interval"] = float(os.environ["TSMOCK_POLL_INTERVAL"])

        if "TSMOCK_SEED" in os.environ:
            config["seed"] = int(os.environ["TSMOCK_SEED"])
    except ValueError as e:
        raise ValueError(f"Invalid environment override: {e}") from e

    return config


# Global configuration instance
_config: MockServerConfig | None = None


def get_config() -> MockServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: MockServerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
