"""Resolve compiler options from a target project's tsconfig.json."""

import json
import logging
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Line and block comments outside of string literals
_COMMENT_PATTERN = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA_PATTERN = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')


def _strip_jsonc(content: str) -> str:
    """Remove comments and trailing commas that tsconfig files commonly contain."""
    without_comments = _COMMENT_PATTERN.sub(lambda m: m.group(1) or "", content)
    return _TRAILING_COMMA_PATTERN.sub(lambda m: m.group(1) or m.group(2), without_comments)


class TsConfigResolver:
    """
    Reads a tsconfig.json and exposes its compiler options.

    A missing or malformed configuration is reported through the logger and
    analysis continues with an empty option set.
    """

    def __init__(self, path: str | None):
        self.path = path
        self.error: str | None = None
        config = self.get_config()
        self.compiler_options = self.get_compiler_options_from_config(config)

    def get_compiler_options(self) -> dict[str, Any]:
        return self.compiler_options

    def get_config(self) -> dict[str, Any]:
        if not self.path:
            return {}

        try:
            content = Path(self.path).read_text(encoding="utf-8")
            config = json.loads(_strip_jsonc(content))
        except (OSError, ValueError) as e:
            self.error = f"Cannot read compiler configuration {self.path}: {e}"
            logger.error(self.error)
            return {}

        if not isinstance(config, dict):
            self.error = f"Compiler configuration {self.path} is not an object"
            logger.error(self.error)
            return {}
        return config

    def get_compiler_options_from_config(self, config: dict[str, Any]) -> dict[str, Any]:
        options = config.get("compilerOptions") or {}
        if not isinstance(options, dict):
            logger.error("compilerOptions in %s is not an object, using defaults", self.path)
            return {}
        return dict(options)

    @property
    def jsx_enabled(self) -> bool:
        """Whether .tsx files belong to the program."""
        return bool(self.compiler_options.get("jsx"))
