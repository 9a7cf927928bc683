"""Models shared by the TypeScript parser and the type checker."""

from dataclasses import dataclass, field
from typing import Any

from .mock_models import AnalysisError


@dataclass
class ParseResult:
    """Outcome of parsing one source file or buffer."""

    success: bool
    tree: Any | None = None  # tree_sitter.Tree
    source: bytes = b""  # Bytes the tree's node offsets refer to
    errors: list[AnalysisError] = field(default_factory=list)


@dataclass
class CachedSource:
    """Parsed file kept between analysis passes until it changes on disk."""

    tree: Any
    source: bytes
    fingerprint: tuple[int, int]  # (mtime_ns, size) at parse time
    errors: list[AnalysisError] = field(default_factory=list)


@dataclass
class ParserStats:
    cache_hits: int = 0
    cache_misses: int = 0
    evictions: int = 0

    @property
    def cache_hit_rate(self) -> float:
        """Percentage of parse_file calls served from the cache."""
        lookups = self.cache_hits + self.cache_misses
        return self.cache_hits * 100.0 / lookups if lookups else 0.0
