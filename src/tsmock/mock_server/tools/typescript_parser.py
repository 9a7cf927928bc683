"""
tree-sitter front end for TypeScript sources.

Every analysis pass re-reads the whole source tree, so parsed files are kept
in a bounded LRU cache. A cached tree is reused while the file's
(mtime_ns, size) fingerprint is unchanged; an edited file is parsed again.
"""

import logging
import os
from collections import OrderedDict
from dataclasses import replace
from pathlib import PurePath
from typing import Any

import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Parser

from ..models.mock_models import AnalysisError
from ..models.parser_models import CachedSource, ParseResult, ParserStats

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = {".git", "node_modules", "dist", "build", ".next", ".nuxt"}

TS_LANGUAGE = Language(ts_typescript.language_typescript())
TSX_LANGUAGE = Language(ts_typescript.language_tsx())


def node_text(node: Any) -> str:
    """Source text of a node, or '' for a missing node."""
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _fingerprint(file_path: str) -> tuple[int, int]:
    stat = os.stat(file_path)
    return stat.st_mtime_ns, stat.st_size


def _syntax_errors(root: Any, file_path: str) -> list[AnalysisError]:
    """PARSE_ERROR records for ERROR and MISSING nodes, in source order."""
    errors = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            line = node.start_point[0] + 1
            errors.append(
                AnalysisError(code="PARSE_ERROR", message=f"Syntax error at line {line}", file=file_path, line=line)
            )
        stack.extend(reversed(node.children))
    return errors


class TypeScriptParser:
    """
    Parses .ts and .tsx files and caches the trees across analysis passes.

    Files under dependency or build output directories are refused, as are
    files larger than `max_file_size_mb`. Syntax errors do not fail a parse:
    tree-sitter recovers and the errors are reported next to the tree.
    """

    def __init__(self, cache_size: int = 512, max_file_size_mb: int = 5):
        self.cache_size = cache_size
        self.max_file_size_mb = max_file_size_mb
        self.max_file_size_bytes = max_file_size_mb * 1024 * 1024

        self._ts_parser = Parser(TS_LANGUAGE)
        self._tsx_parser = Parser(TSX_LANGUAGE)

        self._cache: OrderedDict[str, CachedSource] = OrderedDict()
        self._stats = ParserStats()

    def parse_file(self, file_path: str) -> ParseResult:
        """
        Parse a file from disk, reusing the cached tree when it is unchanged.

        Returns:
            ParseResult; `success` is False with a NOT_FOUND, EXCLUDED_PATH,
            FILE_TOO_LARGE or PERMISSION_DENIED error when nothing was parsed
        """
        cached = self._lookup(file_path)
        if cached is not None:
            self._stats.cache_hits += 1
            return ParseResult(success=True, tree=cached.tree, source=cached.source, errors=list(cached.errors))

        if not os.path.exists(file_path):
            return self._failure("NOT_FOUND", f"File not found: {file_path}", file_path)

        if self._is_excluded_path(file_path):
            return self._failure("EXCLUDED_PATH", f"File in excluded directory: {file_path}", file_path)

        try:
            fingerprint = _fingerprint(file_path)
            if fingerprint[1] > self.max_file_size_bytes:
                return self._failure(
                    "FILE_TOO_LARGE", f"File exceeds size limit ({self.max_file_size_mb}MB): {file_path}", file_path
                )
            with open(file_path, "rb") as f:
                content = f.read()
        except OSError as e:
            return self._failure("PERMISSION_DENIED", f"Cannot read file: {e}", file_path)

        self._stats.cache_misses += 1
        result = self.parse_source(content, file_path=file_path)
        if result.success:
            self._store(file_path, CachedSource(result.tree, result.source, fingerprint, list(result.errors)))
        return result

    def parse_source(self, source: str | bytes, file_path: str = "<memory>.ts") -> ParseResult:
        """Parse an in-memory buffer; a `.tsx` file_path selects the TSX grammar."""
        content = source.encode("utf-8") if isinstance(source, str) else source
        parser = self._tsx_parser if file_path.endswith(".tsx") else self._ts_parser

        try:
            tree = parser.parse(content)
        except Exception as e:
            return self._failure("PARSE_ERROR", f"Failed to parse file: {e}", file_path)

        errors = _syntax_errors(tree.root_node, file_path) if tree.root_node.has_error else []
        return ParseResult(success=True, tree=tree, source=content, errors=errors)

    @staticmethod
    def _failure(code: str, message: str, file_path: str) -> ParseResult:
        return ParseResult(success=False, errors=[AnalysisError(code=code, message=message, file=file_path)])

    def _is_excluded_path(self, file_path: str) -> bool:
        return any(part in EXCLUDED_DIRS for part in PurePath(file_path).parts[:-1])

    def _lookup(self, file_path: str) -> CachedSource | None:
        cached = self._cache.get(file_path)
        if cached is None:
            return None
        try:
            current = _fingerprint(file_path)
        except OSError:
            current = None
        if current != cached.fingerprint:
            del self._cache[file_path]
            return None
        self._cache.move_to_end(file_path)
        return cached

    def _store(self, file_path: str, cached: CachedSource) -> None:
        while self._cache and len(self._cache) >= self.cache_size:
            evicted, _ = self._cache.popitem(last=False)
            self._stats.evictions += 1
            logger.debug("Evicted %s from AST cache", evicted)
        self._cache[file_path] = cached

    def get_parser_stats(self) -> ParserStats:
        return replace(self._stats)
