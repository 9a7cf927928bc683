"""Tests for the tree-sitter TypeScript parser and its AST cache."""

import pytest

from tsmock.mock_server.models.parser_models import ParseResult, ParserStats
from tsmock.mock_server.tools.typescript_parser import TypeScriptParser, node_text


def node_types(node) -> set[str]:
    types = {node.type}
    for child in node.children:
        types |= node_types(child)
    return types


class TestTypeScriptParser:
    """Test parsing, error reporting and cache invalidation."""

    @pytest.fixture
    def parser(self):
        return TypeScriptParser(cache_size=4, max_file_size_mb=1)

    def test_parse_source_builds_tree(self, parser):
        result = parser.parse_source("interface User { id: number; }")

        assert isinstance(result, ParseResult)
        assert result.success is True
        assert result.errors == []
        interface = result.tree.root_node.named_children[0]
        assert interface.type == "interface_declaration"
        assert node_text(interface.child_by_field_name("name")) == "User"

    def test_syntax_errors_are_reported_but_tree_is_kept(self, parser):
        result = parser.parse_source("class Broken {\n  method( {\n}\n")

        assert result.success is True
        assert result.tree is not None
        assert result.errors
        assert all(error.code == "PARSE_ERROR" for error in result.errors)
        assert all(error.line is not None for error in result.errors)

    def test_missing_file(self, parser, tmp_path):
        result = parser.parse_file(str(tmp_path / "missing.ts"))

        assert result.success is False
        assert result.errors[0].code == "NOT_FOUND"

    def test_file_too_large(self, tmp_path):
        parser = TypeScriptParser(max_file_size_mb=0)
        path = tmp_path / "big.ts"
        path.write_text("const a = 1;\n")

        result = parser.parse_file(str(path))

        assert result.success is False
        assert result.errors[0].code == "FILE_TOO_LARGE"

    def test_excluded_directory(self, parser, tmp_path):
        path = tmp_path / "node_modules" / "lib" / "index.ts"
        path.parent.mkdir(parents=True)
        path.write_text("export const a = 1;\n")

        result = parser.parse_file(str(path))

        assert result.success is False
        assert result.errors[0].code == "EXCLUDED_PATH"

    def test_cache_hit_and_invalidation(self, parser, tmp_path):
        path = tmp_path / "user.ts"
        path.write_text("interface User { id: number; }\n")

        first = parser.parse_file(str(path))
        second = parser.parse_file(str(path))
        assert second.tree is first.tree

        stats = parser.get_parser_stats()
        assert isinstance(stats, ParserStats)
        assert stats.cache_hits == 1
        assert stats.cache_misses == 1
        assert stats.cache_hit_rate == 50.0

        path.write_text("interface User { id: number; name: string; }\n")
        third = parser.parse_file(str(path))
        assert third.tree is not first.tree
        assert b"name" in third.source

    def test_lru_eviction(self, tmp_path):
        parser = TypeScriptParser(cache_size=2)
        paths = []
        for index in range(3):
            path = tmp_path / f"file{index}.ts"
            path.write_text(f"const value{index} = {index};\n")
            paths.append(str(path))
            parser.parse_file(str(path))

        parser.parse_file(paths[0])

        stats = parser.get_parser_stats()
        assert stats.cache_misses == 4
        assert stats.cache_hits == 0

    def test_tsx_grammar_by_extension(self, parser):
        result = parser.parse_source("const view = <div>{title}</div>;", file_path="view.tsx")

        assert result.success is True
        assert result.errors == []
        assert "jsx_element" in node_types(result.tree.root_node)
