"""Mock server tools implementations."""

from typing import Any

from ...utils.json_parameter_middleware import json_convert
from ..models.mock_models import DiffStructuresResponse, ExtractEndpointsResponse, SyncMockDataResponse
from .diff_structures import diff_structures_impl
from .extract_endpoints import extract_endpoints_impl
from .sync_mock_data import sync_mock_data_impl


def register_mock_tools(mcp):
    """Register mock server tools with the MCP server."""

    @mcp.tool
    @json_convert
    def extract_endpoints(
        base_path: str | None = None,
        config_path: str | None = None,
        includes: str | list[str] | None = None,
        excludes: str | list[str] | None = None,
    ) -> ExtractEndpointsResponse:
        """
        Find request call sites in TypeScript classes and resolve their response shapes.

        Use this tool when:
        - Listing the endpoints a frontend service layer calls
        - Checking the response shape a call site declares
        - Reviewing what a mock sync would write before running it

        Args:
            base_path: Directory to scan (default: configured base_path)
            config_path: tsconfig.json path (default: configured config_path)
            includes: Regexes for class names to scan, e.g. "Service$" or ["Api", "Service"]
            excludes: Regexes for class names to skip

        Example:
            extract_endpoints("src", includes=["Service$"])
            → ExtractEndpointsResponse with [{"url": "/user/1", "responseBody": {...}}]
        """
        return extract_endpoints_impl(
            base_path=base_path,
            config_path=config_path,
            includes=includes,
            excludes=excludes,
        )

    @mcp.tool
    @json_convert
    def diff_structures(
        previous: list[dict[str, Any]],
        current: list[dict[str, Any]],
    ) -> DiffStructuresResponse:
        """
        Compare two endpoint snapshots and classify each changed URL.

        Use this tool when:
        - Checking which endpoints changed between two structure.json files
        - Deciding which mock values need regenerating

        Args:
            previous: Earlier snapshot, a list of {"url", "responseBody"} objects
            current: Later snapshot in the same format

        Example:
            diff_structures([{"url": "/a", "responseBody": {}}], [])
            → DiffStructuresResponse(difference={"/a": "delete"}, ...)
        """
        return diff_structures_impl(previous=previous, current=current)

    @mcp.tool
    @json_convert
    def sync_mock_data(
        base_path: str | None = None,
        config_path: str | None = None,
        mock_dir: str | None = None,
        includes: str | list[str] | None = None,
        excludes: str | list[str] | None = None,
        seed: int | None = None,
    ) -> SyncMockDataResponse:
        """
        Rescan sources and update structure.json and mock.json in the mock directory.

        Hand-edited mock values survive for endpoints whose response shape did
        not change. New and changed endpoints get generated values; removed
        endpoints are dropped.

        Args:
            base_path: Directory to scan (default: configured base_path)
            config_path: tsconfig.json path (default: configured config_path)
            mock_dir: Directory for structure.json and mock.json (default: configured mock_dir)
            includes: Regexes for class names to scan
            excludes: Regexes for class names to skip
            seed: Random seed for reproducible generated values

        Example:
            sync_mock_data("src", mock_dir=".mock", includes="Service$")
            → SyncMockDataResponse with the mock entries and {"/user/1": "create"}
        """
        return sync_mock_data_impl(
            base_path=base_path,
            config_path=config_path,
            mock_dir=mock_dir,
            includes=includes,
            excludes=excludes,
            seed=seed,
        )
