"""
Mock server models for endpoints, mock entries and tool responses.

These dataclasses define the persisted file formats (structure.json and
mock.json) and the typed responses returned by the FastMCP tools.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class AnalysisError:
    """Standard error information for analysis operations."""

    code: str  # Error code like "PARSE_ERROR", "UNRESOLVED_RESPONSE_TYPE", etc.
    message: str  # Human-readable error message
    file: str | None = None  # File path where error occurred
    line: int | None = None  # Line number where error occurred


class ChangeType(str, Enum):
    """Classification of a URL between two structure snapshots."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class Endpoint:
    """One discovered request call site and its canonical response shape."""

    url: str
    response_body: Any

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "responseBody": self.response_body}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Endpoint":
        return cls(url=data["url"], response_body=data.get("responseBody", {}))


@dataclass
class MockEntry:
    """Persisted mock value for one endpoint."""

    url: str
    response: Any
    http_code: int | None = None  # HTTP status code
    timeout: int | None = None  # Delay time in milliseconds
    # Entry as read from mock.json; written back unchanged, extra keys and nulls included
    raw: dict[str, Any] | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        if self.raw is not None:
            return dict(self.raw)
        data: dict[str, Any] = {"url": self.url}
        if self.http_code is not None:
            data["httpCode"] = self.http_code
        if self.timeout is not None:
            data["timeout"] = self.timeout
        data["response"] = self.response
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MockEntry":
        return cls(
            url=data["url"],
            response=data.get("response", {}),
            http_code=data.get("httpCode"),
            timeout=data.get("timeout"),
            raw=dict(data),
        )


@dataclass
class ScanResult:
    """Endpoints found by one analysis pass plus recoverable errors."""

    endpoints: list[Endpoint]
    errors: list[AnalysisError] = field(default_factory=list)
    files_analyzed: int = 0


@dataclass
class SyncResult:
    """Outcome of a scan, diff and synchronize pass."""

    structure: list[Endpoint]
    difference: dict[str, ChangeType]
    mock_data: list[MockEntry]
    persisted: bool = False
    errors: list[AnalysisError] = field(default_factory=list)


@dataclass
class ExtractEndpointsResponse:
    """Response schema for extract_endpoints tool."""

    endpoints: list[dict[str, Any]]
    total_endpoints: int
    files_analyzed: int
    errors: list[AnalysisError]


@dataclass
class DiffStructuresResponse:
    """Response schema for diff_structures tool."""

    difference: dict[str, str]
    created: list[str]
    updated: list[str]
    deleted: list[str]


@dataclass
class SyncMockDataResponse:
    """Response schema for sync_mock_data tool."""

    mock_data: list[dict[str, Any]]
    difference: dict[str, str]
    persisted: bool
    errors: list[AnalysisError]
