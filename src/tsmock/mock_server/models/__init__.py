"""Models for the mock server."""

from .mock_models import (
    AnalysisError,
    ChangeType,
    DiffStructuresResponse,
    Endpoint,
    ExtractEndpointsResponse,
    MockEntry,
    ScanResult,
    SyncMockDataResponse,
    SyncResult,
)
from .parser_models import CachedSource, ParserStats, ParseResult
from .type_models import (
    INDEXABLE_TYPE,
    RECORD_TYPE,
    EnumEntry,
    InterfaceEntry,
    MappedTypeEntry,
    Property,
    PropertyKind,
    ResolvedType,
)

__all__ = [
    "AnalysisError",
    "CachedSource",
    "ChangeType",
    "DiffStructuresResponse",
    "Endpoint",
    "EnumEntry",
    "ExtractEndpointsResponse",
    "INDEXABLE_TYPE",
    "InterfaceEntry",
    "MappedTypeEntry",
    "MockEntry",
    "ParseResult",
    "ParserStats",
    "Property",
    "PropertyKind",
    "RECORD_TYPE",
    "ResolvedType",
    "ScanResult",
    "SyncMockDataResponse",
    "SyncResult",
]
