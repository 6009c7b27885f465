"""Graph-aware retrieval engine: entity graph, communities and query routing."""

from .engine import GraphRAGEngine, RefreshOutcome
from .errors import (
    DanglingEndpoint,
    ExtractionFailed,
    GraphRAGError,
    QueryStageError,
    SchemaValidationError,
    StageTimeout,
    StaleCommunitySnapshot,
    UnknownEntity,
)
from .ingestion import ExtractionReport, SourceChunk
from .routing import NoCommunitiesAvailable, QueryMode, QueryResult

__version__ = "0.1.0"

__all__ = [
    "DanglingEndpoint",
    "ExtractionFailed",
    "ExtractionReport",
    "GraphRAGEngine",
    "GraphRAGError",
    "NoCommunitiesAvailable",
    "QueryMode",
    "QueryResult",
    "QueryStageError",
    "RefreshOutcome",
    "SchemaValidationError",
    "SourceChunk",
    "StageTimeout",
    "StaleCommunitySnapshot",
    "UnknownEntity",
]
