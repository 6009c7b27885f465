"""Query routing across Vanilla, Local and Global retrieval."""

from .router import QueryRouter
from .types import AssembledContext, NoCommunitiesAvailable, QueryMode, QueryResult, RouterConfig

__all__ = [
    "AssembledContext",
    "NoCommunitiesAvailable",
    "QueryMode",
    "QueryResult",
    "QueryRouter",
    "RouterConfig",
]
