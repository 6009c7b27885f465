"""Query modes, router configuration and query results."""

from dataclasses import dataclass, field
from enum import Enum

from graphrag_core.communities.summary_index import CommunityHit
from graphrag_core.graph.types import Chunk, Entity, Relation


class QueryMode(str, Enum):
    """Retrieval strategy; chosen explicitly by the caller."""

    VANILLA = "vanilla"  # Chunk similarity only
    LOCAL = "local"  # Chunks + entity neighbourhood
    GLOBAL = "global"  # Community summaries


STAGE_EMBED = "embed"
STAGE_VECTOR_SEARCH = "vector_search"
STAGE_GRAPH_EXPANSION = "graph_expansion"
STAGE_GENERATION = "generation"


@dataclass
class RouterConfig:
    """Configuration for query routing."""

    top_k: int = 10
    hop_limit: int = 2
    community_top_k: int = 5

    # Global mode: pull representative entities for each matched community
    expand_community_entities: bool = True
    entities_per_community: int = 5

    max_context_entities: int = 50
    max_context_relations: int = 100

    # Seconds per stage
    stage_timeouts: dict[str, float] = field(
        default_factory=lambda: {
            STAGE_EMBED: 10.0,
            STAGE_VECTOR_SEARCH: 10.0,
            STAGE_GRAPH_EXPANSION: 5.0,
            STAGE_GENERATION: 60.0,
        }
    )

    def timeout_for(self, stage: str) -> float | None:
        return self.stage_timeouts.get(stage)


@dataclass
class AssembledContext:
    """What was retrieved for a query, in structured and prompt form."""

    text: str = ""
    chunks: list[Chunk] = field(default_factory=list)
    entities: list[Entity] = field(default_factory=list)
    relations: list[Relation] = field(default_factory=list)
    communities: list[CommunityHit] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.chunks or self.entities or self.relations or self.communities)


@dataclass
class QueryResult:
    """Answer plus the context it was generated from."""

    query: str
    answer: str
    mode: QueryMode
    context: AssembledContext
    timings: dict[str, float] = field(default_factory=dict)  # stage -> milliseconds


@dataclass
class NoCommunitiesAvailable:
    """Global query issued before any communities were built."""

    query: str
    mode: QueryMode = QueryMode.GLOBAL
    message: str = "No community summaries are available; refresh communities first"
    timings: dict[str, float] = field(default_factory=dict)
