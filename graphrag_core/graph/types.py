"""Runtime records for the knowledge graph."""

import hashlib
from dataclasses import dataclass, field


@dataclass
class Entity:
    """Canonical entity with its aliases and evidence."""

    entity_id: str
    name: str
    type: str  # Person, Organization, Technology, Concept, Location, Event, ...
    description: str = ""
    aliases: set[str] = field(default_factory=set)
    source_chunks: set[str] = field(default_factory=set)


@dataclass
class Relation:
    """Directed, typed, evidence-bearing edge between two entities."""

    relation_id: int
    source_id: str
    target_id: str
    relation_type: str  # USES, PROVIDES, RELATES_TO, PART_OF, ...
    evidence: str = ""
    chunk_id: str | None = None
    confidence: float = 1.0

    def other(self, entity_id: str) -> str:
        """Endpoint opposite to ``entity_id``."""
        return self.target_id if self.source_id == entity_id else self.source_id


@dataclass
class EntityCandidate:
    """An entity mention proposed by extraction."""

    name: str
    type: str = ""
    description: str = ""
    chunk_id: str | None = None


@dataclass
class RelationCandidate:
    """An edge proposed by extraction, with endpoints already resolved to ids."""

    source_id: str
    target_id: str
    relation_type: str
    evidence: str = ""
    chunk_id: str | None = None
    confidence: float = 1.0


@dataclass(frozen=True)
class Chunk:
    """Immutable span of source text with its embedding and entity mentions."""

    document_id: str
    chunk_id: str
    offset: tuple[int, int]
    text: str
    embedding: tuple[float, ...] = ()
    entity_ids: frozenset[str] = frozenset()

    @staticmethod
    def make_id(document_id: str, text: str, offset: tuple[int, int]) -> str:
        """Stable chunk id derived from document, text and position."""
        hasher = hashlib.sha256()
        hasher.update(document_id.encode())
        hasher.update(text.encode())
        hasher.update(str(offset[0]).encode())
        hasher.update(str(offset[1]).encode())
        return hasher.hexdigest()[:32]

    @classmethod
    def create(
        cls,
        document_id: str,
        text: str,
        offset: tuple[int, int],
        embedding: list[float] | tuple[float, ...] = (),
        entity_ids: set[str] | frozenset[str] = frozenset(),
    ) -> "Chunk":
        return cls(
            document_id=document_id,
            chunk_id=cls.make_id(document_id, text, offset),
            offset=(offset[0], offset[1]),
            text=text,
            embedding=tuple(float(x) for x in embedding),
            entity_ids=frozenset(entity_ids),
        )


@dataclass(frozen=True)
class PathHit:
    """An entity reached by traversal and the path that reached it."""

    entity_id: str
    path: tuple[str, ...]

    @property
    def hops(self) -> int:
        return len(self.path) - 1


@dataclass(frozen=True)
class Subgraph:
    """Entities plus the relations induced on them."""

    entity_ids: frozenset[str]
    relations: tuple[Relation, ...] = ()


@dataclass(frozen=True)
class GraphSnapshot:
    """Consistent, immutable copy of the graph at one version."""

    version: int
    entities: tuple[Entity, ...]
    relations: tuple[Relation, ...]

    def entity_map(self) -> dict[str, Entity]:
        return {e.entity_id: e for e in self.entities}

    @property
    def is_empty(self) -> bool:
        return not self.entities
