"""Entity store, relation graph and the knowledge graph facade."""

from .entity_store import EntityStore, entity_id_for, name_similarity, normalize_name
from .knowledge_graph import KnowledgeGraph
from .relation_graph import RelationGraph
from .types import (
    Chunk,
    Entity,
    EntityCandidate,
    GraphSnapshot,
    PathHit,
    Relation,
    RelationCandidate,
    Subgraph,
)

__all__ = [
    "Chunk",
    "Entity",
    "EntityCandidate",
    "EntityStore",
    "GraphSnapshot",
    "KnowledgeGraph",
    "PathHit",
    "Relation",
    "RelationCandidate",
    "RelationGraph",
    "Subgraph",
    "entity_id_for",
    "name_similarity",
    "normalize_name",
]
