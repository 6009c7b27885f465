"""Serialized form of a whole engine state."""

from pydantic import BaseModel, Field

from .chunks import ChunkDocument
from .communities import CommunityDocument
from .entities import EntityDocument, RelationDocument

FORMAT_VERSION = 1


class GraphSnapshotDocument(BaseModel):
    """Everything needed to restore a graph and its communities."""

    format_version: int = Field(default=FORMAT_VERSION, description="Serialization format version")
    graph_version: int = Field(..., ge=0, description="Graph mutation counter")
    next_relation_id: int = Field(..., ge=0, description="Next relation arena index")
    entities: list[EntityDocument] = Field(default_factory=list)
    forwarding: dict[str, str] = Field(default_factory=dict, description="Absorbed id -> surviving id")
    relations: list[RelationDocument] = Field(default_factory=list)
    chunks: list[ChunkDocument] = Field(default_factory=list)
    communities: list[CommunityDocument] = Field(default_factory=list)
    community_graph_version: int = Field(default=0, ge=0, description="Graph version communities were built from")
