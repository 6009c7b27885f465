"""Pydantic document models for serialization."""

from .chunks import ChunkDocument
from .communities import CommunityDocument
from .entities import EntityDocument, RelationDocument
from .graph import FORMAT_VERSION, GraphSnapshotDocument

__all__ = [
    "FORMAT_VERSION",
    "ChunkDocument",
    "CommunityDocument",
    "EntityDocument",
    "GraphSnapshotDocument",
    "RelationDocument",
]
