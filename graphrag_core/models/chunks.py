"""Chunk document model for graph export."""

from pydantic import BaseModel, Field

from graphrag_core.graph.types import Chunk


class ChunkDocument(BaseModel):
    """Chunk document with embedding and entity mentions."""

    chunk_id: str = Field(..., description="Content-derived chunk identifier")
    document_id: str = Field(..., description="Parent document ID")
    offset: tuple[int, int] = Field(..., description="Start and end offset in the document")
    text: str = Field(..., description="Chunk text")
    embedding: list[float] = Field(default_factory=list, description="Chunk embedding vector")
    entity_ids: list[str] = Field(default_factory=list, description="Entities mentioned in the chunk")

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "ChunkDocument":
        return cls(
            chunk_id=chunk.chunk_id,
            document_id=chunk.document_id,
            offset=chunk.offset,
            text=chunk.text,
            embedding=list(chunk.embedding),
            entity_ids=sorted(chunk.entity_ids),
        )

    def to_chunk(self) -> Chunk:
        return Chunk(
            document_id=self.document_id,
            chunk_id=self.chunk_id,
            offset=self.offset,
            text=self.text,
            embedding=tuple(self.embedding),
            entity_ids=frozenset(self.entity_ids),
        )
