"""Entity and relation document models for graph export."""

from typing import Optional

from pydantic import BaseModel, Field

from graphrag_core.graph.types import Entity, Relation


class EntityDocument(BaseModel):
    """Entity document for knowledge graph export."""

    entity_id: str = Field(..., description="Unique entity identifier")
    name: str = Field(..., description="Canonical entity name")
    type: str = Field(default="", description="Entity type (Person, Organization, Technology, etc.)")
    description: str = Field(default="", description="Entity description")
    aliases: list[str] = Field(default_factory=list, description="Surface forms mapped to this entity")
    source_chunks: list[str] = Field(default_factory=list, description="Source chunk IDs")

    class Config:
        json_schema_extra = {
            "example": {
                "entity_id": "ent_3f1c0d9a7b2e4c11",
                "name": "Jane Doe",
                "type": "Person",
                "description": "Chief scientist at Acme",
                "aliases": ["Jane Doe", "J. Doe"],
                "source_chunks": ["9b0c6a4e21d3f7a85c6e0b1d2f3a4b5c"],
            }
        }

    @classmethod
    def from_entity(cls, entity: Entity) -> "EntityDocument":
        return cls(
            entity_id=entity.entity_id,
            name=entity.name,
            type=entity.type,
            description=entity.description,
            aliases=sorted(entity.aliases),
            source_chunks=sorted(entity.source_chunks),
        )

    def to_entity(self) -> Entity:
        return Entity(
            entity_id=self.entity_id,
            name=self.name,
            type=self.type,
            description=self.description,
            aliases=set(self.aliases),
            source_chunks=set(self.source_chunks),
        )


class RelationDocument(BaseModel):
    """Directed relation between two entities."""

    relation_id: int = Field(..., ge=0, description="Arena index of the relation")
    source_id: str = Field(..., description="Source entity ID")
    target_id: str = Field(..., description="Target entity ID")
    relation_type: str = Field(..., description="Relationship type (e.g., USES, PROVIDES)")
    evidence: str = Field(default="", description="Text span supporting the relation")
    chunk_id: Optional[str] = Field(None, description="Chunk the evidence came from")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0, description="Extraction confidence")

    @classmethod
    def from_relation(cls, relation: Relation) -> "RelationDocument":
        return cls(
            relation_id=relation.relation_id,
            source_id=relation.source_id,
            target_id=relation.target_id,
            relation_type=relation.relation_type,
            evidence=relation.evidence,
            chunk_id=relation.chunk_id,
            confidence=relation.confidence,
        )

    def to_relation(self) -> Relation:
        return Relation(
            relation_id=self.relation_id,
            source_id=self.source_id,
            target_id=self.target_id,
            relation_type=self.relation_type,
            evidence=self.evidence,
            chunk_id=self.chunk_id,
            confidence=self.confidence,
        )
