"""Community document model for graph export."""

from typing import Optional

from pydantic import BaseModel, Field

from graphrag_core.communities.types import Community


class CommunityDocument(BaseModel):
    """Community document with its hierarchical summary."""

    community_id: str = Field(..., description="Unique community identifier")
    level: int = Field(..., ge=0, description="Hierarchical level (0 is coarsest)")
    member_ids: list[str] = Field(..., min_length=1, description="Member entity IDs")
    summary: str = Field(default="", description="Community summary")
    summary_embedding: list[float] = Field(default_factory=list, description="Summary embedding vector")
    parent_community_id: Optional[str] = Field(None, description="Parent community ID")
    child_community_ids: list[str] = Field(
        default_factory=list, description="Child community IDs"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "community_id": "comm_0_5e2b9c1f03aa",
                "level": 0,
                "member_ids": ["ent_3f1c0d9a7b2e4c11", "ent_a61b7c2d9e0f4a33"],
                "summary": "This community covers Acme's research leadership...",
                "summary_embedding": [0.1, 0.2, 0.3],
                "parent_community_id": None,
                "child_community_ids": ["comm_1_0c4d2e8a9b71"],
            }
        }

    @classmethod
    def from_community(cls, community: Community) -> "CommunityDocument":
        return cls(
            community_id=community.community_id,
            level=community.level,
            member_ids=list(community.member_ids),
            summary=community.summary,
            summary_embedding=list(community.summary_embedding),
            parent_community_id=community.parent_id,
            child_community_ids=list(community.child_ids),
        )

    def to_community(self) -> Community:
        return Community(
            community_id=self.community_id,
            level=self.level,
            member_ids=tuple(self.member_ids),
            summary=self.summary,
            summary_embedding=tuple(self.summary_embedding),
            parent_id=self.parent_community_id,
            child_ids=tuple(self.child_community_ids),
        )
