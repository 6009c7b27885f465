"""Query endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from graphrag_core.api.main import get_engine
from graphrag_core.engine import GraphRAGEngine
from graphrag_core.errors import QueryStageError, StageTimeout
from graphrag_core.routing import NoCommunitiesAvailable, QueryMode

logger = logging.getLogger(__name__)
router = APIRouter(tags=["query"])


class QueryRequest(BaseModel):
    """Query request."""

    query: str = Field(..., min_length=1, description="The user's question")
    mode: QueryMode = Field(default=QueryMode.LOCAL, description="Retrieval mode: vanilla, local, global")
    top_k: int | None = Field(default=None, ge=1, le=100, description="Search depth")
    hop_limit: int | None = Field(default=None, ge=0, le=5, description="Local expansion depth")


class ChunkInfo(BaseModel):
    chunk_id: str
    document_id: str
    text: str


class EntityInfo(BaseModel):
    entity_id: str
    name: str
    type: str
    description: str


class RelationInfo(BaseModel):
    relation_id: int
    source_id: str
    target_id: str
    relation_type: str
    evidence: str
    confidence: float


class CommunityInfo(BaseModel):
    community_id: str
    level: int
    score: float
    summary: str


class QueryResponse(BaseModel):
    """Query response."""

    query: str
    mode: QueryMode
    available: bool = True
    answer: str | None = None
    message: str | None = None
    timings: dict[str, float] = Field(default_factory=dict)
    chunks: list[ChunkInfo] = Field(default_factory=list)
    entities: list[EntityInfo] = Field(default_factory=list)
    relations: list[RelationInfo] = Field(default_factory=list)
    communities: list[CommunityInfo] = Field(default_factory=list)


@router.post("/query", response_model=QueryResponse)
async def query(
    request: QueryRequest,
    engine: GraphRAGEngine = Depends(get_engine),
) -> QueryResponse:
    """Answer a query in the requested mode.

    Returns 504 when a stage times out and 502 when a delegate fails.
    """
    try:
        result = await engine.query(
            request.query,
            request.mode,
            top_k=request.top_k,
            hop_limit=request.hop_limit,
        )
    except StageTimeout as e:
        raise HTTPException(status_code=504, detail={"stage": e.stage, "message": str(e)})
    except QueryStageError as e:
        raise HTTPException(status_code=502, detail={"stage": e.stage, "message": str(e)})

    if isinstance(result, NoCommunitiesAvailable):
        return QueryResponse(
            query=result.query,
            mode=result.mode,
            available=False,
            message=result.message,
            timings=result.timings,
        )

    context = result.context
    return QueryResponse(
        query=result.query,
        mode=result.mode,
        answer=result.answer,
        timings=result.timings,
        chunks=[
            ChunkInfo(chunk_id=c.chunk_id, document_id=c.document_id, text=c.text)
            for c in context.chunks
        ],
        entities=[
            EntityInfo(entity_id=e.entity_id, name=e.name, type=e.type, description=e.description)
            for e in context.entities
        ],
        relations=[
            RelationInfo(
                relation_id=r.relation_id,
                source_id=r.source_id,
                target_id=r.target_id,
                relation_type=r.relation_type,
                evidence=r.evidence,
                confidence=r.confidence,
            )
            for r in context.relations
        ],
        communities=[
            CommunityInfo(community_id=h.community_id, level=h.level, score=h.score, summary=h.summary)
            for h in context.communities
        ],
    )
