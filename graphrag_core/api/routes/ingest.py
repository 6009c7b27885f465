"""Chunk ingestion endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from graphrag_core.api.main import get_engine
from graphrag_core.engine import GraphRAGEngine
from graphrag_core.ingestion import SourceChunk

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ingest"])


class IngestChunk(BaseModel):
    """One pre-chunked span of a document."""

    document_id: str = Field(..., min_length=1, description="Parent document ID")
    text: str = Field(..., min_length=1, description="Chunk text")
    offset: tuple[int, int] | None = Field(
        default=None, description="Start and end offset in the document (defaults to the whole text)"
    )


class IngestRequest(BaseModel):
    """Request for ingesting chunks into the graph."""

    chunks: list[IngestChunk] = Field(..., min_length=1)
    refresh_communities: bool = Field(
        default=False, description="Rebuild communities afterwards if the graph is stale"
    )


class IngestResponse(BaseModel):
    """Ingest response."""

    status: str
    processed_chunks: int = 0
    failed_chunks: list[str] = Field(default_factory=list)
    dangling_relations: int = 0
    entities_upserted: int = 0
    relations_added: int = 0
    elapsed_seconds: float | None = None
    communities_refreshed: bool = False


@router.post("/ingest", response_model=IngestResponse)
async def ingest_chunks(
    request: IngestRequest,
    engine: GraphRAGEngine = Depends(get_engine),
) -> IngestResponse:
    """Extract chunks into the graph.

    Per-chunk failures are reported in ``failed_chunks``; the rest of the
    batch is still applied.
    """
    logger.info(f"Received {len(request.chunks)} chunks for ingestion")
    chunks = [SourceChunk(c.document_id, c.text, c.offset) for c in request.chunks]

    try:
        report = await engine.ingest(chunks)
    except ValueError as e:
        logger.error(f"Ingestion failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    refreshed = False
    if request.refresh_communities and engine.needs_refresh():
        refreshed = (await engine.refresh_communities()).refreshed

    return IngestResponse(
        status="success" if report.ok else "partial",
        communities_refreshed=refreshed,
        **report.to_dict(),
    )
