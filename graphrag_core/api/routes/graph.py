"""Graph inspection and community maintenance endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from graphrag_core.api.main import get_engine
from graphrag_core.engine import GraphRAGEngine
from graphrag_core.errors import DanglingEndpoint

logger = logging.getLogger(__name__)
router = APIRouter(tags=["graph"])


class RefreshRequest(BaseModel):
    """Community refresh request."""

    force: bool = Field(default=False, description="Rebuild even below the staleness threshold")


class RefreshResponse(BaseModel):
    """Community refresh response."""

    refreshed: bool
    communities: int
    levels: list[int]
    evicted: list[str]
    graph_version: int
    pending_mutations: int


@router.post("/communities/refresh", response_model=RefreshResponse)
async def refresh_communities(
    request: RefreshRequest | None = None,
    engine: GraphRAGEngine = Depends(get_engine),
) -> RefreshResponse:
    """Recompute communities and their summaries when the graph is stale."""
    force = request.force if request else False
    outcome = await engine.refresh_communities(force=force)
    return RefreshResponse(
        refreshed=outcome.refreshed,
        communities=len(outcome.hierarchy),
        levels=outcome.hierarchy.levels,
        evicted=outcome.evicted,
        graph_version=outcome.hierarchy.graph_version,
        pending_mutations=outcome.pending_mutations,
    )


@router.get("/graph/stats")
async def graph_stats(engine: GraphRAGEngine = Depends(get_engine)) -> dict[str, Any]:
    """Entity, relation, chunk and community counts."""
    return engine.stats()


@router.get("/graph/export")
async def export_graph(engine: GraphRAGEngine = Depends(get_engine)) -> Response:
    """Full engine state as JSON."""
    return Response(content=engine.export(), media_type="application/json")


class ImportResponse(BaseModel):
    """Graph import response."""

    status: str
    entities: int
    relations: int
    chunks: int
    communities: int
    graph_version: int


@router.post("/graph/import", response_model=ImportResponse)
async def import_graph(
    request: Request,
    engine: GraphRAGEngine = Depends(get_engine),
) -> ImportResponse:
    """Replace all engine state with a document produced by ``/graph/export``."""
    body = await request.body()
    try:
        engine.import_graph(body.decode("utf-8"))
    except (DanglingEndpoint, ValueError) as e:
        logger.error(f"Graph import rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    stats = engine.stats()
    return ImportResponse(
        status="imported",
        entities=stats["entities"],
        relations=stats["relations"],
        chunks=stats["chunks"],
        communities=stats["communities"],
        graph_version=stats["version"],
    )
