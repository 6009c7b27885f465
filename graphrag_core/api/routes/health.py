"""Health check endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from graphrag_core.api.main import get_engine
from graphrag_core.engine import GraphRAGEngine

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    entities: int
    relations: int
    communities: int


@router.get("/health", response_model=HealthResponse)
async def health_check(engine: GraphRAGEngine = Depends(get_engine)) -> HealthResponse:
    """Health check endpoint.

    Returns:
        Health status with graph and community counts
    """
    stats = engine.stats()
    return HealthResponse(
        status="healthy",
        entities=stats["entities"],
        relations=stats["relations"],
        communities=stats["communities"],
    )
