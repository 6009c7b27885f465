"""FastAPI application setup."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from graphrag_core.config import get_settings
from graphrag_core.engine import GraphRAGEngine
from graphrag_core.utils import setup_logging

logger = logging.getLogger(__name__)

# Global engine instance
_engine: GraphRAGEngine | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global _engine

    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("Starting GraphRAG API")

    _engine = GraphRAGEngine.from_settings(settings)
    logger.info("Engine initialized")

    yield

    if _engine:
        await _engine.close()
    _engine = None
    logger.info("Engine closed")


# Create FastAPI app
app = FastAPI(
    title="GraphRAG API",
    description="Graph-aware retrieval over an entity graph and its communities",
    version="0.1.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependency injection
def get_engine() -> GraphRAGEngine:
    """Get engine instance."""
    if _engine is None:
        raise RuntimeError("Engine not initialized")
    return _engine


# Import routes after app creation to avoid circular imports
from .routes import graph, health, ingest, query

app.include_router(health.router)
app.include_router(ingest.router)
app.include_router(query.router)
app.include_router(graph.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "GraphRAG API",
        "version": "0.1.0",
        "status": "running",
    }


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "graphrag_core.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
