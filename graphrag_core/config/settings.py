"""Application settings using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # External services (optional: the core runs with injected fakes)
    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")
    claude_model: str = Field(
        default="claude-sonnet-4-20250514", description="Claude model for generation"
    )
    voyage_api_key: str | None = Field(default=None, description="Voyage AI API key")
    voyage_embed_model: str = Field(default="voyage-3.5", description="Voyage embedding model")
    embedding_dimension: int = Field(default=1024, description="Embedding vector dimension")

    # Entity resolution
    entity_similarity_threshold: float = Field(
        default=0.85, ge=0.0, le=1.0, description="Minimum name similarity to treat as alias"
    )

    # Relation graph
    confidence_floor: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Edges below this are hidden from traversal"
    )
    local_hop_limit: int = Field(default=2, ge=0, description="Local mode expansion depth")
    default_top_k: int = Field(default=10, ge=1, description="Default search depth")

    # Community detection
    community_algorithm: Literal["louvain", "greedy"] = Field(
        default="louvain", description="Modularity clustering algorithm"
    )
    community_resolution: float = Field(default=1.0, gt=0.0, description="Modularity resolution")
    community_seed: int = Field(default=42, description="Random seed for Louvain")
    community_max_refine_depth: int = Field(default=1, ge=0, description="Finer levels to build")
    community_max_coarsen_levels: int = Field(default=2, ge=0, description="Coarser levels to build")
    community_min_size: int = Field(default=2, ge=1, description="Minimum size to refine")
    community_staleness_threshold: int = Field(
        default=1, ge=1, description="Graph mutations before communities are recomputed"
    )

    # Summaries
    max_summary_entities: int = Field(default=10, ge=1, description="Entities per summary prompt")
    max_summary_relations: int = Field(default=10, ge=0, description="Relations per summary prompt")
    summary_char_budget: int = Field(default=4000, ge=200, description="Summary prompt budget")

    # Extraction
    max_extraction_retries: int = Field(
        default=3, ge=1, description="Attempts per chunk before it fails permanently"
    )
    max_concurrent_extractions: int = Field(default=5, ge=1, description="Parallel extractor calls")
    extraction_timeout_seconds: float = Field(default=60.0, gt=0.0, description="Per-call budget")

    # Query stage budgets (seconds)
    embed_timeout_seconds: float = Field(default=10.0, gt=0.0, description="Embedding budget")
    vector_search_timeout_seconds: float = Field(default=10.0, gt=0.0, description="Search budget")
    graph_expansion_timeout_seconds: float = Field(default=5.0, gt=0.0, description="Expansion budget")
    generation_timeout_seconds: float = Field(default=60.0, gt=0.0, description="Generation budget")

    # Application Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
