"""Tests for configuration module."""

import pytest
from pydantic import ValidationError


def test_settings_loads_from_env(monkeypatch):
    """Test that settings load from environment variables."""
    # Clear the cache
    from graphrag_core.config.settings import get_settings
    get_settings.cache_clear()

    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-anthropic-key")
    monkeypatch.setenv("VOYAGE_API_KEY", "test-voyage-key")
    monkeypatch.setenv("COMMUNITY_ALGORITHM", "greedy")
    monkeypatch.setenv("COMMUNITY_STALENESS_THRESHOLD", "25")

    settings = get_settings()

    assert settings.anthropic_api_key == "test-anthropic-key"
    assert settings.voyage_api_key == "test-voyage-key"
    assert settings.community_algorithm == "greedy"
    assert settings.community_staleness_threshold == 25
    get_settings.cache_clear()


def test_settings_defaults():
    """Test that settings have correct defaults."""
    from graphrag_core.config import Settings

    settings = Settings(_env_file=None)

    assert settings.entity_similarity_threshold == 0.85
    assert settings.confidence_floor == 0.3
    assert settings.local_hop_limit == 2
    assert settings.community_algorithm == "louvain"
    assert settings.community_seed == 42
    assert settings.max_extraction_retries == 3
    assert settings.embedding_dimension == 1024
    assert settings.voyage_embed_model == "voyage-3.5"


def test_settings_reject_out_of_range_values():
    from graphrag_core.config import Settings

    with pytest.raises(ValidationError):
        Settings(_env_file=None, confidence_floor=1.5)
    with pytest.raises(ValidationError):
        Settings(_env_file=None, community_algorithm="leiden")
    with pytest.raises(ValidationError):
        Settings(_env_file=None, max_extraction_retries=0)


def test_settings_cached():
    """Test that get_settings returns the same instance."""
    from graphrag_core.config.settings import get_settings
    get_settings.cache_clear()

    assert get_settings() is get_settings()
    get_settings.cache_clear()
