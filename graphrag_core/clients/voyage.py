"""Voyage AI client for embeddings."""

import logging
from typing import Literal

import httpx

from graphrag_core.config import Settings

logger = logging.getLogger(__name__)


class VoyageClient:
    """Voyage AI client for embeddings."""

    MAX_BATCH_SIZE = 128

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize Voyage AI client.

        Args:
            settings: Application settings with Voyage configuration
            transport: Optional httpx transport (tests)
        """
        self.settings = settings
        self.base_url = "https://api.voyageai.com/v1"
        self.headers = {
            "Authorization": f"Bearer {settings.voyage_api_key}",
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(timeout=60.0, transport=transport)

    async def embed(
        self,
        texts: list[str],
        model: str | None = None,
        input_type: Literal["query", "document"] = "document",
    ) -> dict:
        """Generate embeddings for texts.

        Args:
            texts: List of texts to embed
            model: Model to use (defaults to settings)
            input_type: Type of input (query or document)

        Returns:
            Dictionary with embeddings and usage information
        """
        model = model or self.settings.voyage_embed_model

        payload = {
            "input": texts,
            "model": model,
            "input_type": input_type,
            "output_dimension": self.settings.embedding_dimension,
        }

        try:
            response = await self._client.post(
                f"{self.base_url}/embeddings",
                headers=self.headers,
                json=payload,
            )
            response.raise_for_status()
            result = response.json()
            logger.info(f"Generated embeddings for {len(texts)} texts")
            return result
        except Exception as e:
            logger.error(f"Voyage embedding failed: {e}")
            raise

    async def embed_texts(
        self,
        texts: list[str],
        input_type: Literal["query", "document"] = "document",
    ) -> list[list[float]]:
        """Embed texts in batches; vectors are returned in input order."""
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.MAX_BATCH_SIZE):
            batch = texts[start : start + self.MAX_BATCH_SIZE]
            result = await self.embed(batch, input_type=input_type)
            data = sorted(result["data"], key=lambda item: item["index"])
            vectors.extend(item["embedding"] for item in data)
        return vectors

    async def embed_queries(self, texts: list[str]) -> list[list[float]]:
        return await self.embed_texts(texts, input_type="query")

    async def close(self):
        """Close HTTP client."""
        await self._client.aclose()
        logger.info("Voyage client closed")
