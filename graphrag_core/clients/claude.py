"""Anthropic Claude client for extraction, summaries and answers."""

import logging

from anthropic import AsyncAnthropic

from graphrag_core.config import Settings
from graphrag_core.generation.prompts import build_answer_prompt
from graphrag_core.ingestion.entity_extractor import LLMExtractor

logger = logging.getLogger(__name__)

ANSWER_SYSTEM_PROMPT = (
    "You answer questions from a knowledge graph and its source passages. "
    "Stay grounded in the provided context."
)


class ClaudeClient:
    """Anthropic Claude client for text generation."""

    def __init__(self, settings: Settings, client: AsyncAnthropic | None = None):
        """Initialize Claude client.

        Args:
            settings: Application settings with Anthropic configuration
            client: Pre-built SDK client (tests)
        """
        self.settings = settings
        self._client = client or AsyncAnthropic(api_key=settings.anthropic_api_key)
        self._extractor = LLMExtractor(self.generate)

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.0,
        model: str | None = None,
    ) -> str:
        """Generate text from prompt.

        Args:
            prompt: User prompt
            system: System prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            model: Model to use (defaults to settings)

        Returns:
            Generated text
        """
        model = model or self.settings.claude_model

        try:
            message = await self._client.messages.create(
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system or "",
                messages=[{"role": "user", "content": prompt}],
            )
            result = message.content[0].text
            logger.info(f"Generated {len(result)} characters")
            return result
        except Exception as e:
            logger.error(f"Claude generation failed: {e}")
            raise

    async def answer(self, context: str, query: str) -> str:
        """Answer a query from assembled retrieval context."""
        return await self.generate(build_answer_prompt(context, query), system=ANSWER_SYSTEM_PROMPT)

    async def summarize(self, prompt: str) -> str:
        return await self.generate(prompt, max_tokens=1024)

    async def extract(self, text: str) -> str:
        """Raw entity/relationship JSON for one chunk."""
        return await self._extractor.extract(text)

    async def close(self):
        """Close Claude client."""
        await self._client.close()
        logger.info("Claude client closed")
