"""LLM-backed extractor producing raw entity/relationship JSON."""

import logging
from typing import Awaitable, Callable

from graphrag_core.generation.prompts import ENTITY_EXTRACTION_PROMPT

logger = logging.getLogger(__name__)


class LLMExtractor:
    """Extract entities and relationships from text using an LLM.

    Returns the raw response; validation happens in the pipeline so that
    malformed output can be retried.
    """

    ENTITY_TYPES = ["Person", "Organization", "Technology", "Concept", "Location", "Event", "Document"]
    RELATION_TYPES = ["USES", "PROVIDES", "RELATES_TO", "PART_OF", "CREATED_BY", "CONTAINS", "DEPENDS_ON"]

    def __init__(
        self,
        generate_function: Callable[[str], Awaitable[str]],
        max_text_chars: int = 8000,
    ):
        """Initialize entity extractor.

        Args:
            generate_function: Async function to generate text (LLM call)
            max_text_chars: Chunk text beyond this is truncated
        """
        self.generate_function = generate_function
        self.max_text_chars = max_text_chars

    def build_prompt(self, text: str) -> str:
        return ENTITY_EXTRACTION_PROMPT.format(text=text[: self.max_text_chars])

    async def extract(self, text: str) -> str:
        """Run extraction on one chunk of text."""
        response = await self.generate_function(self.build_prompt(text))
        logger.debug(f"Extractor returned {len(response)} chars")
        return response
