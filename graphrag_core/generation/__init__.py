"""Prompt templates for the LLM-backed stages."""

from .prompts import (
    ANSWER_PROMPT,
    COMMUNITY_SUMMARY_PROMPT,
    ENTITY_EXTRACTION_PROMPT,
    build_answer_prompt,
    format_chunks,
    format_communities,
    format_entities,
    format_relations,
)

__all__ = [
    "ANSWER_PROMPT",
    "COMMUNITY_SUMMARY_PROMPT",
    "ENTITY_EXTRACTION_PROMPT",
    "build_answer_prompt",
    "format_chunks",
    "format_communities",
    "format_entities",
    "format_relations",
]
