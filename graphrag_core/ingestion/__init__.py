"""Entity/relation extraction into the knowledge graph."""

from .entity_extractor import LLMExtractor
from .pipeline import DanglingRelation, ExtractionPipeline, ExtractionReport, Extractor, SourceChunk
from .schema import ExtractedEntity, ExtractedRelation, SchemaError, ValidExtraction, parse_extraction

__all__ = [
    "DanglingRelation",
    "ExtractedEntity",
    "ExtractedRelation",
    "ExtractionPipeline",
    "ExtractionReport",
    "Extractor",
    "LLMExtractor",
    "SchemaError",
    "SourceChunk",
    "ValidExtraction",
    "parse_extraction",
]
