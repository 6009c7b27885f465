"""Validation of raw extractor output into a tagged result."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from graphrag_core.graph.entity_store import normalize_name

logger = logging.getLogger(__name__)


class ExtractedEntity(BaseModel):
    """Entity as reported by an extractor."""

    name: str = Field(..., min_length=1)
    type: str = ""
    description: str = ""

    @field_validator("name", "type", "description", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("name")
    @classmethod
    def name_survives_normalization(cls, value: str) -> str:
        if not normalize_name(value):
            raise ValueError(f"Entity name is empty after normalization: {value!r}")
        return value


class ExtractedRelation(BaseModel):
    """Relationship as reported by an extractor; endpoints are entity names."""

    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    relation_type: str = Field(
        default="RELATES_TO",
        validation_alias=AliasChoices("relation_type", "type"),
    )
    evidence: str = Field(
        default="",
        validation_alias=AliasChoices("evidence", "description"),
    )
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("source", "target", "relation_type", "evidence", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value


class ExtractionPayload(BaseModel):
    entities: list[ExtractedEntity] = Field(default_factory=list)
    relationships: list[ExtractedRelation] = Field(
        default_factory=list,
        validation_alias=AliasChoices("relationships", "relations"),
    )


@dataclass(frozen=True)
class ValidExtraction:
    """Extractor output that passed validation."""

    entities: tuple[ExtractedEntity, ...] = ()
    relations: tuple[ExtractedRelation, ...] = ()


@dataclass(frozen=True)
class SchemaError:
    """Extractor output that failed validation."""

    message: str


def _load_json(raw: str) -> Any:
    """Parse the outermost JSON object embedded in an LLM response."""
    json_start = raw.find("{")
    json_end = raw.rfind("}") + 1
    if json_start < 0 or json_end <= json_start:
        raise ValueError("No JSON object found in extractor output")
    return json.loads(raw[json_start:json_end])


def parse_extraction(raw: str | Mapping[str, Any]) -> ValidExtraction | SchemaError:
    """Validate extractor output.

    Args:
        raw: JSON text (possibly wrapped in prose) or an already-decoded mapping

    Returns:
        ValidExtraction on success, SchemaError describing the problem otherwise
    """
    try:
        data = _load_json(raw) if isinstance(raw, str) else raw
        if not isinstance(data, Mapping):
            return SchemaError(f"Expected a JSON object, got {type(data).__name__}")
        payload = ExtractionPayload.model_validate(data)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        logger.debug(f"Extractor output rejected: {e}")
        return SchemaError(str(e))

    return ValidExtraction(
        entities=tuple(payload.entities),
        relations=tuple(payload.relationships),
    )
