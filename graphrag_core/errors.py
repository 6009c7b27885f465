"""Exception hierarchy for the GraphRAG core."""

from typing import Any


class GraphRAGError(Exception):
    """Base class for all GraphRAG core errors."""


class ExtractionFailed(GraphRAGError):
    """A chunk could not be extracted after all retries."""

    reason = "failed"

    def __init__(self, chunk_id: str, attempts: int, last_error: str):
        self.chunk_id = chunk_id
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Extraction for chunk {chunk_id} {self.reason} "
            f"after {attempts} attempts: {last_error}"
        )


class SchemaValidationError(ExtractionFailed):
    """Extractor output stayed invalid after all retries for a chunk."""

    reason = "failed schema validation"


class DanglingEndpoint(GraphRAGError):
    """A relation references an entity that is not in the store."""

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"Unknown relation endpoint: {entity_id}")


class UnknownEntity(GraphRAGError, KeyError):
    """An entity id could not be found (or forwarded) in the store."""

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"Unknown entity: {entity_id}")

    def __str__(self) -> str:
        return f"Unknown entity: {self.entity_id}"


class QueryStageError(GraphRAGError):
    """A query stage failed.

    Carries the stage name and whatever context had been gathered before
    the failure so callers can diagnose partial progress.
    """

    def __init__(self, stage: str, message: str, partial_context: Any = None):
        self.stage = stage
        self.partial_context = partial_context
        super().__init__(f"[{stage}] {message}")


class StageTimeout(QueryStageError):
    """An external delegate call exceeded its stage budget."""

    def __init__(self, stage: str, timeout: float, partial_context: Any = None):
        self.timeout = timeout
        super().__init__(
            stage,
            f"stage exceeded timeout of {timeout:.2f}s",
            partial_context=partial_context,
        )


class StaleCommunitySnapshot(GraphRAGError):
    """A community swap was attempted with a hierarchy older than the live one."""

    def __init__(self, current_version: int, offered_version: int):
        self.current_version = current_version
        self.offered_version = offered_version
        super().__init__(
            f"Refusing to swap in communities built from graph version "
            f"{offered_version}; live set is from version {current_version}"
        )
