"""Extraction pipeline: extract, validate and apply chunks to the graph."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Protocol, Sequence

from graphrag_core.errors import DanglingEndpoint, ExtractionFailed, GraphRAGError, SchemaValidationError
from graphrag_core.graph.entity_store import normalize_name
from graphrag_core.graph.knowledge_graph import KnowledgeGraph
from graphrag_core.graph.types import Chunk, EntityCandidate, RelationCandidate
from graphrag_core.index.vector import InMemoryVectorIndex
from .schema import SchemaError, ValidExtraction, parse_extraction

logger = logging.getLogger(__name__)

RawExtraction = str | Mapping[str, Any]


class Extractor(Protocol):
    async def extract(self, text: str) -> RawExtraction: ...


@dataclass
class SourceChunk:
    """Pre-chunked text handed to the pipeline."""

    document_id: str
    text: str
    offset: tuple[int, int] | None = None

    @property
    def span(self) -> tuple[int, int]:
        return self.offset if self.offset is not None else (0, len(self.text))

    @property
    def chunk_id(self) -> str:
        return Chunk.make_id(self.document_id, self.text, self.span)


@dataclass
class DanglingRelation:
    """A relationship that could not be committed because an endpoint is unknown."""

    chunk_id: str
    source: str
    target: str
    relation_type: str
    missing: str


@dataclass
class ExtractionReport:
    """Aggregate outcome of a pipeline run."""

    processed_chunks: list[str] = field(default_factory=list)
    failures: list[ExtractionFailed] = field(default_factory=list)
    dangling_relations: list[DanglingRelation] = field(default_factory=list)
    entities_upserted: int = 0
    relations_added: int = 0
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "processed_chunks": len(self.processed_chunks),
            "failed_chunks": [f.chunk_id for f in self.failures],
            "dangling_relations": len(self.dangling_relations),
            "entities_upserted": self.entities_upserted,
            "relations_added": self.relations_added,
            "elapsed_seconds": self.elapsed_seconds,
        }


class ExtractionPipeline:
    """Apply extractor output for many chunks to a knowledge graph.

    Orchestrates: Embed -> Extract (bounded, retried) -> Validate -> Upsert -> Link
    """

    def __init__(
        self,
        graph: KnowledgeGraph,
        extractor: Extractor | Callable[[str], Awaitable[RawExtraction]],
        embed_function: Callable[[list[str]], Awaitable[list[list[float]]]] | None = None,
        vector_index: InMemoryVectorIndex | None = None,
        max_retries: int = 3,
        max_concurrency: int = 5,
        timeout_seconds: float = 60.0,
    ):
        """Initialize the extraction pipeline.

        Args:
            graph: Graph that receives entities, relations and chunks
            extractor: Object with an async ``extract`` method, or the coroutine function itself
            embed_function: Optional async function to embed chunk texts
            vector_index: Index that receives chunk embeddings
            max_retries: Attempts per chunk before it is reported as failed
            max_concurrency: Extractor calls in flight at once
            timeout_seconds: Budget for a single extractor call
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self.graph = graph
        self._extract = extractor.extract if hasattr(extractor, "extract") else extractor
        self.embed_function = embed_function
        self.vector_index = vector_index
        self.max_retries = max_retries
        self.max_concurrency = max_concurrency
        self.timeout_seconds = timeout_seconds

    async def run(self, chunks: Sequence[SourceChunk]) -> ExtractionReport:
        """Process chunks concurrently; per-chunk failures are collected, not raised."""
        start = time.perf_counter()
        report = ExtractionReport()
        if not chunks:
            return report

        embeddings: list[list[float]] = [[] for _ in chunks]
        if self.embed_function is not None:
            embeddings = await self.embed_function([c.text for c in chunks])
            if len(embeddings) != len(chunks):
                raise ValueError(f"Expected {len(chunks)} chunk embeddings, got {len(embeddings)}")
            logger.info(f"Generated embeddings for {len(embeddings)} chunks")

        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *(self._extract_chunk(chunk, semaphore) for chunk in chunks)
        )

        # Apply in input order so ids and versions are reproducible
        for chunk, embedding, outcome in zip(chunks, embeddings, outcomes):
            if isinstance(outcome, ExtractionFailed):
                logger.warning(str(outcome))
                report.failures.append(outcome)
                continue
            try:
                self._apply(chunk, embedding, outcome, report)
            except (GraphRAGError, ValueError) as e:
                failure = ExtractionFailed(chunk.chunk_id, 1, f"could not apply extraction: {e}")
                logger.error(str(failure))
                report.failures.append(failure)

        report.elapsed_seconds = time.perf_counter() - start
        logger.info(
            f"Extraction finished: {len(report.processed_chunks)} chunks applied, "
            f"{len(report.failures)} failed, {len(report.dangling_relations)} dangling relations "
            f"in {report.elapsed_seconds:.2f}s"
        )
        return report

    async def _extract_chunk(
        self,
        chunk: SourceChunk,
        semaphore: asyncio.Semaphore,
    ) -> ValidExtraction | ExtractionFailed:
        async with semaphore:
            try:
                return await self.extract_with_retries(chunk.chunk_id, chunk.text)
            except ExtractionFailed as e:
                return e

    async def extract_with_retries(self, chunk_id: str, text: str) -> ValidExtraction:
        """Call the extractor until its output validates.

        Raises:
            SchemaValidationError: Last attempt produced invalid output
            ExtractionFailed: Last attempt raised or timed out
        """
        last_error = ""
        schema_failure = False

        for attempt in range(1, self.max_retries + 1):
            try:
                raw = await asyncio.wait_for(self._extract(text), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                last_error = f"extractor timed out after {self.timeout_seconds:.1f}s"
                schema_failure = False
            except Exception as e:
                last_error = f"{type(e).__name__}: {e}"
                schema_failure = False
            else:
                result = parse_extraction(raw)
                if isinstance(result, SchemaError):
                    last_error = result.message
                    schema_failure = True
                else:
                    return result

            logger.debug(f"Extraction attempt {attempt}/{self.max_retries} for chunk {chunk_id} failed: {last_error}")

        if schema_failure:
            raise SchemaValidationError(chunk_id, self.max_retries, last_error)
        raise ExtractionFailed(chunk_id, self.max_retries, last_error)

    def _apply(
        self,
        chunk: SourceChunk,
        embedding: Sequence[float],
        extraction: ValidExtraction,
        report: ExtractionReport,
    ) -> None:
        chunk_id = chunk.chunk_id
        by_name: dict[str, str] = {}

        for entity in extraction.entities:
            entity_id = self.graph.entities.upsert(
                EntityCandidate(
                    name=entity.name,
                    type=entity.type,
                    description=entity.description,
                    chunk_id=chunk_id,
                )
            )
            by_name[normalize_name(entity.name)] = entity_id
            report.entities_upserted += 1

        for relation in extraction.relations:
            source_id = by_name.get(normalize_name(relation.source)) or self.graph.entities.resolve(relation.source)
            target_id = by_name.get(normalize_name(relation.target)) or self.graph.entities.resolve(relation.target)

            missing = relation.source if source_id is None else relation.target if target_id is None else None
            if missing is not None:
                report.dangling_relations.append(
                    DanglingRelation(chunk_id, relation.source, relation.target, relation.relation_type, missing)
                )
                continue

            try:
                self.graph.relations.add_edge(
                    RelationCandidate(
                        source_id=source_id,
                        target_id=target_id,
                        relation_type=relation.relation_type,
                        evidence=relation.evidence,
                        chunk_id=chunk_id,
                        confidence=relation.confidence,
                    )
                )
            except DanglingEndpoint as e:
                report.dangling_relations.append(
                    DanglingRelation(chunk_id, relation.source, relation.target, relation.relation_type, e.entity_id)
                )
                continue
            report.relations_added += 1

        record = Chunk.create(
            document_id=chunk.document_id,
            text=chunk.text,
            offset=chunk.span,
            embedding=embedding,
            entity_ids=set(by_name.values()),
        )
        stored = self.graph.add_chunk(record)
        if self.vector_index is not None and stored.embedding:
            self.vector_index.add(stored.chunk_id, stored.embedding)

        report.processed_chunks.append(chunk_id)
        logger.debug(f"Applied chunk {chunk_id}: {len(by_name)} entities")
