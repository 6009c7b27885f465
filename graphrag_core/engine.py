"""GraphRAG engine wiring the graph, communities and query router together."""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Awaitable, Callable, Sequence

from graphrag_core.communities.detector import CommunityDetector, ResolutionParams
from graphrag_core.communities.summary_index import SummaryEntry, SummaryIndex, SummaryLimits
from graphrag_core.communities.types import CommunityHierarchy
from graphrag_core.config import Settings, get_settings
from graphrag_core.errors import DanglingEndpoint
from graphrag_core.graph.knowledge_graph import KnowledgeGraph
from graphrag_core.index.vector import InMemoryVectorIndex
from graphrag_core.ingestion.pipeline import ExtractionPipeline, ExtractionReport, Extractor, RawExtraction, SourceChunk
from graphrag_core.models import (
    FORMAT_VERSION,
    ChunkDocument,
    CommunityDocument,
    EntityDocument,
    GraphSnapshotDocument,
    RelationDocument,
)
from graphrag_core.routing.router import QueryRouter
from graphrag_core.routing.types import NoCommunitiesAvailable, QueryMode, QueryResult, RouterConfig
from graphrag_core.utils.cache import EmbeddingCache

logger = logging.getLogger(__name__)


@dataclass
class RefreshOutcome:
    """Result of a community refresh request."""

    refreshed: bool
    hierarchy: CommunityHierarchy
    evicted: list[str] = field(default_factory=list)
    pending_mutations: int = 0


class GraphRAGEngine:
    """Graph-aware retrieval engine.

    Flow: extraction -> entity store + relation graph -> community detection
    -> summary index -> query router.
    """

    def __init__(
        self,
        embed_function: Callable[[list[str]], Awaitable[list[list[float]]]],
        generate_function: Callable[[str, str], Awaitable[str]],
        summarize_function: Callable[[str], Awaitable[str]],
        extractor: Extractor | Callable[[str], Awaitable[RawExtraction]] | None = None,
        settings: Settings | None = None,
        query_embed_function: Callable[[list[str]], Awaitable[list[list[float]]]] | None = None,
    ):
        """Initialize the engine.

        Args:
            embed_function: Async function to embed chunk and summary texts
            generate_function: Async function (context, query) -> answer
            summarize_function: Async function turning a prompt into summary text
            extractor: Default extractor for ``ingest``
            settings: Application settings (defaults to environment)
            query_embed_function: Embedder for queries (defaults to embed_function)
        """
        self.settings = settings or get_settings()
        s = self.settings

        self.embed_function = embed_function
        self.extractor = extractor
        self.graph = KnowledgeGraph(
            similarity_threshold=s.entity_similarity_threshold,
            confidence_floor=s.confidence_floor,
        )
        self.vector_index = InMemoryVectorIndex()
        self.detector = CommunityDetector(
            ResolutionParams(
                algorithm=s.community_algorithm,
                resolution=s.community_resolution,
                seed=s.community_seed,
                max_refine_depth=s.community_max_refine_depth,
                max_coarsen_levels=s.community_max_coarsen_levels,
                min_community_size=s.community_min_size,
            )
        )
        self.summary_index = SummaryIndex(
            summarize_function=summarize_function,
            embed_function=embed_function,
            limits=SummaryLimits(
                max_entities=s.max_summary_entities,
                max_relations=s.max_summary_relations,
                char_budget=s.summary_char_budget,
            ),
        )
        self.embedding_cache = EmbeddingCache()
        self.router = QueryRouter(
            graph=self.graph,
            vector_index=self.vector_index,
            summary_index=self.summary_index,
            embed_function=query_embed_function or embed_function,
            generate_function=generate_function,
            config=RouterConfig(
                top_k=s.default_top_k,
                hop_limit=s.local_hop_limit,
                stage_timeouts={
                    "embed": s.embed_timeout_seconds,
                    "vector_search": s.vector_search_timeout_seconds,
                    "graph_expansion": s.graph_expansion_timeout_seconds,
                    "generation": s.generation_timeout_seconds,
                },
            ),
            embedding_cache=self.embedding_cache,
            embed_model=s.voyage_embed_model,
        )
        self._refresh_lock = asyncio.Lock()
        self._clients: list = []

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "GraphRAGEngine":
        """Build an engine backed by Claude and Voyage AI."""
        from graphrag_core.clients import ClaudeClient, VoyageClient

        settings = settings or get_settings()
        claude = ClaudeClient(settings)
        voyage = VoyageClient(settings)
        engine = cls(
            embed_function=voyage.embed_texts,
            generate_function=claude.answer,
            summarize_function=claude.summarize,
            extractor=claude,
            settings=settings,
            query_embed_function=voyage.embed_queries,
        )
        engine._clients = [claude, voyage]
        return engine

    async def close(self) -> None:
        for client in self._clients:
            await client.close()
        self._clients = []

    async def ingest(
        self,
        chunks: Sequence[SourceChunk],
        extractor: Extractor | Callable[[str], Awaitable[RawExtraction]] | None = None,
    ) -> ExtractionReport:
        """Extract chunks into the graph and index their embeddings."""
        extractor = extractor or self.extractor
        if extractor is None:
            raise ValueError("No extractor configured")

        pipeline = ExtractionPipeline(
            graph=self.graph,
            extractor=extractor,
            embed_function=self.embed_function,
            vector_index=self.vector_index,
            max_retries=self.settings.max_extraction_retries,
            max_concurrency=self.settings.max_concurrent_extractions,
            timeout_seconds=self.settings.extraction_timeout_seconds,
        )
        return await pipeline.run(chunks)

    @property
    def pending_mutations(self) -> int:
        """Graph mutations since the live communities were built."""
        return max(0, self.graph.version - self.summary_index.current.graph_version)

    def needs_refresh(self) -> bool:
        return self.pending_mutations >= self.settings.community_staleness_threshold

    async def refresh_communities(self, force: bool = False) -> RefreshOutcome:
        """Rebuild communities and summaries if the graph has drifted enough.

        Detection runs on an immutable snapshot; the new hierarchy and
        summaries replace the live ones in one swap.
        """
        async with self._refresh_lock:
            pending = self.pending_mutations
            if not force and pending < self.settings.community_staleness_threshold:
                logger.info(f"Skipping community refresh: {pending} pending mutations")
                return RefreshOutcome(False, self.summary_index.current, pending_mutations=pending)

            snapshot = self.graph.snapshot()
            hierarchy = await asyncio.to_thread(self.detector.detect, snapshot)
            summarized, entries = await self.summary_index.build(hierarchy, snapshot)
            evicted = self.summary_index.swap(summarized, entries)
            return RefreshOutcome(True, summarized, evicted, pending_mutations=pending)

    async def query(
        self,
        query: str,
        mode: QueryMode | str = QueryMode.LOCAL,
        top_k: int | None = None,
        hop_limit: int | None = None,
    ) -> QueryResult | NoCommunitiesAvailable:
        return await self.router.query(query, mode, top_k=top_k, hop_limit=hop_limit)

    def stats(self) -> dict:
        graph = self.graph.stats()
        hierarchy = self.summary_index.current
        return {
            **graph,
            "communities": len(hierarchy),
            "community_levels": len(hierarchy.levels),
            "community_graph_version": hierarchy.graph_version,
            "pending_mutations": self.pending_mutations,
            "indexed_chunks": len(self.vector_index),
            "embedding_cache": asdict(self.embedding_cache.get_stats()),
        }

    def export(self) -> str:
        """Serialize the graph, chunks and communities to JSON."""
        snapshot, forwarding, next_relation_id, chunks = self.graph.dump()
        hierarchy = self.summary_index.current

        document = GraphSnapshotDocument(
            graph_version=snapshot.version,
            next_relation_id=next_relation_id,
            entities=[EntityDocument.from_entity(e) for e in snapshot.entities],
            forwarding=forwarding,
            relations=[RelationDocument.from_relation(r) for r in snapshot.relations],
            chunks=[ChunkDocument.from_chunk(c) for c in chunks],
            communities=[CommunityDocument.from_community(c) for c in hierarchy],
            community_graph_version=hierarchy.graph_version,
        )
        logger.info(
            f"Exported {len(document.entities)} entities, {len(document.relations)} relations, "
            f"{len(document.chunks)} chunks, {len(document.communities)} communities"
        )
        return document.model_dump_json()

    def import_graph(self, serialized: str) -> None:
        """Replace all state with a previously exported document.

        Raises:
            ValueError: Malformed document or unsupported format version
            DanglingEndpoint: A relation references an entity not in the document
        """
        document = GraphSnapshotDocument.model_validate_json(serialized)
        if document.format_version != FORMAT_VERSION:
            raise ValueError(f"Unsupported export format version: {document.format_version}")

        entity_ids = {e.entity_id for e in document.entities}
        for relation in document.relations:
            for endpoint in (relation.source_id, relation.target_id):
                if endpoint not in entity_ids:
                    raise DanglingEndpoint(endpoint)

        chunks = [c.to_chunk() for c in document.chunks]
        self.graph.load(
            entities=[e.to_entity() for e in document.entities],
            forwarding=dict(document.forwarding),
            relations=[r.to_relation() for r in document.relations],
            next_relation_id=document.next_relation_id,
            chunks=chunks,
            version=document.graph_version,
        )

        self.vector_index.clear()
        for chunk in chunks:
            if chunk.embedding:
                self.vector_index.add(chunk.chunk_id, chunk.embedding)

        hierarchy = CommunityHierarchy(
            communities=tuple(c.to_community() for c in document.communities),
            graph_version=document.community_graph_version,
        )
        entries = {
            c.community_id: SummaryEntry(c.community_id, c.summary, c.summary_embedding)
            for c in hierarchy
            if c.summary_embedding
        }
        self.summary_index.clear()
        self.summary_index.swap(hierarchy, entries)
