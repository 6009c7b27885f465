"""Query router dispatching Vanilla, Local and Global retrieval."""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from graphrag_core.communities.summary_index import CommunityHit, SummaryIndex
from graphrag_core.communities.types import CommunityHierarchy
from graphrag_core.errors import QueryStageError, StageTimeout
from graphrag_core.generation.prompts import format_chunks, format_communities, format_entities, format_relations
from graphrag_core.graph.knowledge_graph import KnowledgeGraph
from graphrag_core.graph.types import Chunk, Entity, Relation
from graphrag_core.index.vector import VectorSearch
from graphrag_core.utils.cache import EmbeddingCache
from .types import (
    STAGE_EMBED,
    STAGE_GENERATION,
    STAGE_GRAPH_EXPANSION,
    STAGE_VECTOR_SEARCH,
    AssembledContext,
    NoCommunitiesAvailable,
    QueryMode,
    QueryResult,
    RouterConfig,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryRouter:
    """Answers queries in the mode the caller asks for.

    Stages:
    1. embed: query embedding (cached)
    2. vector_search: chunk or community similarity search
    3. graph_expansion: entity neighbourhood or community members
    4. generation: answer from the assembled context

    Each stage runs under its own timeout. A failing stage aborts the query
    with the stage name and the context gathered so far.
    """

    def __init__(
        self,
        graph: KnowledgeGraph,
        vector_index: VectorSearch,
        summary_index: SummaryIndex,
        embed_function: Callable[[list[str]], Awaitable[list[list[float]]]],
        generate_function: Callable[[str, str], Awaitable[str]],
        config: RouterConfig | None = None,
        embedding_cache: EmbeddingCache | None = None,
        embed_model: str = "default",
    ):
        """Initialize query router.

        Args:
            graph: Knowledge graph to expand over
            vector_index: Chunk vector search
            summary_index: Community summary index
            embed_function: Async function to embed texts
            generate_function: Async function (context, query) -> answer
            config: Router configuration
            embedding_cache: Optional cache for query embeddings
            embed_model: Cache namespace for the embedding model
        """
        self.graph = graph
        self.vector_index = vector_index
        self.summary_index = summary_index
        self.embed_function = embed_function
        self.generate_function = generate_function
        self.config = config or RouterConfig()
        self.embedding_cache = embedding_cache
        self.embed_model = embed_model

    async def query(
        self,
        query: str,
        mode: QueryMode | str,
        top_k: int | None = None,
        hop_limit: int | None = None,
    ) -> QueryResult | NoCommunitiesAvailable:
        """Answer a query.

        Args:
            query: The user's question
            mode: vanilla, local or global
            top_k: Search depth (defaults to config)
            hop_limit: Local expansion depth (defaults to config)

        Returns:
            QueryResult, or NoCommunitiesAvailable for a Global query with
            no communities built

        Raises:
            StageTimeout: A stage exceeded its budget
            QueryStageError: A delegate failed
        """
        mode = QueryMode(mode)
        top_k = top_k or self.config.top_k
        hop_limit = self.config.hop_limit if hop_limit is None else hop_limit
        if hop_limit < 0:
            raise ValueError("hop_limit must be non-negative")

        start = time.perf_counter()
        timings: dict[str, float] = {}
        context = AssembledContext()

        if mode == QueryMode.GLOBAL:
            hierarchy = self.summary_index.current
            if hierarchy.is_empty or len(self.summary_index) == 0:
                logger.info("Global query with no communities available")
                return NoCommunitiesAvailable(query=query, timings=timings)

        embedding = await self._stage(STAGE_EMBED, self._embed(query), context, timings)

        if mode == QueryMode.VANILLA:
            await self._vanilla(embedding, top_k, context, timings)
        elif mode == QueryMode.LOCAL:
            await self._local(embedding, top_k, hop_limit, context, timings)
        else:
            await self._global(embedding, top_k, context, timings)

        answer = await self._stage(
            STAGE_GENERATION, self.generate_function(context.text, query), context, timings
        )
        timings["total"] = (time.perf_counter() - start) * 1000

        logger.info(
            f"{mode.value} query answered in {timings['total']:.1f}ms "
            f"({len(context.chunks)} chunks, {len(context.entities)} entities, "
            f"{len(context.communities)} communities)"
        )
        return QueryResult(query=query, answer=answer, mode=mode, context=context, timings=timings)

    async def _stage(
        self,
        stage: str,
        awaitable: Awaitable[T],
        context: AssembledContext,
        timings: dict[str, float],
    ) -> T:
        timeout = self.config.timeout_for(stage)
        start = time.perf_counter()
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Stage {stage} timed out after {timeout}s")
            raise StageTimeout(stage, timeout, partial_context=context) from e
        except QueryStageError:
            raise
        except Exception as e:
            logger.error(f"Stage {stage} failed: {e}")
            raise QueryStageError(stage, str(e), partial_context=context) from e
        finally:
            timings[stage] = timings.get(stage, 0.0) + (time.perf_counter() - start) * 1000

    async def _embed(self, query: str) -> list[float]:
        if self.embedding_cache is not None:
            cached = self.embedding_cache.get(query, model=self.embed_model)
            if cached is not None:
                return cached

        embeddings = await self.embed_function([query])
        if not embeddings:
            raise ValueError("Embedder returned no vectors")
        embedding = list(embeddings[0])

        if self.embedding_cache is not None:
            self.embedding_cache.set(query, embedding, model=self.embed_model)
        return embedding

    @staticmethod
    async def _call(fn: Callable[..., T], *args: Any) -> T:
        """Run a synchronous delegate off the event loop so it can time out."""
        return await asyncio.to_thread(fn, *args)

    async def _search_chunks(
        self,
        embedding: list[float],
        top_k: int,
        context: AssembledContext,
        timings: dict[str, float],
    ) -> None:
        hits = await self._stage(
            STAGE_VECTOR_SEARCH,
            self._call(self.vector_index.search, embedding, top_k),
            context,
            timings,
        )
        chunks = []
        for hit in hits:
            chunk = self.graph.get_chunk(hit.id)
            if chunk is None:
                logger.warning(f"Vector hit {hit.id} has no registered chunk")
                continue
            chunks.append(chunk)
        context.chunks = chunks

    async def _vanilla(
        self,
        embedding: list[float],
        top_k: int,
        context: AssembledContext,
        timings: dict[str, float],
    ) -> None:
        await self._search_chunks(embedding, top_k, context, timings)
        context.text = "PASSAGES:\n" + format_chunks(context.chunks)

    async def _local(
        self,
        embedding: list[float],
        top_k: int,
        hop_limit: int,
        context: AssembledContext,
        timings: dict[str, float],
    ) -> None:
        await self._search_chunks(embedding, top_k, context, timings)

        entities, relations = await self._stage(
            STAGE_GRAPH_EXPANSION,
            self._call(self._expand_local, [c.chunk_id for c in context.chunks], hop_limit),
            context,
            timings,
        )
        context.entities = entities
        context.relations = relations

        names = {e.entity_id: e.name for e in entities}
        context.text = "\n\n".join(
            [
                "ENTITIES:\n" + format_entities(entities),
                "RELATIONSHIPS:\n" + format_relations(relations, names),
                "PASSAGES:\n" + format_chunks(context.chunks),
            ]
        )

    def _expand_local(self, chunk_ids: list[str], hop_limit: int) -> tuple[list[Entity], list[Relation]]:
        seeds = self.graph.entities_for_chunks(chunk_ids)
        if not seeds:
            return [], []

        subgraph = self.graph.relations.subgraph(seeds, hop_limit)
        seed_set = set(seeds)
        ordered = seeds + sorted(subgraph.entity_ids - seed_set)

        entities = []
        for entity_id in ordered[: self.config.max_context_entities]:
            entity = self.graph.entities.get(entity_id)
            if entity is not None:
                entities.append(entity)

        kept = {e.entity_id for e in entities}
        relations = [
            r for r in subgraph.relations if r.source_id in kept and r.target_id in kept
        ][: self.config.max_context_relations]

        logger.debug(f"Local expansion: {len(seeds)} seeds -> {len(entities)} entities")
        return entities, relations

    async def _global(
        self,
        embedding: list[float],
        top_k: int,
        context: AssembledContext,
        timings: dict[str, float],
    ) -> None:
        hits, hierarchy = await self._stage(
            STAGE_VECTOR_SEARCH,
            self._call(
                self.summary_index.search_with_hierarchy,
                embedding,
                min(top_k, self.config.community_top_k),
            ),
            context,
            timings,
        )
        context.communities = hits

        if self.config.expand_community_entities and hits:
            context.entities = await self._stage(
                STAGE_GRAPH_EXPANSION,
                self._call(self._expand_communities, hits, hierarchy),
                context,
                timings,
            )

        sections = [
            "COMMUNITY SUMMARIES:\n" + format_communities([(h.level, h.summary) for h in hits]),
        ]
        if context.entities:
            sections.append("KEY ENTITIES:\n" + format_entities(context.entities))
        context.text = "\n\n".join(sections)

    def _expand_communities(self, hits: list[CommunityHit], hierarchy: CommunityHierarchy) -> list[Entity]:
        """Top members by degree for each hit, looked up in the hierarchy that was searched."""
        seen: set[str] = set()
        entities: list[Entity] = []

        for hit in hits:
            community = hierarchy.get(hit.community_id)
            if community is None:
                continue
            members = [m for m in community.member_ids if m not in seen]
            ranked = sorted(members, key=lambda m: (-self.graph.relations.degree(m), m))
            for entity_id in ranked[: self.config.entities_per_community]:
                entity = self.graph.entities.get(entity_id)
                if entity is None or entity.entity_id in seen:
                    continue
                seen.add(entity.entity_id)
                entities.append(entity)

        return entities[: self.config.max_context_entities]
