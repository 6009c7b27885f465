"""Community summaries: representative selection, summarization and search."""

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence

import numpy as np

from graphrag_core.errors import StaleCommunitySnapshot
from graphrag_core.generation.prompts import COMMUNITY_SUMMARY_PROMPT, format_entities, format_relations
from graphrag_core.graph.types import Entity, GraphSnapshot, Relation
from graphrag_core.index.vector import rank_by_cosine
from .types import Community, CommunityHierarchy

logger = logging.getLogger(__name__)


@dataclass
class SummaryLimits:
    """Bounds on what goes into a community summary prompt."""

    max_entities: int = 10
    max_relations: int = 10
    char_budget: int = 4000


@dataclass(frozen=True)
class SummaryEntry:
    """Indexed summary text and embedding for one community."""

    community_id: str
    summary: str
    embedding: tuple[float, ...]


@dataclass(frozen=True)
class CommunityHit:
    """Community ranked against a query embedding."""

    community_id: str
    score: float
    level: int
    summary: str


class SummaryIndex:
    """Summaries of the current community hierarchy, searchable by embedding.

    The hierarchy and its entries are replaced together by ``swap``; a
    reader that captured ``current`` keeps a consistent view.
    """

    def __init__(
        self,
        summarize_function: Callable[[str], Awaitable[str]],
        embed_function: Callable[[list[str]], Awaitable[list[list[float]]]],
        limits: SummaryLimits | None = None,
    ):
        """Initialize summary index.

        Args:
            summarize_function: Async function turning a prompt into summary text (LLM)
            embed_function: Async function to embed summaries
            limits: Representative selection limits
        """
        self.summarize_function = summarize_function
        self.embed_function = embed_function
        self.limits = limits or SummaryLimits()
        self._lock = threading.Lock()
        self._hierarchy = CommunityHierarchy()
        self._entries: dict[str, SummaryEntry] = {}
        self._matrix: tuple[list[str], np.ndarray] | None = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def current(self) -> CommunityHierarchy:
        return self._hierarchy

    def entry(self, community_id: str) -> SummaryEntry | None:
        return self._entries.get(community_id)

    def entries(self) -> dict[str, SummaryEntry]:
        with self._lock:
            return dict(self._entries)

    def select_representatives(
        self,
        community: Community,
        snapshot: GraphSnapshot,
    ) -> tuple[list[Entity], list[Relation]]:
        """Pick the entities and relations that describe a community.

        Entities are ranked by degree inside the community, relations by
        confidence; both are capped by count and by the character budget.
        """
        members = set(community.member_ids)
        entity_map = snapshot.entity_map()

        internal = [
            r for r in snapshot.relations
            if r.source_id in members and r.target_id in members and r.source_id != r.target_id
        ]
        degree = {m: 0 for m in members}
        for relation in internal:
            degree[relation.source_id] += 1
            degree[relation.target_id] += 1

        budget = self.limits.char_budget

        entities: list[Entity] = []
        for entity_id in sorted(members, key=lambda m: (-degree[m], m)):
            if len(entities) >= self.limits.max_entities:
                break
            entity = entity_map.get(entity_id)
            if entity is None:
                continue
            cost = len(entity.name) + len(entity.type) + len(entity.description)
            if entities and cost > budget:
                break
            entities.append(entity)
            budget -= cost

        relations: list[Relation] = []
        for relation in sorted(internal, key=lambda r: (-r.confidence, r.relation_id)):
            if len(relations) >= self.limits.max_relations:
                break
            cost = len(relation.relation_type) + len(relation.evidence)
            if cost > budget:
                break
            relations.append(relation)
            budget -= cost

        return entities, relations

    def build_prompt(self, community: Community, snapshot: GraphSnapshot) -> str:
        entities, relations = self.select_representatives(community, snapshot)
        names = {e.entity_id: e.name for e in snapshot.entities}
        return COMMUNITY_SUMMARY_PROMPT.format(
            entities=format_entities(entities),
            relations=format_relations(relations, names),
        )

    async def summarize(self, community: Community, snapshot: GraphSnapshot) -> str:
        """Generate summary text for one community."""
        prompt = self.build_prompt(community, snapshot)
        response = await self.summarize_function(prompt)
        return response.strip()

    def index(self, community_id: str, summary: str, embedding: Sequence[float]) -> None:
        """Add or replace the entry for a community."""
        entry = SummaryEntry(community_id, summary, tuple(float(x) for x in embedding))
        with self._lock:
            replaced = community_id in self._entries
            self._entries = {**self._entries, community_id: entry}
            self._matrix = None
        logger.debug(f"{'Re-indexed' if replaced else 'Indexed'} summary for {community_id}")

    def evict(self, community_ids: Iterable[str]) -> int:
        """Remove entries; returns how many were present."""
        ids = set(community_ids)
        with self._lock:
            remaining = {cid: e for cid, e in self._entries.items() if cid not in ids}
            removed = len(self._entries) - len(remaining)
            self._entries = remaining
            self._matrix = None
        return removed

    def clear(self) -> None:
        """Drop the hierarchy and every entry."""
        with self._lock:
            self._hierarchy = CommunityHierarchy()
            self._entries = {}
            self._matrix = None

    def search(self, query_embedding: Sequence[float], top_k: int) -> list[CommunityHit]:
        """Rank indexed communities by cosine similarity, ties broken by id."""
        hits, _ = self.search_with_hierarchy(query_embedding, top_k)
        return hits

    def search_with_hierarchy(
        self, query_embedding: Sequence[float], top_k: int
    ) -> tuple[list[CommunityHit], CommunityHierarchy]:
        """Like ``search``, also returning the hierarchy the hits belong to.

        A swap that lands after the call does not affect the returned pair.
        """
        with self._lock:
            hierarchy = self._hierarchy
            entries = self._entries
            if self._matrix is None:
                ids = sorted(cid for cid, e in entries.items() if e.embedding)
                matrix = np.array([entries[cid].embedding for cid in ids], dtype=np.float64)
                self._matrix = (ids, matrix)
            ids, matrix = self._matrix

        if not ids:
            return [], hierarchy

        hits = []
        for hit in rank_by_cosine(query_embedding, ids, matrix, top_k):
            community = hierarchy.get(hit.id)
            hits.append(
                CommunityHit(
                    community_id=hit.id,
                    score=hit.score,
                    level=community.level if community else 0,
                    summary=entries[hit.id].summary,
                )
            )
        return hits, hierarchy

    async def build(
        self,
        hierarchy: CommunityHierarchy,
        snapshot: GraphSnapshot,
    ) -> tuple[CommunityHierarchy, dict[str, SummaryEntry]]:
        """Summarize and embed every community without touching the live index."""
        if hierarchy.is_empty:
            return hierarchy, {}

        communities = list(hierarchy)
        summaries = await asyncio.gather(*(self.summarize(c, snapshot) for c in communities))
        embeddings = await self.embed_function(list(summaries))

        if len(embeddings) != len(communities):
            raise ValueError(f"Expected {len(communities)} summary embeddings, got {len(embeddings)}")

        entries = {
            c.community_id: SummaryEntry(c.community_id, text, tuple(float(x) for x in emb))
            for c, text, emb in zip(communities, summaries, embeddings)
        }
        summarized = hierarchy.with_summaries(
            {cid: (e.summary, e.embedding) for cid, e in entries.items()}
        )
        logger.info(f"Built {len(entries)} community summaries for graph version {hierarchy.graph_version}")
        return summarized, entries

    def swap(self, hierarchy: CommunityHierarchy, entries: dict[str, SummaryEntry]) -> list[str]:
        """Atomically replace the hierarchy and entries; returns evicted ids."""
        with self._lock:
            if hierarchy.graph_version < self._hierarchy.graph_version:
                raise StaleCommunitySnapshot(self._hierarchy.graph_version, hierarchy.graph_version)
            evicted = sorted(set(self._entries) - set(entries))
            self._hierarchy = hierarchy
            self._entries = dict(entries)
            self._matrix = None

        logger.info(
            f"Swapped in {len(hierarchy)} communities (graph version {hierarchy.graph_version}), "
            f"evicted {len(evicted)}"
        )
        return evicted
