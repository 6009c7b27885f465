"""Relation graph: typed edges between entities and bounded traversal."""

import logging
from collections import deque
from dataclasses import replace
from typing import Iterable

from graphrag_core.errors import DanglingEndpoint
from .entity_store import EntityStore
from .types import PathHit, Relation, RelationCandidate, Subgraph

logger = logging.getLogger(__name__)


class RelationGraph:
    """Directed multigraph over the entities of an ``EntityStore``.

    Relations live in an arena keyed by integer id; adjacency is kept as
    per-entity sets of relation ids so merges re-point edges by rewriting
    index entries rather than chasing references. Traversal treats edges
    as undirected.
    """

    def __init__(self, store: EntityStore, confidence_floor: float = 0.3):
        """Initialize the graph.

        Args:
            store: Entity store whose lock and ids this graph shares
            confidence_floor: Default minimum confidence for traversal
        """
        if not 0.0 <= confidence_floor <= 1.0:
            raise ValueError("confidence_floor must be within [0, 1]")
        self.store = store
        self.lock = store.lock
        self.confidence_floor = confidence_floor
        self._relations: dict[int, Relation] = {}
        self._incident: dict[str, set[int]] = {}
        self._keys: dict[tuple, int] = {}
        self._next_id = 0
        store.add_merge_listener(self._repoint)

    def __len__(self) -> int:
        return len(self._relations)

    @property
    def next_relation_id(self) -> int:
        return self._next_id

    @staticmethod
    def _key(relation: Relation) -> tuple:
        return (
            relation.source_id,
            relation.target_id,
            relation.relation_type,
            relation.evidence,
            relation.chunk_id,
        )

    def add_edge(self, candidate: RelationCandidate) -> int:
        """Commit a relation whose endpoints already exist.

        Adding the same (source, target, type, evidence, chunk) twice keeps
        one edge with the higher confidence.

        Raises:
            DanglingEndpoint: If either endpoint is unknown
            ValueError: If confidence lies outside [0, 1]
        """
        if not 0.0 <= candidate.confidence <= 1.0:
            raise ValueError(f"Relation confidence must be within [0, 1]: {candidate.confidence}")

        with self.lock.write():
            source_id = self.store._canonical(candidate.source_id)
            if source_id is None:
                raise DanglingEndpoint(candidate.source_id)
            target_id = self.store._canonical(candidate.target_id)
            if target_id is None:
                raise DanglingEndpoint(candidate.target_id)

            relation = Relation(
                relation_id=self._next_id,
                source_id=source_id,
                target_id=target_id,
                relation_type=candidate.relation_type.strip().upper() or "RELATES_TO",
                evidence=candidate.evidence,
                chunk_id=candidate.chunk_id,
                confidence=candidate.confidence,
            )

            key = self._key(relation)
            existing_id = self._keys.get(key)
            if existing_id is not None:
                existing = self._relations[existing_id]
                existing.confidence = max(existing.confidence, relation.confidence)
                self.store.touch()
                return existing_id

            self._insert(relation)
            self._next_id += 1
            self.store.touch()
            logger.debug(
                f"Added relation {relation.relation_id}: "
                f"{source_id} -{relation.relation_type}-> {target_id}"
            )
            return relation.relation_id

    def _insert(self, relation: Relation) -> None:
        self._relations[relation.relation_id] = relation
        self._keys.setdefault(self._key(relation), relation.relation_id)
        self._incident.setdefault(relation.source_id, set()).add(relation.relation_id)
        self._incident.setdefault(relation.target_id, set()).add(relation.relation_id)

    def _repoint(self, absorbed_id: str, survivor_id: str) -> None:
        """Move every edge of ``absorbed_id`` onto ``survivor_id``.

        Runs inside the store's merge, under the write lock. Edges are
        rewritten, never dropped or collapsed.
        """
        moved = self._incident.pop(absorbed_id, set())
        for relation_id in sorted(moved):
            relation = self._relations[relation_id]
            old_key = self._key(relation)
            if self._keys.get(old_key) == relation_id:
                del self._keys[old_key]
            if relation.source_id == absorbed_id:
                relation.source_id = survivor_id
            if relation.target_id == absorbed_id:
                relation.target_id = survivor_id
            self._keys.setdefault(self._key(relation), relation_id)
            self._incident.setdefault(survivor_id, set()).add(relation_id)
        if moved:
            logger.debug(f"Re-pointed {len(moved)} relations from {absorbed_id} to {survivor_id}")

    def _floor(self, min_confidence: float | None) -> float:
        return self.confidence_floor if min_confidence is None else min_confidence

    def _adjacent(self, entity_id: str, floor: float) -> list[str]:
        neighbours = set()
        for relation_id in self._incident.get(entity_id, ()):
            relation = self._relations[relation_id]
            if relation.confidence < floor:
                continue
            other = relation.other(entity_id)
            if other != entity_id:
                neighbours.add(other)
        return sorted(neighbours)

    def _bfs(
        self, seeds: Iterable[str], hop_limit: int, floor: float
    ) -> dict[str, tuple[str, ...]]:
        """Breadth-first search from seeds; returns entity -> path."""
        paths: dict[str, tuple[str, ...]] = {}
        queue: deque[str] = deque()
        for seed in sorted(set(seeds)):
            paths[seed] = (seed,)
            queue.append(seed)

        while queue:
            current = queue.popleft()
            path = paths[current]
            if len(path) - 1 >= hop_limit:
                continue
            for neighbour in self._adjacent(current, floor):
                if neighbour not in paths:
                    paths[neighbour] = path + (neighbour,)
                    queue.append(neighbour)
        return paths

    def neighbors(
        self,
        entity_id: str,
        hop_limit: int,
        min_confidence: float | None = None,
    ) -> set[PathHit]:
        """Entities within ``hop_limit`` hops of ``entity_id`` (seed excluded)."""
        if hop_limit < 0:
            raise ValueError("hop_limit must be non-negative")
        with self.lock.read():
            seed = self.store._canonical(entity_id)
            if seed is None:
                return set()
            paths = self._bfs([seed], hop_limit, self._floor(min_confidence))
        return {PathHit(entity_id=eid, path=path) for eid, path in paths.items() if eid != seed}

    def subgraph(
        self,
        entity_ids: Iterable[str],
        hop_limit: int,
        min_confidence: float | None = None,
    ) -> Subgraph:
        """Induced subgraph on the seeds and everything within ``hop_limit``.

        Unknown seeds are ignored. With ``hop_limit=0`` the result is exactly
        the induced subgraph on the known seeds.
        """
        if hop_limit < 0:
            raise ValueError("hop_limit must be non-negative")
        floor = self._floor(min_confidence)
        with self.lock.read():
            seeds = set()
            for entity_id in entity_ids:
                canonical = self.store._canonical(entity_id)
                if canonical is None:
                    logger.debug(f"Ignoring unknown subgraph seed {entity_id}")
                    continue
                seeds.add(canonical)

            nodes = frozenset(self._bfs(seeds, hop_limit, floor))
            relation_ids = set()
            for node in nodes:
                for relation_id in self._incident.get(node, ()):
                    relation = self._relations[relation_id]
                    if (
                        relation.confidence >= floor
                        and relation.source_id in nodes
                        and relation.target_id in nodes
                    ):
                        relation_ids.add(relation_id)
            relations = tuple(replace(self._relations[rid]) for rid in sorted(relation_ids))
        return Subgraph(entity_ids=nodes, relations=relations)

    def relations(self, include_low_confidence: bool = True) -> list[Relation]:
        """Copies of stored relations ordered by id."""
        with self.lock.read():
            return self._relations_unlocked(include_low_confidence)

    def _relations_unlocked(self, include_low_confidence: bool = True) -> list[Relation]:
        return [
            replace(self._relations[rid])
            for rid in sorted(self._relations)
            if include_low_confidence or self._relations[rid].confidence >= self.confidence_floor
        ]

    def relations_for(self, entity_id: str) -> list[Relation]:
        """Every stored relation touching an entity, low-confidence ones included."""
        with self.lock.read():
            canonical = self.store._canonical(entity_id)
            if canonical is None:
                return []
            return [replace(self._relations[rid]) for rid in sorted(self._incident.get(canonical, ()))]

    def degree(self, entity_id: str, min_confidence: float | None = None) -> int:
        """Number of distinct traversable neighbours."""
        with self.lock.read():
            canonical = self.store._canonical(entity_id)
            if canonical is None:
                return 0
            return len(self._adjacent(canonical, self._floor(min_confidence)))

    def load(self, relations: Iterable[Relation], next_relation_id: int) -> None:
        """Replace every relation. Caller must hold the write lock."""
        self._relations = {}
        self._incident = {}
        self._keys = {}
        for relation in sorted(relations, key=lambda r: r.relation_id):
            self._insert(replace(relation))
        highest = max(self._relations, default=-1)
        self._next_id = max(next_relation_id, highest + 1)
