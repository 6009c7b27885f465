"""Knowledge graph facade over the entity store, relation graph and chunks."""

import logging
from dataclasses import replace
from typing import Iterable

from graphrag_core.utils.locks import ReadWriteLock
from .entity_store import EntityStore
from .relation_graph import RelationGraph
from .types import Chunk, Entity, GraphSnapshot, Relation

logger = logging.getLogger(__name__)


class KnowledgeGraph:
    """Entities, relations and chunks behind a single reader/writer lock."""

    def __init__(
        self,
        similarity_threshold: float = 0.85,
        confidence_floor: float = 0.3,
    ):
        """Initialize an empty graph.

        Args:
            similarity_threshold: Alias matching threshold for the entity store
            confidence_floor: Default traversal floor for the relation graph
        """
        self.lock = ReadWriteLock()
        self.entities = EntityStore(similarity_threshold=similarity_threshold, lock=self.lock)
        self.relations = RelationGraph(self.entities, confidence_floor=confidence_floor)
        self._chunks: dict[str, Chunk] = {}

    @property
    def version(self) -> int:
        """Mutation counter covering entities and relations."""
        return self.entities.version

    def add_chunk(self, chunk: Chunk) -> Chunk:
        """Register a chunk, folding a re-ingested copy into the stored one.

        Entity mentions are unioned (canonicalized through merges) and the
        newer non-empty embedding wins.

        Returns:
            The stored chunk

        Raises:
            ValueError: If the id is registered for different text or position
        """
        with self.lock.write():
            existing = self._chunks.get(chunk.chunk_id)
            if existing is None:
                self._chunks[chunk.chunk_id] = chunk
                return chunk

            if (existing.document_id, existing.offset, existing.text) != (
                chunk.document_id,
                chunk.offset,
                chunk.text,
            ):
                raise ValueError(f"Chunk {chunk.chunk_id} already registered with different content")

            entity_ids = set()
            for entity_id in existing.entity_ids | chunk.entity_ids:
                canonical = self.entities._canonical(entity_id)
                entity_ids.add(canonical or entity_id)
            merged = replace(
                existing,
                embedding=chunk.embedding or existing.embedding,
                entity_ids=frozenset(entity_ids),
            )
            self._chunks[chunk.chunk_id] = merged
            logger.debug(f"Re-registered chunk {chunk.chunk_id} with {len(entity_ids)} entities")
            return merged

    def get_chunk(self, chunk_id: str) -> Chunk | None:
        with self.lock.read():
            return self._chunks.get(chunk_id)

    def chunks(self) -> list[Chunk]:
        with self.lock.read():
            return [self._chunks[cid] for cid in sorted(self._chunks)]

    def entities_for_chunks(self, chunk_ids: Iterable[str]) -> list[str]:
        """Canonical ids of entities mentioned in the given chunks."""
        found: set[str] = set()
        with self.lock.read():
            for chunk_id in chunk_ids:
                chunk = self._chunks.get(chunk_id)
                if chunk is None:
                    continue
                for entity_id in chunk.entity_ids:
                    canonical = self.entities._canonical(entity_id)
                    if canonical is not None:
                        found.add(canonical)
        return sorted(found)

    def snapshot(self) -> GraphSnapshot:
        """Consistent copy of entities and relations at the current version."""
        with self.lock.read():
            return GraphSnapshot(
                version=self.entities.version,
                entities=tuple(self.entities._entities_unlocked()),
                relations=tuple(self.relations._relations_unlocked()),
            )

    def load(
        self,
        entities: Iterable[Entity],
        forwarding: dict[str, str],
        relations: Iterable[Relation],
        next_relation_id: int,
        chunks: Iterable[Chunk],
        version: int,
    ) -> None:
        """Replace the whole graph atomically."""
        with self.lock.write():
            self.entities.load(entities, forwarding)
            self.relations.load(relations, next_relation_id)
            self._chunks = {c.chunk_id: c for c in chunks}
            self.entities._version = version
        logger.info(
            f"Loaded graph: {len(self.entities)} entities, "
            f"{len(self.relations)} relations, {len(self._chunks)} chunks"
        )

    def stats(self) -> dict[str, int]:
        with self.lock.read():
            return {
                "entities": len(self.entities),
                "relations": len(self.relations),
                "chunks": len(self._chunks),
                "version": self.entities.version,
            }

    def dump(self) -> tuple[GraphSnapshot, dict[str, str], int, list[Chunk]]:
        """Snapshot, forwarding table, next relation id and chunks, read atomically."""
        with self.lock.read():
            snapshot = GraphSnapshot(
                version=self.entities.version,
                entities=tuple(self.entities._entities_unlocked()),
                relations=tuple(self.relations._relations_unlocked()),
            )
            forwarding = {old: self.entities._forward[old] for old in sorted(self.entities._forward)}
            chunks = [self._chunks[cid] for cid in sorted(self._chunks)]
            return snapshot, forwarding, self.relations.next_relation_id, chunks
