"""Entity store: canonical entities, alias table and merge."""

import hashlib
import logging
import re
from dataclasses import replace
from difflib import SequenceMatcher
from typing import Callable, Iterable

from graphrag_core.errors import UnknownEntity
from graphrag_core.utils.locks import ReadWriteLock
from .types import Entity, EntityCandidate

logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[.,!?;:'\"]")
_WHITESPACE = re.compile(r"\s+")

MergeListener = Callable[[str, str], None]


def normalize_name(name: str) -> str:
    """Case-fold, drop punctuation and collapse whitespace."""
    normalized = _PUNCTUATION.sub(" ", name.casefold())
    return _WHITESPACE.sub(" ", normalized).strip()


def _token_overlap(a: str, b: str) -> float:
    """Share of tokens that match, letting a single letter stand for a word.

    Only applies to multi-word names, and at least one full word must match,
    so "J. Doe" ~ "Jane Doe" but "J" is not "Jane".
    """
    tokens_a = a.split()
    tokens_b = b.split()
    if len(tokens_a) < 2 or len(tokens_b) < 2:
        return 0.0

    unmatched = list(tokens_b)
    matched = 0
    full_matches = 0
    for token in tokens_a:
        for i, other in enumerate(unmatched):
            if token == other:
                full_matches += 1
            elif not (
                (len(token) == 1 and other.startswith(token))
                or (len(other) == 1 and token.startswith(other))
            ):
                continue
            matched += 1
            del unmatched[i]
            break

    if full_matches == 0:
        return 0.0
    return matched / max(len(tokens_a), len(tokens_b))


def name_similarity(a: str, b: str) -> float:
    """Similarity of two normalized names in [0, 1]."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return max(SequenceMatcher(None, a, b).ratio(), _token_overlap(a, b))


def entity_id_for(normalized_name: str) -> str:
    """Content-derived entity id."""
    return "ent_" + hashlib.sha256(normalized_name.encode()).hexdigest()[:16]


def _copy(entity: Entity) -> Entity:
    return replace(entity, aliases=set(entity.aliases), source_chunks=set(entity.source_chunks))


class EntityStore:
    """Holds canonical entities and resolves mentions onto them.

    All writes happen under the exclusive side of ``lock``; concurrent
    ``upsert`` calls for the same normalized name are therefore serialized
    and can never create two entities. Records handed out are copies.
    """

    def __init__(
        self,
        similarity_threshold: float = 0.85,
        lock: ReadWriteLock | None = None,
    ):
        """Initialize the store.

        Args:
            similarity_threshold: Minimum ``name_similarity`` for a fuzzy alias match
            lock: Lock shared with the relation graph
        """
        self.similarity_threshold = similarity_threshold
        self.lock = lock or ReadWriteLock()
        self._entities: dict[str, Entity] = {}
        self._alias_index: dict[str, str] = {}
        self._forward: dict[str, str] = {}
        self._merge_listeners: list[MergeListener] = []
        self._version = 0

    @property
    def version(self) -> int:
        """Mutation counter, shared with the relation graph."""
        return self._version

    def touch(self) -> None:
        """Record a mutation. Caller must hold the write lock."""
        self._version += 1

    def add_merge_listener(self, listener: MergeListener) -> None:
        """Call ``listener(absorbed_id, surviving_id)`` inside every merge."""
        self._merge_listeners.append(listener)

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return isinstance(entity_id, str) and self.canonical_id(entity_id) is not None

    def upsert(self, candidate: EntityCandidate) -> str:
        """Insert a mention or fold it into an existing entity.

        Returns:
            Canonical entity id
        """
        name = candidate.name.strip()
        normalized = normalize_name(name)
        if not normalized:
            raise ValueError(f"Entity name is empty after normalization: {candidate.name!r}")

        with self.lock.write():
            entity_id = self._match(normalized, candidate.type)

            if entity_id is None:
                entity_id = entity_id_for(normalized)
                self._entities[entity_id] = Entity(
                    entity_id=entity_id,
                    name=name,
                    type=candidate.type,
                    description=candidate.description,
                    aliases={name},
                    source_chunks={candidate.chunk_id} if candidate.chunk_id else set(),
                )
                self._alias_index[normalized] = entity_id
                logger.debug(f"Created entity {entity_id} for '{name}'")
            else:
                entity = self._entities[entity_id]
                entity.aliases.add(name)
                if candidate.chunk_id:
                    entity.source_chunks.add(candidate.chunk_id)
                if len(candidate.description) > len(entity.description):
                    entity.description = candidate.description
                if not entity.type and candidate.type:
                    entity.type = candidate.type
                self._alias_index.setdefault(normalized, entity_id)
                logger.debug(f"Folded '{name}' into {entity_id} ({entity.name})")

            self.touch()
            return entity_id

    def resolve(self, name: str, type: str = "") -> str | None:
        """Find the entity a name refers to, if any."""
        normalized = normalize_name(name)
        if not normalized:
            return None
        with self.lock.read():
            return self._match(normalized, type)

    def _match(self, normalized: str, type: str) -> str | None:
        exact = self._alias_index.get(normalized)
        if exact is not None:
            return exact

        best_id: str | None = None
        best_score = self.similarity_threshold
        wanted_type = type.casefold()
        # Sorted scan keeps tie-breaking stable
        for alias in sorted(self._alias_index):
            entity_id = self._alias_index[alias]
            entity_type = self._entities[entity_id].type.casefold()
            if wanted_type and entity_type and entity_type != wanted_type:
                continue
            score = name_similarity(normalized, alias)
            if score > best_score or (score == best_score and best_id is None):
                best_id, best_score = entity_id, score
        return best_id

    def canonical_id(self, entity_id: str) -> str | None:
        """Follow merge forwarding. None if the id was never known."""
        with self.lock.read():
            return self._canonical(entity_id)

    def _canonical(self, entity_id: str) -> str | None:
        if entity_id in self._entities:
            return entity_id
        return self._forward.get(entity_id)

    def get(self, entity_id: str) -> Entity | None:
        """Copy of the canonical entity for an id (forwarding applied)."""
        with self.lock.read():
            canonical = self._canonical(entity_id)
            return _copy(self._entities[canonical]) if canonical else None

    def entities(self) -> list[Entity]:
        """Copies of all canonical entities, ordered by id."""
        with self.lock.read():
            return self._entities_unlocked()

    def _entities_unlocked(self) -> list[Entity]:
        return [_copy(self._entities[eid]) for eid in sorted(self._entities)]

    def forwarding(self) -> dict[str, str]:
        """Absorbed id -> surviving id."""
        with self.lock.read():
            return dict(self._forward)

    def merge(self, id_a: str, id_b: str) -> str:
        """Absorb ``id_b`` into ``id_a``.

        Idempotent: merging ids that already resolve to the same entity
        returns that entity. Listeners re-point edges before the write lock
        is released, so readers never see a half-merged graph.

        Returns:
            Surviving entity id
        """
        with self.lock.write():
            survivor_id = self._canonical(id_a)
            if survivor_id is None:
                raise UnknownEntity(id_a)
            absorbed_id = self._canonical(id_b)
            if absorbed_id is None:
                raise UnknownEntity(id_b)
            if survivor_id == absorbed_id:
                return survivor_id

            survivor = self._entities[survivor_id]
            absorbed = self._entities.pop(absorbed_id)
            survivor.aliases |= absorbed.aliases
            survivor.source_chunks |= absorbed.source_chunks
            if len(absorbed.description) > len(survivor.description):
                survivor.description = absorbed.description
            if not survivor.type:
                survivor.type = absorbed.type

            for alias, owner in self._alias_index.items():
                if owner == absorbed_id:
                    self._alias_index[alias] = survivor_id
            for old, target in self._forward.items():
                if target == absorbed_id:
                    self._forward[old] = survivor_id
            self._forward[absorbed_id] = survivor_id

            for listener in self._merge_listeners:
                listener(absorbed_id, survivor_id)

            self.touch()
            logger.info(f"Merged {absorbed_id} ({absorbed.name}) into {survivor_id} ({survivor.name})")
            return survivor_id

    def load(self, entities: Iterable[Entity], forwarding: dict[str, str]) -> None:
        """Replace the whole store. Caller must hold the write lock."""
        self._entities = {e.entity_id: _copy(e) for e in entities}
        self._forward = dict(forwarding)
        self._alias_index = {}
        for entity_id in sorted(self._entities):
            entity = self._entities[entity_id]
            for alias in sorted(entity.aliases | {entity.name}):
                normalized = normalize_name(alias)
                if normalized:
                    self._alias_index.setdefault(normalized, entity_id)
