"""In-memory vector index with cosine similarity."""

import logging
import threading
from dataclasses import dataclass
from typing import Protocol, Sequence

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VectorHit:
    """One vector search result."""

    id: str
    score: float


class VectorSearch(Protocol):
    """Anything that can rank stored vectors against a query embedding."""

    def search(self, embedding: Sequence[float], top_k: int) -> list[VectorHit]: ...


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors."""
    a_arr = np.asarray(a, dtype=np.float64)
    b_arr = np.asarray(b, dtype=np.float64)
    norm = np.linalg.norm(a_arr) * np.linalg.norm(b_arr)
    if norm == 0:
        return 0.0
    return float(np.dot(a_arr, b_arr) / norm)


def rank_by_cosine(
    query: Sequence[float],
    ids: Sequence[str],
    matrix: np.ndarray,
    top_k: int,
) -> list[VectorHit]:
    """Rank rows of ``matrix`` against ``query``; ties broken by id."""
    if top_k <= 0 or not ids:
        return []

    q = np.asarray(query, dtype=np.float64)
    if q.shape[0] != matrix.shape[1]:
        raise ValueError(f"Embedding dimension {q.shape[0]} does not match index dimension {matrix.shape[1]}")

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    dots = matrix @ q
    scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

    ranked = sorted(zip(ids, scores.tolist()), key=lambda item: (-item[1], item[0]))
    return [VectorHit(id=i, score=s) for i, s in ranked[:top_k]]


class InMemoryVectorIndex:
    """Thread-safe id -> embedding store searched by brute-force cosine.

    Used for chunk embeddings when no external vector database is wired in.
    """

    def __init__(self, dimension: int | None = None):
        self.dimension = dimension
        self._configured_dimension = dimension
        self._vectors: dict[str, np.ndarray] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._vectors

    def add(self, item_id: str, embedding: Sequence[float]) -> None:
        """Insert or replace the vector stored under ``item_id``."""
        vector = np.asarray(embedding, dtype=np.float64)
        if vector.ndim != 1 or vector.size == 0:
            raise ValueError(f"Embedding for {item_id} must be a non-empty 1-D vector")

        with self._lock:
            if self.dimension is None:
                self.dimension = int(vector.shape[0])
            elif vector.shape[0] != self.dimension:
                raise ValueError(
                    f"Embedding for {item_id} has dimension {vector.shape[0]}, expected {self.dimension}"
                )
            self._vectors[item_id] = vector

    def clear(self) -> None:
        with self._lock:
            self._vectors = {}
            self.dimension = self._configured_dimension

    def remove(self, item_id: str) -> bool:
        with self._lock:
            return self._vectors.pop(item_id, None) is not None

    def search(self, embedding: Sequence[float], top_k: int) -> list[VectorHit]:
        """Return up to ``top_k`` hits ranked by cosine similarity."""
        with self._lock:
            if not self._vectors:
                return []
            ids = sorted(self._vectors)
            matrix = np.vstack([self._vectors[i] for i in ids])

        hits = rank_by_cosine(embedding, ids, matrix, top_k)
        logger.debug(f"Vector search returned {len(hits)} hits")
        return hits
