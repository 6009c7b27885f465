"""Vector search over stored embeddings."""

from .vector import InMemoryVectorIndex, VectorHit, VectorSearch, cosine_similarity, rank_by_cosine

__all__ = [
    "InMemoryVectorIndex",
    "VectorHit",
    "VectorSearch",
    "cosine_similarity",
    "rank_by_cosine",
]
