"""Pytest configuration and fixtures."""

import asyncio
import hashlib
import re

import pytest

from graphrag_core.config import Settings
from graphrag_core.graph import EntityCandidate, KnowledgeGraph, RelationCandidate

EMBED_DIM = 32


def embed_text(text: str) -> list[float]:
    """Deterministic bag-of-words embedding."""
    vector = [0.0] * EMBED_DIM
    for token in re.findall(r"\w+", text.lower()):
        index = int(hashlib.sha256(token.encode()).hexdigest()[:8], 16) % EMBED_DIM
        vector[index] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


class FakeEmbedder:
    """Async embed_function that records its calls."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: list[list[str]] = []

    async def __call__(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.delay:
            await asyncio.sleep(self.delay)
        return [embed_text(t) for t in texts]


class FakeGenerator:
    """Async generate_function (context, query) -> answer."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.contexts: list[str] = []

    async def __call__(self, context: str, query: str) -> str:
        self.contexts.append(context)
        if self.delay:
            await asyncio.sleep(self.delay)
        return f"Answer to: {query}"


class FakeSummarizer:
    """Async summarize_function echoing the first entity line of the prompt."""

    def __init__(self):
        self.prompts: list[str] = []

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        lines = [line for line in prompt.splitlines() if line.startswith("[E1]")]
        return f"Community around {lines[0][5:]}" if lines else "Empty community"


class DictExtractor:
    """Extractor returning canned payloads keyed by chunk text."""

    def __init__(self, payloads: dict):
        self.payloads = payloads
        self.calls: list[str] = []

    async def extract(self, text: str):
        self.calls.append(text)
        return self.payloads.get(text, {"entities": [], "relationships": []})


@pytest.fixture
def settings():
    """Settings isolated from the environment and .env files."""
    return Settings(_env_file=None, anthropic_api_key="test-key", voyage_api_key="test-key")


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def graph():
    return KnowledgeGraph()


@pytest.fixture
def chain_graph():
    """A - B - C - D, all relations at full confidence."""
    kg = KnowledgeGraph()
    ids = {}
    for name in ["Alpha", "Bravo", "Charlie", "Delta"]:
        ids[name] = kg.entities.upsert(EntityCandidate(name=name, type="Concept"))
    for source, target in [("Alpha", "Bravo"), ("Bravo", "Charlie"), ("Charlie", "Delta")]:
        kg.relations.add_edge(RelationCandidate(ids[source], ids[target], "relates_to"))
    return kg, ids


@pytest.fixture
def two_cluster_graph():
    """Two triangles joined by a single weak bridge."""
    kg = KnowledgeGraph()
    ids = {}
    for name in ["Ada", "Babbage", "Curie", "Darwin", "Euler", "Fermat"]:
        ids[name] = kg.entities.upsert(
            EntityCandidate(name=name, type="Person", description=f"{name} is a scientist")
        )
    triangles = [("Ada", "Babbage"), ("Babbage", "Curie"), ("Ada", "Curie"),
                 ("Darwin", "Euler"), ("Euler", "Fermat"), ("Darwin", "Fermat")]
    for source, target in triangles:
        kg.relations.add_edge(
            RelationCandidate(ids[source], ids[target], "WORKS_WITH", evidence=f"{source} worked with {target}")
        )
    kg.relations.add_edge(RelationCandidate(ids["Curie"], ids["Darwin"], "CITES", confidence=0.3))
    return kg, ids


@pytest.fixture
def make_extractor():
    """Factory for DictExtractor instances."""
    return DictExtractor


@pytest.fixture
def embed():
    """The deterministic embedding used by FakeEmbedder."""
    return embed_text


@pytest.fixture
def make_embedder():
    return FakeEmbedder


@pytest.fixture
def make_generator():
    return FakeGenerator


SCIENTIST_CHUNKS = {
    "Ada worked with Babbage and Curie.": {
        "entities": [
            {"name": "Ada", "type": "Person", "description": "Ada is a mathematician"},
            {"name": "Babbage", "type": "Person", "description": "Babbage designed engines"},
            {"name": "Curie", "type": "Person", "description": "Curie studied radiation"},
        ],
        "relationships": [
            {"source": "Ada", "target": "Babbage", "relation_type": "WORKS_WITH", "evidence": "Ada worked with Babbage"},
            {"source": "Babbage", "target": "Curie", "relation_type": "WORKS_WITH", "evidence": "Babbage and Curie"},
            {"source": "Ada", "target": "Curie", "relation_type": "WORKS_WITH", "evidence": "Ada worked with Curie"},
        ],
    },
    "Darwin corresponded with Euler and Fermat.": {
        "entities": [
            {"name": "Darwin", "type": "Person", "description": "Darwin studied evolution"},
            {"name": "Euler", "type": "Person", "description": "Euler wrote on analysis"},
            {"name": "Fermat", "type": "Person", "description": "Fermat posed a famous theorem"},
        ],
        "relationships": [
            {"source": "Darwin", "target": "Euler", "relation_type": "CORRESPONDS_WITH", "evidence": "Darwin wrote to Euler"},
            {"source": "Euler", "target": "Fermat", "relation_type": "CORRESPONDS_WITH", "evidence": "Euler wrote to Fermat"},
            {"source": "Darwin", "target": "Fermat", "relation_type": "CORRESPONDS_WITH", "evidence": "Darwin wrote to Fermat"},
        ],
    },
    "Curie once cited Darwin.": {
        "entities": [
            {"name": "Curie", "type": "Person"},
            {"name": "Darwin", "type": "Person"},
        ],
        "relationships": [
            {"source": "Curie", "target": "Darwin", "relation_type": "CITES", "evidence": "Curie cited Darwin", "confidence": 0.3},
        ],
    },
}


@pytest.fixture
def scientist_chunks():
    """Source chunks and an extractor for two groups of scientists."""
    from graphrag_core.ingestion import SourceChunk

    chunks = [SourceChunk(f"doc{i}", text) for i, text in enumerate(SCIENTIST_CHUNKS)]
    return chunks, DictExtractor(SCIENTIST_CHUNKS)


@pytest.fixture
def engine(settings, embedder, generator, summarizer, scientist_chunks):
    from graphrag_core import GraphRAGEngine

    _, extractor = scientist_chunks
    return GraphRAGEngine(
        embed_function=embedder,
        generate_function=generator,
        summarize_function=summarizer,
        extractor=extractor,
        settings=settings,
    )
