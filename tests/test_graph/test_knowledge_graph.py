"""Tests for the knowledge graph facade."""

from graphrag_core.graph import Chunk, EntityCandidate, KnowledgeGraph, RelationCandidate


def test_chunk_lookup(graph):
    ada = graph.entities.upsert(EntityCandidate("Ada", "Person"))
    chunk = Chunk.create("doc", "Ada wrote notes.", (0, 16), entity_ids={ada})

    graph.add_chunk(chunk)
    graph.add_chunk(chunk)

    assert graph.get_chunk(chunk.chunk_id) == chunk
    assert graph.get_chunk("missing") is None
    assert graph.chunks() == [chunk]
    assert graph.entities_for_chunks([chunk.chunk_id, "missing"]) == [ada]


def test_dump_and_load(chain_graph):
    kg, ids = chain_graph
    kg.entities.merge(ids["Alpha"], ids["Bravo"])
    kg.add_chunk(Chunk.create("doc", "Alpha and Charlie", (0, 17), embedding=[0.5, 0.5]))

    snapshot, forwarding, next_relation_id, chunks = kg.dump()
    restored = KnowledgeGraph()
    restored.load(
        entities=snapshot.entities,
        forwarding=forwarding,
        relations=snapshot.relations,
        next_relation_id=next_relation_id,
        chunks=chunks,
        version=snapshot.version,
    )

    assert restored.version == kg.version
    assert restored.stats() == kg.stats()
    assert restored.entities.canonical_id(ids["Bravo"]) == ids["Alpha"]
    assert restored.entities.resolve("Bravo") == ids["Alpha"]
    new_id = restored.relations.add_edge(RelationCandidate(ids["Alpha"], ids["Delta"], "NEAR"))
    assert new_id == next_relation_id


def test_readding_chunk_merges_mentions_and_embedding(graph):
    ada = graph.entities.upsert(EntityCandidate("Ada", "Person"))
    grace = graph.entities.upsert(EntityCandidate("Grace", "Person"))
    graph.add_chunk(Chunk.create("doc", "Ada met Grace.", (0, 14), embedding=[1.0, 0.0], entity_ids={ada}))
    graph.entities.merge(grace, ada)

    stored = graph.add_chunk(Chunk.create("doc", "Ada met Grace.", (0, 14), entity_ids={ada, grace}))

    assert stored.entity_ids == {grace}
    assert stored.embedding == (1.0, 0.0)
    assert graph.get_chunk(stored.chunk_id) == stored

    updated = graph.add_chunk(Chunk.create("doc", "Ada met Grace.", (0, 14), embedding=[0.0, 1.0]))
    assert updated.embedding == (0.0, 1.0)
    assert updated.entity_ids == {grace}
