"""Tests for the GraphRAG engine."""

import json

import pytest

from graphrag_core import (
    DanglingEndpoint,
    GraphRAGEngine,
    NoCommunitiesAvailable,
    QueryMode,
    QueryResult,
)
from graphrag_core.config import Settings


class TestIngestAndQuery:
    """End-to-end flow through the engine."""

    @pytest.mark.asyncio
    async def test_full_flow(self, engine, scientist_chunks, summarizer):
        chunks, _ = scientist_chunks

        report = await engine.ingest(chunks)
        assert report.ok
        assert len(engine.graph.entities) == 6
        assert len(engine.graph.relations) == 7
        assert len(engine.vector_index) == 3

        assert isinstance(await engine.query("Who is there?", QueryMode.GLOBAL), NoCommunitiesAvailable)

        outcome = await engine.refresh_communities()
        assert outcome.refreshed
        assert len(outcome.hierarchy) >= 2
        assert outcome.hierarchy.graph_version == engine.graph.version
        assert len(summarizer.prompts) == len(outcome.hierarchy)

        result = await engine.query("Who worked with Ada?", QueryMode.GLOBAL)
        assert isinstance(result, QueryResult)
        assert result.context.communities
        assert result.answer == "Answer to: Who worked with Ada?"

        local = await engine.query("Ada worked with Babbage", QueryMode.LOCAL)
        assert "Ada" in {e.name for e in local.context.entities}

    @pytest.mark.asyncio
    async def test_reingest_after_merge(self, engine, scientist_chunks):
        chunks, _ = scientist_chunks
        await engine.ingest(chunks[:1])
        ada = engine.graph.entities.resolve("Ada")
        engine.graph.entities.merge(ada, engine.graph.entities.resolve("Babbage"))

        report = await engine.ingest(chunks)

        assert report.ok
        assert len(report.processed_chunks) == 3
        assert engine.graph.get_chunk(chunks[0].chunk_id).entity_ids == {ada, engine.graph.entities.resolve("Curie")}
        assert len(engine.vector_index) == 3

    @pytest.mark.asyncio
    async def test_ingest_requires_extractor(self, settings, embedder, generator, summarizer, scientist_chunks):
        chunks, _ = scientist_chunks
        engine = GraphRAGEngine(embedder, generator, summarizer, settings=settings)
        with pytest.raises(ValueError):
            await engine.ingest(chunks)


class TestRefresh:
    """Staleness-driven community refresh."""

    @pytest.mark.asyncio
    async def test_refresh_skipped_when_fresh(self, engine, scientist_chunks):
        chunks, _ = scientist_chunks
        await engine.ingest(chunks)
        await engine.refresh_communities()

        outcome = await engine.refresh_communities()

        assert not outcome.refreshed
        assert outcome.pending_mutations == 0
        assert not engine.needs_refresh()

    @pytest.mark.asyncio
    async def test_threshold_and_force(self, embedder, generator, summarizer, scientist_chunks):
        chunks, extractor = scientist_chunks
        settings = Settings(_env_file=None, community_staleness_threshold=1000)
        engine = GraphRAGEngine(embedder, generator, summarizer, extractor=extractor, settings=settings)
        await engine.ingest(chunks)

        assert engine.pending_mutations > 0
        assert not (await engine.refresh_communities()).refreshed
        assert (await engine.refresh_communities(force=True)).refreshed
        assert engine.pending_mutations == 0

    @pytest.mark.asyncio
    async def test_refresh_after_merge_evicts_vanished_communities(self, engine, scientist_chunks):
        chunks, _ = scientist_chunks
        await engine.ingest(chunks)
        before = await engine.refresh_communities()

        ada = engine.graph.entities.resolve("Ada")
        babbage = engine.graph.entities.resolve("Babbage")
        engine.graph.entities.merge(ada, babbage)
        assert engine.needs_refresh()

        after = await engine.refresh_communities()

        assert after.refreshed
        assert after.evicted
        old_ids = {c.community_id for c in before.hierarchy}
        new_ids = {c.community_id for c in after.hierarchy}
        assert set(after.evicted) == old_ids - new_ids
        assert all(engine.summary_index.entry(cid) is None for cid in after.evicted)
        assert all(babbage not in c.member_ids for c in after.hierarchy)


class TestExportImport:
    """Snapshot and restore."""

    @pytest.mark.asyncio
    async def test_round_trip(self, engine, settings, embedder, generator, summarizer, scientist_chunks):
        chunks, _ = scientist_chunks
        await engine.ingest(chunks)
        engine.graph.entities.merge(engine.graph.entities.resolve("Euler"), engine.graph.entities.resolve("Fermat"))
        await engine.refresh_communities()

        exported = engine.export()
        restored = GraphRAGEngine(embedder, generator, summarizer, settings=settings)
        restored.import_graph(exported)

        assert restored.export() == exported
        assert restored.graph.version == engine.graph.version
        assert restored.graph.relations.next_relation_id == engine.graph.relations.next_relation_id
        assert restored.graph.entities.forwarding() == engine.graph.entities.forwarding()
        assert restored.graph.entities.resolve("Fermat") == engine.graph.entities.resolve("Euler")
        assert len(restored.vector_index) == len(engine.vector_index)
        assert len(restored.summary_index) == len(engine.summary_index)
        assert not restored.needs_refresh()

        result = await restored.query("Who worked with Ada?", QueryMode.GLOBAL)
        assert result.context.communities

    def test_export_document_shape(self, engine):
        data = json.loads(engine.export())
        assert data["format_version"] == 1
        assert data["entities"] == []
        assert data["communities"] == []

    def test_import_rejects_dangling_relation(self, engine):
        document = json.loads(engine.export())
        document["next_relation_id"] = 1
        document["relations"] = [
            {"relation_id": 0, "source_id": "ent_a", "target_id": "ent_b", "relation_type": "USES"}
        ]
        with pytest.raises(DanglingEndpoint):
            engine.import_graph(json.dumps(document))

    def test_import_rejects_malformed_document(self, engine):
        with pytest.raises(ValueError):
            engine.import_graph("not json")

    def test_import_rejects_unknown_format(self, engine):
        document = json.loads(engine.export())
        document["format_version"] = 99
        with pytest.raises(ValueError):
            engine.import_graph(json.dumps(document))


class TestFromSettings:
    """Engine wired to Claude and Voyage."""

    @pytest.mark.asyncio
    async def test_builds_clients(self, settings):
        from graphrag_core.clients import ClaudeClient, VoyageClient

        engine = GraphRAGEngine.from_settings(settings)

        assert isinstance(engine.extractor, ClaudeClient)
        assert any(isinstance(c, VoyageClient) for c in engine._clients)
        await engine.close()
        assert engine._clients == []

    def test_stats(self, engine):
        stats = engine.stats()
        assert stats["entities"] == 0
        assert stats["communities"] == 0
        assert stats["embedding_cache"]["hits"] == 0
