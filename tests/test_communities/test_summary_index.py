"""Tests for the community summary index."""

import pytest

from graphrag_core.communities import (
    Community,
    CommunityDetector,
    CommunityHierarchy,
    SummaryIndex,
    SummaryLimits,
)
from graphrag_core.errors import StaleCommunitySnapshot


@pytest.fixture
def index(embedder, summarizer):
    return SummaryIndex(summarize_function=summarizer, embed_function=embedder)


class TestRepresentatives:
    """Tests for SummaryIndex.select_representatives."""

    def test_ranked_by_degree_then_id(self, index, two_cluster_graph):
        kg, ids = two_cluster_graph
        snapshot = kg.snapshot()
        members = tuple(sorted([ids["Ada"], ids["Babbage"], ids["Curie"], ids["Darwin"]]))
        community = Community(community_id="c", level=0, member_ids=members)

        entities, relations = index.select_representatives(community, snapshot)

        # Curie links to Ada, Babbage and Darwin inside this member set
        assert entities[0].entity_id == ids["Curie"]
        assert len(entities) == 4
        assert [r.confidence for r in relations] == sorted((r.confidence for r in relations), reverse=True)
        assert len(relations) == 4

    def test_limits_respected(self, embedder, summarizer, two_cluster_graph):
        kg, ids = two_cluster_graph
        index = SummaryIndex(summarizer, embedder, SummaryLimits(max_entities=2, max_relations=1))
        community = Community(community_id="c", level=0, member_ids=tuple(sorted(ids.values())))

        entities, relations = index.select_representatives(community, kg.snapshot())

        assert len(entities) == 2
        assert len(relations) == 1

    def test_selection_is_deterministic(self, index, two_cluster_graph):
        kg, ids = two_cluster_graph
        community = Community(community_id="c", level=0, member_ids=tuple(sorted(ids.values())))
        snapshot = kg.snapshot()
        assert index.select_representatives(community, snapshot) == index.select_representatives(community, snapshot)


class TestIndexAndSearch:
    """Tests for index, search and evict."""

    def test_search_ranks_by_cosine(self, index):
        index.index("c1", "about cats", [1.0, 0.0])
        index.index("c2", "about dogs", [0.0, 1.0])

        hits = index.search([0.9, 0.1], top_k=2)

        assert [h.community_id for h in hits] == ["c1", "c2"]
        assert hits[0].score > hits[1].score
        assert hits[0].summary == "about cats"

    def test_ties_broken_by_id(self, index):
        index.index("b", "same", [1.0, 0.0])
        index.index("a", "same", [1.0, 0.0])
        assert [h.community_id for h in index.search([1.0, 0.0], top_k=2)] == ["a", "b"]

    def test_reindex_evicts_old_embedding(self, index):
        index.index("c1", "old", [1.0, 0.0])
        index.index("c1", "new", [0.0, 1.0])

        hits = index.search([0.0, 1.0], top_k=5)

        assert len(index) == 1
        assert len(hits) == 1
        assert hits[0].summary == "new"
        assert hits[0].score == pytest.approx(1.0)

    def test_evict(self, index):
        index.index("c1", "one", [1.0, 0.0])
        index.index("c2", "two", [0.0, 1.0])
        assert index.evict(["c1", "missing"]) == 1
        assert [h.community_id for h in index.search([1.0, 0.0], top_k=5)] == ["c2"]

    def test_empty_search(self, index):
        assert index.search([1.0, 0.0], top_k=3) == []


class TestBuildAndSwap:
    """Tests for building summaries and swapping them in."""

    @pytest.mark.asyncio
    async def test_build_and_swap(self, index, two_cluster_graph, summarizer, embedder):
        kg, _ = two_cluster_graph
        snapshot = kg.snapshot()
        hierarchy = CommunityDetector().detect(snapshot)

        summarized, entries = await index.build(hierarchy, snapshot)

        assert set(entries) == {c.community_id for c in hierarchy}
        assert len(summarizer.prompts) == len(hierarchy)
        assert len(embedder.calls) == 1
        assert all(c.summary.startswith("Community around") for c in summarized)
        assert all(c.summary_embedding for c in summarized)
        # Nothing is live until swapped
        assert index.current.is_empty

        evicted = index.swap(summarized, entries)

        assert evicted == []
        assert index.current is summarized
        assert len(index) == len(hierarchy)

    @pytest.mark.asyncio
    async def test_swap_evicts_vanished_ids(self, index, two_cluster_graph):
        kg, _ = two_cluster_graph
        index.index("comm_stale", "old", [1.0] * 32)
        snapshot = kg.snapshot()
        summarized, entries = await index.build(CommunityDetector().detect(snapshot), snapshot)

        evicted = index.swap(summarized, entries)

        assert evicted == ["comm_stale"]
        assert index.entry("comm_stale") is None

    def test_swap_rejects_older_hierarchy(self, index):
        index.swap(CommunityHierarchy(graph_version=5), {})
        with pytest.raises(StaleCommunitySnapshot):
            index.swap(CommunityHierarchy(graph_version=4), {})

    @pytest.mark.asyncio
    async def test_build_empty_hierarchy(self, index, summarizer):
        hierarchy = CommunityHierarchy(graph_version=3)
        summarized, entries = await index.build(hierarchy, None)
        assert summarized is hierarchy
        assert entries == {}
        assert summarizer.prompts == []

    @pytest.mark.asyncio
    async def test_summary_prompt_lists_members(self, index, two_cluster_graph, summarizer):
        kg, ids = two_cluster_graph
        snapshot = kg.snapshot()
        community = Community(
            community_id="c",
            level=0,
            member_ids=tuple(sorted([ids["Ada"], ids["Babbage"], ids["Curie"]])),
        )

        summary = await index.summarize(community, snapshot)

        assert summary.startswith("Community around")
        assert "Ada is a scientist" in summarizer.prompts[0]
        assert "WORKS_WITH" in summarizer.prompts[0]
