"""Community detection over the undirected projection of the relation graph."""

import hashlib
import logging
from dataclasses import dataclass, field, replace
from typing import Literal, Sequence

import networkx as nx

from graphrag_core.graph.types import GraphSnapshot, Relation
from .types import Community, CommunityHierarchy

logger = logging.getLogger(__name__)


@dataclass
class ResolutionParams:
    """Parameters controlling clustering and hierarchy shape."""

    algorithm: Literal["louvain", "greedy"] = "louvain"
    resolution: float = 1.0
    seed: int = 42
    threshold: float = 1e-7
    min_confidence: float = 0.0
    max_refine_depth: int = 1
    max_coarsen_levels: int = 2
    coarsen_resolution_factor: float = 0.5  # Resolution multiplier per coarser level
    min_community_size: int = 2  # Communities must be larger than this to be refined


@dataclass
class _Node:
    """Working node of the hierarchy before ids are assigned."""

    members: tuple[str, ...]
    children: list["_Node"] = field(default_factory=list)


def community_id_for(level: int, members: Sequence[str]) -> str:
    """Content-derived community id."""
    digest = hashlib.sha256(",".join(members).encode()).hexdigest()[:12]
    return f"comm_{level}_{digest}"


def project(relations: Sequence[Relation], min_confidence: float = 0.0) -> nx.Graph:
    """Undirected weighted projection; weight sums confidences per pair.

    Nodes and edges are inserted in sorted order so that clustering sees
    the same graph for the same snapshot.
    """
    weights: dict[tuple[str, str], float] = {}
    for relation in relations:
        if relation.confidence < min_confidence or relation.source_id == relation.target_id:
            continue
        pair = tuple(sorted((relation.source_id, relation.target_id)))
        weights[pair] = weights.get(pair, 0.0) + relation.confidence

    graph = nx.Graph()
    graph.add_nodes_from(sorted({node for pair in weights for node in pair}))
    for (a, b) in sorted(weights):
        if weights[(a, b)] > 0:
            graph.add_edge(a, b, weight=weights[(a, b)])
    return graph


class CommunityDetector:
    """Partition the graph into a hierarchy of communities.

    Produces a base partition, refines each base community by clustering
    its induced subgraph, and coarsens by clustering communities as
    super-nodes. Output is deterministic for a given snapshot and params.
    """

    def __init__(self, params: ResolutionParams | None = None):
        self.params = params or ResolutionParams()

    def detect(
        self,
        snapshot: GraphSnapshot,
        params: ResolutionParams | None = None,
    ) -> CommunityHierarchy:
        """Detect communities for a graph snapshot.

        Args:
            snapshot: Immutable graph snapshot
            params: Overrides the detector's default parameters

        Returns:
            CommunityHierarchy (empty when the graph has no edges)
        """
        params = params or self.params
        graph = project(snapshot.relations, params.min_confidence)

        if graph.number_of_edges() == 0:
            logger.info("Graph has no edges; returning empty community hierarchy")
            return CommunityHierarchy(graph_version=snapshot.version)

        base = [_Node(members) for members in self._partition(graph, params)]
        for node in base:
            self._refine(node, graph, params, depth=1)

        roots = self._coarsen(base, graph, params)
        communities = self._assign_ids(roots)

        hierarchy = CommunityHierarchy(communities=tuple(communities), graph_version=snapshot.version)
        logger.info(
            f"Detected {len(hierarchy)} communities across {len(hierarchy.levels)} levels "
            f"({len(base)} base) from {graph.number_of_nodes()} entities"
        )
        return hierarchy

    def _partition(self, graph: nx.Graph, params: ResolutionParams) -> list[tuple]:
        """Run the configured modularity algorithm; members and groups sorted."""
        if params.algorithm == "greedy":
            parts = nx.community.greedy_modularity_communities(
                graph, weight="weight", resolution=params.resolution
            )
        elif params.algorithm == "louvain":
            parts = nx.community.louvain_communities(
                graph,
                weight="weight",
                resolution=params.resolution,
                threshold=params.threshold,
                seed=params.seed,
            )
        else:
            raise ValueError(f"Unknown community algorithm: {params.algorithm}")

        return sorted((tuple(sorted(part)) for part in parts if part), key=lambda m: m[0])

    def _refine(self, node: _Node, graph: nx.Graph, params: ResolutionParams, depth: int) -> None:
        if depth > params.max_refine_depth or len(node.members) <= params.min_community_size:
            return

        induced = graph.subgraph(node.members)
        if induced.number_of_edges() == 0:
            return

        parts = self._partition(induced, params)
        if len(parts) < 2:
            return

        node.children = [_Node(members) for members in parts]
        for child in node.children:
            self._refine(child, graph, params, depth + 1)

    def _coarsen(self, base: list[_Node], graph: nx.Graph, params: ResolutionParams) -> list[_Node]:
        """Cluster communities as super-nodes until nothing merges."""
        current = base
        resolution = params.resolution
        for _ in range(params.max_coarsen_levels):
            if len(current) < 2:
                break

            owner = {member: i for i, node in enumerate(current) for member in node.members}
            super_graph = nx.Graph()
            super_graph.add_nodes_from(range(len(current)))
            # Intra-community weight becomes a self-loop
            for a, b, data in graph.edges(data=True):
                ca, cb = owner[a], owner[b]
                previous = super_graph.get_edge_data(ca, cb, default={"weight": 0.0})["weight"]
                super_graph.add_edge(ca, cb, weight=previous + data["weight"])

            if not any(u != v for u, v in super_graph.edges()):
                break

            resolution *= params.coarsen_resolution_factor
            groups = self._partition(super_graph, replace(params, resolution=resolution))
            if len(groups) >= len(current):
                break

            merged = []
            for group in groups:
                children = [current[i] for i in group]
                if len(children) == 1:
                    # Nothing merged; keep the community at its current depth
                    merged.append(children[0])
                    continue
                members = tuple(sorted(m for child in children for m in child.members))
                merged.append(_Node(members, children))
            current = sorted(merged, key=lambda n: n.members[0])
            logger.debug(f"Coarsened to {len(current)} communities")

        return current

    def _assign_ids(self, roots: list[_Node]) -> list[Community]:
        communities: list[Community] = []

        def visit(node: _Node, level: int, parent_id: str | None) -> str:
            community_id = community_id_for(level, node.members)
            child_ids = tuple(visit(child, level + 1, community_id) for child in node.children)
            communities.append(
                Community(
                    community_id=community_id,
                    level=level,
                    member_ids=node.members,
                    parent_id=parent_id,
                    child_ids=child_ids,
                )
            )
            return community_id

        for root in roots:
            visit(root, 0, None)
        return communities
