"""Community records and the immutable hierarchy built from them."""

from dataclasses import dataclass, field, replace
from typing import Iterator, Mapping


@dataclass(frozen=True)
class Community:
    """Cluster of entities with its generated summary."""

    community_id: str
    level: int
    member_ids: tuple[str, ...]
    summary: str = ""
    summary_embedding: tuple[float, ...] = ()
    parent_id: str | None = None
    child_ids: tuple[str, ...] = ()

    @property
    def size(self) -> int:
        return len(self.member_ids)


@dataclass(frozen=True)
class CommunityHierarchy:
    """All communities from one detection run, ordered by (level, id).

    Level 0 is the coarsest layer; higher levels are finer.
    """

    communities: tuple[Community, ...] = ()
    graph_version: int = 0
    _by_id: dict[str, Community] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.communities, key=lambda c: (c.level, c.community_id)))
        object.__setattr__(self, "communities", ordered)
        object.__setattr__(self, "_by_id", {c.community_id: c for c in ordered})

    def __len__(self) -> int:
        return len(self.communities)

    def __iter__(self) -> Iterator[Community]:
        return iter(self.communities)

    @property
    def is_empty(self) -> bool:
        return not self.communities

    @property
    def levels(self) -> list[int]:
        return sorted({c.level for c in self.communities})

    def get(self, community_id: str) -> Community | None:
        return self._by_id.get(community_id)

    def at_level(self, level: int) -> list[Community]:
        return [c for c in self.communities if c.level == level]

    def with_summaries(
        self,
        summaries: Mapping[str, tuple[str, tuple[float, ...]]],
    ) -> "CommunityHierarchy":
        """Copy with (summary, embedding) filled in for the given ids."""
        updated = []
        for community in self.communities:
            if community.community_id in summaries:
                summary, embedding = summaries[community.community_id]
                community = replace(community, summary=summary, summary_embedding=tuple(embedding))
            updated.append(community)
        return CommunityHierarchy(communities=tuple(updated), graph_version=self.graph_version)
