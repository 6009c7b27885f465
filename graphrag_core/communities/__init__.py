"""Community detection and the community summary index."""

from .detector import CommunityDetector, ResolutionParams, community_id_for, project
from .summary_index import CommunityHit, SummaryEntry, SummaryIndex, SummaryLimits
from .types import Community, CommunityHierarchy

__all__ = [
    "Community",
    "CommunityDetector",
    "CommunityHierarchy",
    "CommunityHit",
    "ResolutionParams",
    "SummaryEntry",
    "SummaryIndex",
    "SummaryLimits",
    "community_id_for",
    "project",
]
