"""Data models for Squad Digest."""

from .date_range import DateRange
from .events import ChangeCategory, ChangeEvent, ChangeStatistics, ChangeSummary, ChangeType, Severity
from .rollup import Hierarchy, HierarchyRiskReport, RollupNode
from .summary import ActiveIssue, AtRiskItem, RecentActivity, TeamSummary
from .sync_state import SyncState
from .work_item import Commit, FieldDelta, HistoryEntry, PullRequest, StoryPoints, WorkItem

__all__ = [
    "ActiveIssue",
    "AtRiskItem",
    "ChangeCategory",
    "ChangeEvent",
    "ChangeStatistics",
    "ChangeSummary",
    "ChangeType",
    "Commit",
    "DateRange",
    "FieldDelta",
    "Hierarchy",
    "HierarchyRiskReport",
    "HistoryEntry",
    "PullRequest",
    "RecentActivity",
    "RollupNode",
    "Severity",
    "StoryPoints",
    "SyncState",
    "TeamSummary",
    "WorkItem",
]
