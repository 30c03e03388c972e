"""Per-team summary models produced by the team aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ActiveIssue:
    """An item ranked by how many change events it had in the window."""

    key: str
    summary: str
    status: str | None
    assignee: str | None
    change_count: int
    high_priority_changes: int
    description: str


@dataclass(frozen=True)
class RecentActivity:
    """An item ranked by its most recent change event."""

    key: str
    summary: str
    last_change: datetime
    change_count: int
    description: str


@dataclass(frozen=True)
class AtRiskItem:
    key: str
    risk_factors: tuple[str, ...]


@dataclass
class TeamSummary:
    """Activity statistics for one team over one reporting window."""

    team: str
    total_issues: int = 0
    issues_with_changes: int = 0
    new_issues: int = 0
    total_changes: int = 0
    change_breakdown: dict[str, int] = field(default_factory=dict)
    status_distribution: dict[str, int] = field(default_factory=dict)
    type_distribution: dict[str, int] = field(default_factory=dict)
    priority_distribution: dict[str, int] = field(default_factory=dict)
    most_active_issues: list[ActiveIssue] = field(default_factory=list)
    recent_activity: list[RecentActivity] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    last_updated: datetime | None = None
    at_risk_items: list[AtRiskItem] = field(default_factory=list)
    linked_pull_requests: list[str] = field(default_factory=list)
