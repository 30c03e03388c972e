"""Per-team aggregation of work items, change events, and risk."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from ..constants import (
    DEFAULT_BACKLOG_STATUSES,
    DEFAULT_DONE_STATUSES,
    DEFAULT_IN_PROGRESS_STATUSES,
    DEFAULT_TEAM_NAMES,
    UNKNOWN_TEAM,
    ReportLimits,
    Thresholds,
)
from ..core.change_classifier import ChangeClassifier
from ..core.field_accessor import TEAM, FieldAccessor
from ..core.risk_scorer import RiskScorer
from ..models.date_range import DateRange
from ..models.events import ChangeCategory
from ..models.summary import ActiveIssue, AtRiskItem, RecentActivity, TeamSummary
from ..models.work_item import WorkItem

logger = logging.getLogger(__name__)

# Change breakdown keys, in report order
BREAKDOWN_KEYS: dict[ChangeCategory, str] = {
    ChangeCategory.STATUS: "status_changes",
    ChangeCategory.ASSIGNEE: "assignee_changes",
    ChangeCategory.POINTS: "story_point_changes",
    ChangeCategory.PRIORITY: "priority_changes",
    ChangeCategory.TARGET_PERIOD: "target_period_changes",
    ChangeCategory.EPIC_LINK: "epic_link_changes",
    ChangeCategory.TEAM: "team_changes",
    ChangeCategory.COMMENT: "comments",
    ChangeCategory.OTHER: "other_changes",
}

UNKNOWN_STATUS = "Unknown"
UNKNOWN_TYPE = "Unknown"
UNSET_PRIORITY = "Unset"
UNASSIGNED = "Unassigned"


class TeamAggregator:
    """Groups work items by team and derives summary statistics.

    Every item is counted under exactly one team: the team field's id looked
    up in ``team_names``, else the team field's name, else ``Unknown Team``.

    Args:
        team_names: Team id -> display name table.
        accessor: Field accessor used for team resolution.
        classifier: Change classifier; a default one is created if omitted.
        risk_scorer: When given, at-risk items are listed per team, evaluated
            as of the end of the reporting window.
        status_categories: ``{"in_progress"|"done"|"backlog": [statuses]}``
            used for the status insights.
        most_active_limit: Cap on the most active list.
        recent_activity_limit: Cap on the recent activity list.
    """

    def __init__(
        self,
        team_names: Optional[Mapping[str, str]] = None,
        accessor: Optional[FieldAccessor] = None,
        classifier: Optional[ChangeClassifier] = None,
        risk_scorer: Optional[RiskScorer] = None,
        status_categories: Optional[Mapping[str, Iterable[str]]] = None,
        most_active_limit: int = ReportLimits.MOST_ACTIVE,
        recent_activity_limit: int = ReportLimits.RECENT_ACTIVITY,
    ) -> None:
        self.team_names = dict(DEFAULT_TEAM_NAMES if team_names is None else team_names)
        self.accessor = accessor or FieldAccessor()
        self.classifier = classifier or ChangeClassifier()
        self.risk_scorer = risk_scorer
        categories = status_categories or {}
        self.in_progress_statuses = set(categories.get("in_progress", DEFAULT_IN_PROGRESS_STATUSES))
        self.done_statuses = set(categories.get("done", DEFAULT_DONE_STATUSES))
        self.backlog_statuses = set(categories.get("backlog", DEFAULT_BACKLOG_STATUSES))
        self.most_active_limit = most_active_limit
        self.recent_activity_limit = recent_activity_limit

    def resolve_team(self, item: WorkItem) -> str:
        """Display name of the item's team, never a raw team id."""
        team_id = self.accessor.resolve_identifier(item, TEAM)
        if team_id is not None and str(team_id) in self.team_names:
            return self.team_names[str(team_id)]
        name = self.accessor.resolve(item, TEAM)
        if name is not None and str(name).strip():
            return str(name)
        return UNKNOWN_TEAM

    def aggregate(self, items: Iterable[WorkItem], date_range: DateRange) -> dict[str, TeamSummary]:
        """Summaries keyed by team display name, in first-seen team order."""
        summaries: dict[str, TeamSummary] = {}
        active: dict[str, list[ActiveIssue]] = {}
        recent: dict[str, list[RecentActivity]] = {}
        item_count = 0

        for item in items:
            item_count += 1
            team = self.resolve_team(item)
            summary = summaries.get(team)
            if summary is None:
                summary = TeamSummary(team=team, change_breakdown=dict.fromkeys(BREAKDOWN_KEYS.values(), 0))
                summaries[team] = summary
                active[team] = []
                recent[team] = []
            self._process_item(item, summary, active[team], recent[team], date_range)

        for team, summary in summaries.items():
            # Explicit secondary keys keep ordering independent of input order
            ranked = sorted(active[team], key=lambda a: (-a.change_count, a.key))
            summary.most_active_issues = ranked[: self.most_active_limit]
            latest = sorted(recent[team], key=lambda r: (-r.last_change.timestamp(), r.key))
            summary.recent_activity = latest[: self.recent_activity_limit]
            summary.insights = self.generate_insights(summary)

        logger.info(f"Aggregated {item_count} items into {len(summaries)} team summaries")
        return summaries

    def _process_item(
        self,
        item: WorkItem,
        summary: TeamSummary,
        active: list[ActiveIssue],
        recent: list[RecentActivity],
        date_range: DateRange,
    ) -> None:
        summary.total_issues += 1
        if date_range.contains(item.created):
            summary.new_issues += 1

        _increment(summary.status_distribution, item.status or UNKNOWN_STATUS)
        _increment(summary.type_distribution, item.issue_type or UNKNOWN_TYPE)
        _increment(summary.priority_distribution, item.priority or UNSET_PRIORITY)

        if item.updated is not None and (
            summary.last_updated is None or item.updated > summary.last_updated
        ):
            summary.last_updated = item.updated

        for pr_id in item.linked_pull_requests:
            if pr_id not in summary.linked_pull_requests:
                summary.linked_pull_requests.append(pr_id)

        if self.risk_scorer is not None:
            factors = self.risk_scorer.assess_item(item, date_range.end)
            if factors:
                summary.at_risk_items.append(AtRiskItem(item.key, tuple(factors)))

        changes = self.classifier.get_change_summary(item, date_range)
        if changes is None:
            return

        summary.issues_with_changes += 1
        summary.total_changes += changes.total_changes
        for event in changes.events:
            summary.change_breakdown[BREAKDOWN_KEYS[event.category]] += 1

        active.append(
            ActiveIssue(
                key=item.key,
                summary=item.title,
                status=item.status or UNKNOWN_STATUS,
                assignee=item.assignee or UNASSIGNED,
                change_count=changes.total_changes,
                high_priority_changes=changes.high_priority_changes,
                description=changes.description,
            )
        )
        recent.append(
            RecentActivity(
                key=item.key,
                summary=item.title,
                last_change=changes.last_change.timestamp,
                change_count=changes.total_changes,
                description=changes.description,
            )
        )

    def generate_insights(self, summary: TeamSummary) -> list[str]:
        """Fixed-template insight lines, in a fixed order."""
        insights = []

        if summary.total_changes == 0:
            insights.append("No activity detected in the specified time period")
        elif summary.total_changes > Thresholds.HIGH_ACTIVITY_CHANGES:
            insights.append("High activity level - team is very active")
        elif summary.total_changes > Thresholds.MODERATE_ACTIVITY_CHANGES:
            insights.append("Moderate activity level - steady progress")
        else:
            insights.append("Low activity level - minimal changes detected")

        if summary.new_issues > 0:
            insights.append(f"{summary.new_issues} new items created")

        in_progress = self._count_statuses(summary, self.in_progress_statuses)
        done = self._count_statuses(summary, self.done_statuses)
        backlog = self._count_statuses(summary, self.backlog_statuses)
        if in_progress > 0:
            insights.append(f"{in_progress} items currently in progress")
        if done > 0:
            insights.append(f"{done} items completed")
        if backlog > 0:
            insights.append(f"{backlog} items in backlog")

        breakdown = summary.change_breakdown
        if breakdown.get("status_changes", 0) > 0:
            insights.append(f"{breakdown['status_changes']} status changes")
        if breakdown.get("assignee_changes", 0) > 0:
            insights.append(f"{breakdown['assignee_changes']} assignee changes")
        if breakdown.get("story_point_changes", 0) > 0:
            insights.append(f"{breakdown['story_point_changes']} story point updates")

        return insights

    @staticmethod
    def _count_statuses(summary: TeamSummary, statuses: set[str]) -> int:
        return sum(count for status, count in summary.status_distribution.items() if status in statuses)


def _increment(counter: dict[str, int], key: str) -> None:
    counter[key] = counter.get(key, 0) + 1


def total_issue_count(summaries: Mapping[str, TeamSummary]) -> int:
    return sum(summary.total_issues for summary in summaries.values())


def summary_overview(summary: TeamSummary) -> dict[str, Any]:
    """Overview counters shared by the JSON and CSV writers."""
    return {
        "total_issues": summary.total_issues,
        "issues_with_changes": summary.issues_with_changes,
        "new_items": summary.new_issues,
        "total_changes": summary.total_changes,
        "last_updated": summary.last_updated.isoformat() if summary.last_updated else None,
    }
