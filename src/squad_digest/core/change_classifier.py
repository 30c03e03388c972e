"""Classify work-item change history into severity-ranked change events.

Only fields listed in the classification table produce events; everything
else in a changelog (rank, sprint, labels, ...) is treated as noise and
dropped. Severity comes from the field's category, never from the caller.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Optional, Union

from ..constants import ReportLimits
from ..models.date_range import DateRange
from ..models.events import (
    ChangeCategory,
    ChangeEvent,
    ChangeStatistics,
    ChangeSummary,
    ChangeType,
    Severity,
)
from ..models.work_item import FieldDelta, WorkItem
from .diagnostics import Diagnostics, record_skip

logger = logging.getLogger(__name__)

COMPONENT = "change_classifier"

CATEGORY_SEVERITY: dict[ChangeCategory, Severity] = {
    ChangeCategory.STATUS: Severity.HIGH,
    ChangeCategory.ASSIGNEE: Severity.HIGH,
    ChangeCategory.POINTS: Severity.HIGH,
    ChangeCategory.TARGET_PERIOD: Severity.HIGH,
    ChangeCategory.PRIORITY: Severity.MEDIUM,
    ChangeCategory.TEAM: Severity.MEDIUM,
    ChangeCategory.EPIC_LINK: Severity.MEDIUM,
    ChangeCategory.COMMENT: Severity.LOW,
    ChangeCategory.OTHER: Severity.LOW,
}

# Lower-cased changelog field names and field ids -> category
FIELD_CATEGORIES: dict[str, ChangeCategory] = {
    "status": ChangeCategory.STATUS,
    "assignee": ChangeCategory.ASSIGNEE,
    "story points": ChangeCategory.POINTS,
    "story_points": ChangeCategory.POINTS,
    "storypoints": ChangeCategory.POINTS,
    "points": ChangeCategory.POINTS,
    "customfield_10030": ChangeCategory.POINTS,
    "customfield_10016": ChangeCategory.POINTS,
    "target quarter": ChangeCategory.TARGET_PERIOD,
    "target_period": ChangeCategory.TARGET_PERIOD,
    "targetperiod": ChangeCategory.TARGET_PERIOD,
    "customfield_10368": ChangeCategory.TARGET_PERIOD,
    "priority": ChangeCategory.PRIORITY,
    "team": ChangeCategory.TEAM,
    "customfield_10001": ChangeCategory.TEAM,
    "epic link": ChangeCategory.EPIC_LINK,
    "epic_link": ChangeCategory.EPIC_LINK,
    "epiclink": ChangeCategory.EPIC_LINK,
    "parent": ChangeCategory.EPIC_LINK,
    "customfield_10014": ChangeCategory.EPIC_LINK,
    "comment": ChangeCategory.COMMENT,
    "summary": ChangeCategory.OTHER,
    "description": ChangeCategory.OTHER,
    "worklog": ChangeCategory.OTHER,
}


def infer_change_type(from_value: Optional[str], to_value: Optional[str]) -> ChangeType:
    """Derive the change type purely from the nullness of the two values."""
    has_from = from_value is not None and from_value != ""
    has_to = to_value is not None and to_value != ""
    if has_from and has_to and from_value != to_value:
        return ChangeType.UPDATED
    if not has_from and has_to:
        return ChangeType.ADDED
    if has_from and not has_to:
        return ChangeType.REMOVED
    return ChangeType.MODIFIED


class ChangeClassifier:
    """Turns raw history entries into typed :class:`ChangeEvent` objects.

    Args:
        field_aliases: Extra ``{raw field name or id: category}`` entries, for
            sites whose custom field ids differ from the defaults. Categories
            may be given as :class:`ChangeCategory` members or their values.
        diagnostics: Collector for history entries that had to be skipped.
    """

    def __init__(
        self,
        field_aliases: Optional[Mapping[str, Union[ChangeCategory, str]]] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self.field_categories = dict(FIELD_CATEGORIES)
        for name, category in (field_aliases or {}).items():
            self.field_categories[name.lower()] = ChangeCategory(category)
        self.diagnostics = diagnostics

    def categorize(self, delta: FieldDelta) -> Optional[ChangeCategory]:
        """Category for a delta by field name, then field id; None if unlisted."""
        for name in (delta.field, delta.field_id):
            if name:
                category = self.field_categories.get(name.strip().lower())
                if category is not None:
                    return category
        return None

    def classify(self, item: WorkItem, date_range: DateRange) -> list[ChangeEvent]:
        """All classified events of ``item`` inside ``date_range``, oldest first."""
        events: list[ChangeEvent] = []
        for index, entry in enumerate(item.history):
            if entry.timestamp is None:
                record_skip(
                    self.diagnostics,
                    item.key,
                    COMPONENT,
                    f"history entry {index} has no parseable timestamp",
                )
                continue
            if not date_range.contains(entry.timestamp):
                continue
            for delta in entry.deltas:
                category = self.categorize(delta)
                if category is None:
                    continue
                events.append(
                    ChangeEvent(
                        item_key=item.key,
                        field=delta.field,
                        category=category,
                        severity=CATEGORY_SEVERITY[category],
                        change_type=infer_change_type(delta.from_value, delta.to_value),
                        from_value=delta.from_value,
                        to_value=delta.to_value,
                        author=entry.author,
                        timestamp=entry.timestamp,
                    )
                )

        # Sources are usually chronological but not guaranteed to be
        events.sort(key=lambda e: e.timestamp)
        logger.debug(f"{item.key}: {len(events)} change events in {date_range.display}")
        return events

    def get_change_summary(self, item: WorkItem, date_range: DateRange) -> Optional[ChangeSummary]:
        """Summary of the item's events in the window, or None if there are none."""
        events = self.classify(item, date_range)
        if not events:
            return None
        return ChangeSummary(
            item_key=item.key,
            events=tuple(events),
            description="; ".join(event.describe() for event in events),
        )

    def filter_by_min_severity(
        self,
        items: Iterable[WorkItem],
        date_range: DateRange,
        min_severity: Union[Severity, str],
    ) -> list[WorkItem]:
        """Items with at least one event at or above ``min_severity``."""
        threshold = Severity.parse(min_severity).rank
        return [
            item
            for item in items
            if any(event.severity.rank >= threshold for event in self.classify(item, date_range))
        ]

    def change_statistics(
        self,
        items: Iterable[WorkItem],
        date_range: DateRange,
        top_n: int = ReportLimits.STATISTICS_MOST_ACTIVE,
    ) -> ChangeStatistics:
        """Counts by severity, category, and day plus the most active items."""
        stats = ChangeStatistics()
        active: list[tuple[int, str, WorkItem]] = []

        for item in items:
            stats.total_issues += 1
            events = self.classify(item, date_range)
            if not events:
                continue
            stats.issues_with_changes += 1
            stats.total_changes += len(events)
            active.append((len(events), item.key, item))
            for event in events:
                stats.changes_by_severity[event.severity.value] += 1
                category = event.category.value
                stats.changes_by_category[category] = stats.changes_by_category.get(category, 0) + 1
                day = event.timestamp.strftime("%Y-%m-%d")
                stats.changes_by_date[day] = stats.changes_by_date.get(day, 0) + 1

        active.sort(key=lambda entry: (-entry[0], entry[1]))
        stats.most_active_issues = [
            {"key": key, "summary": item.title, "change_count": count}
            for count, key, item in active[:top_n]
        ]
        return stats
