"""Derived change-event models produced by the change classifier."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union


class Severity(Enum):
    """Importance of a change event's field category."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    @classmethod
    def parse(cls, value: Union["Severity", str]) -> "Severity":
        """Accept either a member or its (case-insensitive) name."""
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(
                f"Unknown severity {value!r}; expected one of {[s.value for s in cls]}"
            ) from None


_SEVERITY_RANKS = {Severity.LOW: 1, Severity.MEDIUM: 2, Severity.HIGH: 3}


class ChangeCategory(Enum):
    """Logical field category of a change event."""

    STATUS = "status"
    ASSIGNEE = "assignee"
    PRIORITY = "priority"
    POINTS = "points"
    TEAM = "team"
    EPIC_LINK = "epic_link"
    TARGET_PERIOD = "target_period"
    COMMENT = "comment"
    OTHER = "other"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    ChangeCategory.STATUS: "Status",
    ChangeCategory.ASSIGNEE: "Assignee",
    ChangeCategory.PRIORITY: "Priority",
    ChangeCategory.POINTS: "Story Points",
    ChangeCategory.TEAM: "Team",
    ChangeCategory.EPIC_LINK: "Epic Link",
    ChangeCategory.TARGET_PERIOD: "Target Period",
    ChangeCategory.COMMENT: "Comment",
    ChangeCategory.OTHER: "Other",
}


class ChangeType(Enum):
    """How a field changed, inferred from the nullness of its from/to values."""

    ADDED = "added"
    REMOVED = "removed"
    UPDATED = "updated"
    MODIFIED = "modified"


@dataclass(frozen=True)
class ChangeEvent:
    """One classified field transition, scoped to a report window."""

    item_key: str
    field: str
    category: ChangeCategory
    severity: Severity
    change_type: ChangeType
    from_value: Optional[str]
    to_value: Optional[str]
    author: str
    timestamp: datetime

    def describe(self) -> str:
        """Render as ``<field>: <verb> ... by <author>``."""
        label = self.category.label if self.category is not ChangeCategory.OTHER else self.field
        if self.change_type is ChangeType.ADDED:
            return f'{label}: Set to "{self.to_value}" by {self.author}'
        if self.change_type is ChangeType.REMOVED:
            return f"{label}: Removed by {self.author}"
        if self.change_type is ChangeType.UPDATED:
            return f'{label}: Changed from "{self.from_value}" to "{self.to_value}" by {self.author}'
        return f"{label}: Modified by {self.author}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_key": self.item_key,
            "field": self.field,
            "category": self.category.value,
            "severity": self.severity.value,
            "change_type": self.change_type.value,
            "from_value": self.from_value,
            "to_value": self.to_value,
            "author": self.author,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ChangeSummary:
    """Per-item digest of the change events inside a window."""

    item_key: str
    events: tuple[ChangeEvent, ...]
    description: str

    @property
    def total_changes(self) -> int:
        return len(self.events)

    @property
    def high_priority_changes(self) -> int:
        return self._count(Severity.HIGH)

    @property
    def medium_priority_changes(self) -> int:
        return self._count(Severity.MEDIUM)

    @property
    def low_priority_changes(self) -> int:
        return self._count(Severity.LOW)

    @property
    def has_high_priority_changes(self) -> bool:
        return self.high_priority_changes > 0

    @property
    def last_change(self) -> ChangeEvent:
        # events are kept in timestamp order
        return self.events[-1]

    @property
    def categories(self) -> list[ChangeCategory]:
        """Distinct categories in first-seen order."""
        seen: list[ChangeCategory] = []
        for event in self.events:
            if event.category not in seen:
                seen.append(event.category)
        return seen

    def _count(self, severity: Severity) -> int:
        return sum(1 for event in self.events if event.severity is severity)


@dataclass
class ChangeStatistics:
    """Change statistics across a batch of items."""

    total_issues: int = 0
    issues_with_changes: int = 0
    total_changes: int = 0
    changes_by_severity: dict[str, int] = field(
        default_factory=lambda: {s.value: 0 for s in (Severity.HIGH, Severity.MEDIUM, Severity.LOW)}
    )
    changes_by_category: dict[str, int] = field(default_factory=dict)
    changes_by_date: dict[str, int] = field(default_factory=dict)
    most_active_issues: list[dict[str, Any]] = field(default_factory=list)
