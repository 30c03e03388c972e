"""Input-side models: work items, their change history, and code-review records.

All of these are immutable snapshots built once per run by the input adapters.
Derived structures refer to work items by key and never mutate them; the
cross linker returns new instances via :func:`dataclasses.replace`.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Optional

from ..utils.date_utils import ensure_utc


@dataclass(frozen=True)
class FieldDelta:
    """One field transition inside a changelog transaction."""

    field: str
    from_value: Optional[str] = None
    to_value: Optional[str] = None
    field_id: Optional[str] = None


@dataclass(frozen=True)
class HistoryEntry:
    """One changelog transaction.

    ``timestamp`` is None when the source value could not be parsed; such
    entries are skipped by every consumer.
    """

    author: str
    timestamp: Optional[datetime]
    deltas: tuple[FieldDelta, ...] = ()

    def __post_init__(self) -> None:
        if self.timestamp is not None:
            object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        if not isinstance(self.deltas, tuple):
            object.__setattr__(self, "deltas", tuple(self.deltas))


@dataclass(frozen=True)
class StoryPoints:
    """Point totals used by the hierarchy roll-up."""

    total: float = 0.0
    done: float = 0.0


@dataclass(frozen=True)
class WorkItem:
    """Snapshot of an issue-tracker item with its embedded change history.

    ``fields`` holds the raw attribute mapping as delivered by the source; it
    is only ever read through :class:`~squad_digest.core.field_accessor.FieldAccessor`.
    """

    key: str
    issue_type: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    summary: Optional[str] = None
    assignee: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    due_date: Optional[datetime] = None
    points: StoryPoints = field(default_factory=StoryPoints)
    fields: Mapping[str, Any] = field(default_factory=dict, hash=False)
    history: tuple[HistoryEntry, ...] = ()
    linked_pull_requests: tuple[str, ...] = ()
    linked_commits: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.fields, MappingProxyType):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        if not isinstance(self.history, tuple):
            object.__setattr__(self, "history", tuple(self.history))
        # Naive datetimes are UTC, as in DateRange
        for name in ("created", "updated", "due_date"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, ensure_utc(value))

    @property
    def title(self) -> str:
        return self.summary or ""


@dataclass(frozen=True)
class Commit:
    """A commit message attached to a pull request or pushed directly."""

    sha: str
    message: str = ""
    author: Optional[str] = None
    date: Optional[datetime] = None


@dataclass(frozen=True)
class PullRequest:
    """A code-review record from the code-hosting platform."""

    id: str
    title: str = ""
    body: Optional[str] = None
    branch_name: Optional[str] = None
    author: Optional[str] = None
    merged_at: Optional[datetime] = None
    commits: tuple[Commit, ...] = ()

    def __post_init__(self) -> None:
        if self.merged_at is not None:
            object.__setattr__(self, "merged_at", ensure_utc(self.merged_at))

    @property
    def is_merged(self) -> bool:
        return self.merged_at is not None
