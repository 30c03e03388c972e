"""JIRA issue conversion into :class:`~squad_digest.models.WorkItem`.

Accepts two record shapes:

* the REST shape, ``{"key", "fields": {...}, "changelog": {"histories": [...]}}``
  as returned with ``expand=changelog``;
* the flat shape, ``{"key", "type", "status", ..., "points": {"total", "done"},
  "history": [{"author", "timestamp", "deltas": [{"field", "from", "to"}]}]}``.

Per-record problems are recorded in the diagnostics collector and the
record (or the offending field) is skipped; conversion never raises for a
single bad record.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Optional

from ...constants import DEFAULT_DONE_STATUSES
from ...core.diagnostics import Diagnostics, record_skip
from ...core.field_accessor import STORY_POINTS, FieldAccessor, unwrap
from ...models.work_item import FieldDelta, HistoryEntry, StoryPoints, WorkItem
from ...utils.date_utils import parse_timestamp

logger = logging.getLogger(__name__)

COMPONENT = "jira_converter"

# Flat-shape keys that are modelled directly rather than kept as raw fields
_FLAT_RESERVED = {"history", "changelog", "points"}


class JiraIssueConverter:
    """Converts fetched JIRA records into immutable work items.

    Args:
        accessor: Field accessor used to resolve story points.
        done_statuses: Statuses counted as done when deriving completed points.
        diagnostics: Collector for skipped records and fields.
    """

    def __init__(
        self,
        accessor: Optional[FieldAccessor] = None,
        done_statuses: Iterable[str] = DEFAULT_DONE_STATUSES,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self.accessor = accessor or FieldAccessor()
        self.done_statuses = {s.lower() for s in done_statuses}
        self.diagnostics = diagnostics

    def convert_many(self, records: Iterable[Any]) -> list[WorkItem]:
        """Convert every usable record, skipping the rest."""
        items = []
        for index, record in enumerate(records):
            item = self.convert(record, index=index)
            if item is not None:
                items.append(item)
        logger.info(f"Converted {len(items)} work items")
        return items

    def convert(self, record: Any, index: Optional[int] = None) -> Optional[WorkItem]:
        """Convert one record; None when it has no usable key.

        WHY: the REST shape nests everything under ``fields`` while the flat
        shape is what hand-built fixtures and other collectors produce. Both
        end up as the same ``fields`` mapping so that the field accessor is
        the only place that knows about custom field ids.
        """
        if not isinstance(record, Mapping):
            record_skip(self.diagnostics, None, COMPONENT, f"record {index} is not an object")
            return None
        key = record.get("key")
        if not key or not isinstance(key, str):
            record_skip(self.diagnostics, None, COMPONENT, f"record {index} has no issue key")
            return None

        if isinstance(record.get("fields"), Mapping):
            return self._convert_rest(key, record)
        return self._convert_flat(key, record)

    def _convert_rest(self, key: str, record: Mapping[str, Any]) -> WorkItem:
        fields = dict(record["fields"])
        parent = fields.get("parent")
        if isinstance(parent, Mapping) and parent.get("key"):
            fields["parent_key"] = parent["key"]

        status = self._name(fields.get("status"))
        histories = (record.get("changelog") or {}).get("histories") or []
        return WorkItem(
            key=key,
            issue_type=self._name(fields.get("issuetype")),
            status=status,
            priority=self._name(fields.get("priority")),
            summary=fields.get("summary") or "",
            assignee=self._display_name(fields.get("assignee")),
            created=self._timestamp(key, "created", fields.get("created")),
            updated=self._timestamp(key, "updated", fields.get("updated")),
            due_date=self._timestamp(key, "duedate", fields.get("duedate")),
            points=self._points(fields, status),
            fields=fields,
            history=self._history(key, histories, "created", "items"),
        )

    def _convert_flat(self, key: str, record: Mapping[str, Any]) -> WorkItem:
        fields = {k: v for k, v in record.items() if k not in _FLAT_RESERVED}
        if "parent_key" not in fields and fields.get("epicLink"):
            fields["parent_key"] = fields["epicLink"]

        status = self._name(record.get("status"))
        return WorkItem(
            key=key,
            issue_type=self._name(record.get("type") or record.get("issue_type")),
            status=status,
            priority=self._name(record.get("priority")),
            summary=record.get("summary") or record.get("title") or "",
            assignee=self._display_name(record.get("assignee")),
            created=self._timestamp(key, "created", record.get("created")),
            updated=self._timestamp(key, "updated", record.get("updated")),
            due_date=self._timestamp(key, "dueDate", record.get("dueDate") or record.get("due_date")),
            points=self._points(fields, status, record.get("points")),
            fields=fields,
            history=self._history(key, record.get("history") or [], "timestamp", "deltas"),
        )

    def _points(
        self, fields: Mapping[str, Any], status: Optional[str], explicit: Any = None
    ) -> StoryPoints:
        if isinstance(explicit, Mapping):
            return StoryPoints(
                total=self._number(explicit.get("total")),
                done=self._number(explicit.get("done")),
            )
        total = self.accessor.resolve_number(fields, STORY_POINTS) or 0.0
        done = total if status and status.lower() in self.done_statuses else 0.0
        return StoryPoints(total=total, done=done)

    def _history(
        self, key: str, entries: Any, timestamp_key: str, deltas_key: str
    ) -> tuple[HistoryEntry, ...]:
        if not isinstance(entries, list):
            record_skip(self.diagnostics, key, COMPONENT, "change history is not a list")
            return ()

        history = []
        for position, entry in enumerate(entries):
            if not isinstance(entry, Mapping):
                record_skip(self.diagnostics, key, COMPONENT, f"history entry {position} is not an object")
                continue
            raw_timestamp = entry.get(timestamp_key)
            timestamp = parse_timestamp(raw_timestamp)
            if timestamp is None:
                # Kept so consumers can report it; they skip entries without a timestamp
                record_skip(
                    self.diagnostics,
                    key,
                    COMPONENT,
                    f"history entry {position} has unparseable timestamp {raw_timestamp!r}",
                )
            deltas = tuple(
                self._delta(raw) for raw in entry.get(deltas_key) or [] if isinstance(raw, Mapping)
            )
            history.append(
                HistoryEntry(
                    author=self._display_name(entry.get("author")) or "Unknown",
                    timestamp=timestamp,
                    deltas=deltas,
                )
            )
        return tuple(history)

    @staticmethod
    def _delta(raw: Mapping[str, Any]) -> FieldDelta:
        # REST items carry ids in from/to and display values in fromString/toString
        from_value = raw["fromString"] if "fromString" in raw else raw.get("from")
        to_value = raw["toString"] if "toString" in raw else raw.get("to")
        return FieldDelta(
            field=str(raw.get("field") or raw.get("fieldId") or ""),
            from_value=str(from_value) if from_value is not None else None,
            to_value=str(to_value) if to_value is not None else None,
            field_id=raw.get("fieldId"),
        )

    def _timestamp(self, key: str, name: str, raw: Any) -> Optional[datetime]:
        if raw is None or raw == "":
            return None
        parsed = parse_timestamp(raw)
        if parsed is None:
            record_skip(self.diagnostics, key, COMPONENT, f"unparseable {name} timestamp {raw!r}")
        return parsed

    @staticmethod
    def _name(raw: Any) -> Optional[str]:
        value = unwrap(raw)
        return str(value) if value is not None else None

    @staticmethod
    def _display_name(raw: Any) -> Optional[str]:
        if isinstance(raw, Mapping):
            name = raw.get("displayName") or raw.get("name") or raw.get("emailAddress")
            return str(name) if name else None
        return str(raw) if raw else None

    @staticmethod
    def _number(raw: Any) -> float:
        try:
            return float(raw) if raw is not None else 0.0
        except (TypeError, ValueError):
            return 0.0
