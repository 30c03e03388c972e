"""Side channel for records that were skipped instead of raising."""

import logging
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedRecord:
    """What was skipped, by which component, and why."""

    item_key: Optional[str]
    component: str
    reason: str

    def __str__(self) -> str:
        return f"[{self.component}] {self.item_key or '<no key>'}: {self.reason}"


@dataclass
class Diagnostics:
    """Collects skipped-record notes across one run.

    Components that degrade gracefully take an optional ``Diagnostics`` and
    call :meth:`skip` so the CLI can report which items were affected.
    """

    records: list[SkippedRecord] = field(default_factory=list)

    def skip(self, item_key: Optional[str], component: str, reason: str, once: bool = False) -> None:
        """Record a skip; with ``once`` an identical earlier record is not repeated."""
        record = SkippedRecord(item_key, component, reason)
        if once and record in self.records:
            return
        self.records.append(record)
        logger.warning(f"Skipped {record}")

    def for_component(self, component: str) -> list[SkippedRecord]:
        return [r for r in self.records if r.component == component]

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)


def record_skip(
    diagnostics: Optional[Diagnostics],
    item_key: Optional[str],
    component: str,
    reason: str,
    once: bool = False,
) -> None:
    """Record a skip when a collector was supplied, otherwise only log it."""
    if diagnostics is not None:
        diagnostics.skip(item_key, component, reason, once=once)
    else:
        logger.warning(f"Skipped [{component}] {item_key or '<no key>'}: {reason}")
