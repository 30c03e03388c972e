"""Persisted run watermark."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..utils.date_utils import parse_timestamp


@dataclass(frozen=True)
class SyncState:
    """The last successful run, as stored in the state file."""

    last_run_timestamp: datetime | None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.last_run_timestamp is not None:
            data["lastRunTimestamp"] = self.last_run_timestamp.isoformat()
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncState:
        return cls(
            last_run_timestamp=parse_timestamp(data.get("lastRunTimestamp")),
            updated_at=parse_timestamp(data.get("updatedAt")),
        )
