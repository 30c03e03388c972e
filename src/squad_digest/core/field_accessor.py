"""Resolve logical attributes from work items whose raw fields vary in shape.

Issue trackers store the same concept under different keys depending on the
site and on how the record was fetched: a team might be ``customfield_10001``
holding ``{"id": ..., "name": ...}``, a list of such objects, or a plain
string. This module is the only place that branches on those shapes.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

logger = logging.getLogger(__name__)

TEAM = "team"
EPIC_LINK = "epic_link"
STORY_POINTS = "story_points"
TARGET_PERIOD = "target_period"
INITIATIVE = "initiative"
PARENT = "parent"

# Candidate raw keys per logical name, tried in order.
DEFAULT_CANDIDATES: dict[str, tuple[str, ...]] = {
    TEAM: ("team", "customfield_10001"),
    EPIC_LINK: ("epic_link", "epicLink", "customfield_10014", "parent_key"),
    STORY_POINTS: ("story_points", "storyPoints", "customfield_10030", "customfield_10016"),
    TARGET_PERIOD: ("target_period", "targetPeriod", "customfield_10368"),
    INITIATIVE: ("initiative", "workstream"),
    PARENT: ("parent_key",),
}


def unwrap(raw: Any) -> Any:
    """Reduce a raw field value to a scalar.

    Order: ``.value``, then ``.name``, then the first element of a non-empty
    list (recursively), then the value itself. Empty strings, empty lists and
    objects with neither property resolve to None.
    """
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        if raw.get("value") is not None:
            return raw["value"]
        if raw.get("name") is not None:
            return raw["name"]
        return None
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        if not raw:
            return None
        return unwrap(raw[0])
    if isinstance(raw, str) and not raw.strip():
        return None
    return raw


def unwrap_identifier(raw: Any) -> Any:
    """Like :func:`unwrap` but prefers an object's ``id`` for lookups."""
    if isinstance(raw, Mapping) and raw.get("id") is not None:
        return raw["id"]
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        return unwrap_identifier(raw[0]) if raw else None
    return unwrap(raw)


class FieldAccessor:
    """Table-driven lookup of logical attributes on raw field mappings.

    Args:
        overrides: Optional ``{logical_name: raw_key}`` (or list of raw keys)
            that are tried before the built-in candidates, e.g. a site's
            story-points custom field id.
    """

    def __init__(self, overrides: Optional[Mapping[str, Any]] = None) -> None:
        self.candidates: dict[str, tuple[str, ...]] = dict(DEFAULT_CANDIDATES)
        for name, keys in (overrides or {}).items():
            if isinstance(keys, str):
                keys = [keys]
            existing = self.candidates.get(name, ())
            merged = list(keys) + [k for k in existing if k not in keys]
            self.candidates[name] = tuple(merged)

    def candidate_keys(self, name: str) -> tuple[str, ...]:
        try:
            return self.candidates[name]
        except KeyError:
            raise KeyError(
                f"Unknown logical field {name!r}; known: {sorted(self.candidates)}"
            ) from None

    def resolve(self, item: Any, name: str) -> Any:
        """Resolve ``name`` on a work item (anything with a ``fields`` mapping)."""
        return self.resolve_fields(getattr(item, "fields", None) or {}, name)

    def resolve_fields(self, fields: Mapping[str, Any], name: str) -> Any:
        """Resolve ``name`` on a raw field mapping; None if no candidate resolves."""
        for key in self.candidate_keys(name):
            value = unwrap(fields.get(key))
            if value is not None:
                return value
        return None

    def resolve_identifier(self, item: Any, name: str) -> Any:
        """Resolve ``name`` preferring object ids, for id -> name lookup tables."""
        fields = getattr(item, "fields", None) or {}
        for key in self.candidate_keys(name):
            value = unwrap_identifier(fields.get(key))
            if value is not None:
                return value
        return None

    def resolve_number(self, fields: Mapping[str, Any], name: str) -> Optional[float]:
        """Resolve ``name`` as a float; non-numeric values resolve to None."""
        value = self.resolve_fields(fields, name)
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-numeric {name} value {value!r}")
            return None
