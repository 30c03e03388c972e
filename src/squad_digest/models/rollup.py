"""Roll-up models for the initiative -> sub-initiative -> work item hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

INITIATIVE = "initiative"
SUB_INITIATIVE = "sub_initiative"


@dataclass
class RollupNode:
    """An initiative or sub-initiative with totals summed from its items.

    Nodes are filled in by :class:`~squad_digest.core.hierarchy.HierarchyBuilder`
    and should be treated as read-only once ``build`` returns.
    """

    key: str
    kind: str
    title: str = ""
    status: str | None = None
    target_period: str | None = None
    parent_key: str | None = None
    risk_factors: list[str] = field(default_factory=list)
    item_keys: list[str] = field(default_factory=list)
    sub_initiative_keys: list[str] = field(default_factory=list)
    total_points: float = 0.0
    completed_points: float = 0.0

    @property
    def completion_rate(self) -> float:
        """completed / total points, 0 when there are no points."""
        if self.total_points <= 0:
            return 0.0
        rate = self.completed_points / self.total_points
        return min(max(rate, 0.0), 1.0)

    @property
    def issue_count(self) -> int:
        return len(self.item_keys)

    @property
    def is_at_risk(self) -> bool:
        return bool(self.risk_factors)

    def add_risk_factors(self, factors) -> None:
        """Merge factors, keeping first-seen order and no duplicates."""
        for factor in factors:
            if factor not in self.risk_factors:
                self.risk_factors.append(factor)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.key,
            "kind": self.kind,
            "title": self.title,
            "status": self.status,
            "target_period": self.target_period,
            "risk_factors": list(self.risk_factors),
            "item_keys": list(self.item_keys),
            "issue_count": self.issue_count,
            "total_points": self.total_points,
            "completed_points": self.completed_points,
            "completion_rate": round(self.completion_rate, 4),
        }
        if self.kind == INITIATIVE:
            data["sub_initiative_keys"] = list(self.sub_initiative_keys)
        else:
            data["parent_key"] = self.parent_key
        return data


@dataclass
class Hierarchy:
    """Result of a hierarchy build.

    ``unassigned_sub_initiative`` holds items with no resolvable sub-initiative
    and ``unassigned_initiative`` holds items with no resolvable initiative, so
    point totals always reconcile. ``orphan_sub_initiatives`` lists
    sub-initiatives whose parent key did not resolve; they stay in
    ``sub_initiatives`` regardless.
    """

    initiatives: dict[str, RollupNode] = field(default_factory=dict)
    sub_initiatives: dict[str, RollupNode] = field(default_factory=dict)
    unassigned_sub_initiative: RollupNode | None = None
    unassigned_initiative: RollupNode | None = None
    orphan_sub_initiatives: list[str] = field(default_factory=list)
    item_risks: dict[str, list[str]] = field(default_factory=dict)

    @property
    def item_count(self) -> int:
        return len(self.item_risks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "initiatives": [node.to_dict() for node in self.initiatives.values()],
            "sub_initiatives": [node.to_dict() for node in self.sub_initiatives.values()],
            "unassigned": {
                "sub_initiative": (
                    self.unassigned_sub_initiative.to_dict()
                    if self.unassigned_sub_initiative
                    else None
                ),
                "initiative": (
                    self.unassigned_initiative.to_dict() if self.unassigned_initiative else None
                ),
            },
            "orphan_sub_initiatives": list(self.orphan_sub_initiatives),
        }


@dataclass
class HierarchyRiskReport:
    """Normalized risk score for a hierarchy, overall and per initiative."""

    risk_score: float = 0.0
    risky_item_fraction: float = 0.0
    risky_sub_initiative_fraction: float = 0.0
    risky_initiative_fraction: float = 0.0
    initiative_scores: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk_score": round(self.risk_score, 4),
            "risky_item_fraction": round(self.risky_item_fraction, 4),
            "risky_sub_initiative_fraction": round(self.risky_sub_initiative_fraction, 4),
            "risky_initiative_fraction": round(self.risky_initiative_fraction, 4),
            "initiative_scores": {k: round(v, 4) for k, v in self.initiative_scores.items()},
        }
