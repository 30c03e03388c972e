"""Per-item risk predicates and roll-up risk scoring."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..constants import DEFAULT_DONE_STATUSES, Thresholds
from ..models.rollup import Hierarchy, HierarchyRiskReport, RollupNode
from ..models.work_item import WorkItem
from ..utils.date_utils import ensure_utc
from .diagnostics import Diagnostics, record_skip

logger = logging.getLogger(__name__)

OVERDUE = "overdue"
NO_MOVEMENT = "no_movement_14_days"

COMPONENT = "risk_scorer"


@dataclass(frozen=True)
class RiskPredicate:
    """A named check; ``check(item, now)`` returns True when the risk applies."""

    factor: str
    check: Callable[[WorkItem, datetime], bool]


class RiskScorer:
    """Evaluates risk predicates in table order.

    The default table checks ``overdue`` then staleness. Further predicates
    (scope creep, confidence drop) are added by passing ``extra_predicates``;
    callers of :meth:`assess_item` do not change.

    Args:
        no_movement_days: Days without an update before an item is stale.
        done_statuses: Statuses that are never overdue.
        extra_predicates: Appended after the built-in predicates.
        diagnostics: Collector for items whose staleness cannot be judged.
    """

    def __init__(
        self,
        no_movement_days: int = Thresholds.NO_MOVEMENT_DAYS,
        done_statuses: Iterable[str] = DEFAULT_DONE_STATUSES,
        extra_predicates: Sequence[RiskPredicate] = (),
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.diagnostics = diagnostics
        self.no_movement = timedelta(days=no_movement_days)
        self.done_statuses = {s.lower() for s in done_statuses}
        self.predicates: list[RiskPredicate] = [
            RiskPredicate(OVERDUE, self._is_overdue),
            RiskPredicate(NO_MOVEMENT, self._has_no_movement),
            *extra_predicates,
        ]

    def _is_done(self, item: WorkItem) -> bool:
        return bool(item.status) and item.status.lower() in self.done_statuses

    def _is_overdue(self, item: WorkItem, now: datetime) -> bool:
        if item.due_date is None or self._is_done(item):
            return False
        return ensure_utc(now) > item.due_date

    def _has_no_movement(self, item: WorkItem, now: datetime) -> bool:
        if item.updated is None:
            # The aggregator re-assesses at the window end; report each item once per run
            record_skip(
                self.diagnostics,
                item.key,
                COMPONENT,
                "no updated timestamp, staleness not evaluated",
                once=True,
            )
            return False
        return ensure_utc(now) - item.updated >= self.no_movement

    def assess_item(self, item: WorkItem, now: datetime) -> list[str]:
        """Risk factors for ``item`` as of ``now``, in predicate order."""
        factors = [p.factor for p in self.predicates if p.check(item, now)]
        if factors:
            logger.debug(f"{item.key} at risk: {', '.join(factors)}")
        return factors

    def assess_items(self, items: Iterable[WorkItem], now: datetime) -> dict[str, list[str]]:
        return {item.key: self.assess_item(item, now) for item in items}

    def score_hierarchy(self, hierarchy: Hierarchy) -> HierarchyRiskReport:
        """Normalized 0-1 risk for the whole hierarchy and for each initiative.

        score = risky item fraction
                + 0.3 * risky sub-initiative fraction
                + 0.2 * risky initiative fraction, clamped to 1.0
        """
        item_fraction = _fraction(
            sum(1 for factors in hierarchy.item_risks.values() if factors),
            len(hierarchy.item_risks),
        )
        sub_fraction = _risky_fraction(hierarchy.sub_initiatives.values())
        initiative_fraction = _risky_fraction(hierarchy.initiatives.values())

        report = HierarchyRiskReport(
            risk_score=_combine(item_fraction, sub_fraction, initiative_fraction),
            risky_item_fraction=item_fraction,
            risky_sub_initiative_fraction=sub_fraction,
            risky_initiative_fraction=initiative_fraction,
        )

        for key, initiative in hierarchy.initiatives.items():
            items_at_risk = sum(
                1 for item_key in initiative.item_keys if hierarchy.item_risks.get(item_key)
            )
            subs = [
                hierarchy.sub_initiatives[k]
                for k in initiative.sub_initiative_keys
                if k in hierarchy.sub_initiatives
            ]
            report.initiative_scores[key] = _combine(
                _fraction(items_at_risk, initiative.issue_count),
                _risky_fraction(subs),
                1.0 if initiative.is_at_risk else 0.0,
            )

        logger.info(
            f"Hierarchy risk score {report.risk_score:.2f} "
            f"({len(hierarchy.initiatives)} initiatives, {len(hierarchy.item_risks)} items)"
        )
        return report


def _fraction(part: int, whole: int) -> float:
    return part / whole if whole else 0.0


def _risky_fraction(nodes: Iterable[RollupNode]) -> float:
    nodes = list(nodes)
    return _fraction(sum(1 for node in nodes if node.is_at_risk), len(nodes))


def _combine(item_fraction: float, sub_fraction: float, initiative_fraction: float) -> float:
    score = (
        item_fraction
        + Thresholds.SUB_INITIATIVE_RISK_WEIGHT * sub_fraction
        + Thresholds.INITIATIVE_RISK_WEIGHT * initiative_fraction
    )
    return min(score, 1.0)
