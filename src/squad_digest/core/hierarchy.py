"""Build the initiative -> sub-initiative -> work item roll-up."""

import logging
from collections.abc import Iterable, Mapping
from typing import Optional

from ..constants import UNASSIGNED_KEY
from ..models.rollup import INITIATIVE, SUB_INITIATIVE, Hierarchy, RollupNode
from ..models.work_item import WorkItem
from .diagnostics import Diagnostics, record_skip
from .field_accessor import EPIC_LINK, FieldAccessor
from .field_accessor import INITIATIVE as INITIATIVE_FIELD
from .field_accessor import PARENT, TARGET_PERIOD

logger = logging.getLogger(__name__)

COMPONENT = "hierarchy_builder"


class HierarchyBuilder:
    """Assembles roll-up nodes and sums item points into them.

    Missing or unresolvable references never raise: items land in the
    unassigned buckets and sub-initiatives with an unknown parent are kept
    as orphans.
    """

    def __init__(
        self,
        accessor: Optional[FieldAccessor] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self.accessor = accessor or FieldAccessor()
        self.diagnostics = diagnostics

    def build(
        self,
        initiatives: Iterable[WorkItem],
        sub_initiatives: Iterable[WorkItem],
        items: Iterable[WorkItem],
        item_risks: Optional[Mapping[str, list[str]]] = None,
    ) -> Hierarchy:
        """Build the hierarchy.

        Args:
            initiatives: Top-level grouping records.
            sub_initiatives: Second-level grouping records (epics).
            items: Work items to roll up.
            item_risks: Risk factors per item key, usually from
                :meth:`RiskScorer.assess_items`.

        Returns:
            Hierarchy with completion rates computed and risk factors deduplicated.
        """
        item_risks = item_risks or {}
        hierarchy = Hierarchy(
            unassigned_sub_initiative=RollupNode(
                key=UNASSIGNED_KEY, kind=SUB_INITIATIVE, title="Unassigned"
            ),
            unassigned_initiative=RollupNode(key=UNASSIGNED_KEY, kind=INITIATIVE, title="Unassigned"),
        )

        # Pass 1: seed nodes
        for record in initiatives:
            if record.key in hierarchy.initiatives:
                record_skip(self.diagnostics, record.key, COMPONENT, "duplicate initiative key")
                continue
            hierarchy.initiatives[record.key] = self._seed(record, INITIATIVE)
        for record in sub_initiatives:
            if record.key in hierarchy.sub_initiatives:
                record_skip(self.diagnostics, record.key, COMPONENT, "duplicate sub-initiative key")
                continue
            node = self._seed(record, SUB_INITIATIVE)
            node.parent_key = self._parent_of(record)
            hierarchy.sub_initiatives[record.key] = node

        # Pass 2: sub-initiatives -> initiatives
        for node in hierarchy.sub_initiatives.values():
            parent = hierarchy.initiatives.get(node.parent_key) if node.parent_key else None
            if parent is None:
                hierarchy.orphan_sub_initiatives.append(node.key)
                logger.debug(f"Sub-initiative {node.key} has no resolvable parent ({node.parent_key})")
                continue
            parent.sub_initiative_keys.append(node.key)

        # Pass 3: items -> sub-initiative and initiative
        for item in items:
            if item.key in hierarchy.item_risks:
                record_skip(self.diagnostics, item.key, COMPONENT, "duplicate work item key")
                continue
            risks = list(item_risks.get(item.key, []))
            hierarchy.item_risks[item.key] = risks

            sub_key = self._str(self.accessor.resolve(item, EPIC_LINK))
            sub_node = hierarchy.sub_initiatives.get(sub_key) if sub_key else None
            self._attach(sub_node or hierarchy.unassigned_sub_initiative, item, risks)

            initiative_key = self._str(self.accessor.resolve(item, INITIATIVE_FIELD))
            if initiative_key not in hierarchy.initiatives and sub_node is not None:
                initiative_key = sub_node.parent_key
            initiative_node = hierarchy.initiatives.get(initiative_key) if initiative_key else None
            self._attach(initiative_node or hierarchy.unassigned_initiative, item, risks)

        logger.info(
            f"Built hierarchy: {len(hierarchy.initiatives)} initiatives, "
            f"{len(hierarchy.sub_initiatives)} sub-initiatives, {hierarchy.item_count} items "
            f"({hierarchy.unassigned_sub_initiative.issue_count} without a sub-initiative)"
        )
        return hierarchy

    def _seed(self, record: WorkItem, kind: str) -> RollupNode:
        target = self.accessor.resolve(record, TARGET_PERIOD)
        return RollupNode(
            key=record.key,
            kind=kind,
            title=record.title,
            status=record.status,
            target_period=str(target) if target is not None else None,
        )

    def _parent_of(self, record: WorkItem) -> Optional[str]:
        return self._str(
            self.accessor.resolve(record, INITIATIVE_FIELD) or self.accessor.resolve(record, PARENT)
        )

    @staticmethod
    def _attach(node: RollupNode, item: WorkItem, risks: list[str]) -> None:
        node.item_keys.append(item.key)
        node.total_points += item.points.total
        node.completed_points += item.points.done
        node.add_risk_factors(risks)

    @staticmethod
    def _str(value) -> Optional[str]:
        return str(value) if value is not None else None
