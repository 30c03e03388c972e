"""Structured (JSON) team summary export.

Built from the same :class:`TeamSummary` map as the narrative report so the
two outputs cannot drift apart.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..models.date_range import DateRange
from ..models.rollup import Hierarchy, HierarchyRiskReport
from ..models.summary import TeamSummary
from .team_summary import summary_overview

logger = logging.getLogger(__name__)


class StructuredReportExporter:
    """Render team summaries (and optionally the hierarchy) as plain data."""

    def to_structured(
        self,
        summaries: Mapping[str, TeamSummary],
        date_range: DateRange,
        generated_at: Optional[datetime] = None,
        hierarchy: Optional[Hierarchy] = None,
        risk: Optional[HierarchyRiskReport] = None,
    ) -> dict[str, Any]:
        generated_at = generated_at or datetime.now(timezone.utc)
        data: dict[str, Any] = {
            "generated_at": generated_at.isoformat(),
            "date_range": date_range.to_dict(),
            "total_teams": len(summaries),
            "teams": {team: self._team_to_dict(summary) for team, summary in summaries.items()},
        }
        if hierarchy is not None:
            data["hierarchy"] = hierarchy.to_dict()
        if risk is not None:
            data["risk"] = risk.to_dict()
        return self._serialize_for_json(data)

    def export(
        self,
        summaries: Mapping[str, TeamSummary],
        date_range: DateRange,
        output_path: Path,
        hierarchy: Optional[Hierarchy] = None,
        risk: Optional[HierarchyRiskReport] = None,
        generated_at: Optional[datetime] = None,
    ) -> Path:
        """Write the structured report to ``output_path`` as JSON."""
        data = self.to_structured(summaries, date_range, generated_at, hierarchy, risk)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.info(f"JSON report written to {output_path}")
        return output_path

    def _team_to_dict(self, summary: TeamSummary) -> dict[str, Any]:
        return {
            "overview": summary_overview(summary),
            "change_breakdown": dict(summary.change_breakdown),
            "distribution": {
                "by_status": dict(summary.status_distribution),
                "by_type": dict(summary.type_distribution),
                "by_priority": dict(summary.priority_distribution),
            },
            "most_active_issues": [asdict(issue) for issue in summary.most_active_issues],
            "recent_activity": [asdict(activity) for activity in summary.recent_activity],
            "insights": list(summary.insights),
            "at_risk_items": [
                {"key": item.key, "risk_factors": list(item.risk_factors)}
                for item in summary.at_risk_items
            ],
            "linked_pull_requests": list(summary.linked_pull_requests),
        }

    def _serialize_for_json(self, data: Any) -> Any:
        """Serialize data for JSON output, handling datetime objects."""
        if isinstance(data, datetime):
            return data.isoformat()
        elif isinstance(data, dict):
            return {k: self._serialize_for_json(v) for k, v in data.items()}
        elif isinstance(data, (list, tuple)):
            return [self._serialize_for_json(item) for item in data]
        elif isinstance(data, set):
            return sorted(data)
        else:
            return data
