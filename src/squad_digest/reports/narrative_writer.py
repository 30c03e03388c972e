"""Narrative team summary report in Markdown format."""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from io import StringIO
from pathlib import Path
from typing import Optional

from ..constants import ReportLimits
from ..models.date_range import DateRange
from ..models.summary import TeamSummary
from ..utils.date_utils import format_for_file

logger = logging.getLogger(__name__)

CHANGE_TYPE_DISPLAY_NAMES = {
    "status_changes": "Status Changes",
    "assignee_changes": "Assignee Changes",
    "story_point_changes": "Story Point Changes",
    "priority_changes": "Priority Changes",
    "target_period_changes": "Target Period Changes",
    "epic_link_changes": "Epic Link Changes",
    "team_changes": "Team Changes",
    "comments": "Comments",
    "other_changes": "Other Changes",
}


class NarrativeReportWriter:
    """Render team summaries as a Markdown report.

    The output depends only on the summaries, the window and ``generated_at``,
    so two renders of the same input are identical.
    """

    def __init__(self, recent_activity_limit: int = ReportLimits.NARRATIVE_RECENT_ACTIVITY) -> None:
        self.recent_activity_limit = recent_activity_limit

    def to_narrative(
        self,
        summaries: Mapping[str, TeamSummary],
        date_range: DateRange,
        generated_at: Optional[datetime] = None,
    ) -> str:
        generated_at = generated_at or datetime.now(timezone.utc)
        report = StringIO()

        report.write("# Team Summary Report\n")
        report.write(
            f"**Date Range**: {format_for_file(date_range.start)} to {format_for_file(date_range.end)}\n"
        )
        report.write(f"**Generated**: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}\n\n")

        for team, summary in summaries.items():
            report.write(f"## {team}\n\n")
            self._write_overview(report, summary)
            self._write_insights(report, summary)
            self._write_change_breakdown(report, summary)
            self._write_most_active(report, summary)
            self._write_recent_activity(report, summary)
            self._write_at_risk(report, summary)
            report.write("---\n\n")

        return report.getvalue()

    def write(
        self,
        summaries: Mapping[str, TeamSummary],
        date_range: DateRange,
        output_path: Path,
        generated_at: Optional[datetime] = None,
    ) -> Path:
        """Write the narrative report to ``output_path``."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.to_narrative(summaries, date_range, generated_at))
        logger.info(f"Narrative report written to {output_path}")
        return output_path

    def _write_overview(self, report: StringIO, summary: TeamSummary) -> None:
        report.write("### Overview\n")
        report.write(f"- **Total Issues**: {summary.total_issues}\n")
        report.write(f"- **Issues with Changes**: {summary.issues_with_changes}\n")
        report.write(f"- **New Items**: {summary.new_issues}\n")
        report.write(f"- **Total Changes**: {summary.total_changes}\n\n")

    def _write_insights(self, report: StringIO, summary: TeamSummary) -> None:
        if not summary.insights:
            return
        report.write("### Key Insights\n")
        for insight in summary.insights:
            report.write(f"- {insight}\n")
        report.write("\n")

    def _write_change_breakdown(self, report: StringIO, summary: TeamSummary) -> None:
        if summary.total_changes == 0:
            return
        report.write("### Change Breakdown\n")
        for change_type, count in summary.change_breakdown.items():
            if count > 0:
                name = CHANGE_TYPE_DISPLAY_NAMES.get(change_type, change_type)
                report.write(f"- **{name}**: {count}\n")
        report.write("\n")

    def _write_most_active(self, report: StringIO, summary: TeamSummary) -> None:
        if not summary.most_active_issues:
            return
        report.write("### Most Active Issues\n")
        for index, issue in enumerate(summary.most_active_issues, start=1):
            report.write(f"{index}. **{issue.key}** - {issue.summary}\n")
            report.write(f"   - Status: {issue.status}\n")
            report.write(f"   - Assignee: {issue.assignee}\n")
            report.write(f"   - Changes: {issue.change_count}\n")
        report.write("\n")

    def _write_recent_activity(self, report: StringIO, summary: TeamSummary) -> None:
        if not summary.recent_activity:
            return
        report.write("### Recent Activity\n")
        for activity in summary.recent_activity[: self.recent_activity_limit]:
            report.write(f"- **{activity.key}** - {activity.summary}\n")
            report.write(f"  - Last change: {activity.last_change.strftime('%b %d, %H:%M')}\n")
            report.write(f"  - Changes: {activity.change_count}\n")
        report.write("\n")

    def _write_at_risk(self, report: StringIO, summary: TeamSummary) -> None:
        if not summary.at_risk_items:
            return
        report.write("### At-Risk Items\n")
        for item in summary.at_risk_items:
            report.write(f"- **{item.key}**: {', '.join(item.risk_factors)}\n")
        report.write("\n")
