"""Weekly team metrics in CSV format, per run and as a running history."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pandas as pd

from ..constants import ReportLimits
from ..models.date_range import DateRange
from ..models.summary import TeamSummary
from ..utils.date_utils import format_for_file

logger = logging.getLogger(__name__)

COLUMNS = [
    "week_start",
    "week_end",
    "team",
    "total_issues",
    "issues_with_changes",
    "new_items",
    "total_changes",
    "status_changes",
    "assignee_changes",
    "story_point_changes",
    "priority_changes",
    "target_period_changes",
    "epic_link_changes",
    "team_changes",
    "comments",
    "other_changes",
    "at_risk_items",
    "linked_pull_requests",
    "last_updated",
]


class TeamSummaryCSVWriter:
    """One row per team for the reporting window."""

    def build_rows(self, summaries: Mapping[str, TeamSummary], date_range: DateRange) -> list[dict[str, Any]]:
        rows = []
        for team, summary in summaries.items():
            row: dict[str, Any] = {
                "week_start": format_for_file(date_range.start),
                "week_end": format_for_file(date_range.end),
                "team": team,
                "total_issues": summary.total_issues,
                "issues_with_changes": summary.issues_with_changes,
                "new_items": summary.new_issues,
                "total_changes": summary.total_changes,
            }
            for change_type, count in summary.change_breakdown.items():
                row[change_type] = count
            row["at_risk_items"] = len(summary.at_risk_items)
            row["linked_pull_requests"] = len(summary.linked_pull_requests)
            row["last_updated"] = summary.last_updated.isoformat() if summary.last_updated else ""
            rows.append(row)
        return rows

    def write(self, summaries: Mapping[str, TeamSummary], date_range: DateRange, output_path: Path) -> Path:
        """Write the weekly metrics CSV report."""
        rows = self.build_rows(summaries, date_range)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if rows:
            df = pd.DataFrame(rows).reindex(columns=COLUMNS, fill_value=0)
        else:
            df = pd.DataFrame(columns=COLUMNS)
        df.to_csv(output_path, index=False)

        logger.info(f"Weekly team metrics written to {output_path} ({len(rows)} teams)")
        return output_path

    def load_history(self, history_path: Path) -> pd.DataFrame:
        """Rows of the running history file; empty when absent or unreadable."""
        history_path = Path(history_path)
        if not history_path.exists():
            return pd.DataFrame(columns=COLUMNS)
        try:
            df = pd.read_csv(history_path, dtype={"week_start": str, "week_end": str, "team": str})
        except (OSError, ValueError) as e:
            # pandas parser errors are ValueErrors
            logger.warning(f"Could not read metrics history from {history_path}: {e}")
            return pd.DataFrame(columns=COLUMNS)
        return df.reindex(columns=COLUMNS)

    def append_history(
        self,
        summaries: Mapping[str, TeamSummary],
        date_range: DateRange,
        history_path: Path,
        max_weeks: int = ReportLimits.HISTORY_WEEKS,
    ) -> Path:
        """Upsert this window's rows into the running history, keyed by (week_start, team).

        WHY: a rerun for the same week must replace that week's numbers rather
        than double them, while other weeks stay untouched so trends survive.
        Only the most recent ``max_weeks`` distinct weeks are kept.
        """
        history_path = Path(history_path)
        history_path.parent.mkdir(parents=True, exist_ok=True)

        existing = self.load_history(history_path)
        current = pd.DataFrame(self.build_rows(summaries, date_range)).reindex(columns=COLUMNS, fill_value=0)
        frames = [df for df in (existing, current) if not df.empty]
        if frames:
            combined = pd.concat(frames, ignore_index=True)
            combined = combined.drop_duplicates(subset=["week_start", "team"], keep="last")
            weeks = sorted(combined["week_start"].unique())[-max_weeks:] if max_weeks > 0 else []
            combined = combined[combined["week_start"].isin(weeks)]
            combined = combined.sort_values(["week_start", "team"], kind="stable")
        else:
            combined = pd.DataFrame(columns=COLUMNS)
        combined.to_csv(history_path, index=False)

        logger.info(
            f"Metrics history at {history_path} now covers "
            f"{combined['week_start'].nunique()} weeks ({len(combined)} rows)"
        )
        return history_path
