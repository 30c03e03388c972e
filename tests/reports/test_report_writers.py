"""Tests for the narrative, JSON, and CSV renderings of team summaries."""

import json

import pandas as pd
import pytest

from squad_digest.core.hierarchy import HierarchyBuilder
from squad_digest.core.risk_scorer import RiskScorer
from squad_digest.models import DateRange, TeamSummary
from squad_digest.reports.csv_writer import COLUMNS, TeamSummaryCSVWriter
from squad_digest.reports.json_exporter import StructuredReportExporter
from squad_digest.reports.narrative_writer import NarrativeReportWriter
from squad_digest.reports.team_summary import TeamAggregator


@pytest.fixture
def summaries(make_item, make_entry, week, at):
    items = [
        make_item(
            "PROJ-1",
            summary="Build login flow",
            status="In Progress",
            assignee="Alice",
            fields={"team": "Voice"},
            created=at(2024, 1, 9),
            history=[
                make_entry(at(2024, 1, 10, 9, 30), ("status", "To Do", "In Progress")),
                make_entry(at(2024, 1, 11, 14, 5), ("Story Points", "3", "5")),
            ],
        ),
        make_item("PROJ-2", summary="Quiet item", status="Done", fields={"team": "Voice"}),
        make_item("PROJ-3", summary="Elsewhere", fields={"team": "Core RCM"}),
    ]
    return TeamAggregator().aggregate(items, week)


class TestNarrativeReportWriter:
    """Test Markdown rendering."""

    def test_layout(self, summaries, week, at):
        text = NarrativeReportWriter().to_narrative(summaries, week, generated_at=at(2024, 1, 15, 8))

        lines = text.splitlines()
        assert lines[:3] == [
            "# Team Summary Report",
            "**Date Range**: 2024-01-08 to 2024-01-14",
            "**Generated**: 2024-01-15 08:00:00",
        ]
        assert text.count("\n---\n") == 2
        assert text.index("## Voice") < text.index("## Core RCM")

        voice = text[text.index("## Voice") : text.index("## Core RCM")]
        sections = ["### Overview", "### Key Insights", "### Change Breakdown", "### Most Active Issues", "### Recent Activity"]
        positions = [voice.index(s) for s in sections]
        assert positions == sorted(positions)

        assert "- **Total Issues**: 2" in voice
        assert "- **Status Changes**: 1" in voice
        assert "- **Story Point Changes**: 1" in voice
        assert "1. **PROJ-1** - Build login flow" in voice
        assert "   - Assignee: Alice" in voice
        assert "  - Last change: Jan 11, 14:05" in voice

    def test_quiet_team_skips_optional_sections(self, summaries, week, at):
        text = NarrativeReportWriter().to_narrative(summaries, week, generated_at=at(2024, 1, 15))

        core = text[text.index("## Core RCM") :]
        assert "### Overview" in core
        assert "- No activity detected in the specified time period" in core
        assert "### Change Breakdown" not in core
        assert "### Most Active Issues" not in core

    def test_deterministic(self, summaries, week, at):
        writer = NarrativeReportWriter()

        assert writer.to_narrative(summaries, week, at(2024, 1, 15)) == writer.to_narrative(summaries, week, at(2024, 1, 15))

    def test_write(self, summaries, week, temp_dir):
        path = NarrativeReportWriter().write(summaries, week, temp_dir / "out" / "report.md")

        assert path.read_text().startswith("# Team Summary Report")


class TestStructuredReportExporter:
    """Test the machine-readable rendering."""

    def test_structure_matches_summaries(self, summaries, week, at):
        data = StructuredReportExporter().to_structured(summaries, week, generated_at=at(2024, 1, 15))

        assert data["generated_at"] == "2024-01-15T00:00:00+00:00"
        assert data["date_range"] == {"start": "2024-01-08", "end": "2024-01-14"}
        assert data["total_teams"] == 2
        assert list(data["teams"]) == ["Voice", "Core RCM"]

        voice = data["teams"]["Voice"]
        assert voice["overview"]["total_issues"] == 2
        assert voice["overview"]["new_items"] == 1
        assert voice["change_breakdown"]["status_changes"] == 1
        assert voice["distribution"]["by_status"] == {"In Progress": 1, "Done": 1}
        assert voice["most_active_issues"][0]["key"] == "PROJ-1"
        assert voice["recent_activity"][0]["last_change"] == "2024-01-11T14:05:00+00:00"
        assert voice["insights"] == summaries["Voice"].insights

    def test_json_serializable(self, summaries, week):
        json.dumps(StructuredReportExporter().to_structured(summaries, week))

    def test_export_with_hierarchy(self, summaries, week, temp_dir, make_item):
        hierarchy = HierarchyBuilder().build([], [make_item("PROJ-100")], [make_item("PROJ-1", points=(2, 1), fields={"epic_link": "PROJ-100"})])
        risk = RiskScorer().score_hierarchy(hierarchy)

        path = StructuredReportExporter().export(summaries, week, temp_dir / "r.json", hierarchy=hierarchy, risk=risk)

        data = json.loads(path.read_text())
        assert data["hierarchy"]["sub_initiatives"][0]["completion_rate"] == 0.5
        assert data["risk"]["risk_score"] == 0.0


class TestTeamSummaryCSVWriter:
    """Test the weekly metrics CSV."""

    def test_one_row_per_team(self, summaries, week, temp_dir):
        path = TeamSummaryCSVWriter().write(summaries, week, temp_dir / "weekly-metrics.csv")

        df = pd.read_csv(path)
        assert list(df.columns) == COLUMNS
        assert list(df["team"]) == ["Voice", "Core RCM"]
        assert list(df["total_issues"]) == [2, 1]
        assert df.loc[0, "status_changes"] == 1
        assert df.loc[0, "week_start"] == "2024-01-08"

    def test_empty_summaries_write_header_only(self, week, temp_dir):
        path = TeamSummaryCSVWriter().write({}, week, temp_dir / "empty.csv")

        assert path.read_text().strip() == ",".join(COLUMNS)


class TestMetricsHistory:
    """Test the running week-over-week metrics file."""

    @staticmethod
    def week_of(at, day):
        return DateRange.current_week(at(2024, 1, day))

    def test_weeks_accumulate(self, at, temp_dir):
        writer = TeamSummaryCSVWriter()
        path = temp_dir / "history.csv"

        writer.append_history({"Voice": TeamSummary("Voice", total_issues=4)}, self.week_of(at, 8), path)
        writer.append_history(
            {"Voice": TeamSummary("Voice", total_issues=6), "Core RCM": TeamSummary("Core RCM", total_issues=1)},
            self.week_of(at, 15),
            path,
        )

        df = writer.load_history(path)
        assert list(df.columns) == COLUMNS
        assert list(zip(df["week_start"], df["team"], df["total_issues"])) == [
            ("2024-01-08", "Voice", 4),
            ("2024-01-15", "Core RCM", 1),
            ("2024-01-15", "Voice", 6),
        ]

    def test_rerun_replaces_same_week_and_team(self, at, temp_dir):
        writer = TeamSummaryCSVWriter()
        path = temp_dir / "history.csv"
        week = self.week_of(at, 8)

        writer.append_history({"Voice": TeamSummary("Voice", total_changes=3)}, week, path)
        writer.append_history({"Voice": TeamSummary("Voice", total_changes=7)}, week, path)

        df = writer.load_history(path)
        assert len(df) == 1
        assert df.loc[0, "total_changes"] == 7

    def test_keeps_most_recent_weeks(self, at, temp_dir):
        writer = TeamSummaryCSVWriter()
        path = temp_dir / "history.csv"

        for day in (1, 8, 15):
            writer.append_history({"Voice": TeamSummary("Voice")}, self.week_of(at, day), path, max_weeks=2)

        assert list(writer.load_history(path)["week_start"]) == ["2024-01-08", "2024-01-15"]

    def test_missing_or_unreadable_history_starts_empty(self, temp_dir):
        writer = TeamSummaryCSVWriter()
        broken = temp_dir / "broken.csv"
        broken.write_bytes(b"")

        assert writer.load_history(temp_dir / "absent.csv").empty
        assert writer.load_history(broken).empty
