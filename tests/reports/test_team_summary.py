"""Tests for per-team aggregation and insights."""

from datetime import timedelta

import pytest

from squad_digest.constants import UNKNOWN_TEAM
from squad_digest.core.risk_scorer import RiskScorer
from squad_digest.models import TeamSummary
from squad_digest.reports.team_summary import TeamAggregator


def changes(make_entry, timestamp, count, field="status"):
    """An entry with ``count`` deltas on ``field``."""
    return make_entry(timestamp, *[(field, str(i), str(i + 1)) for i in range(count)])


class TestTeamResolution:
    """Every item maps to exactly one team."""

    def test_team_id_looked_up_in_mapping(self, make_item):
        aggregator = TeamAggregator(team_names={"team-1": "Voice"})
        item = make_item(fields={"customfield_10001": {"id": "team-1", "name": "voice-raw"}})

        assert aggregator.resolve_team(item) == "Voice"

    def test_raw_name_when_id_unknown(self, make_item):
        aggregator = TeamAggregator(team_names={})
        item = make_item(fields={"customfield_10001": {"id": "team-x", "name": "Research"}})

        assert aggregator.resolve_team(item) == "Research"

    def test_plain_team_id_string(self, make_item):
        item = make_item(fields={"customfield_10001": "eab6f557-2ee3-458c-9511-54c135cd4752-82"})

        assert TeamAggregator().resolve_team(item) == "Voice"

    def test_unknown_team_sentinel(self, make_item, week):
        items = [make_item(f"PROJ-{n}") for n in range(10)]

        summaries = TeamAggregator().aggregate(items, week)

        assert list(summaries) == [UNKNOWN_TEAM]
        assert summaries[UNKNOWN_TEAM].total_issues == 10

    def test_totality(self, make_item, week):
        items = [
            make_item("PROJ-1", fields={"team": "A"}),
            make_item("PROJ-2", fields={"team": "B"}),
            make_item("PROJ-3", fields={"customfield_10001": [{"name": "A"}]}),
            make_item("PROJ-4"),
        ]

        summaries = TeamAggregator().aggregate(items, week)

        assert list(summaries) == ["A", "B", UNKNOWN_TEAM]
        assert sum(s.total_issues for s in summaries.values()) == len(items)


class TestAggregate:
    """Test counters, distributions, and ranked lists."""

    def test_counters_and_distributions(self, make_item, make_entry, week, at):
        items = [
            make_item(
                "PROJ-1",
                status="In Progress",
                issue_type="Story",
                priority="High",
                created=at(2024, 1, 9),
                updated=at(2024, 1, 12),
                history=[make_entry(at(2024, 1, 10), ("status", "To Do", "In Progress"), ("comment", None, "x"))],
            ),
            make_item("PROJ-2", created=at(2023, 12, 1), updated=at(2023, 12, 2)),
        ]

        summary = TeamAggregator().aggregate(items, week)[UNKNOWN_TEAM]

        assert summary.total_issues == 2
        assert summary.new_issues == 1
        assert summary.issues_with_changes == 1
        assert summary.total_changes == 2
        assert summary.change_breakdown["status_changes"] == 1
        assert summary.change_breakdown["comments"] == 1
        assert summary.status_distribution == {"In Progress": 1, "Unknown": 1}
        assert summary.type_distribution == {"Story": 1, "Unknown": 1}
        assert summary.priority_distribution == {"High": 1, "Unset": 1}
        assert summary.last_updated == at(2024, 1, 12)

    def test_most_active_capped_and_tie_broken_by_key(self, make_item, make_entry, week, at):
        counts = {"PROJ-7": 2, "PROJ-3": 2, "PROJ-5": 4, "PROJ-1": 1, "PROJ-2": 2, "PROJ-9": 3, "PROJ-4": 1}
        items = [
            make_item(key, history=[changes(make_entry, at(2024, 1, 10), n)]) for key, n in counts.items()
        ]

        summary = TeamAggregator().aggregate(items, week)[UNKNOWN_TEAM]

        assert [a.key for a in summary.most_active_issues] == ["PROJ-5", "PROJ-9", "PROJ-2", "PROJ-3", "PROJ-7"]
        assert summary.most_active_issues[0].assignee == "Unassigned"

    def test_recent_activity_sorted_newest_first(self, make_item, make_entry, week, at):
        items = [
            make_item(f"PROJ-{n}", history=[make_entry(at(2024, 1, 8, n), ("status", "A", "B"))])
            for n in range(12)
        ]
        items.append(make_item("PROJ-00", history=[make_entry(at(2024, 1, 8, 11), ("status", "A", "B"))]))

        summary = TeamAggregator().aggregate(items, week)[UNKNOWN_TEAM]

        keys = [r.key for r in summary.recent_activity]
        assert len(keys) == 10
        assert keys[:3] == ["PROJ-00", "PROJ-11", "PROJ-10"]
        assert summary.recent_activity[0].last_change == at(2024, 1, 8, 11)

    def test_ordering_independent_of_input_order(self, make_item, make_entry, week, at):
        items = [
            make_item(f"PROJ-{n}", history=[changes(make_entry, at(2024, 1, 9 + n % 3), 1 + n % 2)])
            for n in range(8)
        ]

        forward = TeamAggregator().aggregate(items, week)[UNKNOWN_TEAM]
        backward = TeamAggregator().aggregate(list(reversed(items)), week)[UNKNOWN_TEAM]

        assert forward.most_active_issues == backward.most_active_issues
        assert forward.recent_activity == backward.recent_activity

    def test_configurable_limits(self, make_item, make_entry, week, at):
        items = [make_item(f"PROJ-{n}", history=[changes(make_entry, at(2024, 1, 10), 1)]) for n in range(6)]

        summary = TeamAggregator(most_active_limit=2, recent_activity_limit=3).aggregate(items, week)[UNKNOWN_TEAM]

        assert len(summary.most_active_issues) == 2
        assert len(summary.recent_activity) == 3

    def test_at_risk_items_evaluated_at_window_end(self, make_item, week):
        items = [
            make_item("PROJ-1", updated=week.end - timedelta(days=15)),
            make_item("PROJ-2", updated=week.end - timedelta(days=1)),
        ]

        summary = TeamAggregator(risk_scorer=RiskScorer()).aggregate(items, week)[UNKNOWN_TEAM]

        assert [(r.key, r.risk_factors) for r in summary.at_risk_items] == [("PROJ-1", ("no_movement_14_days",))]

    def test_linked_pull_requests_collected(self, make_item, week):
        items = [
            make_item("PROJ-1", linked_pull_requests=("10", "11")),
            make_item("PROJ-2", linked_pull_requests=("11", "12")),
        ]

        summary = TeamAggregator().aggregate(items, week)[UNKNOWN_TEAM]

        assert summary.linked_pull_requests == ["10", "11", "12"]


class TestInsights:
    """Insight text and thresholds are user-facing and fixed."""

    @pytest.mark.parametrize(
        "total_changes, expected",
        [
            (0, "No activity detected in the specified time period"),
            (1, "Low activity level - minimal changes detected"),
            (10, "Low activity level - minimal changes detected"),
            (11, "Moderate activity level - steady progress"),
            (20, "Moderate activity level - steady progress"),
            (21, "High activity level - team is very active"),
        ],
    )
    def test_activity_thresholds(self, total_changes, expected):
        summary = TeamSummary(team="T", total_changes=total_changes)

        assert TeamAggregator().generate_insights(summary)[0] == expected

    def test_full_insight_list_in_order(self):
        summary = TeamSummary(
            team="T",
            total_changes=12,
            new_issues=3,
            status_distribution={"In Progress": 2, "Done": 4, "To Do": 1, "Blocked": 5},
            change_breakdown={"status_changes": 6, "assignee_changes": 2, "story_point_changes": 1, "comments": 3},
        )

        assert TeamAggregator().generate_insights(summary) == [
            "Moderate activity level - steady progress",
            "3 new items created",
            "2 items currently in progress",
            "4 items completed",
            "1 items in backlog",
            "6 status changes",
            "2 assignee changes",
            "1 story point updates",
        ]

    def test_zero_counters_are_omitted(self):
        summary = TeamSummary(team="T", change_breakdown={"status_changes": 0})

        assert TeamAggregator().generate_insights(summary) == [
            "No activity detected in the specified time period"
        ]

    def test_aggregate_attaches_insights(self, make_item, make_entry, week, at):
        items = [make_item("PROJ-1", status="Done", history=[make_entry(at(2024, 1, 10), ("status", "A", "Done"))])]

        summary = TeamAggregator().aggregate(items, week)[UNKNOWN_TEAM]

        assert summary.insights == [
            "Low activity level - minimal changes detected",
            "1 items completed",
            "1 status changes",
        ]
