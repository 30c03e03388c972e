"""Tests for logical field resolution across inconsistent raw shapes."""

import pytest

from squad_digest.core.field_accessor import (
    EPIC_LINK,
    STORY_POINTS,
    TARGET_PERIOD,
    TEAM,
    FieldAccessor,
    unwrap,
)


class TestUnwrap:
    """Test the single unwrap algorithm."""

    def test_value_wins_over_name(self):
        assert unwrap({"value": "Q1", "name": "ignored"}) == "Q1"

    def test_name_used_when_no_value(self):
        assert unwrap({"id": "42", "name": "Voice"}) == "Voice"

    def test_list_recurses_on_first_element(self):
        assert unwrap([{"name": "Platform"}, {"name": "Mobile"}]) == "Platform"
        assert unwrap([["nested"]]) == "nested"

    def test_scalars_returned_as_is(self):
        assert unwrap("Voice") == "Voice"
        assert unwrap(5) == 5
        assert unwrap(0) == 0

    @pytest.mark.parametrize("raw", [None, [], "", "   ", {"id": "only-id"}])
    def test_empty_shapes_resolve_to_none(self, raw):
        assert unwrap(raw) is None


class TestFieldAccessor:
    """Test candidate-key fallback order."""

    def test_first_resolving_candidate_wins(self, make_item):
        item = make_item(fields={"team": None, "customfield_10001": {"name": "Core RCM"}})

        assert FieldAccessor().resolve(item, TEAM) == "Core RCM"

    def test_project_and_components_are_not_teams(self, make_item):
        item = make_item(fields={"components": [{"name": "Backend"}], "project": {"key": "PROJ", "name": "Project X"}})

        accessor = FieldAccessor()
        assert accessor.resolve(item, TEAM) is None
        assert accessor.resolve_identifier(item, TEAM) is None

    def test_returns_none_when_nothing_resolves(self, make_item):
        item = make_item(fields={"labels": ["x"]})

        accessor = FieldAccessor()
        assert accessor.resolve(item, TEAM) is None
        assert accessor.resolve(item, EPIC_LINK) is None

    def test_flat_names_resolve(self, make_item):
        item = make_item(fields={"team": "Voice", "epicLink": "PROJ-9", "targetPeriod": {"value": "2024-Q1"}})

        accessor = FieldAccessor()
        assert accessor.resolve(item, TEAM) == "Voice"
        assert accessor.resolve(item, EPIC_LINK) == "PROJ-9"
        assert accessor.resolve(item, TARGET_PERIOD) == "2024-Q1"

    def test_overrides_are_tried_first(self, make_item):
        item = make_item(fields={"customfield_10030": 3, "customfield_20000": 8})

        accessor = FieldAccessor({STORY_POINTS: "customfield_20000"})
        assert accessor.resolve(item, STORY_POINTS) == 8
        assert accessor.candidate_keys(STORY_POINTS)[0] == "customfield_20000"

    def test_resolve_identifier_prefers_id(self, make_item):
        item = make_item(fields={"customfield_10001": {"id": "team-7", "name": "Voice"}})

        accessor = FieldAccessor()
        assert accessor.resolve_identifier(item, TEAM) == "team-7"
        assert accessor.resolve(item, TEAM) == "Voice"

    def test_resolve_number(self):
        accessor = FieldAccessor()

        assert accessor.resolve_number({"customfield_10030": "5"}, STORY_POINTS) == 5.0
        assert accessor.resolve_number({"customfield_10030": "lots"}, STORY_POINTS) is None
        assert accessor.resolve_number({}, STORY_POINTS) is None

    def test_unknown_logical_name_raises(self, make_item):
        with pytest.raises(KeyError):
            FieldAccessor().resolve(make_item(), "velocity")
