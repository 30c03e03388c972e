"""Tests for YAML configuration loading."""

from pathlib import Path

import pytest

from squad_digest.config import ConfigLoader
from squad_digest.constants import DEFAULT_TEAM_NAMES
from squad_digest.errors import ConfigurationError, YAMLParseError


def write_config(directory: Path, text: str) -> Path:
    path = directory / "config.yaml"
    path.write_text(text)
    return path


class TestConfigLoader:
    """Test section parsing, defaults, and validation."""

    def test_empty_file_gives_defaults(self, temp_dir):
        cfg = ConfigLoader.load(write_config(temp_dir, ""))

        assert cfg.jira.key_prefixes == ["PLAT", "MOB", "DATA", "PROJ"]
        assert cfg.teams.mappings == DEFAULT_TEAM_NAMES
        assert cfg.risk.no_movement_days == 14
        assert cfg.report.most_active_limit == 5
        assert cfg.report.recent_activity_limit == 10
        assert cfg.state.file == temp_dir / "data" / "last-run-state.json"
        assert cfg.output.directory == temp_dir / "reports"
        assert cfg.output.formats == ["markdown", "json", "csv"]

    def test_full_config(self, temp_dir):
        cfg = ConfigLoader.load(
            write_config(
                temp_dir,
                """
jira:
  base_url: https://example.atlassian.net
  key_prefixes: [ENG, ops]
  custom_fields:
    story_points: customfield_20000
  hierarchy:
    initiative_type: Initiative
    sub_initiative_type: Epic
  status_categories:
    done: [Shipped]
teams:
  mappings:
    team-1: Voice
risk:
  no_movement_days: 7
report:
  most_active_limit: 3
state:
  file: /var/tmp/squad-state.json
output:
  directory: out
  formats: [JSON]
""",
            )
        )

        assert cfg.jira.base_url == "https://example.atlassian.net"
        assert cfg.jira.key_prefixes == ["ENG", "ops"]
        assert cfg.jira.custom_fields == {"story_points": "customfield_20000"}
        assert cfg.jira.hierarchy.initiative_type == "Initiative"
        assert cfg.jira.status_categories.done == ["Shipped"]
        assert cfg.jira.status_categories.backlog == ["To Do", "Backlog", "Open"]
        assert cfg.teams.mappings == {"team-1": "Voice"}
        assert cfg.risk.no_movement_days == 7
        assert cfg.report.most_active_limit == 3
        assert cfg.state.file == Path("/var/tmp/squad-state.json")
        assert cfg.output.directory == temp_dir / "out"
        assert cfg.output.formats == ["json"]

    def test_env_var_from_dotenv(self, temp_dir, monkeypatch):
        # Registered first so teardown removes whatever the .env file sets
        monkeypatch.setenv("SQUAD_TEST_JIRA_URL", "unset")
        (temp_dir / ".env").write_text("SQUAD_TEST_JIRA_URL=https://from-env.example\n")

        cfg = ConfigLoader.load(write_config(temp_dir, "jira:\n  base_url: ${SQUAD_TEST_JIRA_URL}\n"))

        assert cfg.jira.base_url == "https://from-env.example"
    def test_unset_env_var_resolves_to_none(self, temp_dir, monkeypatch):
        monkeypatch.delenv("SQUAD_TEST_MISSING", raising=False)

        cfg = ConfigLoader.load(write_config(temp_dir, "jira:\n  base_url: ${SQUAD_TEST_MISSING}\n"))

        assert cfg.jira.base_url is None

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigLoader.load(temp_dir / "nope.yaml")

    def test_invalid_yaml(self, temp_dir):
        with pytest.raises(YAMLParseError, match="line"):
            ConfigLoader.load(write_config(temp_dir, "jira: [unclosed\n"))

    @pytest.mark.parametrize(
        "text, message",
        [
            ("- a list\n", "YAML object"),
            ("jira: just-a-string\n", "'jira' section"),
            ("risk:\n  no_movement_days: -1\n", "no_movement_days"),
            ("report:\n  most_active_limit: many\n", "most_active_limit"),
            ("output:\n  formats: [pdf]\n", "Unknown output format"),
            ("jira:\n  key_prefixes: []\n", "must not be empty"),
            ("teams:\n  mappings: [a, b]\n", "teams.mappings"),
        ],
    )
    def test_invalid_values(self, temp_dir, text, message):
        with pytest.raises(ConfigurationError, match=message):
            ConfigLoader.load(write_config(temp_dir, text))
