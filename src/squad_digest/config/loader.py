"""YAML configuration loading and environment variable expansion."""

import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from dotenv import load_dotenv

from ..errors import ConfigurationError, YAMLParseError
from .schema import (
    OUTPUT_FORMATS,
    Config,
    HierarchyConfig,
    JIRAConfig,
    OutputConfig,
    ReportConfig,
    RiskConfig,
    StateConfig,
    StatusCategories,
    TeamsConfig,
)

logger = logging.getLogger(__name__)


def handle_yaml_error(error: yaml.YAMLError, config_path: Path) -> None:
    """Raise a YAMLParseError that points at the offending line."""
    location = ""
    mark = getattr(error, "problem_mark", None)
    if mark is not None:
        location = f" at line {mark.line + 1}, column {mark.column + 1}"
    problem = getattr(error, "problem", None) or str(error)
    raise YAMLParseError(f"Invalid YAML{location}: {problem}", config_path) from error


class ConfigLoader:
    """Load and validate configuration from YAML files."""

    @classmethod
    def load(cls, config_path: Union[Path, str]) -> Config:
        """Load configuration from YAML file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If configuration is invalid
            YAMLParseError: If YAML parsing fails
        """
        config_path = Path(config_path)
        cls._load_environment(config_path)
        data = cls._load_yaml(config_path)
        base_dir = config_path.parent

        config = Config(
            jira=cls._process_jira_config(cls._section(data, "jira", config_path), config_path),
            teams=cls._process_teams_config(cls._section(data, "teams", config_path), config_path),
            risk=cls._process_risk_config(cls._section(data, "risk", config_path), config_path),
            report=cls._process_report_config(cls._section(data, "report", config_path), config_path),
            state=cls._process_state_config(cls._section(data, "state", config_path), base_dir),
            output=cls._process_output_config(
                cls._section(data, "output", config_path), base_dir, config_path
            ),
            config_path=config_path,
        )
        logger.debug(f"Loaded configuration from {config_path}")
        return config

    @classmethod
    def _load_environment(cls, config_path: Path) -> None:
        """Load environment variables from .env and .env.local files if present.

        WHY: .env.local is the conventional way to provide machine-local overrides
        that should not be committed, so base files load first and local files win.
        """
        loaded_any = False
        for env_file in cls._find_env_files(config_path):
            if env_file.exists():
                load_dotenv(env_file, override=True)
                logger.debug(f"Loaded environment variables from {env_file}")
                loaded_any = True

        if not loaded_any:
            logger.debug("No .env file found next to the configuration or in the working directory")

    @classmethod
    def _find_env_files(cls, config_path: Path) -> list[Path]:
        """Potential .env files in load order (base before local)."""
        search_dirs = [config_path.parent]
        cwd = Path.cwd()
        if cwd not in search_dirs:
            search_dirs.append(cwd)

        base_files = [directory / ".env" for directory in search_dirs]
        local_files = [directory / ".env.local" for directory in search_dirs]
        return base_files + local_files

    @classmethod
    def _load_yaml(cls, config_path: Path) -> dict[str, Any]:
        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            handle_yaml_error(e, config_path)
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Configuration file not found: {config_path}", config_path
            ) from e
        except PermissionError as e:
            raise ConfigurationError(
                f"Permission denied reading configuration file: {config_path}", config_path
            ) from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration file: {e}", config_path) from e

        # An empty file means "all defaults"
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration file must contain a YAML object (key-value pairs)", config_path
            )
        return data

    @staticmethod
    def _section(data: dict[str, Any], name: str, config_path: Path) -> dict[str, Any]:
        section = data.get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"'{name}' section must be a mapping", config_path)
        return section

    @staticmethod
    def _resolve_env_var(value: Optional[str]) -> Optional[str]:
        """Resolve a ``${VAR}`` reference; unset variables resolve to None."""
        if not value:
            return None
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            return os.environ.get(value[2:-1]) or None
        return value

    @classmethod
    def _string_list(cls, value: Any, name: str, config_path: Path) -> list[str]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(v, (str, int)) for v in value):
            raise ConfigurationError(f"'{name}' must be a list of strings", config_path)
        resolved = (cls._resolve_env_var(str(v).strip()) for v in value)
        return [v for v in resolved if v]

    @staticmethod
    def _positive_int(value: Any, name: str, config_path: Path) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError(f"'{name}' must be a non-negative integer, got {value!r}", config_path)
        return value

    @classmethod
    def _process_jira_config(cls, jira_data: dict[str, Any], config_path: Path) -> JIRAConfig:
        jira = JIRAConfig(base_url=cls._resolve_env_var(jira_data.get("base_url")))

        if "key_prefixes" in jira_data:
            jira.key_prefixes = cls._string_list(jira_data["key_prefixes"], "jira.key_prefixes", config_path)
            if not jira.key_prefixes:
                raise ConfigurationError("'jira.key_prefixes' must not be empty", config_path)

        custom_fields = jira_data.get("custom_fields") or {}
        if not isinstance(custom_fields, dict):
            raise ConfigurationError("'jira.custom_fields' must be a mapping", config_path)
        jira.custom_fields = {
            str(name): str(cls._resolve_env_var(str(field_id)))
            for name, field_id in custom_fields.items()
            if field_id
        }

        hierarchy = jira_data.get("hierarchy") or {}
        if not isinstance(hierarchy, dict):
            raise ConfigurationError("'jira.hierarchy' must be a mapping", config_path)
        jira.hierarchy = HierarchyConfig(
            initiative_type=str(hierarchy.get("initiative_type", HierarchyConfig.initiative_type)),
            sub_initiative_type=str(
                hierarchy.get("sub_initiative_type", HierarchyConfig.sub_initiative_type)
            ),
        )

        statuses = jira_data.get("status_categories") or {}
        if not isinstance(statuses, dict):
            raise ConfigurationError("'jira.status_categories' must be a mapping", config_path)
        categories = StatusCategories()
        for name in ("done", "in_progress", "backlog"):
            if name in statuses:
                setattr(
                    categories,
                    name,
                    cls._string_list(statuses[name], f"jira.status_categories.{name}", config_path),
                )
        jira.status_categories = categories
        return jira

    @classmethod
    def _process_teams_config(cls, teams_data: dict[str, Any], config_path: Path) -> TeamsConfig:
        if "mappings" not in teams_data:
            return TeamsConfig()
        mappings = teams_data["mappings"] or {}
        if not isinstance(mappings, dict):
            raise ConfigurationError("'teams.mappings' must be a mapping of team id to name", config_path)
        return TeamsConfig(mappings={str(k): str(v) for k, v in mappings.items()})

    @classmethod
    def _process_risk_config(cls, risk_data: dict[str, Any], config_path: Path) -> RiskConfig:
        risk = RiskConfig()
        if "no_movement_days" in risk_data:
            risk.no_movement_days = cls._positive_int(
                risk_data["no_movement_days"], "risk.no_movement_days", config_path
            )
        return risk

    @classmethod
    def _process_report_config(cls, report_data: dict[str, Any], config_path: Path) -> ReportConfig:
        report = ReportConfig()
        for name in ("most_active_limit", "recent_activity_limit"):
            if name in report_data:
                setattr(report, name, cls._positive_int(report_data[name], f"report.{name}", config_path))
        return report

    @classmethod
    def _process_state_config(cls, state_data: dict[str, Any], base_dir: Path) -> StateConfig:
        state_file = Path(state_data.get("file") or StateConfig.file)
        if not state_file.is_absolute():
            state_file = base_dir / state_file
        return StateConfig(file=state_file)

    @classmethod
    def _process_output_config(
        cls, output_data: dict[str, Any], base_dir: Path, config_path: Path
    ) -> OutputConfig:
        directory = Path(output_data.get("directory") or OutputConfig.directory)
        if not directory.is_absolute():
            directory = base_dir / directory

        formats = list(OUTPUT_FORMATS)
        if "formats" in output_data:
            formats = [f.lower() for f in cls._string_list(output_data["formats"], "output.formats", config_path)]
            unknown = [f for f in formats if f not in OUTPUT_FORMATS]
            if unknown:
                raise ConfigurationError(
                    f"Unknown output format(s) {unknown}; valid formats are {list(OUTPUT_FORMATS)}",
                    config_path,
                )
        return OutputConfig(directory=directory, formats=formats)
