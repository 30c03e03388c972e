"""Configuration schema definitions."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..constants import (
    DEFAULT_BACKLOG_STATUSES,
    DEFAULT_DONE_STATUSES,
    DEFAULT_IN_PROGRESS_STATUSES,
    DEFAULT_INITIATIVE_TYPE,
    DEFAULT_KEY_PREFIXES,
    DEFAULT_SUB_INITIATIVE_TYPE,
    DEFAULT_TEAM_NAMES,
    ReportLimits,
    Thresholds,
)
from ..core.state import DEFAULT_STATE_FILE

OUTPUT_FORMATS = ("markdown", "json", "csv")


@dataclass
class HierarchyConfig:
    """Issue types that make up the two grouping tiers."""

    initiative_type: str = DEFAULT_INITIATIVE_TYPE
    sub_initiative_type: str = DEFAULT_SUB_INITIATIVE_TYPE


@dataclass
class StatusCategories:
    done: list[str] = field(default_factory=lambda: list(DEFAULT_DONE_STATUSES))
    in_progress: list[str] = field(default_factory=lambda: list(DEFAULT_IN_PROGRESS_STATUSES))
    backlog: list[str] = field(default_factory=lambda: list(DEFAULT_BACKLOG_STATUSES))

    def as_mapping(self) -> dict[str, list[str]]:
        return {"done": self.done, "in_progress": self.in_progress, "backlog": self.backlog}


@dataclass
class JIRAConfig:
    """JIRA site specifics: key prefixes and custom field ids."""

    base_url: Optional[str] = None
    key_prefixes: list[str] = field(default_factory=lambda: list(DEFAULT_KEY_PREFIXES))
    custom_fields: dict[str, str] = field(default_factory=dict)
    hierarchy: HierarchyConfig = field(default_factory=HierarchyConfig)
    status_categories: StatusCategories = field(default_factory=StatusCategories)


@dataclass
class TeamsConfig:
    mappings: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TEAM_NAMES))


@dataclass
class RiskConfig:
    no_movement_days: int = Thresholds.NO_MOVEMENT_DAYS


@dataclass
class ReportConfig:
    most_active_limit: int = ReportLimits.MOST_ACTIVE
    recent_activity_limit: int = ReportLimits.RECENT_ACTIVITY


@dataclass
class StateConfig:
    file: Path = DEFAULT_STATE_FILE


@dataclass
class OutputConfig:
    directory: Path = Path("reports")
    formats: list[str] = field(default_factory=lambda: list(OUTPUT_FORMATS))


@dataclass
class Config:
    """Configuration for a squad-digest run."""

    jira: JIRAConfig = field(default_factory=JIRAConfig)
    teams: TeamsConfig = field(default_factory=TeamsConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    state: StateConfig = field(default_factory=StateConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    config_path: Optional[Path] = None
