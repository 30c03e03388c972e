"""Configuration loading for Squad Digest."""

from .loader import ConfigLoader
from .schema import Config, JIRAConfig, OutputConfig, ReportConfig, RiskConfig, StateConfig, TeamsConfig

__all__ = [
    "Config",
    "ConfigLoader",
    "JIRAConfig",
    "OutputConfig",
    "ReportConfig",
    "RiskConfig",
    "StateConfig",
    "TeamsConfig",
]
