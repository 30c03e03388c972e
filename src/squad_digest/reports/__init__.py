"""Team aggregation and report writers."""

from .csv_writer import TeamSummaryCSVWriter
from .json_exporter import StructuredReportExporter
from .narrative_writer import NarrativeReportWriter
from .team_summary import TeamAggregator

__all__ = [
    "NarrativeReportWriter",
    "StructuredReportExporter",
    "TeamAggregator",
    "TeamSummaryCSVWriter",
]
