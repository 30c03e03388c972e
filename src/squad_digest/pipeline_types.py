"""Result dataclasses for the Squad Digest pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .core.diagnostics import Diagnostics
from .models.date_range import DateRange
from .models.rollup import Hierarchy, HierarchyRiskReport
from .models.summary import TeamSummary


@dataclass
class ReportResult:
    """Outcome of a report run.

    ``errors`` holds problems that did not invalidate the generated reports,
    such as a failed watermark write.
    """

    date_range: DateRange | None = None
    generated_reports: list[str] = field(default_factory=list)
    output_dir: Path | None = None
    team_summaries: dict[str, TeamSummary] = field(default_factory=dict)
    hierarchy: Hierarchy | None = None
    risk: HierarchyRiskReport | None = None
    items_processed: int = 0
    pull_requests_processed: int = 0
    watermark: datetime | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    errors: list[str] = field(default_factory=list)
