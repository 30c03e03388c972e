"""Report pipeline: fetched records in, team reports and a new watermark out.

The stages run in a fixed order:

  1. convert   - raw issue and pull request records into models
  2. link      - attach pull requests to the items they reference
  3. assess    - risk factors per item, hierarchy roll-up, hierarchy risk
  4. aggregate - per-team summaries (classification happens here)
  5. write     - the configured report formats (csv also updates the metrics history)
  6. save      - the last-run watermark, only after every report was written

Fetching is not done here; callers pass already-fetched records.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config.schema import Config
from .core.change_classifier import ChangeClassifier
from .core.cross_linker import CrossLinker
from .core.field_accessor import EPIC_LINK, STORY_POINTS, TARGET_PERIOD, TEAM, FieldAccessor
from .core.hierarchy import HierarchyBuilder
from .core.risk_scorer import RiskScorer
from .core.state import IncrementalStateTracker
from .errors import InputFormatError, StateStoreError
from .extractors.tickets import WorkItemKeyExtractor
from .integrations.pull_requests import convert_pull_requests
from .models.date_range import DateRange
from .models.events import ChangeCategory
from .models.work_item import WorkItem
from .pipeline_types import ReportResult
from .pm_framework.adapters.jira_converters import JiraIssueConverter
from .reports.csv_writer import TeamSummaryCSVWriter
from .reports.json_exporter import StructuredReportExporter
from .reports.narrative_writer import NarrativeReportWriter
from .reports.team_summary import TeamAggregator, total_issue_count
from .utils.date_utils import ensure_utc, format_for_file

logger = logging.getLogger(__name__)

# Logical custom fields whose changelog entries have a known category
_CUSTOM_FIELD_CATEGORIES = {
    TEAM: ChangeCategory.TEAM,
    EPIC_LINK: ChangeCategory.EPIC_LINK,
    STORY_POINTS: ChangeCategory.POINTS,
    TARGET_PERIOD: ChangeCategory.TARGET_PERIOD,
}

# Container keys searched when an input document is an object rather than a list
_RECORD_CONTAINER_KEYS = ("issues", "pull_requests", "pullRequests", "values", "items", "records")

# Running week-over-week metrics, upserted by every run that writes CSV
HISTORY_FILENAME = "weekly-metrics-history.csv"


def load_records(path: Path) -> list[Any]:
    """Read a JSON document of records.

    Accepts a bare list or an object wrapping the list under one of the usual
    keys (``issues``, ``values``, ...).

    Raises:
        InputFormatError: If the file cannot be read or holds no record list.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise InputFormatError(str(path), f"cannot read file: {e}") from e
    except ValueError as e:
        raise InputFormatError(str(path), f"invalid JSON: {e}") from e

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in _RECORD_CONTAINER_KEYS:
            if isinstance(data.get(key), list):
                return data[key]
    raise InputFormatError(str(path), "expected a list of records or an object holding one")


def compute_fetch_window(cfg: Config, requested: DateRange) -> DateRange:
    """Narrow ``requested`` using the last-run watermark."""
    window = IncrementalStateTracker(cfg.state.file).get_fetch_window(requested)
    if window != requested:
        logger.info(f"Incremental fetch window: {window.display} (requested {requested.display})")
    return window


def build_classifier(cfg: Config, diagnostics=None) -> ChangeClassifier:
    aliases = {
        field_id: _CUSTOM_FIELD_CATEGORIES[name]
        for name, field_id in cfg.jira.custom_fields.items()
        if name in _CUSTOM_FIELD_CATEGORIES
    }
    return ChangeClassifier(field_aliases=aliases, diagnostics=diagnostics)


def split_hierarchy_levels(
    cfg: Config, items: list[WorkItem]
) -> tuple[list[WorkItem], list[WorkItem], list[WorkItem]]:
    """Split items into (initiatives, sub-initiatives, work items) by issue type."""
    initiative_type = cfg.jira.hierarchy.initiative_type.lower()
    sub_initiative_type = cfg.jira.hierarchy.sub_initiative_type.lower()
    initiatives, sub_initiatives, work_items = [], [], []
    for item in items:
        issue_type = (item.issue_type or "").lower()
        if issue_type == initiative_type:
            initiatives.append(item)
        elif issue_type == sub_initiative_type:
            sub_initiatives.append(item)
        else:
            work_items.append(item)
    return initiatives, sub_initiatives, work_items


def run_report(
    cfg: Config,
    raw_issues: list[Any],
    raw_pull_requests: list[Any],
    date_range: DateRange,
    now: datetime | None = None,
    output_dir: Path | None = None,
    progress_callback: Callable[[str], None] | None = None,
) -> ReportResult:
    """Build and write the team reports for ``date_range``.

    Args:
        cfg: Loaded configuration object.
        raw_issues: Fetched issue-tracker records.
        raw_pull_requests: Fetched pull request records.
        date_range: Reporting window, inclusive on both ends.
        now: Evaluation time for risk and the new watermark; defaults to the
            current UTC time.
        output_dir: Overrides ``cfg.output.directory``.
        progress_callback: Optional function called with status messages.

    Returns:
        A :class:`ReportResult`. A watermark write failure is listed in
        ``errors``; the reports already written stay valid.
    """

    def _emit(msg: str) -> None:
        logger.info(msg)
        if progress_callback:
            progress_callback(msg)

    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    output_dir = Path(output_dir or cfg.output.directory)
    result = ReportResult(date_range=date_range, output_dir=output_dir)
    diagnostics = result.diagnostics

    _emit(f"Report period: {date_range.display}")

    accessor = FieldAccessor(cfg.jira.custom_fields)
    converter = JiraIssueConverter(
        accessor=accessor,
        done_statuses=cfg.jira.status_categories.done,
        diagnostics=diagnostics,
    )
    items = converter.convert_many(raw_issues)
    pull_requests = convert_pull_requests(raw_pull_requests, diagnostics)
    result.items_processed = len(items)
    result.pull_requests_processed = len(pull_requests)
    _emit(f"Loaded {len(items)} work items and {len(pull_requests)} pull requests")

    extractor = WorkItemKeyExtractor(cfg.jira.key_prefixes)
    items = CrossLinker(extractor).link_prs(items, pull_requests)
    if pull_requests:
        coverage = extractor.analyze_reference_coverage(pull_requests)
        _emit(
            f"{coverage['prs_with_keys']} of {coverage['total_prs']} pull requests "
            f"reference a work item ({coverage['pr_coverage_pct']:.0f}%)"
        )

    risk_scorer = RiskScorer(
        no_movement_days=cfg.risk.no_movement_days,
        done_statuses=cfg.jira.status_categories.done,
        diagnostics=diagnostics,
    )
    initiatives, sub_initiatives, work_items = split_hierarchy_levels(cfg, items)
    item_risks = risk_scorer.assess_items(work_items, now)
    result.hierarchy = HierarchyBuilder(accessor, diagnostics).build(
        initiatives, sub_initiatives, work_items, item_risks
    )
    result.risk = risk_scorer.score_hierarchy(result.hierarchy)
    _emit(f"Hierarchy risk score: {result.risk.risk_score:.2f}")

    aggregator = TeamAggregator(
        team_names=cfg.teams.mappings,
        accessor=accessor,
        classifier=build_classifier(cfg, diagnostics),
        risk_scorer=risk_scorer,
        status_categories=cfg.jira.status_categories.as_mapping(),
        most_active_limit=cfg.report.most_active_limit,
        recent_activity_limit=cfg.report.recent_activity_limit,
    )
    result.team_summaries = aggregator.aggregate(items, date_range)
    _emit(
        f"Summarized {total_issue_count(result.team_summaries)} items "
        f"across {len(result.team_summaries)} teams"
    )

    write_failed = _write_reports(cfg, result, now, _emit)
    if write_failed:
        result.errors.append("Run state not updated because a report could not be written")
        return result

    try:
        IncrementalStateTracker(cfg.state.file).save_last_run_timestamp(now, now=now)
        result.watermark = now
    except StateStoreError as e:
        result.errors.append(str(e))

    return result


def _write_reports(
    cfg: Config, result: ReportResult, now: datetime, emit: Callable[[str], None]
) -> bool:
    """Write every configured format; True if any of them failed."""
    date_range = result.date_range
    suffix = format_for_file(date_range.end)
    csv_writer = TeamSummaryCSVWriter()
    # Each format maps to its files in write order
    writers = {
        "markdown": [
            (
                f"team-summary-{suffix}.md",
                lambda path: NarrativeReportWriter().write(
                    result.team_summaries, date_range, path, generated_at=now
                ),
            ),
        ],
        "json": [
            (
                f"team-summary-{suffix}.json",
                lambda path: StructuredReportExporter().export(
                    result.team_summaries,
                    date_range,
                    path,
                    hierarchy=result.hierarchy,
                    risk=result.risk,
                    generated_at=now,
                ),
            ),
        ],
        "csv": [
            (
                f"weekly-metrics-{suffix}.csv",
                lambda path: csv_writer.write(result.team_summaries, date_range, path),
            ),
            (
                HISTORY_FILENAME,
                lambda path: csv_writer.append_history(result.team_summaries, date_range, path),
            ),
        ],
    }

    failed = False
    for fmt in cfg.output.formats:
        for filename, write in writers[fmt]:
            try:
                write(result.output_dir / filename)
            except OSError as e:
                logger.error(f"Failed to write {fmt} report {filename}: {e}")
                result.errors.append(f"Failed to write {filename}: {e}")
                failed = True
                continue
            result.generated_reports.append(filename)
            emit(f"Wrote {filename}")
    return failed
