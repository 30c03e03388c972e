"""Command-line interface for Squad Digest."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from ._version import __version__
from .cli_utils import echo_skipped, resolve_date_range, setup_logging
from .config import ConfigLoader
from .core.state import IncrementalStateTracker
from .errors import SquadDigestError
from .pipeline import compute_fetch_window, load_records, run_report
from .utils.date_utils import format_for_display

logger = logging.getLogger(__name__)

LOG_OPTION = click.option(
    "--log",
    type=click.Choice(["none", "INFO", "DEBUG"], case_sensitive=False),
    default="none",
    help="Enable logging with specified level",
)
CONFIG_OPTION = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Path to YAML configuration file",
)
START_OPTION = click.option(
    "--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="First day (YYYY-MM-DD)"
)
END_OPTION = click.option(
    "--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Last day (YYYY-MM-DD)"
)


@click.group()
@click.version_option(version=__version__, prog_name="Squad Digest")
def cli() -> None:
    """Squad Digest - weekly change analysis and roll-up reports per team."""


@cli.command(name="report")
@CONFIG_OPTION
@click.option(
    "--issues",
    "issues_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="JSON file of fetched issues (with changelog)",
)
@click.option(
    "--pull-requests",
    "prs_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file of fetched pull requests",
)
@START_OPTION
@END_OPTION
@click.option("--previous-week", is_flag=True, help="Report on the last complete week")
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory for reports (overrides config file)",
)
@LOG_OPTION
def report_command(
    config_path: Path,
    issues_path: Path,
    prs_path: Optional[Path],
    start,
    end,
    previous_week: bool,
    output_path: Optional[Path],
    log: str,
) -> None:
    """Generate team summary reports from fetched issues and pull requests.

    \b
    EXAMPLES:
      # Current week
      squad-digest report -c config.yaml --issues issues.json

      # Explicit window with pull request linking
      squad-digest report -c config.yaml --issues issues.json \\
          --pull-requests prs.json --start 2024-01-01 --end 2024-01-07
    """
    setup_logging(log, __name__)

    try:
        date_range = resolve_date_range(start, end, previous_week)
        cfg = ConfigLoader.load(config_path)
        raw_issues = load_records(issues_path)
        raw_prs = load_records(prs_path) if prs_path else []

        click.echo(f"Generating team summaries for {date_range.display}")
        result = run_report(
            cfg,
            raw_issues,
            raw_prs,
            date_range,
            output_dir=output_path,
            progress_callback=lambda msg: click.echo(f"  {msg}"),
        )
    except SquadDigestError as exc:
        logger.error(f"Report failed: {exc}")
        click.echo(f"\nError: {exc}", err=True)
        sys.exit(1)

    echo_skipped(result.diagnostics)
    for err in result.errors:
        click.echo(f"  Warning: {err}", err=True)

    click.echo(f"\nReport complete: {len(result.generated_reports)} files in {result.output_dir}")
    for name in result.generated_reports:
        click.echo(f"  {name}")


@cli.group(name="state")
def state_group() -> None:
    """Inspect or clear the last-run watermark."""


@state_group.command(name="show")
@CONFIG_OPTION
@LOG_OPTION
def state_show_command(config_path: Path, log: str) -> None:
    """Print the last successful run timestamp."""
    setup_logging(log, __name__)
    try:
        cfg = ConfigLoader.load(config_path)
    except SquadDigestError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    state = IncrementalStateTracker(cfg.state.file).load()
    if state is None or state.last_run_timestamp is None:
        click.echo(f"No previous run recorded ({cfg.state.file})")
        return
    click.echo(f"Last run: {state.last_run_timestamp.isoformat()}")
    if state.updated_at:
        click.echo(f"Updated:  {state.updated_at.isoformat()}")


@state_group.command(name="reset")
@CONFIG_OPTION
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@LOG_OPTION
def state_reset_command(config_path: Path, yes: bool, log: str) -> None:
    """Forget the last run so the next report fetches the full range."""
    setup_logging(log, __name__)
    try:
        cfg = ConfigLoader.load(config_path)
        if not yes:
            click.confirm(f"Clear run state in {cfg.state.file}?", abort=True)
        removed = IncrementalStateTracker(cfg.state.file).reset()
    except SquadDigestError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo("Run state cleared" if removed else "No run state to clear")


@cli.command(name="window")
@CONFIG_OPTION
@START_OPTION
@END_OPTION
@click.option("--previous-week", is_flag=True, help="Use the last complete week")
@LOG_OPTION
def window_command(config_path: Path, start, end, previous_week: bool, log: str) -> None:
    """Print the fetch window after applying the last-run watermark."""
    setup_logging(log, __name__)
    try:
        requested = resolve_date_range(start, end, previous_week)
        cfg = ConfigLoader.load(config_path)
        window = compute_fetch_window(cfg, requested)
    except SquadDigestError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Requested: {requested.display}")
    fetch_start = f"{format_for_display(window.start)} {window.start.strftime('%H:%M:%S')}"
    click.echo(f"Fetch:     {fetch_start} to {format_for_display(window.end)}")
    click.echo(f"start={window.start.isoformat()}")
    click.echo(f"end={window.end.isoformat()}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
