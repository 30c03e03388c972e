"""Shared CLI utility functions for Squad Digest."""

import logging
import sys
from datetime import date, datetime, timezone
from typing import Optional

import click

from .core.diagnostics import Diagnostics
from .models.date_range import DateRange


def setup_logging(log: str, module_name: str = __name__) -> logging.Logger:
    """Configure logging for a CLI command based on the --log option value.

    Args:
        log: Value of the --log CLI option. One of "none", "INFO", "DEBUG"
             (case-insensitive).
        module_name: The ``__name__`` of the calling module.

    Returns:
        A configured :class:`logging.Logger` for the calling module.
    """
    if log.upper() != "NONE":
        log_level = getattr(logging, log.upper())
        logging.basicConfig(
            level=log_level,
            format="[%(levelname)s] %(filename)s:%(lineno)d - %(message)s",
            handlers=[logging.StreamHandler(sys.stderr)],
            force=True,
        )
        # Sub-module loggers inherit from the package namespace
        logging.getLogger("squad_digest").setLevel(log_level)

        module_logger = logging.getLogger(module_name)
        module_logger.info("Logging enabled at %s level", log.upper())
    else:
        logging.getLogger().setLevel(logging.CRITICAL)
        logging.getLogger("squad_digest").setLevel(logging.CRITICAL)
        module_logger = logging.getLogger(module_name)

    return module_logger


def resolve_date_range(
    start: Optional[datetime],
    end: Optional[datetime],
    previous_week: bool,
    now: Optional[datetime] = None,
) -> DateRange:
    """Turn the --start/--end/--previous-week options into a whole-day range.

    With no options the current week is used.

    Raises:
        click.UsageError: If options are combined incorrectly.
    """
    now = now or datetime.now(timezone.utc)
    if previous_week:
        if start or end:
            raise click.UsageError("--previous-week cannot be combined with --start/--end")
        return DateRange.previous_week(now)
    if start is None and end is None:
        return DateRange.current_week(now)
    if start is None or end is None:
        raise click.UsageError("--start and --end must be given together")
    return DateRange.for_days(_as_date(start), _as_date(end))


def _as_date(value: datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def echo_skipped(diagnostics: Diagnostics) -> None:
    """Print which records were skipped and why."""
    if not diagnostics:
        return
    click.echo(f"\nSkipped {len(diagnostics)} record(s):", err=True)
    for record in diagnostics.records:
        click.echo(f"  - {record}", err=True)
