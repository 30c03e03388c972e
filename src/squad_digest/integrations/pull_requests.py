"""Pull request conversion from fetched code-hosting records.

Two shapes are accepted: the flat ``{id, title, body, branchName, author,
mergedAt}`` shape and the Bitbucket-style shape with ``description``,
``source.branch.name``, ``author.display_name``, ``merged_on`` (or
``closed_on`` with ``state == "MERGED"``) and embedded ``commits``.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from ..core.diagnostics import Diagnostics, record_skip
from ..models.work_item import Commit, PullRequest
from ..utils.date_utils import parse_timestamp

logger = logging.getLogger(__name__)

COMPONENT = "pull_request_converter"


def _author_name(raw: Any) -> Optional[str]:
    if isinstance(raw, Mapping):
        name = raw.get("display_name") or raw.get("displayName") or raw.get("raw")
        if not name and isinstance(raw.get("user"), Mapping):
            name = raw["user"].get("display_name")
        return str(name) if name else None
    return str(raw) if raw else None


def _convert_commit(raw: Mapping[str, Any]) -> Commit:
    return Commit(
        sha=str(raw.get("hash") or raw.get("sha") or raw.get("id") or ""),
        message=raw.get("message") or "",
        author=_author_name(raw.get("author")),
        date=parse_timestamp(raw.get("date")),
    )


def convert_pull_request(
    record: Any, diagnostics: Optional[Diagnostics] = None
) -> Optional[PullRequest]:
    """Convert one fetched PR record; None when it is unusable.

    Args:
        record: Raw PR mapping in either supported shape.
        diagnostics: Collector for skipped records.

    Returns:
        PullRequest, or None if the record is not a mapping or has no id.
    """
    if not isinstance(record, Mapping):
        record_skip(diagnostics, None, COMPONENT, "pull request record is not an object")
        return None
    pr_id = record.get("id")
    if pr_id is None or pr_id == "":
        record_skip(diagnostics, None, COMPONENT, "pull request record has no id")
        return None

    branch_name = record.get("branchName") or record.get("branch_name")
    source = record.get("source")
    if not branch_name and isinstance(source, Mapping):
        branch_name = (source.get("branch") or {}).get("name")

    merged_at = record.get("mergedAt") or record.get("merged_at") or record.get("merged_on")
    if not merged_at and record.get("state") == "MERGED":
        merged_at = record.get("closed_on") or record.get("updated_on")

    commits = tuple(
        _convert_commit(raw) for raw in record.get("commits") or [] if isinstance(raw, Mapping)
    )
    return PullRequest(
        id=str(pr_id),
        title=record.get("title") or "",
        body=record.get("body") if record.get("body") is not None else record.get("description"),
        branch_name=branch_name,
        author=_author_name(record.get("author")),
        merged_at=parse_timestamp(merged_at),
        commits=commits,
    )


def convert_pull_requests(
    records: Iterable[Any], diagnostics: Optional[Diagnostics] = None
) -> list[PullRequest]:
    prs = [pr for pr in (convert_pull_request(r, diagnostics) for r in records) if pr is not None]
    logger.info(f"Converted {len(prs)} pull requests")
    return prs
