"""Work item key extraction from pull requests and commit messages."""

import logging
import re
from collections.abc import Iterable
from typing import Any, Optional

from ..constants import DEFAULT_KEY_PREFIXES
from ..models.work_item import PullRequest

logger = logging.getLogger(__name__)


class WorkItemKeyExtractor:
    """Extract issue-tracker keys such as ``PROJ-123`` from free text.

    Matching is case-insensitive and bounded: a key must not be glued to a
    preceding letter or digit (``XPROJ-1`` does not match) and its number must
    not continue into more digits. Matches are normalized to upper case and
    deduplicated in first-seen order.
    """

    def __init__(self, key_prefixes: Optional[Iterable[str]] = None) -> None:
        """Initialize with the project prefixes to recognise.

        Args:
            key_prefixes: Project key prefixes. Defaults to
                :data:`~squad_digest.constants.DEFAULT_KEY_PREFIXES`.
        """
        prefixes = [p.strip().upper() for p in (key_prefixes or DEFAULT_KEY_PREFIXES) if p.strip()]
        if not prefixes:
            raise ValueError("At least one work item key prefix is required")
        self.key_prefixes = tuple(dict.fromkeys(prefixes))
        alternation = "|".join(re.escape(p) for p in self.key_prefixes)
        self.pattern = re.compile(rf"(?<![A-Za-z0-9])(?:{alternation})-\d+(?!\d)", re.IGNORECASE)

    def extract_from_text(self, text: Optional[str]) -> list[str]:
        """Extract all work item keys from text."""
        if not text:
            return []
        return list(dict.fromkeys(match.upper() for match in self.pattern.findall(text)))

    def extract_from_texts(self, texts: Iterable[Optional[str]]) -> list[str]:
        keys: dict[str, None] = {}
        for text in texts:
            for key in self.extract_from_text(text):
                keys.setdefault(key, None)
        return list(keys)

    def extract_from_pull_request(self, pr: PullRequest) -> list[str]:
        """Keys referenced by a PR's title, body, branch name, and commit messages."""
        texts = [pr.title, pr.body, pr.branch_name]
        texts.extend(commit.message for commit in pr.commits)
        return self.extract_from_texts(texts)

    def analyze_reference_coverage(self, prs: Iterable[PullRequest]) -> dict[str, Any]:
        """How many PRs reference at least one work item, and which keys.

        WHY: PRs with no key cannot be linked to any team's work, so the share
        of unreferenced PRs is the main signal that linkage data is incomplete.
        """
        total = 0
        with_keys = 0
        referenced: dict[str, None] = {}
        unreferenced: list[str] = []

        for pr in prs:
            total += 1
            keys = self.extract_from_pull_request(pr)
            if keys:
                with_keys += 1
                for key in keys:
                    referenced.setdefault(key, None)
            else:
                unreferenced.append(pr.id)

        if unreferenced:
            logger.debug(f"Pull requests without a work item key: {', '.join(unreferenced)}")

        return {
            "total_prs": total,
            "prs_with_keys": with_keys,
            "pr_coverage_pct": with_keys / total * 100 if total > 0 else 0,
            "referenced_keys": list(referenced),
            "unreferenced_prs": unreferenced,
        }
