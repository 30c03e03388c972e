"""Link pull requests to the work items they reference."""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import replace
from typing import Optional

from ..extractors.tickets import WorkItemKeyExtractor
from ..models.work_item import PullRequest, WorkItem

logger = logging.getLogger(__name__)


class CrossLinker:
    """Derives PR -> item links from key references in PR text.

    Links are one-directional: the PR never stores its items. An inverted
    index (key -> PR ids) gives the same result as checking every PR for
    every item.
    """

    def __init__(self, extractor: Optional[WorkItemKeyExtractor] = None) -> None:
        self.extractor = extractor or WorkItemKeyExtractor()

    def build_index(self, pull_requests: Iterable[PullRequest]) -> dict[str, list[str]]:
        """Map each referenced key to the ids of the PRs that mention it, in PR order."""
        index: defaultdict[str, list[str]] = defaultdict(list)
        for pr in pull_requests:
            for key in self.extractor.extract_from_pull_request(pr):
                if pr.id not in index[key]:
                    index[key].append(pr.id)
        return dict(index)

    def link_prs(self, items: Iterable[WorkItem], pull_requests: Iterable[PullRequest]) -> list[WorkItem]:
        """Return copies of ``items`` with ``linked_pull_requests`` filled in.

        Items keep any links they already carried; new PR ids are appended.
        Inputs are not modified.
        """
        pull_requests = list(pull_requests)
        index = self.build_index(pull_requests)
        commits_by_key: defaultdict[str, list[str]] = defaultdict(list)
        for pr in pull_requests:
            for commit in pr.commits:
                for key in self.extractor.extract_from_text(commit.message):
                    if commit.sha not in commits_by_key[key]:
                        commits_by_key[key].append(commit.sha)

        linked: list[WorkItem] = []
        link_count = 0
        for item in items:
            key = item.key.upper()
            pr_ids = index.get(key, [])
            shas = commits_by_key.get(key, [])
            if not pr_ids and not shas:
                linked.append(item)
                continue
            link_count += len(pr_ids)
            linked.append(
                replace(
                    item,
                    linked_pull_requests=_merge(item.linked_pull_requests, pr_ids),
                    linked_commits=_merge(item.linked_commits, shas),
                )
            )

        logger.info(f"Linked {link_count} pull request references across {len(linked)} items")
        return linked


def _merge(existing: tuple[str, ...], new: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys([*existing, *new]))
