"""Shared fixtures for the Squad Digest test suite."""

import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from squad_digest.models import (
    Commit,
    DateRange,
    FieldDelta,
    HistoryEntry,
    PullRequest,
    StoryPoints,
    WorkItem,
)


def utc(year, month, day, hour=0, minute=0, second=0):
    return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir():
    """A temporary directory removed after the test."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def at():
    """Build UTC datetimes: ``at(2024, 1, 10, 9)``."""
    return utc


@pytest.fixture
def week():
    """Monday 2024-01-08 00:00 through Sunday 2024-01-14 end of day."""
    return DateRange(utc(2024, 1, 8), datetime(2024, 1, 14, 23, 59, 59, 999999, tzinfo=timezone.utc))


@pytest.fixture
def make_entry():
    """Build a history entry from ``(field, from, to)`` triples."""

    def _make(timestamp, *changes, author="Alice"):
        return HistoryEntry(
            author=author,
            timestamp=timestamp,
            deltas=tuple(FieldDelta(field, from_value, to_value) for field, from_value, to_value in changes),
        )

    return _make


@pytest.fixture
def make_item():
    """Build a work item; ``points=(total, done)`` and raw fields as keywords."""

    def _make(key="PROJ-1", points=(0, 0), history=(), fields=None, **kwargs):
        kwargs.setdefault("summary", f"Summary of {key}")
        return WorkItem(
            key=key,
            points=StoryPoints(total=points[0], done=points[1]),
            history=tuple(history),
            fields=fields or {},
            **kwargs,
        )

    return _make


@pytest.fixture
def make_pr():
    """Build a pull request; ``commit_messages`` become commits c0, c1, ..."""

    def _make(pr_id="1", title="", body=None, branch_name=None, commit_messages=()):
        commits = tuple(Commit(sha=f"c{i}", message=m) for i, m in enumerate(commit_messages))
        return PullRequest(id=pr_id, title=title, body=body, branch_name=branch_name, commits=commits)

    return _make


@pytest.fixture
def raw_issues():
    """Issue-tracker records in the REST shape, for pipeline and converter tests."""
    return [
        {
            "key": "PROJ-1",
            "fields": {
                "summary": "Build login flow",
                "status": {"name": "In Progress"},
                "issuetype": {"name": "Story"},
                "priority": {"name": "High"},
                "assignee": {"displayName": "Alice Smith"},
                "created": "2024-01-09T10:00:00.000+0000",
                "updated": "2024-01-12T15:30:00.000+0000",
                "customfield_10001": {"id": "eab6f557-2ee3-458c-9511-54c135cd4752-82", "name": "Voice"},
                "customfield_10030": 5,
                "parent": {"key": "PROJ-100"},
            },
            "changelog": {
                "histories": [
                    {
                        "author": {"displayName": "Alice Smith"},
                        "created": "2024-01-10T09:00:00.000+0000",
                        "items": [
                            {"field": "status", "fieldId": "status", "fromString": "To Do", "toString": "In Progress"},
                            {"field": "Rank", "fieldId": "customfield_10019", "fromString": None, "toString": "Ranked higher"},
                        ],
                    },
                    {
                        "author": {"displayName": "Bob Jones"},
                        "created": "2024-01-11T11:00:00.000+0000",
                        "items": [
                            {"field": "Story Points", "fieldId": "customfield_10030", "fromString": "3", "toString": "5"},
                        ],
                    },
                ]
            },
        },
        {
            "key": "PROJ-2",
            "fields": {
                "summary": "Old bug",
                "status": {"name": "Done"},
                "issuetype": {"name": "Bug"},
                "priority": None,
                "assignee": None,
                "created": "2023-11-01T10:00:00.000+0000",
                "updated": "2023-12-01T10:00:00.000+0000",
                "customfield_10001": {"id": "eab6f557-2ee3-458c-9511-54c135cd4752-82", "name": "Voice"},
                "customfield_10030": 3,
                "parent": {"key": "PROJ-100"},
            },
            "changelog": {"histories": []},
        },
        {
            "key": "PROJ-100",
            "fields": {
                "summary": "Login epic",
                "status": {"name": "In Progress"},
                "issuetype": {"name": "Epic"},
                "created": "2023-10-01T10:00:00.000+0000",
                "updated": "2024-01-12T10:00:00.000+0000",
                "parent": {"key": "PROJ-500"},
            },
            "changelog": {"histories": []},
        },
        {
            "key": "PROJ-500",
            "fields": {
                "summary": "Accounts workstream",
                "status": {"name": "In Progress"},
                "issuetype": {"name": "Workstream"},
                "created": "2023-09-01T10:00:00.000+0000",
                "updated": "2024-01-12T10:00:00.000+0000",
            },
            "changelog": {"histories": []},
        },
    ]
