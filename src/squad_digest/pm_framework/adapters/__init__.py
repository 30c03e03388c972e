"""Adapters that turn fetched issue-tracker records into work items."""

from .jira_converters import JiraIssueConverter

__all__ = ["JiraIssueConverter"]
