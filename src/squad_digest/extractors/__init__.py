"""Work item reference extraction."""

from .tickets import WorkItemKeyExtractor

__all__ = ["WorkItemKeyExtractor"]
