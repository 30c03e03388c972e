"""Core change-analysis and roll-up components."""

from .change_classifier import ChangeClassifier
from .cross_linker import CrossLinker
from .diagnostics import Diagnostics, SkippedRecord
from .field_accessor import FieldAccessor
from .hierarchy import HierarchyBuilder
from .risk_scorer import RiskPredicate, RiskScorer
from .state import IncrementalStateTracker

__all__ = [
    "ChangeClassifier",
    "CrossLinker",
    "Diagnostics",
    "FieldAccessor",
    "HierarchyBuilder",
    "IncrementalStateTracker",
    "RiskPredicate",
    "RiskScorer",
    "SkippedRecord",
]
