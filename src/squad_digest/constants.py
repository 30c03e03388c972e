"""Shared constants and default lookup tables.

The tables here are defaults only. Everything that varies between Jira
sites (custom field ids, team ids, project prefixes) can be overridden from
the YAML configuration.
"""

UNKNOWN_TEAM = "Unknown Team"
UNASSIGNED_KEY = "UNASSIGNED"

# Team field ids -> display names
DEFAULT_TEAM_NAMES: dict[str, str] = {
    "eab6f557-2ee3-458c-9511-54c135cd4752-88": "Customer-Facing (Empower/SmarterAccess UI)",
    "eab6f557-2ee3-458c-9511-54c135cd4752-86": "Human in the loop (HITL)",
    "eab6f557-2ee3-458c-9511-54c135cd4752-87": "Developer Efficiency",
    "eab6f557-2ee3-458c-9511-54c135cd4752-85": "Data Collection / Data Lakehouse",
    "eab6f557-2ee3-458c-9511-54c135cd4752-84": "ThoughtHub Platform",
    "eab6f557-2ee3-458c-9511-54c135cd4752-83": "Core RCM",
    "eab6f557-2ee3-458c-9511-54c135cd4752-82": "Voice",
    "eab6f557-2ee3-458c-9511-54c135cd4752-80": "Medical Coding",
    "eab6f557-2ee3-458c-9511-54c135cd4752-81": "Deep Research",
}

DEFAULT_KEY_PREFIXES: tuple[str, ...] = ("PLAT", "MOB", "DATA", "PROJ")

DEFAULT_DONE_STATUSES: tuple[str, ...] = ("Done", "Closed", "Resolved", "Complete", "Completed")
DEFAULT_IN_PROGRESS_STATUSES: tuple[str, ...] = ("In Progress", "In Review", "Testing")
DEFAULT_BACKLOG_STATUSES: tuple[str, ...] = ("To Do", "Backlog", "Open")

DEFAULT_INITIATIVE_TYPE = "Workstream"
DEFAULT_SUB_INITIATIVE_TYPE = "Epic"


class Thresholds:
    """Numeric thresholds used by the scorers and the team aggregator."""

    NO_MOVEMENT_DAYS = 14
    HIGH_ACTIVITY_CHANGES = 20
    MODERATE_ACTIVITY_CHANGES = 10

    # Roll-up penalties on top of the item-level risk fraction
    SUB_INITIATIVE_RISK_WEIGHT = 0.3
    INITIATIVE_RISK_WEIGHT = 0.2


class ReportLimits:
    """Caps applied to per-team lists."""

    MOST_ACTIVE = 5
    RECENT_ACTIVITY = 10
    NARRATIVE_RECENT_ACTIVITY = 3
    STATISTICS_MOST_ACTIVE = 10
    HISTORY_WEEKS = 52
