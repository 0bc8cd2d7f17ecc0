"""
Rule-set lifecycle status.

Rule sets are append-only. A new regulatory year gets a new file with a
higher version; superseded sets stay on disk so historical payroll can be
recomputed against the exact rules that governed it.
"""

from enum import Enum, unique


@unique
class RuleSetStatus(str, Enum):
    """Lifecycle status for a regulatory rule set."""

    DRAFT = "draft"
    APPROVED = "approved"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"
