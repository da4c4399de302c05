"""Glob-based access control for method paths."""

from wrapkit.access.glob import (
    AccessCheckResult,
    check_access,
    match_pattern,
    matches_any_pattern,
)

__all__ = [
    "AccessCheckResult",
    "check_access",
    "match_pattern",
    "matches_any_pattern",
]
