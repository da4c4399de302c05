"""
Glob matching and access control for method paths.

Patterns are dot-segmented:
- `chat.completions.create` - exact match
- `chat.*` - one segment
- `chat.**` - one or more segments
- `*.create` - any single segment followed by .create
- `**.create` - any segments followed by .create
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable


@dataclass(frozen=True)
class AccessCheckResult:
    """Outcome of an access check."""

    is_allowed: bool
    reason: str | None = None


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate a glob pattern into an anchored regular expression."""
    parts = []
    for segment in pattern.split("."):
        if segment == "**":
            parts.append(".+")
        elif segment == "*":
            parts.append("[^.]+")
        else:
            parts.append(re.escape(segment))
    return re.compile(r"\A" + r"\.".join(parts) + r"\Z")


def match_pattern(method_path: str, pattern: str) -> bool:
    """Check whether a method path matches a single pattern."""
    return compile_pattern(pattern).match(method_path) is not None


def matches_any_pattern(method_path: str, patterns: Iterable[str]) -> bool:
    """Check whether a method path matches any of the patterns."""
    return any(match_pattern(method_path, pattern) for pattern in patterns)


def check_access(
    method_path: str,
    allowlist: Iterable[str] | None = None,
    blocklist: Iterable[str] | None = None,
) -> AccessCheckResult:
    """
    Decide whether a method path may execute.

    The blocklist is consulted first. An allowlist, when given, must match;
    an empty allowlist therefore denies everything.
    """
    if blocklist is not None and matches_any_pattern(method_path, blocklist):
        return AccessCheckResult(False, f'Method "{method_path}" is blocked')

    if allowlist is not None and not matches_any_pattern(method_path, allowlist):
        return AccessCheckResult(False, f'Method "{method_path}" is not allowed')

    return AccessCheckResult(True)
