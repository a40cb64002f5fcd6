"""Brand-impersonation hostname patterns and suspicious URL keywords.

Both checks only answer "is there at least one hit", so they stop at the
first match.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

_COMMON_TLDS = r"(com|net|org)"
_FREE_TLDS = r"(tk|ml|ga|cf)"

BRAND_PATTERNS: tuple[str, ...] = (
    rf"paypal-[a-z0-9]+\.{_COMMON_TLDS}",
    rf"amazon-[a-z0-9]+\.{_COMMON_TLDS}",
    rf"facebook-[a-z0-9]+\.{_COMMON_TLDS}",
    rf"google-[a-z0-9]+\.{_COMMON_TLDS}",
    rf"microsoft-[a-z0-9]+\.{_COMMON_TLDS}",
    rf"apple-[a-z0-9]+\.{_COMMON_TLDS}",
    rf"banking-[a-z0-9]+\.{_COMMON_TLDS}",
    rf"secure-[a-z0-9]+\.{_FREE_TLDS}",
    rf"verify-[a-z0-9]+\.{_COMMON_TLDS}",
    rf"support-[a-z0-9]+\.{_COMMON_TLDS}",
    rf"account-[a-z0-9]+\.{_FREE_TLDS}",
)

SUSPICIOUS_KEYWORDS: tuple[str, ...] = (
    "verify-account",
    "suspended-account",
    "urgent-action",
    "click-here-now",
    "limited-time",
    "act-now",
    "confirm-identity",
    "security-alert",
    "account-locked",
    "verify-now",
    "update-payment",
    "confirm-details",
    "reactivate-account",
    "login-verification",
)


@dataclass(frozen=True)
class PatternSet:
    """Compiled hostname patterns plus keyword substrings."""

    hostname_patterns: tuple[re.Pattern[str], ...]
    keywords: tuple[str, ...]

    @classmethod
    def compile(
        cls,
        patterns: Iterable[str] = BRAND_PATTERNS,
        keywords: Iterable[str] = SUSPICIOUS_KEYWORDS,
    ) -> PatternSet:
        return cls(
            hostname_patterns=tuple(
                re.compile(p, re.IGNORECASE) for p in patterns
            ),
            keywords=tuple(k.lower() for k in keywords),
        )


class PatternMatcher:
    """Short-circuit scans over a :class:`PatternSet`."""

    def __init__(self, pattern_set: PatternSet | None = None) -> None:
        self._patterns = pattern_set or PatternSet.compile()

    @property
    def pattern_set(self) -> PatternSet:
        return self._patterns

    def matches_hostname_pattern(self, hostname: str) -> bool:
        return any(p.search(hostname) for p in self._patterns.hostname_patterns)

    def contains_suspicious_keyword(self, url_lower: str) -> bool:
        return any(k in url_lower for k in self._patterns.keywords)
