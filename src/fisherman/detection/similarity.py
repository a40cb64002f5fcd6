"""Lookalike domain detection.

Compares a hostname against an ordered reference list of legitimate
domains using normalised Levenshtein similarity:

    similarity = (max_len - edit_distance) / max_len

A hostname is flagged when its similarity to some reference domain is
strictly above ``SIMILARITY_THRESHOLD`` without being that domain.  The
reference list is scanned in order and the first hit wins, so results
are reproducible for a given list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.8

LEGITIMATE_DOMAINS: tuple[str, ...] = (
    "paypal.com",
    "amazon.com",
    "facebook.com",
    "google.com",
    "microsoft.com",
    "apple.com",
    "gmail.com",
    "outlook.com",
    "youtube.com",
    "twitter.com",
    "instagram.com",
    "linkedin.com",
    "github.com",
    "stackoverflow.com",
    "reddit.com",
)


def levenshtein_distance(s1: str, s2: str) -> int:
    """Compute the Levenshtein (edit) distance between two strings.

    Insertions, deletions and substitutions all cost 1.  Uses the
    two-row dynamic-programming formulation.
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if not s2:
        return len(s1)

    prev_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        curr_row = [i + 1]
        for j, c2 in enumerate(s2):
            cost = 0 if c1 == c2 else 1
            curr_row.append(
                min(
                    curr_row[j] + 1,       # insertion
                    prev_row[j + 1] + 1,   # deletion
                    prev_row[j] + cost,    # substitution
                )
            )
        prev_row = curr_row

    return prev_row[-1]


def similarity(s1: str, s2: str) -> float:
    """Normalised similarity in ``[0, 1]``; two empty strings score 1.0."""
    if s1 == s2:
        return 1.0
    longest = max(len(s1), len(s2))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(s1, s2)) / longest


class SimilarityMatcher:
    """Finds the legitimate domain a hostname is imitating, if any."""

    def __init__(
        self,
        legitimate_domains: Iterable[str] | None = None,
        threshold: float = SIMILARITY_THRESHOLD,
    ) -> None:
        domains = LEGITIMATE_DOMAINS if legitimate_domains is None else legitimate_domains
        # dict.fromkeys keeps first-seen order and drops duplicates
        self._domains: tuple[str, ...] = tuple(
            dict.fromkeys(d.strip().lower() for d in domains if d.strip())
        )
        self._lookup = frozenset(self._domains)
        self._threshold = threshold

    @property
    def legitimate_domains(self) -> tuple[str, ...]:
        return self._domains

    def find_lookalike(self, hostname: str) -> str | None:
        """Return the impersonated legitimate domain, or ``None``."""
        if hostname in self._lookup:
            return None

        for legitimate in self._domains:
            if hostname == legitimate:
                continue
            if similarity(hostname, legitimate) > self._threshold:
                logger.debug(
                    "Lookalike domain %s resembles %s", hostname, legitimate,
                )
                return legitimate
        return None
