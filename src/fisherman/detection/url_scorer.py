"""URL risk scorer.

Combines the known-domain lookup, brand patterns, suspicious keywords and
lookalike detection with a handful of transport and structural checks.
Each rule fires at most once and adds a fixed weight:

  +5  domain (or a parent domain) is in the known phishing list
  +3  hostname matches a brand-impersonation pattern
  +2  URL contains a suspicious keyword
  +4  hostname is a lookalike of a legitimate domain
  +1  not HTTPS (loopback hosts exempt)
  +1  hostname longer than 50 characters
  +1  more than 4 dot-separated labels
  +2  Cyrillic characters or punycode in the hostname

The sum is the risk level; ``>= 1`` is suspicious and ``>= 4`` is
phishing (see :mod:`fisherman.core.models`).
"""

from __future__ import annotations

import ipaddress
import logging
import re
import time
from collections.abc import Callable
from urllib.parse import urlsplit

from fisherman.core.errors import UrlParseError
from fisherman.core.models import AnalysisResult
from fisherman.detection.patterns import PatternMatcher
from fisherman.detection.similarity import SimilarityMatcher
from fisherman.intelligence.domain_list import DomainMatcher

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Rule weights and limits
# ---------------------------------------------------------------------------

KNOWN_DOMAIN_WEIGHT = 5
HOSTNAME_PATTERN_WEIGHT = 3
KEYWORD_WEIGHT = 2
LOOKALIKE_WEIGHT = 4
INSECURE_WEIGHT = 1
LONG_DOMAIN_WEIGHT = 1
SUBDOMAIN_WEIGHT = 1
INTERNATIONAL_WEIGHT = 2

MAX_HOSTNAME_LENGTH = 50
MAX_LABELS = 4

_CYRILLIC_PATTERN = re.compile("[\u0400-\u04ff]")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_url(url: str) -> tuple[str, str]:
    """Split *url* into a lowercase ``(scheme, hostname)`` pair.

    Raises:
        UrlParseError: If either part is missing or the URL is malformed.
    """
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except (AttributeError, ValueError) as exc:
        raise UrlParseError(f"Invalid URL: {url!r}") from exc
    if not parts.scheme or not hostname:
        raise UrlParseError(f"Invalid URL: {url!r}")
    return parts.scheme.lower(), hostname.lower().rstrip(".")


def is_loopback(hostname: str) -> bool:
    """True for ``localhost`` names and loopback IP literals."""
    if hostname == "localhost" or hostname.endswith(".localhost"):
        return True
    try:
        return ipaddress.ip_address(hostname).is_loopback
    except ValueError:
        return False


def has_international_chars(hostname: str) -> bool:
    return "xn--" in hostname or _CYRILLIC_PATTERN.search(hostname) is not None


# ---------------------------------------------------------------------------
# RiskScorer
# ---------------------------------------------------------------------------


class RiskScorer:
    """Additive, explainable URL risk scoring.

    Example::

        scorer = RiskScorer(DomainMatcher(store))
        result = scorer.score("http://paypal-secure123.net/login")
        result.risk_level  # 4
    """

    def __init__(
        self,
        domain_matcher: DomainMatcher,
        pattern_matcher: PatternMatcher | None = None,
        similarity_matcher: SimilarityMatcher | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._domains = domain_matcher
        self._patterns = pattern_matcher or PatternMatcher()
        self._similarity = similarity_matcher or SimilarityMatcher()
        self._clock = clock

    def score(self, url: str) -> AnalysisResult:
        """Score a URL.  Malformed input yields a zero-risk result."""
        try:
            scheme, hostname = parse_url(url)
        except UrlParseError as exc:
            logger.debug("Could not parse URL for scoring: %s", exc)
            return AnalysisResult.failed(str(exc), timestamp=self._clock())

        risk = 0
        warnings: list[str] = []

        known_bad = self._domains.is_known_bad(hostname)
        if known_bad:
            risk += KNOWN_DOMAIN_WEIGHT
            warnings.append("Domain found in known phishing database")

        if self._patterns.matches_hostname_pattern(hostname):
            risk += HOSTNAME_PATTERN_WEIGHT
            warnings.append("Suspicious domain pattern detected")

        if self._patterns.contains_suspicious_keyword(url.lower()):
            risk += KEYWORD_WEIGHT
            warnings.append("URL contains suspicious terms")

        impersonated = self._similarity.find_lookalike(hostname)
        if impersonated:
            risk += LOOKALIKE_WEIGHT
            warnings.append(f"Domain similar to {impersonated}")

        if scheme != "https" and not is_loopback(hostname):
            risk += INSECURE_WEIGHT
            warnings.append("Insecure connection (HTTP)")

        if len(hostname) > MAX_HOSTNAME_LENGTH:
            risk += LONG_DOMAIN_WEIGHT
            warnings.append("Excessively long domain")

        if len(hostname.split(".")) > MAX_LABELS:
            risk += SUBDOMAIN_WEIGHT
            warnings.append("Multiple subdomains")

        if has_international_chars(hostname):
            risk += INTERNATIONAL_WEIGHT
            warnings.append("Suspicious international characters")

        result = AnalysisResult(
            risk_level=risk,
            warnings=tuple(warnings),
            from_database=known_bad,
            timestamp=self._clock(),
        )
        logger.debug("Scored %s: risk=%d warnings=%s", hostname, risk, warnings)
        return result
