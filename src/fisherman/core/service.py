"""Service facade over the Fisherman core.

Wires the domain store, URL scorer, analysis cache and content
heuristics together and exposes the operations a host (browser
extension bridge, proxy, CLI) calls:

- ``score_url``              cached URL verdicts
- ``update_known_domains``   atomic replacement of the known-bad list
- ``analyze_content``        page content scoring
- ``purge_expired``          cache maintenance hook
- ``handle``                 request-protocol dispatch

Failures are degraded rather than raised at this boundary: an unusable
URL scores zero with an error annotation, a rejected domain list leaves
the current one in place.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from fisherman.core.config import FishermanConfig
from fisherman.core.errors import InvalidDomainListError, UnknownRequestError
from fisherman.core.models import AnalysisResult, DatabaseInfo, DetectorStats
from fisherman.core.protocol import (
    AnalyzeContent,
    CheckUrl,
    GetDatabaseInfo,
    GetStats,
    ReloadDomainList,
    ReportSuspiciousContent,
    Request,
    UpdateDomainList,
    UpdateStats,
    parse_request,
)
from fisherman.core.scheduler import MaintenanceScheduler
from fisherman.detection.cache import AnalysisCache, make_cache_key
from fisherman.detection.content import ContentAnalysis, ContentHeuristics, PageFacts
from fisherman.detection.patterns import PatternMatcher
from fisherman.detection.similarity import SimilarityMatcher
from fisherman.detection.url_scorer import RiskScorer
from fisherman.intelligence.domain_list import DomainMatcher, DomainStore

logger = logging.getLogger(__name__)

_SYSTEM_PREFIXES = (
    "chrome://",
    "chrome-extension://",
    "moz-extension://",
    "edge://",
    "extension://",
    "about:",
)


def is_scannable_url(url: str) -> bool:
    """True for ordinary web pages; browser-internal pages are skipped."""
    if not url:
        return False
    lowered = url.strip().lower()
    if lowered.startswith(_SYSTEM_PREFIXES):
        return False
    return lowered.startswith(("http://", "https://"))


class PhishingDetector:
    """Thread-safe entry point to URL and content scoring.

    Parameters
    ----------
    config:
        Application configuration.  Defaults are used when omitted.
    store:
        Domain store to score against.  A store seeded with the
        built-in list is created when omitted.
    clock:
        Time source shared by the scorer and the cache.
    """

    def __init__(
        self,
        config: FishermanConfig | None = None,
        store: DomainStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or FishermanConfig()
        self._clock = clock
        self._store = store or DomainStore(clock=clock)
        self._scorer = RiskScorer(
            DomainMatcher(self._store),
            PatternMatcher(),
            SimilarityMatcher(self._config.get("detection.legitimate_domains")),
            clock=clock,
        )
        self._cache = AnalysisCache(
            ttl_seconds=self._config.get("cache.ttl_seconds", 300),
            max_size=self._config.get("cache.max_size", 1000),
            clock=clock,
        )
        self._content = ContentHeuristics()
        self._stats = DetectorStats(last_reset=clock())
        self._stats_lock = threading.Lock()
        # Orders cache writes against the clear that follows a list swap
        self._swap_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: FishermanConfig) -> PhishingDetector:
        """Build a detector and load the configured domain list, if any.

        A list that cannot be read or parsed is logged and the built-in
        seed list is kept.
        """
        detector = cls(config=config)
        if config.get("database.domain_list_path"):
            try:
                detector.reload_domain_list()
            except (OSError, InvalidDomainListError):
                logger.warning(
                    "Could not load domain list, using built-in list",
                    exc_info=True,
                )
        return detector

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> FishermanConfig:
        return self._config

    @property
    def store(self) -> DomainStore:
        return self._store

    @property
    def cache(self) -> AnalysisCache:
        return self._cache

    # ------------------------------------------------------------------
    # URL scoring
    # ------------------------------------------------------------------

    def score_url(
        self, url: str, context_id: str | int | None = None,
    ) -> AnalysisResult:
        """Return the (possibly cached) verdict for *url*."""
        with self._stats_lock:
            self._stats.scanned += 1

        key = make_cache_key(url, context_id)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Analysis cache hit for %s", key)
            return cached

        version = self._store.snapshot.version
        result = self._scorer.score(url)
        if result.error is not None:
            return result

        if result.is_phishing:
            with self._stats_lock:
                self._stats.blocked += 1
            logger.info(
                "Phishing URL detected (risk %d): %s", result.risk_level, url,
            )
        with self._swap_lock:
            if self._store.snapshot.version == version:
                self._cache.put(key, result)
            else:
                logger.debug("Domain list changed while scoring %s, not caching", url)
        return result

    # ------------------------------------------------------------------
    # Domain list
    # ------------------------------------------------------------------

    def update_known_domains(
        self, entries: str | Iterable[str], source: str = "manual",
    ) -> int | None:
        """Replace the known-bad domain list.

        Returns the new domain count, or ``None`` when another update was
        in flight and this one was skipped.  Cached verdicts are dropped
        after a successful update.

        Raises:
            InvalidDomainListError: If *entries* holds no valid domain.
        """
        count = self._store.replace(entries, source=source)
        if count is not None:
            with self._swap_lock:
                self._cache.clear()
        return count

    def reload_domain_list(self) -> int | None:
        """Re-read ``database.domain_list_path``.

        Raises:
            FileNotFoundError: If no list path is configured or the file
                does not exist.
            InvalidDomainListError: If the file holds no valid domain.
        """
        path_value = self._config.get("database.domain_list_path")
        if not path_value:
            raise FileNotFoundError("No domain list path configured")
        path = Path(path_value).expanduser()
        text = path.read_text(encoding="utf-8", errors="replace")
        return self.update_known_domains(text, source=str(path))

    def database_info(self) -> DatabaseInfo:
        hours = self._config.get("database.update_interval_hours", 24)
        return self._store.info(now=self._clock(), max_age_seconds=hours * 3600)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def analyze_content(self, facts: PageFacts | dict[str, Any]) -> ContentAnalysis:
        if isinstance(facts, dict):
            facts = PageFacts.from_dict(facts)
        return self._content.analyze(facts)

    def report_suspicious_content(self, report: dict[str, Any]) -> None:
        """Record a content report forwarded by a page-side collaborator."""
        with self._stats_lock:
            self._stats.content_reports += 1
        logger.warning(
            "Suspicious content reported for %s (score %s)",
            report.get("url", "<unknown>"),
            report.get("risk_score", "?"),
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def purge_expired(self) -> int:
        return self._cache.purge_expired()

    def register_maintenance(
        self, scheduler: MaintenanceScheduler, now: float | None = None,
    ) -> None:
        """Add cache purge and (if configured) list reload tasks."""
        if now is None:
            now = self._clock()
        purge_every = self._config.get("maintenance.cache_purge_interval_minutes", 30) * 60
        scheduler.add_task(
            "cache_purge", self.purge_expired, purge_every,
            first_run_at=now + purge_every,
        )
        if self._config.get("database.domain_list_path"):
            reload_every = self._config.get("database.update_interval_hours", 24) * 3600
            scheduler.add_task(
                "domain_list_reload", self.reload_domain_list, reload_every,
                first_run_at=now + reload_every,
            )

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def stats(self) -> DetectorStats:
        """Snapshot copy of the aggregate counters."""
        with self._stats_lock:
            return DetectorStats.from_dict(self._stats.to_dict())

    def restore_stats(self, data: dict[str, Any]) -> None:
        with self._stats_lock:
            self._stats = DetectorStats.from_dict(data)

    def increment_stats(self, blocked: int = 0, scanned: int = 0) -> DetectorStats:
        with self._stats_lock:
            self._stats.blocked += blocked
            self._stats.scanned += scanned
        return self.stats()

    # ------------------------------------------------------------------
    # Request protocol
    # ------------------------------------------------------------------

    def handle(self, request: Request | dict[str, Any]) -> dict[str, Any]:
        """Dispatch a request and return its response dict.  Never raises."""
        try:
            if isinstance(request, dict):
                request = parse_request(request)
            return self._dispatch(request)
        except UnknownRequestError as exc:
            logger.warning("Rejected request: %s", exc)
            return {"success": False, "error": str(exc)}

    def _dispatch(self, request: Request) -> dict[str, Any]:
        match request:
            case CheckUrl(url=url, context_id=context_id):
                return self.score_url(url, context_id).to_dict()
            case AnalyzeContent(facts=facts):
                try:
                    return self.analyze_content(facts).to_dict()
                except (AttributeError, TypeError, ValueError) as exc:
                    logger.warning("Malformed page facts: %s", exc)
                    return {"success": False, "error": f"Malformed page facts: {exc}"}
            case ReportSuspiciousContent(report=report):
                self.report_suspicious_content(report)
                return {"status": "received"}
            case UpdateDomainList(domains_text=text, source=source):
                return self._run_update(lambda: self.update_known_domains(text, source))
            case ReloadDomainList():
                return self._run_update(self.reload_domain_list)
            case GetDatabaseInfo():
                return self.database_info().to_dict()
            case GetStats():
                return self.stats().to_dict()
            case UpdateStats(blocked=blocked, scanned=scanned):
                return self.increment_stats(blocked, scanned).to_dict()
            case _:
                raise UnknownRequestError(
                    f"Unsupported request: {type(request).__name__}"
                )

    def _run_update(self, update: Callable[[], int | None]) -> dict[str, Any]:
        try:
            count = update()
        except (OSError, InvalidDomainListError) as exc:
            logger.warning("Domain list update failed: %s", exc)
            return {"success": False, "message": f"Domain list update failed: {exc}"}
        if count is None:
            return {
                "success": True,
                "skipped": True,
                "count": self._store.count,
                "message": "Update already in progress",
            }
        return {
            "success": True,
            "count": count,
            "message": f"Domain list updated with {count} domains",
        }
