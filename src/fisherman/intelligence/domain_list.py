"""Known phishing domain list.

Holds the set of known-bad domains as an immutable, versioned snapshot.
Updates parse a newline-delimited list, build a brand new snapshot and
swap it in with a single reference assignment, so scoring threads that
already took the old snapshot keep a consistent view.

Only one refresh may run at a time.  A refresh requested while another
is in flight is skipped rather than queued.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from fisherman.core.errors import InvalidDomainListError
from fisherman.core.models import DatabaseInfo

logger = logging.getLogger(__name__)

# Seed list used until a real list is loaded.  Bare free TLDs are
# included on purpose: the subdomain walk-up makes them match every
# host registered under them.
DEFAULT_PHISHING_DOMAINS: tuple[str, ...] = (
    "00000000000000000000000000000000000000000.xyz",
    "000webhostapp.com",
    "weeblysite.com",
    "godaddysites.com",
    "pages.dev",
    "workers.dev",
    "appdomain.cloud",
    "tk",
    "ml",
    "ga",
    "cf",
    "bit.ly",
    "tinyurl.com",
    "shortened.link",
)


def parse_domain_list(entries: str | Iterable[str]) -> frozenset[str]:
    """Normalise raw list lines into a set of domains.

    Accepts either the raw text blob or an iterable of lines.  Lines are
    trimmed and lowercased; blanks, ``#`` comments and entries that have
    no dot or contain whitespace are dropped.
    """
    lines = entries.splitlines() if isinstance(entries, str) else entries
    domains: set[str] = set()
    for line in lines:
        candidate = line.strip().lower().rstrip(".")
        if not candidate or candidate.startswith("#"):
            continue
        if "." not in candidate or any(ch.isspace() for ch in candidate):
            continue
        domains.add(candidate)
    return frozenset(domains)


@dataclass(frozen=True)
class DomainSnapshot:
    """One immutable generation of the known-domain set."""

    domains: frozenset[str] = field(default_factory=frozenset)
    version: int = 0
    loaded_at: float = 0.0
    source: str = "builtin"

    def __len__(self) -> int:
        return len(self.domains)

    def __contains__(self, domain: object) -> bool:
        return domain in self.domains


class DomainStore:
    """Owner of the current :class:`DomainSnapshot`.

    Args:
        initial: Domains to seed the store with.  Built-in defaults are
            used when omitted.  Seed entries are taken as-is, so bare
            TLDs like ``"tk"`` survive.
        source: Label recorded for the initial snapshot.
        clock: Time source for snapshot load times.
    """

    def __init__(
        self,
        initial: Iterable[str] | None = None,
        source: str = "builtin",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        seed = DEFAULT_PHISHING_DOMAINS if initial is None else initial
        self._snapshot = DomainSnapshot(
            domains=frozenset(d.strip().lower() for d in seed if d.strip()),
            version=1,
            loaded_at=self._clock(),
            source=source,
        )
        self._refresh_lock = threading.Lock()

    @property
    def snapshot(self) -> DomainSnapshot:
        """The current snapshot.  Callers should read it once per lookup."""
        return self._snapshot

    @property
    def count(self) -> int:
        return len(self._snapshot)

    def replace(
        self,
        entries: str | Iterable[str],
        source: str = "manual",
    ) -> int | None:
        """Parse *entries* and atomically swap them in.

        Returns:
            Number of domains in the new snapshot, or ``None`` if another
            refresh was already running and this one was skipped.

        Raises:
            InvalidDomainListError: If no valid domain survives parsing.
                The current snapshot is left untouched.
        """
        if not self._refresh_lock.acquire(blocking=False):
            logger.info("Domain list refresh already in progress, skipping")
            return None
        try:
            domains = parse_domain_list(entries)
            if not domains:
                raise InvalidDomainListError("No valid domains found in list")
            previous = self._snapshot
            self._snapshot = DomainSnapshot(
                domains=domains,
                version=previous.version + 1,
                loaded_at=self._clock(),
                source=source,
            )
            logger.info(
                "Domain list replaced from %s: %d domains (version %d)",
                source,
                len(domains),
                previous.version + 1,
            )
            return len(domains)
        finally:
            self._refresh_lock.release()

    def load_file(self, path: Path) -> int | None:
        """Replace the list with the contents of a text file."""
        path = Path(path)
        text = path.read_text(encoding="utf-8", errors="replace")
        return self.replace(text, source=str(path))

    def info(
        self,
        now: float | None = None,
        max_age_seconds: float | None = None,
    ) -> DatabaseInfo:
        """Describe the current snapshot.

        ``needs_update`` is set when *max_age_seconds* is given and the
        snapshot is older than that.
        """
        snap = self._snapshot
        if now is None:
            now = self._clock()
        stale = (
            max_age_seconds is not None
            and now - snap.loaded_at > max_age_seconds
        )
        return DatabaseInfo(
            count=len(snap),
            version=snap.version,
            last_update=snap.loaded_at,
            source=snap.source,
            needs_update=stale,
        )


class DomainMatcher:
    """Exact and parent-domain lookups against a :class:`DomainStore`."""

    def __init__(self, store: DomainStore) -> None:
        self._store = store

    def is_known_bad(self, hostname: str) -> bool:
        """True if *hostname* or any parent domain of it is listed.

        ``a.b.evil.tk`` is tested as ``a.b.evil.tk``, ``b.evil.tk``,
        ``evil.tk`` and finally ``tk``.
        """
        domains = self._store.snapshot.domains
        host = hostname.rstrip(".")
        if not host:
            return False
        if host in domains:
            return True
        labels = host.split(".")
        for i in range(1, len(labels)):
            if ".".join(labels[i:]) in domains:
                return True
        return False
