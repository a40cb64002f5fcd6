"""Shared data models for Fisherman.

``AnalysisResult`` is the verdict produced by the URL risk scorer and
stored by value in the analysis cache.  ``DetectorStats`` and
``DatabaseInfo`` are the aggregate views handed to whatever persists or
renders them.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

# Classification thresholds on the additive URL risk level
SUSPICIOUS_THRESHOLD = 1
PHISHING_THRESHOLD = 4


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable verdict for a single URL."""

    risk_level: int
    warnings: tuple[str, ...] = ()
    from_database: bool = False
    timestamp: float = field(default_factory=time.time)
    error: str | None = None

    @property
    def is_phishing(self) -> bool:
        return self.risk_level >= PHISHING_THRESHOLD

    @property
    def is_suspicious(self) -> bool:
        return self.risk_level >= SUSPICIOUS_THRESHOLD

    @classmethod
    def failed(
        cls, error: str, timestamp: float | None = None,
    ) -> AnalysisResult:
        """Zero-risk result annotated with *error*."""
        return cls(
            risk_level=0,
            timestamp=time.time() if timestamp is None else timestamp,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "risk_level": self.risk_level,
            "warnings": list(self.warnings),
            "is_phishing": self.is_phishing,
            "is_suspicious": self.is_suspicious,
            "from_database": self.from_database,
            "timestamp": self.timestamp,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class DetectorStats:
    """Aggregate counters kept by the detector across scoring calls."""

    scanned: int = 0
    blocked: int = 0
    content_reports: int = 0
    last_reset: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scanned": self.scanned,
            "blocked": self.blocked,
            "content_reports": self.content_reports,
            "last_reset": self.last_reset,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DetectorStats:
        """Rebuild counters from a persisted dict, ignoring unknown keys."""
        stats = cls()
        for key in ("scanned", "blocked", "content_reports"):
            if key in data:
                setattr(stats, key, int(data[key]))
        if "last_reset" in data:
            stats.last_reset = float(data["last_reset"])
        return stats


@dataclass(frozen=True)
class DatabaseInfo:
    """Summary of the currently loaded known-phishing domain set."""

    count: int
    version: int
    last_update: float
    source: str
    needs_update: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "version": self.version,
            "last_update": self.last_update,
            "source": self.source,
            "needs_update": self.needs_update,
        }
