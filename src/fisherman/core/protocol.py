"""Request messages accepted by :meth:`PhishingDetector.handle`.

Each request kind is its own frozen dataclass.  Hosts that speak a JSON
wire format (``{"type": "CHECK_URL", "url": ...}``) convert with
:func:`parse_request`; in-process callers can build the dataclasses
directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from fisherman.core.errors import UnknownRequestError


@dataclass(frozen=True)
class CheckUrl:
    url: str
    context_id: str | None = None


@dataclass(frozen=True)
class AnalyzeContent:
    facts: dict[str, Any]


@dataclass(frozen=True)
class ReportSuspiciousContent:
    report: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateDomainList:
    domains_text: str
    source: str = "manual"


@dataclass(frozen=True)
class ReloadDomainList:
    """Re-read the configured domain list file."""


@dataclass(frozen=True)
class GetDatabaseInfo:
    pass


@dataclass(frozen=True)
class GetStats:
    pass


@dataclass(frozen=True)
class UpdateStats:
    blocked: int = 0
    scanned: int = 0


Request = Union[
    CheckUrl,
    AnalyzeContent,
    ReportSuspiciousContent,
    UpdateDomainList,
    ReloadDomainList,
    GetDatabaseInfo,
    GetStats,
    UpdateStats,
]


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def parse_request(message: dict[str, Any]) -> Request:
    """Build a request from its wire dict.

    Raises:
        UnknownRequestError: If ``type`` is missing or not recognised, or
            the payload fields have the wrong shape.
    """
    kind = message.get("type")
    try:
        return _build(kind, message)
    except UnknownRequestError:
        raise
    except (AttributeError, TypeError, ValueError) as exc:
        raise UnknownRequestError(f"Malformed {kind} request: {exc}") from exc


def _build(kind: Any, message: dict[str, Any]) -> Request:
    if kind == "CHECK_URL":
        return CheckUrl(
            url=str(message.get("url", "")),
            context_id=_optional_str(message.get("context_id")),
        )
    if kind == "ANALYZE_CONTENT":
        return AnalyzeContent(facts=dict(message.get("facts") or {}))
    if kind == "REPORT_SUSPICIOUS_CONTENT":
        return ReportSuspiciousContent(report=dict(message.get("data") or {}))
    if kind == "UPDATE_PHISHING_DB":
        return UpdateDomainList(
            domains_text=str(message.get("domains_text", "")),
            source=str(message.get("source", "manual")),
        )
    if kind == "FORCE_UPDATE_DB":
        return ReloadDomainList()
    if kind == "GET_DB_INFO":
        return GetDatabaseInfo()
    if kind == "GET_STATS":
        return GetStats()
    if kind == "UPDATE_STATS":
        increment = message.get("increment") or {}
        return UpdateStats(
            blocked=int(increment.get("blocked", 0)),
            scanned=int(increment.get("scanned", 0)),
        )
    raise UnknownRequestError(f"Unknown request type: {kind!r}")
