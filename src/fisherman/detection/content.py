"""Page content heuristics.

Scores facts extracted from a rendered page (body text, links, forms,
title and a few style-derived counts) on a 0-100 scale.  Walking the live
document is somebody else's job: this module only sees a
:class:`PageFacts` record, which keeps the scoring deterministic.

Sub-scores are capped individually before they are summed:

  suspicious text     10 per match,     max 30
  suspicious links     5 per finding,   max 25
  suspicious forms    15 per form,      max 35
  no TLS              10
  title/domain        15
  urgency cues         2 per element,   max 10

The total is capped at 100.  ``>= 70`` is high risk, ``>= 40`` medium.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40
MAX_SCORE = 100

SUSPICIOUS_FORM_FIELD_THRESHOLD = 3
CONTEXT_CHARS = 50

TEXT_POINTS, TEXT_CAP = 10, 30
LINK_POINTS, LINK_CAP = 5, 25
FORM_POINTS, FORM_CAP = 15, 35
NO_TLS_POINTS = 10
TITLE_MISMATCH_POINTS = 15
URGENCY_POINTS, URGENCY_CAP = 2, 10

SUSPICIOUS_TEXT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"verify.*account.*immediately",
        r"account.*suspended.*click",
        r"urgent.*action.*required",
        r"confirm.*identity.*now",
        r"update.*payment.*information",
        r"security.*alert.*verify",
        r"login.*expired.*reactivate",
        r"limited.*time.*offer",
        r"act.*now.*before",
        r"congratulations.*winner",
        r"claim.*prize.*now",
        r"tax.*refund.*pending",
    )
)

SUSPICIOUS_LINK_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"bit\.ly|tinyurl|shortened",
        r"[a-z0-9]{20,}\.(tk|ml|ga|cf)\b",
        r"paypal-[a-z0-9]+\.(com|net|org)",
        r"amazon-[a-z0-9]+\.net",
        r"facebook-[a-z0-9]+\.org",
        r"google-[a-z0-9]+\.net",
        r"microsoft-[a-z0-9]+\.org",
        r"apple-[a-z0-9]+\.net",
    )
)

SENSITIVE_FIELD_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"password|pwd|pass",
        r"credit.*card|cc.*number|card.*number",
        r"social.*security|ssn",
        r"bank.*account|routing.*number",
        r"pin.*code|pin.*number",
        r"security.*code|cvv|cvc",
    )
)

# Words a link text uses to borrow credibility
LEGITIMACY_KEYWORDS: tuple[str, ...] = (
    "official", "secure", "verified", "trusted", "authentic",
)

WELL_KNOWN_BRANDS: tuple[str, ...] = (
    "paypal", "amazon", "facebook", "google",
    "microsoft", "apple", "ebay", "netflix",
)


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LinkFact:
    href: str
    text: str = ""


@dataclass(frozen=True)
class FormField:
    name: str = ""
    field_id: str = ""
    placeholder: str = ""
    label: str = ""
    field_type: str = ""

    @property
    def descriptor(self) -> str:
        """Lowercased text the sensitive-field patterns run against."""
        return f"{self.name} {self.field_id} {self.placeholder} {self.label}".lower()


@dataclass(frozen=True)
class FormFact:
    action: str = ""
    method: str = "get"
    fields: tuple[FormField, ...] = ()


@dataclass(frozen=True)
class VisualCues:
    urgency_indicators: int = 0
    trust_symbols: int = 0
    popups: int = 0
    redirects: int = 0

    def __post_init__(self) -> None:
        for name, value in self.to_dict().items():
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")

    def to_dict(self) -> dict[str, int]:
        return {
            "urgency_indicators": self.urgency_indicators,
            "trust_symbols": self.trust_symbols,
            "popups": self.popups,
            "redirects": self.redirects,
        }


@dataclass(frozen=True)
class PageFacts:
    """Everything the heuristics need to know about one page."""

    url: str
    title: str = ""
    text: str = ""
    links: tuple[LinkFact, ...] = ()
    forms: tuple[FormFact, ...] = ()
    description: str = ""
    favicon: str = ""
    visual_cues: VisualCues = field(default_factory=VisualCues)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PageFacts:
        """Build facts from the JSON shape produced by a page extractor.

        ``text`` may be a single string or a list of text blocks.
        """
        text = data.get("text", "")
        if isinstance(text, (list, tuple)):
            text = "\n".join(str(block) for block in text)

        links = tuple(
            LinkFact(href=str(link.get("href", "")), text=str(link.get("text", "")))
            for link in data.get("links", [])
        )
        forms = tuple(
            FormFact(
                action=str(form.get("action", "")),
                method=str(form.get("method", "get")),
                fields=tuple(
                    FormField(
                        name=str(f.get("name", "")),
                        field_id=str(f.get("id", "")),
                        placeholder=str(f.get("placeholder", "")),
                        label=str(f.get("label", "")),
                        field_type=str(f.get("type", "")),
                    )
                    for f in form.get("fields", [])
                ),
            )
            for form in data.get("forms", [])
        )
        meta = data.get("meta", {})
        cues = data.get("visual_cues", {})
        return cls(
            url=str(data.get("url", "")),
            title=str(data.get("title", "")),
            text=str(text),
            links=links,
            forms=forms,
            description=str(meta.get("description", "")),
            favicon=str(meta.get("favicon", "")),
            visual_cues=VisualCues(
                urgency_indicators=int(cues.get("urgency_indicators", 0)),
                trust_symbols=int(cues.get("trust_symbols", 0)),
                popups=int(cues.get("popups", 0)),
                redirects=int(cues.get("redirects", 0)),
            ),
        )


# ---------------------------------------------------------------------------
# Findings and result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextFinding:
    pattern: str
    match: str
    context: str


@dataclass(frozen=True)
class LinkFinding:
    url: str
    text: str
    reason: str  # "pattern" or "deceptive_text"
    pattern: str = ""


@dataclass(frozen=True)
class FormFinding:
    action: str
    method: str
    suspicious_field_count: int
    field_descriptors: tuple[str, ...] = ()


@dataclass(frozen=True)
class MetaAnalysis:
    title: str
    description: str
    favicon: str
    ssl: bool
    title_domain_mismatch: bool


@dataclass(frozen=True)
class ContentAnalysis:
    """Outcome of one content inspection pass."""

    url: str
    hostname: str
    suspicious_text: tuple[TextFinding, ...]
    suspicious_links: tuple[LinkFinding, ...]
    suspicious_forms: tuple[FormFinding, ...]
    meta_analysis: MetaAnalysis
    visual_cues: VisualCues
    risk_score: int
    breakdown: dict[str, int] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    @property
    def is_high_risk(self) -> bool:
        return self.risk_score >= HIGH_RISK_THRESHOLD

    @property
    def is_medium_risk(self) -> bool:
        return self.risk_score >= MEDIUM_RISK_THRESHOLD

    @property
    def should_report(self) -> bool:
        return self.is_medium_risk

    def to_report(self) -> dict[str, Any]:
        """Summary sent upstream when the page crosses the report threshold."""
        return {
            "url": self.url,
            "domain": self.hostname,
            "risk_score": self.risk_score,
            "suspicious_text": len(self.suspicious_text),
            "suspicious_links": len(self.suspicious_links),
            "suspicious_forms": len(self.suspicious_forms),
            "timestamp": self.timestamp,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "hostname": self.hostname,
            "risk_score": self.risk_score,
            "is_high_risk": self.is_high_risk,
            "is_medium_risk": self.is_medium_risk,
            "breakdown": dict(self.breakdown),
            "suspicious_text": [vars(f) for f in self.suspicious_text],
            "suspicious_links": [vars(f) for f in self.suspicious_links],
            "suspicious_forms": [
                {**vars(f), "field_descriptors": list(f.field_descriptors)}
                for f in self.suspicious_forms
            ],
            "meta_analysis": vars(self.meta_analysis),
            "visual_cues": self.visual_cues.to_dict(),
            "timestamp": self.timestamp,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _hostname(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def _context(match: str, text: str, width: int = CONTEXT_CHARS) -> str:
    index = text.find(match)
    if index == -1:
        return match
    start = max(0, index - width)
    end = min(len(text), index + len(match) + width)
    return text[start:end]


def is_deceptive_link(link: LinkFact) -> bool:
    """True when the link text claims legitimacy its target does not carry.

    E.g. text "Secure login" pointing at ``http://evil.example``: the
    text says "secure", the hostname does not.  Links without an http(s)
    hostname are never deceptive.
    """
    text = link.text.lower().strip()
    if not text:
        return False
    hostname = _hostname(link.href)
    if not hostname:
        return False
    return any(kw in text and kw not in hostname for kw in LEGITIMACY_KEYWORDS)


def has_title_domain_mismatch(title: str, hostname: str) -> bool:
    title = title.lower()
    return any(
        brand in title and brand not in hostname for brand in WELL_KNOWN_BRANDS
    )


# ---------------------------------------------------------------------------
# ContentHeuristics
# ---------------------------------------------------------------------------


class ContentHeuristics:
    """Scores :class:`PageFacts` into a :class:`ContentAnalysis`."""

    def __init__(
        self,
        form_field_threshold: int = SUSPICIOUS_FORM_FIELD_THRESHOLD,
    ) -> None:
        self._form_field_threshold = form_field_threshold

    def analyze(self, facts: PageFacts) -> ContentAnalysis:
        hostname = _hostname(facts.url)
        text_findings = self._analyze_text(facts.text)
        link_findings = self._analyze_links(facts.links)
        form_findings = self._analyze_forms(facts.forms)
        meta = MetaAnalysis(
            title=facts.title,
            description=facts.description,
            favicon=facts.favicon,
            ssl=facts.url.lower().startswith("https:"),
            title_domain_mismatch=has_title_domain_mismatch(facts.title, hostname),
        )

        breakdown = {
            "text": min(len(text_findings) * TEXT_POINTS, TEXT_CAP),
            "links": min(len(link_findings) * LINK_POINTS, LINK_CAP),
            "forms": min(len(form_findings) * FORM_POINTS, FORM_CAP),
            "no_tls": 0 if meta.ssl else NO_TLS_POINTS,
            "title_mismatch": TITLE_MISMATCH_POINTS if meta.title_domain_mismatch else 0,
            "urgency": min(
                facts.visual_cues.urgency_indicators * URGENCY_POINTS, URGENCY_CAP,
            ),
        }
        score = min(sum(breakdown.values()), MAX_SCORE)

        logger.debug(
            "Content analysis for %s: score=%d breakdown=%s",
            hostname or facts.url, score, breakdown,
        )
        return ContentAnalysis(
            url=facts.url,
            hostname=hostname,
            suspicious_text=text_findings,
            suspicious_links=link_findings,
            suspicious_forms=form_findings,
            meta_analysis=meta,
            visual_cues=facts.visual_cues,
            risk_score=score,
            breakdown=breakdown,
        )

    # -- Sub-analyses -------------------------------------------------------

    @staticmethod
    def _analyze_text(text: str) -> tuple[TextFinding, ...]:
        lowered = text.lower()
        findings: list[TextFinding] = []
        for pattern in SUSPICIOUS_TEXT_PATTERNS:
            found = pattern.search(lowered)
            if found:
                findings.append(TextFinding(
                    pattern=pattern.pattern,
                    match=found.group(0),
                    context=_context(found.group(0), lowered),
                ))
        return tuple(findings)

    @staticmethod
    def _analyze_links(links: tuple[LinkFact, ...]) -> tuple[LinkFinding, ...]:
        findings: list[LinkFinding] = []
        for link in links:
            href = link.href.lower()
            for pattern in SUSPICIOUS_LINK_PATTERNS:
                if pattern.search(href):
                    findings.append(LinkFinding(
                        url=link.href,
                        text=link.text,
                        reason="pattern",
                        pattern=pattern.pattern,
                    ))
            if is_deceptive_link(link):
                findings.append(LinkFinding(
                    url=link.href,
                    text=link.text,
                    reason="deceptive_text",
                ))
        return tuple(findings)

    def _analyze_forms(self, forms: tuple[FormFact, ...]) -> tuple[FormFinding, ...]:
        findings: list[FormFinding] = []
        for form in forms:
            matched = [
                f.descriptor.strip()
                for f in form.fields
                if any(p.search(f.descriptor) for p in SENSITIVE_FIELD_PATTERNS)
            ]
            if len(matched) >= self._form_field_threshold:
                findings.append(FormFinding(
                    action=form.action,
                    method=form.method,
                    suspicious_field_count=len(matched),
                    field_descriptors=tuple(matched),
                ))
        return tuple(findings)
