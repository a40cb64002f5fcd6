"""Tests for page content heuristics."""

from __future__ import annotations

import pytest

from fisherman.detection.content import (
    ContentHeuristics,
    FormFact,
    FormField,
    LinkFact,
    PageFacts,
    VisualCues,
    has_title_domain_mismatch,
    is_deceptive_link,
)

PHISHY_TEXT = (
    "Please verify your account immediately. "
    "Your account was suspended, click below. "
    "Urgent action required. "
    "Confirm your identity now."
)

SENSITIVE_FORM = FormFact(
    action="https://collector.example/submit",
    method="post",
    fields=(
        FormField(name="password", field_type="password"),
        FormField(placeholder="Card number"),
        FormField(field_id="cvv"),
    ),
)


@pytest.fixture()
def heuristics() -> ContentHeuristics:
    return ContentHeuristics()


def _page(**overrides) -> PageFacts:
    base = {"url": "https://example.com/", "title": "Example", "text": "hello"}
    base.update(overrides)
    return PageFacts(**base)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestDeceptiveLink:
    def test_claims_legitimacy_elsewhere(self) -> None:
        assert is_deceptive_link(LinkFact("http://evil.example/login", "Official PayPal site"))

    def test_keyword_present_in_hostname(self) -> None:
        assert not is_deceptive_link(LinkFact("https://secure.bank.com/", "Secure banking"))

    def test_plain_text(self) -> None:
        assert not is_deceptive_link(LinkFact("https://example.com/", "Read more"))

    def test_relative_href(self) -> None:
        assert not is_deceptive_link(LinkFact("/account", "Official account page"))

    def test_empty_text(self) -> None:
        assert not is_deceptive_link(LinkFact("http://evil.example/", ""))


class TestTitleMismatch:
    def test_brand_in_title_not_in_host(self) -> None:
        assert has_title_domain_mismatch("PayPal - Log in", "evil.example")

    def test_brand_matches_host(self) -> None:
        assert not has_title_domain_mismatch("PayPal - Log in", "www.paypal.com")

    def test_no_brand(self) -> None:
        assert not has_title_domain_mismatch("My blog", "example.com")


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------


class TestScoring:
    def test_clean_page(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(_page())
        assert analysis.risk_score == 0
        assert analysis.is_medium_risk is False
        assert analysis.should_report is False
        assert analysis.meta_analysis.ssl is True

    def test_text_matches_cap_at_thirty(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(_page(text=PHISHY_TEXT))
        assert len(analysis.suspicious_text) == 4
        assert analysis.breakdown["text"] == 30
        assert analysis.risk_score == 30

    def test_text_finding_has_context(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(_page(text="Tax refund pending for you"))
        (finding,) = analysis.suspicious_text
        assert finding.match == "tax refund pending"
        assert finding.match in finding.context

    def test_each_text_pattern_counts_once(self, heuristics: ContentHeuristics) -> None:
        text = "Claim your prize now! Claim your prize now!"
        analysis = heuristics.analyze(_page(text=text))
        assert len(analysis.suspicious_text) == 1
        assert analysis.risk_score == 10

    def test_shortened_link(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(_page(links=(LinkFact("https://bit.ly/x1"),)))
        (finding,) = analysis.suspicious_links
        assert finding.reason == "pattern"
        assert analysis.risk_score == 5

    def test_long_free_tld_link(self, heuristics: ContentHeuristics) -> None:
        links = (
            LinkFact("http://abcdefghijklmnopqrstuvwxyz.tk/"),
            LinkFact("http://abc.tk/"),
        )
        analysis = heuristics.analyze(_page(links=links))
        assert len(analysis.suspicious_links) == 1

    def test_deceptive_link(self, heuristics: ContentHeuristics) -> None:
        link = LinkFact("http://evil.example/login", "Verified checkout")
        analysis = heuristics.analyze(_page(links=(link,)))
        (finding,) = analysis.suspicious_links
        assert finding.reason == "deceptive_text"
        assert analysis.breakdown["links"] == 5

    def test_link_points_cap_at_twenty_five(self, heuristics: ContentHeuristics) -> None:
        links = tuple(LinkFact(f"https://bit.ly/{i}") for i in range(6))
        analysis = heuristics.analyze(_page(links=links))
        assert len(analysis.suspicious_links) == 6
        assert analysis.breakdown["links"] == 25

    def test_form_with_three_sensitive_fields(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(_page(forms=(SENSITIVE_FORM,)))
        (finding,) = analysis.suspicious_forms
        assert finding.suspicious_field_count == 3
        assert finding.method == "post"
        assert "password" in finding.field_descriptors
        assert analysis.risk_score == 15

    def test_form_with_two_sensitive_fields(self, heuristics: ContentHeuristics) -> None:
        form = FormFact(fields=(
            FormField(name="email"),
            FormField(name="password"),
            FormField(name="pin_code"),
        ))
        analysis = heuristics.analyze(_page(forms=(form,)))
        assert analysis.suspicious_forms == ()
        assert analysis.risk_score == 0

    def test_custom_form_threshold(self) -> None:
        form = FormFact(fields=(FormField(name="password"),))
        analysis = ContentHeuristics(form_field_threshold=1).analyze(_page(forms=(form,)))
        assert len(analysis.suspicious_forms) == 1

    def test_form_points_cap_at_thirty_five(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(_page(forms=(SENSITIVE_FORM,) * 3))
        assert analysis.breakdown["forms"] == 35

    def test_no_tls(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(_page(url="http://example.com/"))
        assert analysis.meta_analysis.ssl is False
        assert analysis.risk_score == 10

    def test_title_mismatch(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(_page(url="https://evil.example/", title="Amazon Sign-In"))
        assert analysis.meta_analysis.title_domain_mismatch is True
        assert analysis.risk_score == 15

    @pytest.mark.parametrize("count,points", [(0, 0), (3, 6), (5, 10), (12, 10)])
    def test_urgency_cues(self, heuristics: ContentHeuristics, count: int, points: int) -> None:
        analysis = heuristics.analyze(_page(visual_cues=VisualCues(urgency_indicators=count)))
        assert analysis.breakdown["urgency"] == points
        assert analysis.risk_score == points

    def test_medium_but_not_high(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(_page(url="http://example.com/", text=PHISHY_TEXT))
        assert analysis.risk_score == 40
        assert analysis.is_medium_risk is True
        assert analysis.is_high_risk is False
        assert analysis.should_report is True

    def test_total_caps_at_hundred(self, heuristics: ContentHeuristics) -> None:
        facts = PageFacts(
            url="http://evil.example/",
            title="PayPal account",
            text=PHISHY_TEXT,
            links=tuple(LinkFact(f"https://bit.ly/{i}") for i in range(5)),
            forms=(SENSITIVE_FORM,) * 3,
            visual_cues=VisualCues(urgency_indicators=5),
        )
        analysis = heuristics.analyze(facts)
        assert sum(analysis.breakdown.values()) == 125
        assert analysis.risk_score == 100
        assert analysis.is_high_risk is True


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


class TestPageFactsFromDict:
    def test_full_shape(self) -> None:
        facts = PageFacts.from_dict({
            "url": "https://evil.example/login",
            "title": "Sign in",
            "text": ["Security alert: please verify", "second block"],
            "links": [{"href": "https://bit.ly/x", "text": "here"}],
            "forms": [{
                "action": "/post",
                "method": "post",
                "fields": [{"name": "pw", "id": "password", "type": "password"}],
            }],
            "meta": {"description": "desc", "favicon": "/favicon.ico"},
            "visual_cues": {"urgency_indicators": 2, "popups": 1},
        })
        assert facts.text == "Security alert: please verify\nsecond block"
        assert facts.links == (LinkFact("https://bit.ly/x", "here"),)
        field = facts.forms[0].fields[0]
        assert field.field_id == "password"
        assert field.field_type == "password"
        assert facts.description == "desc"
        assert facts.favicon == "/favicon.ico"
        assert facts.visual_cues == VisualCues(urgency_indicators=2, popups=1)

    def test_minimal_shape(self) -> None:
        facts = PageFacts.from_dict({"url": "https://example.com"})
        assert facts.links == ()
        assert facts.forms == ()
        assert facts.visual_cues == VisualCues()

    def test_negative_cue_count_rejected(self) -> None:
        with pytest.raises(ValueError, match="urgency_indicators"):
            PageFacts.from_dict({
                "url": "https://example.com",
                "visual_cues": {"urgency_indicators": -40},
            })

    def test_visual_cues_reject_negative_counts(self) -> None:
        with pytest.raises(ValueError, match="popups"):
            VisualCues(popups=-1)


class TestReport:
    def test_to_report(self, heuristics: ContentHeuristics) -> None:
        analysis = heuristics.analyze(PageFacts(
            url="https://evil.example/a",
            text=PHISHY_TEXT,
            links=(LinkFact("https://bit.ly/x"),),
        ))
        report = analysis.to_report()
        assert report["url"] == "https://evil.example/a"
        assert report["domain"] == "evil.example"
        assert report["risk_score"] == 35
        assert report["suspicious_text"] == 4
        assert report["suspicious_links"] == 1
        assert report["suspicious_forms"] == 0
        assert "timestamp" in report

    def test_to_dict_is_plain_data(self, heuristics: ContentHeuristics) -> None:
        data = heuristics.analyze(_page(forms=(SENSITIVE_FORM,))).to_dict()
        assert data["breakdown"]["forms"] == 15
        assert isinstance(data["suspicious_forms"][0]["field_descriptors"], list)
        assert data["meta_analysis"]["ssl"] is True
        assert data["visual_cues"]["urgency_indicators"] == 0
