import os

import pytest
from pydantic import ValidationError

from phishsense.feature_extractors import normalize
from phishsense.models import Status
from phishsense.rules import RuleEngine, analyze, final_score, keyword_score, resolve_status

RULES_PATH = os.path.join(os.path.dirname(__file__), "..", "rules", "rules.yaml")
engine = RuleEngine(RULES_PATH)

SUSPENDED = (
    "Urgent: Your account has been suspended. Click here to verify your "
    "identity immediately or your funds will be lost."
)
DINNER = "Hi Mom, just checking in to see if you're coming over for dinner on Sunday. Let me know!"


def test_rule_load():
    assert len(engine.keywords) > 0
    assert [r.label for r in engine.rules] == [
        "Sense of Urgency",
        "Impersonation of Brands",
        "Suspicious Links",
        "Generic Greetings",
        "Request for Personal Info",
    ]
    assert all(kw == kw.lower() for kw in engine.keywords)


def test_normalize():
    assert normalize("Hello", "HTTP://X.COM") == "hello http://x.com"
    assert normalize("", "") == " "
    assert normalize(None, None) == " "


def test_keyword_phrase_counts_once():
    raw, matched = keyword_score("prize prize prize", engine.keywords)
    assert raw == 15
    assert matched == ["prize"]


def test_empty_input():
    r = engine.analyze("", "")
    assert r.status == Status.SAFE
    assert r.risk_score == 0
    assert r.indicators == ()


def test_suspended_account_is_dangerous():
    ev = engine.evaluate(SUSPENDED, "")
    assert ev.matched_keywords == ["urgent", "suspend", "click here", "verify", "account"]
    assert ev.raw_score == 75
    assert ev.result.indicators == ("Sense of Urgency", "Impersonation of Brands")
    assert ev.result.status == Status.DANGEROUS
    assert ev.result.risk_score == 95


def test_friendly_message_is_safe():
    r = engine.analyze(DINNER, "")
    assert r.status == Status.SAFE
    assert r.risk_score == 0
    assert r.indicators == ()


def test_password_with_short_link():
    ev = engine.evaluate("Please reset your password", "http://bit.ly/xyz")
    assert ev.result.indicators == ("Suspicious Links", "Request for Personal Info")
    assert ev.result.status == Status.SUSPICIOUS
    assert ev.result.risk_score == 20
    assert ev.hits[0].evidence == {"url_fragments": ["bit.ly"]}


@pytest.mark.parametrize("url,flagged", [
    ("", False),
    ("https://example.com", False),
    ("http://example.com", True),
    ("example.com", True),
    ("HTTPS://example.com", True),
    ("https://bit.ly/abc", True),
    ("https://tinyurl.com/abc", True),
])
def test_url_scheme_and_shorteners(url, flagged):
    r = engine.analyze("hello", url)
    assert ("Suspicious Links" in r.indicators) == flagged


def test_plain_http_evidence():
    hits = engine.classify(normalize("", "http://example.com"), "http://example.com")
    assert [h.label for h in hits] == ["Suspicious Links"]
    assert hits[0].evidence == {"missing_prefix": "https"}


def test_generic_greeting_alone_is_suspicious():
    r = engine.analyze("Dear Customer, thanks for your order.", "")
    assert r.indicators == ("Generic Greetings",)
    assert r.status == Status.SUSPICIOUS
    assert r.risk_score == 10


def test_single_brand_keyword_stays_safe():
    r = engine.analyze("Your Netflix plan renews next week", "")
    assert r.indicators == ()
    assert r.status == Status.SAFE
    assert r.risk_score == 15


def test_score_is_clamped():
    text = ("urgent action required verify your account unusual activity "
            "password reset limited time")
    ev = engine.evaluate(text, "http://bit.ly/x")
    assert ev.raw_score > 100
    assert ev.result.risk_score == 100
    assert ev.result.status == Status.DANGEROUS


def test_indicators_unique_and_ordered():
    text = "URGENT urgent immediate dear customer valued user password ssn verify account"
    r = engine.analyze(text, "http://tinyurl.com/a")
    assert len(r.indicators) == len(set(r.indicators)) == 5
    assert r.indicators == tuple(rule.label for rule in engine.rules)


def test_monotonic_in_keywords():
    before = engine.analyze("hello there", "")
    after = engine.analyze("hello there, you won the lottery", "")
    assert after.risk_score >= before.risk_score
    assert after.risk_score == before.risk_score + 15


def test_idempotent():
    assert engine.analyze(SUSPENDED, "http://x.io") == engine.analyze(SUSPENDED, "http://x.io")


def test_module_level_analyze():
    assert analyze(SUSPENDED, "").status == Status.DANGEROUS


@pytest.mark.parametrize("raw,count,expected", [
    (0, 0, Status.SAFE),
    (20, 0, Status.SAFE),
    (21, 0, Status.SUSPICIOUS),
    (0, 1, Status.SUSPICIOUS),
    (0, 2, Status.SUSPICIOUS),
    (60, 2, Status.SUSPICIOUS),
    (61, 0, Status.DANGEROUS),
    (0, 3, Status.DANGEROUS),
])
def test_status_thresholds(raw, count, expected):
    assert resolve_status(raw, count) == expected


def test_status_uses_pre_boost_score():
    # tier ignores the indicator bonus
    assert final_score(21, 2) == 41
    assert resolve_status(21, 2) == Status.SUSPICIOUS
    assert final_score(55, 2) == 75
    assert resolve_status(55, 2) == Status.SUSPICIOUS


def test_final_score_bounds():
    assert final_score(0, 0) == 0
    assert final_score(95, 1) == 100
    assert final_score(300, 5) == 100


def test_result_is_immutable():
    r = engine.analyze("Dear customer", "")
    with pytest.raises(AttributeError):
        r.indicators.append("Extra")
    with pytest.raises(ValidationError):
        r.risk_score = 0
