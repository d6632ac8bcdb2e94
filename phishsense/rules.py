import copy
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Any, List, Tuple, Callable

import yaml

from .feature_extractors import normalize, contains_any, missing_prefix
from .models import AnalysisResult, IndicatorHit, Status

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "rules", "rules.yaml"
)

KEYWORD_WEIGHT = 15
INDICATOR_BONUS = 10
MAX_SCORE = 100

# (status, raw score must exceed, or indicator count must reach)
# Checked top to bottom; the first match wins, otherwise Safe.
STATUS_THRESHOLDS: List[Tuple[Status, int, int]] = [
    (Status.DANGEROUS, 60, 3),
    (Status.SUSPICIOUS, 20, 1),
]


def keyword_score(corpus: str, keywords, weight: int = KEYWORD_WEIGHT) -> Tuple[int, List[str]]:
    """Add `weight` once for every keyword phrase found in the corpus."""
    matched = contains_any(corpus, keywords)
    return weight * len(matched), matched


def final_score(raw_score: int, indicator_count: int) -> int:
    return min(raw_score + INDICATOR_BONUS * indicator_count, MAX_SCORE)


def resolve_status(raw_score: int, indicator_count: int) -> Status:
    """Map the pre-boost keyword score and indicator count to a status tier.

    The displayed score includes the indicator bonus, the tier does not.
    """
    for status, raw_above, min_indicators in STATUS_THRESHOLDS:
        if raw_score > raw_above or indicator_count >= min_indicators:
            return status
    return Status.SAFE


@dataclass(frozen=True)
class IndicatorRule:
    label: str
    conditions: Dict[str, Any]


@dataclass(frozen=True)
class Evaluation:
    raw_score: int
    matched_keywords: List[str]
    hits: List[IndicatorHit]
    result: AnalysisResult

    @property
    def summary(self) -> str:
        r = self.result
        return (
            f"Score {r.risk_score} → {r.status.value}. "
            f"Keywords={self.raw_score}, indicators={len(self.hits)}"
        )


class RuleEngine:
    def __init__(self, rules_path: str = DEFAULT_RULES_PATH):
        self.rules_path = rules_path
        self.keywords: Tuple[str, ...] = ()
        self.rules: Tuple[IndicatorRule, ...] = ()
        self.condition_handlers: Dict[str, Callable[[str, str, Any], Tuple[bool, Dict[str, Any]]]] = {
            "text.contains_any": self._cond_text_contains_any,
            "url.present": self._cond_url_present,
            "url.contains_any": self._cond_url_contains_any,
            "url.not_startswith": self._cond_url_not_startswith,
        }
        self._load_rules()

    def _load_rules(self):
        try:
            with open(self.rules_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            keywords = self._parse_keywords(data.get("keywords", []))
            rules = self._parse_indicators(data.get("indicators", []))
        except Exception as e:
            raise RuntimeError(f"Failed to load rules from {self.rules_path}: {e}") from e
        self.keywords = keywords
        self.rules = rules
        logger.info(
            "Loaded %d keywords and %d indicator rules from %s",
            len(self.keywords), len(self.rules), self.rules_path,
        )

    @staticmethod
    def _parse_keywords(raw: Any) -> Tuple[str, ...]:
        if not isinstance(raw, list):
            raise ValueError("'keywords' must be a list")
        keywords = []
        for kw in raw:
            if not isinstance(kw, str) or not kw:
                raise ValueError(f"invalid keyword {kw!r}")
            keywords.append(kw.lower())
        return tuple(keywords)

    def _parse_indicators(self, raw: Any) -> Tuple[IndicatorRule, ...]:
        if not isinstance(raw, list):
            raise ValueError("'indicators' must be a list")
        rules: List[IndicatorRule] = []
        seen = set()
        for entry in raw:
            if not isinstance(entry, dict) or not entry.get("label"):
                raise ValueError(f"indicator without a label: {entry!r}")
            label = str(entry["label"])
            if label in seen:
                raise ValueError(f"duplicate indicator label {label!r}")
            seen.add(label)
            conditions = entry.get("conditions")
            self._check_condition(conditions)
            rules.append(IndicatorRule(label=label, conditions=conditions))
        return tuple(rules)

    def _check_condition(self, cond: Any):
        if not isinstance(cond, dict) or len(cond) != 1:
            raise ValueError(f"condition must be a single-key mapping: {cond!r}")
        key, val = next(iter(cond.items()))
        if key in ("any", "all"):
            if not isinstance(val, list) or not val:
                raise ValueError(f"'{key}' needs a non-empty list")
            for c in val:
                self._check_condition(c)
        elif key not in self.condition_handlers:
            raise ValueError(f"unknown condition {key!r}")

    # ---- Condition primitives ----
    # Text conditions see the normalized corpus, url conditions the raw url.
    def _cond_text_contains_any(self, corpus: str, url: str, values: List[str]):
        hits = contains_any(corpus, [v.lower() for v in values])
        return (bool(hits), {"matched_terms": hits} if hits else {})

    def _cond_url_present(self, corpus: str, url: str, expected: bool):
        return (bool(url) == bool(expected), {})

    def _cond_url_contains_any(self, corpus: str, url: str, values: List[str]):
        hits = contains_any(url, values)
        return (bool(hits), {"url_fragments": hits} if hits else {})

    def _cond_url_not_startswith(self, corpus: str, url: str, prefix: str):
        ok = missing_prefix(url, prefix)
        return (ok, {"missing_prefix": prefix} if ok else {})

    # ---- Evaluation ----
    def eval_conditions(self, corpus: str, url: str, cond: Dict[str, Any]) -> Tuple[bool, Dict[str, Any]]:
        if "any" in cond:
            for c in cond["any"]:
                ok, ev = self.eval_conditions(corpus, url, c)
                if ok:
                    return True, ev
            return False, {}
        if "all" in cond:
            combined = {}
            for c in cond["all"]:
                ok, ev = self.eval_conditions(corpus, url, c)
                if not ok:
                    return False, {}
                combined.update(ev)
            return True, combined
        key, val = next(iter(cond.items()))
        return self.condition_handlers[key](corpus, url, val)

    def classify(self, corpus: str, url: str) -> List[IndicatorHit]:
        hits: List[IndicatorHit] = []
        for rule in self.rules:
            ok, ev = self.eval_conditions(corpus, url, rule.conditions)
            if ok:
                hits.append(IndicatorHit(label=rule.label, evidence=ev))
        return hits

    def evaluate(self, text: str, url: str) -> Evaluation:
        text, url = text or "", url or ""
        corpus = normalize(text, url)
        raw_score, matched = keyword_score(corpus, self.keywords)
        hits = self.classify(corpus, url)
        result = AnalysisResult(
            status=resolve_status(raw_score, len(hits)),
            risk_score=final_score(raw_score, len(hits)),
            indicators=tuple(h.label for h in hits),
        )
        logger.debug(
            "Scored %d chars: raw=%d indicators=%d -> %s (%d)",
            len(text) + len(url), raw_score, len(hits),
            result.status.value, result.risk_score,
        )
        return Evaluation(raw_score=raw_score, matched_keywords=matched, hits=hits, result=result)

    def analyze(self, text: str, url: str) -> AnalysisResult:
        return self.evaluate(text, url).result

    def describe(self) -> Dict[str, Any]:
        return {
            "keywords": list(self.keywords),
            "indicators": [
                {"label": r.label, "conditions": copy.deepcopy(r.conditions)}
                for r in self.rules
            ],
        }


@lru_cache(maxsize=None)
def default_engine() -> RuleEngine:
    return RuleEngine(os.getenv("RULES_PATH", DEFAULT_RULES_PATH))


def analyze(text: str, url: str) -> AnalysisResult:
    """Score one (text, url) pair with the process-wide rule set."""
    return default_engine().analyze(text, url)
