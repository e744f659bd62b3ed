"""SCOPE_RISK extractor.

Three independent trigger paths:

* A: a strong actionable conditional ("if we can't", "might need to be").
* B: a bare ``if``/``unless`` plus a concrete consequence (release, launch,
  compliance, partnership, data residency).
* C: lexical risk vocabulary (risk, PII, GDPR, security, ...). PII next to
  logging or user ids is elevated to a higher confidence.

Sentences that open with a subjective observation ("some concern that ...")
never fire. Path C also stands down for schedule slips and feature requests
so it does not steal those sentences from the other extractors.
"""

from __future__ import annotations

import re

from suggestion_engine.config.constants import PII_RISK_CONFIDENCE
from suggestion_engine.models.domain import Signal
from suggestion_engine.signals.feature_demand import DESIRE_VERB_PHRASES, DESIRE_VERB_WORDS, EXTERNAL_ACTORS
from suggestion_engine.signals.plan_change import SHIFT_VERBS

ACTIONABLE_CONDITIONAL_PHRASES = re.compile(
    r"\b(if we can't|if we cannot|if we don't|if we do not|might need to be|could require"
    r"|may force|might be pulled|could block)\b",
    re.I,
)
CONDITIONAL_TOKENS = re.compile(r"\b(if|unless)\b", re.I)
CONSEQUENCE_REFS = re.compile(
    r"\b(release|launch|rollout|scope|mobile app|pulled|app store|compliance|partnership"
    r"|dead in the water|data residency)\b",
    re.I,
)
SUBJECTIVE_CONCERN_PREFIX = re.compile(r"^(some\s+)?(concern|risk|worry|worried|fear)\s+that\b", re.I)

LEXICAL_RISK = re.compile(
    r"\b(risks?|concerns?|pii|gdpr|compliance|security|vulnerabilit(?:y|ies)|exposure|blockers?)\b",
    re.I,
)
PII_TOKEN = re.compile(r"\bpii\b", re.I)
PII_CONTEXT = re.compile(r"\b(logging|logs?|user\s*ids?)\b", re.I)
TIME_UNIT = re.compile(r"\b\d+[-\s]?(?:week|day|month|sprint)s?\b", re.I)

BASE_CONFIDENCE = 0.7


def _signal(sentence: str, index: int, confidence: float) -> Signal:
    return Signal(
        signal_type="SCOPE_RISK",
        label="risk",
        proposed_type="risk",
        confidence=confidence,
        sentence=sentence,
        sentence_index=index,
    )


def _is_schedule_slip(sentence: str) -> bool:
    return bool(SHIFT_VERBS.search(sentence) and TIME_UNIT.search(sentence))


def _is_feature_request(sentence: str) -> bool:
    has_desire = DESIRE_VERB_WORDS.search(sentence) or DESIRE_VERB_PHRASES.search(sentence)
    return bool(EXTERNAL_ACTORS.search(sentence) and has_desire)


def extract_scope_risk(sentences: list[str]) -> list[Signal]:
    signals: list[Signal] = []
    for i, sentence in enumerate(sentences):
        if SUBJECTIVE_CONCERN_PREFIX.search(sentence.strip()):
            continue

        if ACTIONABLE_CONDITIONAL_PHRASES.search(sentence):
            signals.append(_signal(sentence, i, BASE_CONFIDENCE))
            continue

        if CONDITIONAL_TOKENS.search(sentence) and CONSEQUENCE_REFS.search(sentence):
            signals.append(_signal(sentence, i, BASE_CONFIDENCE))
            continue

        if LEXICAL_RISK.search(sentence):
            if _is_schedule_slip(sentence) or _is_feature_request(sentence):
                continue
            pii_specific = PII_TOKEN.search(sentence) and PII_CONTEXT.search(sentence)
            signals.append(_signal(sentence, i, PII_RISK_CONFIDENCE if pii_specific else BASE_CONFIDENCE))
    return signals
