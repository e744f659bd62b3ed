"""FEATURE_DEMAND extractor: external actors asking for something."""

from __future__ import annotations

import re

from suggestion_engine.models.domain import Signal

EXTERNAL_ACTORS = re.compile(r"\b(users?|customers?|cto|cs|sales|trial|prospect|they|them)\b", re.I)
DESIRE_VERB_WORDS = re.compile(r"\b(need|needs|require|requires|want|wants|requesting)\b", re.I)
# "ask"/"asks" alone is too generic to count as demand
DESIRE_VERB_PHRASES = re.compile(r"\b(asking for|screaming for)\b", re.I)
AMPLIFIERS = re.compile(r"\b(blocker|failing|expansion)\b", re.I)

BASE_CONFIDENCE = 0.65
AMPLIFIED_CONFIDENCE = 0.75


def extract_feature_demand(sentences: list[str]) -> list[Signal]:
    signals: list[Signal] = []
    for i, sentence in enumerate(sentences):
        has_desire = bool(DESIRE_VERB_WORDS.search(sentence) or DESIRE_VERB_PHRASES.search(sentence))
        if not EXTERNAL_ACTORS.search(sentence) or not has_desire:
            continue
        confidence = AMPLIFIED_CONFIDENCE if AMPLIFIERS.search(sentence) else BASE_CONFIDENCE
        signals.append(
            Signal(
                signal_type="FEATURE_DEMAND",
                label="idea",
                proposed_type="idea",
                confidence=confidence,
                sentence=sentence,
                sentence_index=i,
            )
        )
    return signals
