"""PLAN_CHANGE extractor: a milestone moving in time."""

from __future__ import annotations

import re

from suggestion_engine.models.domain import Signal

TIME_MILESTONE = re.compile(
    r"\b(date|quarter|q[1-4]|launch|release|v\d+|\d+[-\s](?:week|day|month)s?)\b", re.I
)
SHIFT_VERBS = re.compile(
    r"\b(push(?:ing|ed)?|delay(?:s|ing|ed)?|mov(?:e|es|ing|ed)|slip(?:s|ping|ped)?|pull(?:ing|ed)?)\b",
    re.I,
)
# Conditional language describes a risk, not a committed change
CONDITIONAL_TOKENS = re.compile(r"\b(if|unless|might|could|may)\b", re.I)

CONFIDENCE = 0.75


def extract_plan_change(sentences: list[str]) -> list[Signal]:
    signals: list[Signal] = []
    for i, sentence in enumerate(sentences):
        if not TIME_MILESTONE.search(sentence) or not SHIFT_VERBS.search(sentence):
            continue
        if CONDITIONAL_TOKENS.search(sentence):
            continue
        signals.append(
            Signal(
                signal_type="PLAN_CHANGE",
                label="update",
                proposed_type="project_update",
                confidence=CONFIDENCE,
                sentence=sentence,
                sentence_index=i,
            )
        )
    return signals
