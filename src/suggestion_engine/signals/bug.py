"""BUG extractor: observed failures happening now."""

from __future__ import annotations

import re

from suggestion_engine.models.domain import Signal

BUG_TOKENS = re.compile(
    r"\b(failing|broken|latency|error|regression|crash|not behaving|doesn't work|does not work)\b",
    re.I,
)
# Speculative failure language belongs to SCOPE_RISK
SPECULATIVE_TOKENS = re.compile(r"\b(if|might|could|may|risk|concern)\b", re.I)

CONFIDENCE = 0.7


def extract_bug(sentences: list[str]) -> list[Signal]:
    signals: list[Signal] = []
    for i, sentence in enumerate(sentences):
        if not BUG_TOKENS.search(sentence) or SPECULATIVE_TOKENS.search(sentence):
            continue
        signals.append(
            Signal(
                signal_type="BUG",
                label="bug",
                proposed_type="bug",
                confidence=CONFIDENCE,
                sentence=sentence,
                sentence_index=i,
            )
        )
    return signals
