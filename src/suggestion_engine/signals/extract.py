"""Run every signal extractor over a sentence list."""

from __future__ import annotations

from suggestion_engine.models.domain import Signal
from suggestion_engine.signals.bug import extract_bug
from suggestion_engine.signals.feature_demand import extract_feature_demand
from suggestion_engine.signals.plan_change import extract_plan_change
from suggestion_engine.signals.scope_risk import extract_scope_risk

EXTRACTORS = (
    extract_feature_demand,
    extract_plan_change,
    extract_scope_risk,
    extract_bug,
)


def extract_signals(sentences: list[str]) -> list[Signal]:
    """Concatenate the output of every extractor; no cross-type merging here."""
    signals: list[Signal] = []
    for extractor in EXTRACTORS:
        signals.extend(extractor(sentences))
    return signals
