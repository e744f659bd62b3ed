"""Blend rule-based intent scores with an external classifier's output."""

from __future__ import annotations

from dataclasses import replace

from suggestion_engine.models.domain import INTENT_LABELS, IntentScores

MIN_MODEL_CONFIDENCE = 0.3
MAX_MODEL_WEIGHT = 0.8


def blend_intent(rule: IntentScores, model_scores: dict[str, float], model_confidence: float) -> IntentScores:
    """``(1 - w) * rule + w * model`` per label, with ``w = min(0.8, confidence)``.

    A model below the confidence floor leaves the rule scores untouched. Labels
    the model did not score keep their rule value.
    """
    if model_confidence < MIN_MODEL_CONFIDENCE:
        return rule
    weight = min(MAX_MODEL_WEIGHT, model_confidence)
    blended = {}
    for label in INTENT_LABELS:
        rule_score = getattr(rule, label)
        model_score = model_scores.get(label)
        if model_score is None:
            blended[label] = rule_score
            continue
        model_score = max(0.0, min(1.0, float(model_score)))
        blended[label] = (1 - weight) * rule_score + weight * model_score
    return replace(rule, flags=dict(rule.flags), **blended)
