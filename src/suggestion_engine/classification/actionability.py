"""Actionability gate derived from the intent distribution."""

from __future__ import annotations

from dataclasses import dataclass

from suggestion_engine.classification.intent import has_explicit_imperative
from suggestion_engine.models.domain import IntentScores, Section
from suggestion_engine.models.schemas import ThresholdConfig

SHORT_SECTION_PENALTY = 0.15
SHORT_SECTION_MAX_LINES = 2
DOMINANCE_MIN = 0.75
DOMINANCE_GAP = 0.20
BORDERLINE_MARGIN = 0.1
BORDERLINE_MAX_LINES = 3


@dataclass
class ActionabilityDecision:
    actionable: bool
    reason: str
    actionable_signal: float
    out_of_scope_signal: float
    overridden: bool = False
    out_of_scope: bool = False


def is_plan_change_label(intent: IntentScores) -> bool:
    return intent.top_label() == "plan_change"


def decide_actionability(
    intent: IntentScores,
    section: Section,
    thresholds: ThresholdConfig,
) -> ActionabilityDecision:
    """Apply the gate chain; the first rule that decides wins."""
    signal = intent.actionable_signal
    oos = intent.out_of_scope_signal
    lines = section.structural_features.num_lines
    penalty = SHORT_SECTION_PENALTY if lines <= SHORT_SECTION_MAX_LINES else 0.0
    effective = thresholds.t_action + penalty

    def decision(actionable: bool, reason: str, out_of_scope: bool = False) -> ActionabilityDecision:
        return ActionabilityDecision(actionable, reason, signal, oos, out_of_scope=out_of_scope)

    if is_plan_change_label(intent):
        raw = _raw_gate(signal, oos, effective, thresholds)
        if raw:
            return decision(True, f"plan_change: signal={signal:.3f} >= {effective:.3f}")
        result = decision(True, f"plan_change override: bypassed gate (signal={signal:.3f}, oos={oos:.3f})")
        result.overridden = True
        return result

    oos_top = max(intent.calendar, intent.communication)
    in_top = max(
        intent.plan_change,
        intent.micro_tasks,
        intent.new_workstream,
        intent.status_informational,
        intent.research,
    )
    if oos_top >= DOMINANCE_MIN and oos_top - in_top >= DOMINANCE_GAP:
        return decision(False, f"out-of-scope dominance: oos_top={oos_top:.3f}, gap={oos_top - in_top:.3f}", True)

    if has_explicit_imperative(section):
        return decision(True, f"imperative floor (signal={signal:.3f}, oos={oos:.3f})")

    if signal < effective:
        return decision(False, f"action signal too low: {signal:.3f} < {effective:.3f}")

    if oos >= thresholds.t_out_of_scope:
        return decision(False, f"out of scope: {oos:.3f} >= {thresholds.t_out_of_scope:.3f}", True)

    margin = signal - effective
    if margin < BORDERLINE_MARGIN and lines <= BORDERLINE_MAX_LINES:
        return decision(False, f"borderline signal with little content: margin={margin:.3f}, lines={lines}")

    return decision(True, f"actionable: signal={signal:.3f} >= {effective:.3f}, oos={oos:.3f}")


def _raw_gate(signal: float, oos: float, effective: float, thresholds: ThresholdConfig) -> bool:
    return signal >= effective and oos < thresholds.t_out_of_scope
