"""Suggestion scoring: sub-scores, threshold gates and the output cap."""

from __future__ import annotations

import re
from collections.abc import Mapping

from suggestion_engine.config.constants import HIGH_CONFIDENCE_THRESHOLD
from suggestion_engine.models.domain import ClassifiedSection, ScoreBreakdown, Suggestion
from suggestion_engine.models.schemas import ThresholdConfig
from suggestion_engine.scoring.reason_codes import ClarificationReason

OOS_PENALTY = 0.3
PLANNING_REF_BONUS = 0.1
LAUNCH_BONUS = 0.15
SHORT_SECTION_PENALTY = 0.15

_OWNER_RE = re.compile(r"\b(owner|lead|responsible)\s*:\s*\w+", re.I)
_DUE_RE = re.compile(r"\b(by|due|deadline)\s*:\s*\d+", re.I)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _words(text: str) -> list[str]:
    return [w for w in text.lower().split() if len(w) > 3]


def section_actionability(section: ClassifiedSection) -> float:
    intent = section.intent
    score = max(intent.plan_change, intent.new_workstream)
    score -= intent.out_of_scope_signal * OOS_PENALTY

    features = section.structural_features
    if features.has_quarter_refs or features.has_version_refs:
        score += PLANNING_REF_BONUS
    if features.has_launch_keywords:
        score += LAUNCH_BONUS
    if features.num_lines <= 2:
        score -= SHORT_SECTION_PENALTY
    return _clamp(score)


def type_choice_confidence(section: ClassifiedSection) -> float:
    """Higher when one of plan_change / new_workstream clearly wins."""
    p_update = section.intent.plan_change
    p_idea = section.intent.new_workstream
    margin = abs(p_update - p_idea)
    top = max(p_update, p_idea)

    confidence = 0.5 + margin * 0.5
    if top < 0.3:
        confidence -= 0.2
    if margin < 0.1:
        confidence -= 0.15
    if top > 0.7 and margin > 0.3:
        confidence += 0.1
    return _clamp(confidence)


def synthesis_confidence(suggestion: Suggestion, section: ClassifiedSection) -> float:
    confidence = 0.7
    section_text = section.raw_text.lower()
    suggestion_text = f"{suggestion.title} {suggestion.payload.description}".lower()

    section_words = set(_words(section_text))
    suggestion_words = _words(suggestion_text)
    if suggestion_words:
        overlap = sum(1 for w in suggestion_words if w in section_words) / len(suggestion_words)
    else:
        overlap = 0.0
    if overlap > 0.5:
        confidence += 0.15
    elif overlap < 0.2:
        confidence -= 0.2

    if _OWNER_RE.search(suggestion_text) and not _OWNER_RE.search(section_text):
        confidence -= 0.1
    if _DUE_RE.search(suggestion_text) and not _DUE_RE.search(section_text):
        confidence -= 0.1

    evidence_words = set(_words(" ".join(s.text for s in suggestion.evidence_spans)))
    if suggestion_words:
        coverage = sum(1 for w in suggestion_words if w in evidence_words) / len(suggestion_words)
    else:
        coverage = 0.0
    if coverage < 0.2:
        confidence -= 0.15
    return _clamp(confidence)


def is_plan_change_update(suggestion: Suggestion, section: ClassifiedSection) -> bool:
    return suggestion.type == "project_update" and section.is_plan_change


class SuggestionScorer:
    def __init__(self, thresholds: ThresholdConfig, max_suggestions: int) -> None:
        self._thresholds = thresholds
        self._max_suggestions = max_suggestions

    def refine(self, suggestion: Suggestion, section: ClassifiedSection) -> ScoreBreakdown:
        if suggestion.source == "plan-change-fallback":
            return suggestion.scores

        actionability = section_actionability(section)
        type_confidence = type_choice_confidence(section)
        confidence = suggestion.metadata.get("confidence")
        if confidence is not None and "signal_type" in suggestion.metadata:
            actionability = max(actionability, confidence)
        if confidence is not None and suggestion.metadata.get("explicit_type"):
            type_confidence = confidence

        suggestion.scores = ScoreBreakdown(
            actionability=round(actionability, 4),
            type_confidence=round(type_confidence, 4),
            synthesis_confidence=round(synthesis_confidence(suggestion, section), 4),
        )
        return suggestion.scores

    def clarification_reasons(self, suggestion: Suggestion) -> list[str]:
        reasons = []
        if suggestion.scores.actionability < self._thresholds.t_section_min:
            reasons.append(ClarificationReason.LOW_ACTIONABILITY_SCORE)
        if suggestion.scores.overall < self._thresholds.t_overall_min:
            reasons.append(ClarificationReason.LOW_OVERALL_SCORE)
        return reasons

    def threshold_failure(self, suggestion: Suggestion) -> str | None:
        overall = suggestion.scores.overall
        if overall < self._thresholds.t_overall_min:
            return f"overall {overall:.2f} < {self._thresholds.t_overall_min}"
        if suggestion.type == "idea" and suggestion.scores.actionability < self._thresholds.t_section_min:
            return f"actionability {suggestion.scores.actionability:.2f} < {self._thresholds.t_section_min}"
        return None

    def apply_thresholds(
        self,
        suggestion: Suggestion,
        section: ClassifiedSection,
        evidence_weak: bool = False,
    ) -> str | None:
        """Gate one scored suggestion. Returns a failure detail when it is dropped."""
        failure = self.threshold_failure(suggestion)
        if failure is not None and not is_plan_change_update(suggestion, section):
            return failure

        reasons = list(suggestion.clarification_reasons)
        if failure is not None:
            reasons.extend(r for r in self.clarification_reasons(suggestion) if r not in reasons)
        if evidence_weak and ClarificationReason.EVIDENCE_WEAK not in reasons:
            reasons.append(ClarificationReason.EVIDENCE_WEAK)

        suggestion.clarification_reasons = reasons
        suggestion.needs_clarification = bool(reasons)
        suggestion.action = "comment" if suggestion.needs_clarification else "apply"
        suggestion.is_high_confidence = suggestion.scores.overall >= HIGH_CONFIDENCE_THRESHOLD
        return None

    def cap(
        self,
        suggestions: list[Suggestion],
        protected: Mapping[str, str] | None = None,
    ) -> tuple[list[Suggestion], list[Suggestion]]:
        """Keep every project update; other types fill the remaining slots by score.

        ``protected`` maps section ids to a plan-change group (the section
        itself, or the split parent it came from). A group with no surviving
        update keeps its best candidate regardless of the cap, so a configured
        limit never silences a plan change.
        """
        protected = protected or {}
        updates = sorted(
            (s for s in suggestions if s.type == "project_update"), key=lambda s: -s.scores.overall
        )
        others = sorted(
            (s for s in suggestions if s.type != "project_update"), key=lambda s: -s.scores.overall
        )

        covered = {protected[s.section_id] for s in updates if s.section_id in protected}
        reserved: list[Suggestion] = []
        for suggestion in others:
            group = protected.get(suggestion.section_id)
            if group is not None and group not in covered:
                reserved.append(suggestion)
                covered.add(group)

        reserved_ids = {id(s) for s in reserved}
        remaining = [s for s in others if id(s) not in reserved_ids]
        slots = max(0, self._max_suggestions - len(updates) - len(reserved))
        kept_others = sorted(reserved + remaining[:slots], key=lambda s: -s.scores.overall)
        return updates + kept_others, remaining[slots:]
