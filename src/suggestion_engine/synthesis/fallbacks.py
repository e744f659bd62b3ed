"""Fallback paths for sections that produced no candidates."""

from __future__ import annotations

from suggestion_engine.classification.topic_isolation import is_long_or_discussion
from suggestion_engine.config.constants import FALLBACK_PLACEHOLDER_SCORE
from suggestion_engine.models.domain import ClassifiedSection, ScoreBreakdown, Suggestion
from suggestion_engine.scoring.reason_codes import ClarificationReason
from suggestion_engine.segmentation.lines import strip_list_marker
from suggestion_engine.synthesis.candidate_factory import CandidateFactory

PLACEHOLDER_EVIDENCE_LINES = 3


class FallbackSkip:
    DISCUSSION_DETAILS = "discussion_details"
    LOW_RELEVANCE_HEADING = "low_relevance_heading"
    SPEC_FRAMEWORK_SECTION = "spec_framework_section"
    TOPIC_SPLIT_NO_CHILD_OUTPUT = "topic_split_no_child_output"


def is_discussion_details(section: ClassifiedSection) -> bool:
    return is_long_or_discussion(section.section)


def plan_change_placeholder(section: ClassifiedSection, factory: CandidateFactory) -> Suggestion:
    """A generic project update so a plan-change section is never silent."""
    evidence = [
        strip_list_marker(line.text)
        for line in section.body_lines
        if line.text.strip() and line.line_type != "code"
    ][:PLACEHOLDER_EVIDENCE_LINES]
    heading = section.heading_text.strip() or "plan change"
    candidate = factory.build(
        section.section,
        "project_update",
        f"Review: {heading}",
        evidence,
        source="plan-change-fallback",
        confidence=FALLBACK_PLACEHOLDER_SCORE,
        title_source="fallback",
    )
    candidate.scores = ScoreBreakdown(
        FALLBACK_PLACEHOLDER_SCORE, FALLBACK_PLACEHOLDER_SCORE, FALLBACK_PLACEHOLDER_SCORE
    )
    candidate.needs_clarification = True
    candidate.clarification_reasons.append(ClarificationReason.FALLBACK_SYNTHESIS)
    return candidate
