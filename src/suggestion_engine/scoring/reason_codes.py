"""Stage and reason codes recorded for every dropped section or candidate."""

from __future__ import annotations


class DropStage:
    SEGMENTATION = "SEGMENTATION"
    ACTIONABILITY = "ACTIONABILITY"
    TYPE = "TYPE"
    TOPIC_ISOLATION = "TOPIC_ISOLATION"
    SYNTHESIS = "SYNTHESIS"
    EVIDENCE = "EVIDENCE"
    VALIDATION = "VALIDATION"
    THRESHOLD = "THRESHOLD"
    DEDUPE = "DEDUPE"
    POST_SYNTHESIS_SUPPRESS = "POST_SYNTHESIS_SUPPRESS"


class DropReason:
    NOT_ACTIONABLE = "NOT_ACTIONABLE"
    OUT_OF_SCOPE = "OUT_OF_SCOPE"
    TYPE_LOW_CONFIDENCE = "TYPE_LOW_CONFIDENCE"
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"
    EVIDENCE_NOT_LOCATABLE = "EVIDENCE_NOT_LOCATABLE"
    VALIDATION_V2_TOO_GENERIC = "VALIDATION_V2_TOO_GENERIC"
    VALIDATION_V3_EVIDENCE_TOO_WEAK = "VALIDATION_V3_EVIDENCE_TOO_WEAK"
    VALIDATION_V4_HEADING_ONLY = "VALIDATION_V4_HEADING_ONLY"
    SCORE_BELOW_THRESHOLD = "SCORE_BELOW_THRESHOLD"
    DUPLICATE_FINGERPRINT = "DUPLICATE_FINGERPRINT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    LOW_RELEVANCE = "LOW_RELEVANCE"
    SUPPRESSED_SECTION = "SUPPRESSED_SECTION"
    SPLIT_INTO_SUBSECTIONS = "SPLIT_INTO_SUBSECTIONS"
    UNGROUNDED_EVIDENCE = "UNGROUNDED_EVIDENCE"
    PROCESS_NOISE = "PROCESS_NOISE"


DROP_REASON_STAGE: dict[str, str] = {
    DropReason.NOT_ACTIONABLE: DropStage.ACTIONABILITY,
    DropReason.OUT_OF_SCOPE: DropStage.ACTIONABILITY,
    DropReason.TYPE_LOW_CONFIDENCE: DropStage.TYPE,
    DropReason.SYNTHESIS_FAILED: DropStage.SYNTHESIS,
    DropReason.EVIDENCE_NOT_LOCATABLE: DropStage.EVIDENCE,
    DropReason.VALIDATION_V2_TOO_GENERIC: DropStage.VALIDATION,
    DropReason.VALIDATION_V3_EVIDENCE_TOO_WEAK: DropStage.VALIDATION,
    DropReason.VALIDATION_V4_HEADING_ONLY: DropStage.VALIDATION,
    DropReason.SCORE_BELOW_THRESHOLD: DropStage.THRESHOLD,
    DropReason.DUPLICATE_FINGERPRINT: DropStage.DEDUPE,
    DropReason.INTERNAL_ERROR: DropStage.VALIDATION,
    DropReason.LOW_RELEVANCE: DropStage.POST_SYNTHESIS_SUPPRESS,
    DropReason.SUPPRESSED_SECTION: DropStage.POST_SYNTHESIS_SUPPRESS,
    DropReason.SPLIT_INTO_SUBSECTIONS: DropStage.TOPIC_ISOLATION,
    DropReason.UNGROUNDED_EVIDENCE: DropStage.VALIDATION,
    DropReason.PROCESS_NOISE: DropStage.POST_SYNTHESIS_SUPPRESS,
}

# Validator name -> drop reason when that gate fails
VALIDATOR_DROP_REASON: dict[str, str] = {
    "V2_anti_vacuity": DropReason.VALIDATION_V2_TOO_GENERIC,
    "V3_evidence_sanity": DropReason.VALIDATION_V3_EVIDENCE_TOO_WEAK,
    "V4_heading_only": DropReason.VALIDATION_V4_HEADING_ONLY,
}


class ClarificationReason:
    LOW_ACTIONABILITY_SCORE = "low_actionability_score"
    LOW_OVERALL_SCORE = "low_overall_score"
    EVIDENCE_WEAK = "evidence_weak"
    FALLBACK_SYNTHESIS = "fallback_synthesis"


def stage_for(reason: str) -> str:
    return DROP_REASON_STAGE[reason]
