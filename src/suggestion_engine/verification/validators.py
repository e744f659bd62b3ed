"""Quality validators: hard pass/fail gates run after synthesis.

V2 anti-vacuity, V3 evidence sanity and V4 heading-only run in that order.
The first blocking failure stops the chain. A failed gate is a normal result,
never an exception.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from suggestion_engine.models.domain import ClassifiedSection, Suggestion, ValidationResult
from suggestion_engine.models.schemas import ThresholdConfig
from suggestion_engine.segmentation.lines import normalize_for_comparison

V2_NAME = "V2_anti_vacuity"
V3_NAME = "V3_evidence_sanity"
V4_NAME = "V4_heading_only"

GENERIC_VERBS = {
    "improve", "optimize", "align", "streamline", "clarify", "enhance", "coordinate",
    "prioritize", "manage", "facilitate", "leverage", "synergize", "enable", "empower",
    "drive", "ensure", "support", "address", "discuss", "review", "assess", "evaluate",
}
GENERIC_NOUNS = {
    "process", "communication", "stakeholders", "priorities", "efficiency", "operations",
    "alignment", "workflows", "collaboration", "productivity", "visibility", "transparency",
    "accountability", "ownership", "outcomes", "deliverables", "resources", "bandwidth",
    "capacity", "synergy", "impact", "value",
}
COMMON_WORDS = {
    "about", "after", "again", "also", "because", "before", "being", "both", "could", "does",
    "doing", "during", "each", "even", "every", "first", "from", "going", "good", "have",
    "having", "here", "into", "just", "know", "last", "like", "make", "many", "more", "most",
    "much", "need", "only", "other", "over", "same", "should", "some", "such", "take", "than",
    "that", "their", "them", "then", "there", "these", "they", "thing", "this", "those",
    "through", "time", "very", "want", "well", "what", "when", "where", "which", "while",
    "will", "with", "would", "your",
}

TITLE_GENERIC_MAX = 0.7
MIN_DOMAIN_NOUNS = 2
MIN_IDEA_EVIDENCE_CHARS = 20

# Provenance tags whose evidence is a single extracted sentence or clause
SENTENCE_SOURCES = {"b-signal", "dense-paragraph", "explicit-ask"}
VACUITY_EXEMPT_SOURCES = {"plan-change-fallback"}


def tokenize(text: str) -> list[str]:
    return [w for w in re.split(r"\s+", re.sub(r"[^a-z0-9\s]", " ", text.lower())) if len(w) > 2]


def generic_ratio(text: str) -> float:
    tokens = tokenize(text)
    if not tokens:
        return 0.0
    generic = sum(1 for t in tokens if t in GENERIC_VERBS or t in GENERIC_NOUNS)
    return generic / len(tokens)


def domain_nouns(text: str) -> list[str]:
    seen: dict[str, None] = {}
    for token in tokenize(text):
        if token in GENERIC_VERBS or token in GENERIC_NOUNS or token in COMMON_WORDS:
            continue
        if len(token) >= 4:
            seen.setdefault(token, None)
    return list(seen)


def validate_anti_vacuity(
    suggestion: Suggestion, section: ClassifiedSection, thresholds: ThresholdConfig
) -> ValidationResult:
    if suggestion.source in VACUITY_EXEMPT_SOURCES:
        return ValidationResult(V2_NAME, True, reason="fallback placeholder exempt")

    text = f"{suggestion.title} {suggestion.payload.description}"
    ratio = generic_ratio(text)
    nouns = domain_nouns(section.raw_text)
    if ratio > thresholds.t_generic and len(nouns) < MIN_DOMAIN_NOUNS:
        return ValidationResult(
            V2_NAME,
            False,
            reason=f"too generic (ratio: {ratio:.2f}, domain nouns: {len(nouns)})",
            score=round(ratio, 4),
        )

    title_ratio = generic_ratio(suggestion.title)
    if title_ratio > TITLE_GENERIC_MAX:
        return ValidationResult(
            V2_NAME, False, reason=f"title too generic (ratio: {title_ratio:.2f})", score=round(title_ratio, 4)
        )
    return ValidationResult(V2_NAME, True, score=round(ratio, 4))


def validate_evidence_sanity(
    suggestion: Suggestion, section: ClassifiedSection, thresholds: ThresholdConfig
) -> ValidationResult:
    spans = suggestion.evidence_spans
    if not spans:
        return ValidationResult(V3_NAME, False, reason="no evidence spans")

    normalized_section = normalize_for_comparison(section.raw_text)
    for span in spans:
        normalized_span = normalize_for_comparison(span.text)
        if normalized_span not in normalized_section:
            return ValidationResult(V3_NAME, False, reason="evidence span not found in section text")

    evidence_chars = sum(len(re.sub(r"\s", "", s.text)) for s in spans)
    if section.is_plan_change:
        return ValidationResult(V3_NAME, True, score=float(evidence_chars))

    section_chars = len(re.sub(r"\s", "", section.raw_text))
    if section_chars < MIN_IDEA_EVIDENCE_CHARS and evidence_chars < MIN_IDEA_EVIDENCE_CHARS:
        return ValidationResult(
            V3_NAME,
            False,
            reason=f"evidence too short (section: {section_chars}, evidence: {evidence_chars})",
            score=float(evidence_chars),
        )

    total_chars = sum(len(s.text) for s in spans)
    if total_chars < thresholds.min_evidence_chars and suggestion.source not in SENTENCE_SOURCES:
        return ValidationResult(
            V3_NAME,
            False,
            reason=f"evidence weak ({total_chars} < {thresholds.min_evidence_chars} chars)",
            score=float(total_chars),
            blocking=False,
        )
    return ValidationResult(V3_NAME, True, score=float(total_chars))


def validate_heading_only(
    suggestion: Suggestion, section: ClassifiedSection, thresholds: ThresholdConfig
) -> ValidationResult:
    if suggestion.type != "idea" or suggestion.title_source == "explicit-ask":
        return ValidationResult(V4_NAME, True)

    heading_derived = suggestion.title_source == "heading" or suggestion.title.startswith("New idea:")
    if not heading_derived:
        return ValidationResult(V4_NAME, True)

    heading = normalize_for_comparison(section.heading_text)
    body_evidence = [
        s for s in suggestion.evidence_spans if normalize_for_comparison(s.text) not in ("", heading)
    ]
    if not body_evidence:
        return ValidationResult(
            V4_NAME, False, reason=f"heading-only suggestion (title source: {suggestion.title_source})"
        )
    return ValidationResult(V4_NAME, True)


VALIDATORS = (validate_anti_vacuity, validate_evidence_sanity, validate_heading_only)


@dataclass
class ValidationReport:
    passed: bool
    results: list[ValidationResult] = field(default_factory=list)
    failed_validator: str | None = None
    failure_reason: str | None = None

    @property
    def evidence_weak(self) -> bool:
        return any(not r.passed and not r.blocking and r.validator == V3_NAME for r in self.results)


def run_quality_validators(
    suggestion: Suggestion, section: ClassifiedSection, thresholds: ThresholdConfig
) -> ValidationReport:
    results: list[ValidationResult] = []
    for validator in VALIDATORS:
        result = validator(suggestion, section, thresholds)
        results.append(result)
        if not result.passed and result.blocking:
            return ValidationReport(False, results, result.validator, result.reason)
    return ValidationReport(True, results)


class QualityValidator:
    def __init__(self, thresholds: ThresholdConfig) -> None:
        self._thresholds = thresholds

    def validate(self, suggestion: Suggestion, section: ClassifiedSection) -> ValidationReport:
        report = run_quality_validators(suggestion, section, self._thresholds)
        suggestion.validation_results = list(report.results)
        return report
