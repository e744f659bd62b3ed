"""Evaluation metric computation for the suggestion engine."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field

from datasketch import MinHash, MinHashLSH

from suggestion_engine.config.constants import (
    MINHASH_NUM_PERM,
    NEAR_DUP_SIMILARITY_THRESHOLD,
    SENSITIVITY_DROP_RATIO,
)
from suggestion_engine.models.domain import Suggestion
from suggestion_engine.observability.logger import get_logger
from suggestion_engine.scoring.reason_codes import DropReason

logger = get_logger("evaluation")

VALIDATOR_REASON_NAMES = {
    DropReason.VALIDATION_V2_TOO_GENERIC: "V2_anti_vacuity",
    DropReason.VALIDATION_V3_EVIDENCE_TOO_WEAK: "V3_evidence_sanity",
    DropReason.UNGROUNDED_EVIDENCE: "V3_evidence_sanity",
    DropReason.EVIDENCE_NOT_LOCATABLE: "V3_evidence_sanity",
    DropReason.VALIDATION_V4_HEADING_ONLY: "V4_heading_only",
}


@dataclass
class NoteEvaluation:
    """Result of running the pipeline over a single note."""

    note_id: str
    raw_length: int
    sections_count: int
    actionable_sections: int
    suggestions_generated: int
    suggestions_after_validation: int
    suggestions_final: int
    validator_drops: dict[str, int]
    score_drops: int
    routing_attached: int
    routing_create_new: int
    avg_overall_score: float
    suggestions_by_type: dict[str, int]
    drops_by_reason: dict[str, int]
    suggestions: list[Suggestion] = field(default_factory=list)

    @property
    def v2_drops(self) -> int:
        return self.validator_drops.get("V2_anti_vacuity", 0)

    @property
    def v3_drops(self) -> int:
        return self.validator_drops.get("V3_evidence_sanity", 0)


@dataclass
class EvaluationMetrics:
    total_notes: int = 0
    total_sections: int = 0
    total_actionable_sections: int = 0
    total_suggestions_before_validation: int = 0
    total_v2_drops: int = 0
    total_v3_drops: int = 0
    total_score_drops: int = 0
    total_suggestions_final: int = 0
    avg_suggestions_per_note: float = 0.0
    notes_with_zero_suggestions: int = 0
    notes_with_zero_suggestions_pct: float = 0.0
    total_routing_attached: int = 0
    total_routing_create_new: int = 0
    attach_ratio: float = 0.0
    avg_overall_score: float = 0.0
    validator_drop_reasons: dict[str, int] = field(default_factory=dict)
    drop_reason_histogram: dict[str, int] = field(default_factory=dict)


@dataclass
class ThresholdSensitivity:
    threshold_name: str
    values: list[float]
    suggestions_counts: list[int]
    recommendation: str | None = None


def validator_drops(drops_by_reason: dict[str, int]) -> dict[str, int]:
    """Fold drop reasons into per-validator counts."""
    counts: Counter[str] = Counter()
    for reason, count in drops_by_reason.items():
        name = VALIDATOR_REASON_NAMES.get(reason)
        if name is not None:
            counts[name] += count
    return dict(sorted(counts.items()))


def compute_metrics(evaluations: list[NoteEvaluation]) -> EvaluationMetrics:
    """Aggregate per-note evaluations into batch metrics."""
    total = len(evaluations)
    if total == 0:
        return EvaluationMetrics()

    final = sum(e.suggestions_final for e in evaluations)
    attached = sum(e.routing_attached for e in evaluations)
    zero = sum(1 for e in evaluations if e.suggestions_final == 0)
    scores = [s.scores.overall for e in evaluations for s in e.suggestions]

    validator_reasons: Counter[str] = Counter()
    histogram: Counter[str] = Counter()
    for e in evaluations:
        validator_reasons.update(e.validator_drops)
        histogram.update(e.drops_by_reason)

    return EvaluationMetrics(
        total_notes=total,
        total_sections=sum(e.sections_count for e in evaluations),
        total_actionable_sections=sum(e.actionable_sections for e in evaluations),
        total_suggestions_before_validation=sum(e.suggestions_generated for e in evaluations),
        total_v2_drops=sum(e.v2_drops for e in evaluations),
        total_v3_drops=sum(e.v3_drops for e in evaluations),
        total_score_drops=sum(e.score_drops for e in evaluations),
        total_suggestions_final=final,
        avg_suggestions_per_note=final / total,
        notes_with_zero_suggestions=zero,
        notes_with_zero_suggestions_pct=zero / total * 100,
        total_routing_attached=attached,
        total_routing_create_new=sum(e.routing_create_new for e in evaluations),
        attach_ratio=attached / final if final else 0.0,
        avg_overall_score=sum(scores) / len(scores) if scores else 0.0,
        validator_drop_reasons=dict(sorted(validator_reasons.items())),
        drop_reason_histogram=dict(sorted(histogram.items())),
    )


def recommend_threshold(threshold_name: str, values: list[float], counts: list[int]) -> str | None:
    """Point at the first value where output falls by more than the drop ratio."""
    for i in range(1, len(counts)):
        previous = counts[i - 1]
        drop_ratio = (previous - counts[i]) / previous if previous > 0 else 0.0
        if drop_ratio > SENSITIVITY_DROP_RATIO:
            return f"Consider setting {threshold_name} around {values[i - 1]} (significant drop at {values[i]})"
    return None


def _suggestion_minhash(suggestion: Suggestion) -> MinHash:
    mh = MinHash(num_perm=MINHASH_NUM_PERM)
    words = set(re.findall(r"\w+", f"{suggestion.title} {suggestion.body}".lower()))
    for word in sorted(words):
        mh.update(word.encode("utf-8"))
    return mh


def find_near_duplicate_suggestions(suggestions: list[Suggestion]) -> list[tuple[str, str]]:
    """Detect near-duplicate suggestion pairs using MinHash LSH. Returns sorted id pairs."""
    if len(suggestions) < 2:
        return []

    lsh = MinHashLSH(threshold=NEAR_DUP_SIMILARITY_THRESHOLD, num_perm=MINHASH_NUM_PERM)
    minhashes: dict[str, MinHash] = {}
    for suggestion in suggestions:
        key = f"{suggestion.note_id}:{suggestion.suggestion_id}"
        if key in minhashes:
            continue
        mh = _suggestion_minhash(suggestion)
        minhashes[key] = mh
        lsh.insert(key, mh)

    duplicates: list[tuple[str, str]] = []
    seen: set[tuple[str, str]] = set()
    for key, mh in minhashes.items():
        for candidate in sorted(lsh.query(mh)):
            if candidate == key:
                continue
            a, b = sorted((key, candidate))
            if (a, b) not in seen:
                seen.add((a, b))
                duplicates.append((a, b))

    if duplicates:
        logger.warning("near_duplicate_suggestions", count=len(duplicates))
    return duplicates


def generate_report(metrics: EvaluationMetrics) -> str:
    lines = [
        "=== Suggestion Engine Evaluation Report ===",
        "",
        "## Overview",
        f"- Total notes evaluated: {metrics.total_notes}",
        f"- Total sections detected: {metrics.total_sections}",
        f"- Actionable sections: {metrics.total_actionable_sections}",
        "",
        "## Pipeline Metrics",
        f"- Suggestions before validation: {metrics.total_suggestions_before_validation}",
        f"- V2 (anti-vacuity) drops: {metrics.total_v2_drops}",
        f"- V3 (evidence-sanity) drops: {metrics.total_v3_drops}",
        f"- Score threshold drops: {metrics.total_score_drops}",
        f"- Final suggestions: {metrics.total_suggestions_final}",
        "",
        "## Output Quality",
        f"- Average suggestions per note: {metrics.avg_suggestions_per_note:.2f}",
        f"- Notes with zero suggestions: {metrics.notes_with_zero_suggestions} "
        f"({metrics.notes_with_zero_suggestions_pct:.1f}%)",
        f"- Average overall score: {metrics.avg_overall_score:.3f}",
        "",
        "## Routing",
        f"- Suggestions attached to plan items: {metrics.total_routing_attached}",
        f"- Suggestions marked create_new: {metrics.total_routing_create_new}",
        f"- Attach ratio: {metrics.attach_ratio * 100:.1f}%",
        "",
        "## Validator Drop Breakdown",
    ]
    for validator, count in metrics.validator_drop_reasons.items():
        lines.append(f"- {validator}: {count}")
    lines.extend(["", "## Drop Reasons"])
    for reason, count in metrics.drop_reason_histogram.items():
        lines.append(f"- {reason}: {count}")
    lines.extend(["", "=== End Report ==="])
    return "\n".join(lines)
