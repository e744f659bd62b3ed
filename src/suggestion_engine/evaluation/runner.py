"""Evaluation runner: loads a note corpus and runs the pipeline over it."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path

from suggestion_engine.evaluation.metrics import (
    EvaluationMetrics,
    NoteEvaluation,
    ThresholdSensitivity,
    compute_metrics,
    recommend_threshold,
    validator_drops,
)
from suggestion_engine.models.domain import NoteInput, PlanItem
from suggestion_engine.models.schemas import GeneratorConfig, ThresholdConfig
from suggestion_engine.pipeline.suggestion_pipeline import SuggestionPipeline
from suggestion_engine.scoring.reason_codes import DropReason

DATASET_PATH = Path(__file__).parent.parent.parent.parent / "tests" / "fixtures" / "eval_notes.json"


def load_dataset(path: Path | None = None) -> tuple[list[NoteInput], list[PlanItem]]:
    """Load notes and plan items from a JSON corpus."""
    p = path or DATASET_PATH
    with open(p) as f:
        data = json.load(f)
    notes = [NoteInput(note_id=n["note_id"], raw_text=n["raw_text"]) for n in data.get("notes", [])]
    items = [
        PlanItem(
            id=i["id"],
            title=i["title"],
            description=i.get("description", ""),
            status=i.get("status", ""),
        )
        for i in data.get("plan_items", [])
    ]
    return notes, items


def _debug_config(config: GeneratorConfig) -> GeneratorConfig:
    verbosity = config.debug_verbosity if config.debug_verbosity != "OFF" else "REDACTED"
    return config.model_copy(update={"enable_debug": True, "debug_verbosity": verbosity})


def evaluate_note(note: NoteInput, plan_items: list[PlanItem], config: GeneratorConfig) -> NoteEvaluation:
    result = SuggestionPipeline(_debug_config(config)).run(note, plan_items)
    stats = result.stats
    suggestions = result.suggestions
    drops = stats.get("drops_by_reason", {})

    avg = sum(s.scores.overall for s in suggestions) / len(suggestions) if suggestions else 0.0
    by_type = Counter(s.type for s in suggestions)
    return NoteEvaluation(
        note_id=note.note_id,
        raw_length=len(note.raw_text),
        sections_count=stats.get("sections", 0),
        actionable_sections=stats.get("actionable_sections", 0),
        suggestions_generated=stats.get("synthesized", 0),
        suggestions_after_validation=stats.get("validated", 0),
        suggestions_final=len(suggestions),
        validator_drops=validator_drops(drops),
        score_drops=drops.get(DropReason.SCORE_BELOW_THRESHOLD, 0),
        routing_attached=stats.get("attached", 0),
        routing_create_new=stats.get("create_new", 0),
        avg_overall_score=avg,
        suggestions_by_type=dict(sorted(by_type.items())),
        drops_by_reason=dict(drops),
        suggestions=suggestions,
    )


def evaluate_batch(
    notes: list[NoteInput], plan_items: list[PlanItem], config: GeneratorConfig
) -> tuple[list[NoteEvaluation], EvaluationMetrics]:
    evaluations = [evaluate_note(note, plan_items, config) for note in notes]
    return evaluations, compute_metrics(evaluations)


def analyze_threshold_sensitivity(
    notes: list[NoteInput],
    plan_items: list[PlanItem],
    base_config: GeneratorConfig,
    threshold_name: str,
    values: list[float],
) -> ThresholdSensitivity:
    """Sweep one threshold and record the final suggestion count at each value.

    ``threshold_name`` is a ThresholdConfig field or its documented alias
    (``T_overall_min``).
    """
    fields = ThresholdConfig.model_fields
    field_name = next(
        (name for name, info in fields.items() if threshold_name in (name, info.alias)),
        None,
    )
    if field_name is None:
        raise ValueError(f"unknown threshold: {threshold_name}")

    counts: list[int] = []
    for value in values:
        thresholds = base_config.thresholds.model_copy(update={field_name: value})
        config = base_config.model_copy(update={"thresholds": thresholds})
        _, metrics = evaluate_batch(notes, plan_items, config)
        counts.append(metrics.total_suggestions_final)

    return ThresholdSensitivity(
        threshold_name=threshold_name,
        values=list(values),
        suggestions_counts=counts,
        recommendation=recommend_threshold(threshold_name, list(values), counts),
    )
