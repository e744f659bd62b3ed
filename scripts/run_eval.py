"""Run the evaluation harness over a corpus of notes.

Usage:
    python scripts/run_eval.py [--dataset PATH] [--sweep T_overall_min] [--output PATH]
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from suggestion_engine.config.settings import Settings
from suggestion_engine.evaluation.metrics import (
    EvaluationMetrics,
    NoteEvaluation,
    find_near_duplicate_suggestions,
    generate_report,
)
from suggestion_engine.evaluation.runner import (
    DATASET_PATH,
    analyze_threshold_sensitivity,
    evaluate_batch,
    load_dataset,
)
from suggestion_engine.observability.logger import configure_logging

DEFAULT_SWEEP_VALUES = [0.5, 0.55, 0.6, 0.65, 0.7, 0.75, 0.8]


def print_header(title: str) -> None:
    print(f"\n{'=' * 64}")
    print(f"  {title}")
    print(f"{'=' * 64}")


def print_note_details(evaluations: list[NoteEvaluation]) -> None:
    print_header("PER-NOTE RESULTS")
    for e in evaluations:
        status = "EMPTY" if e.suggestions_final == 0 else "OK"
        types = ", ".join(f"{t}={n}" for t, n in e.suggestions_by_type.items()) or "-"
        print(
            f"  [{status:>5}] {e.note_id:<24} | sections={e.sections_count:<3} "
            f"final={e.suggestions_final:<3} avg={e.avg_overall_score:.3f} | {types}"
        )
        for s in e.suggestions:
            flag = " (clarify)" if s.needs_clarification else ""
            print(f"         - [{s.type}] {s.title}{flag}")


def save_results(evaluations: list[NoteEvaluation], metrics: EvaluationMetrics, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "metrics": asdict(metrics),
        "notes": [
            {**{k: v for k, v in asdict(e).items() if k != "suggestions"},
             "suggestions": [s.to_dict() for s in e.suggestions]}
            for e in evaluations
        ],
    }
    with open(output_path, "w") as f:
        json.dump(payload, f, indent=2, default=str)
    print(f"\nRaw results saved to {output_path}")


def main(dataset: Path, sweep: str | None, output_path: Path | None) -> None:
    settings = Settings()
    configure_logging("WARNING", settings.log_json)
    config = settings.generator_config()

    print(f"Dataset: {dataset}")
    notes, plan_items = load_dataset(dataset)
    evaluations, metrics = evaluate_batch(notes, plan_items, config)

    print(generate_report(metrics))
    print_note_details(evaluations)

    all_suggestions = [s for e in evaluations for s in e.suggestions]
    duplicates = find_near_duplicate_suggestions(all_suggestions)
    if duplicates:
        print_header("NEAR-DUPLICATE SUGGESTIONS")
        for a, b in duplicates:
            print(f"  {a}  ~  {b}")

    if sweep:
        print_header(f"THRESHOLD SWEEP: {sweep}")
        sensitivity = analyze_threshold_sensitivity(notes, plan_items, config, sweep, DEFAULT_SWEEP_VALUES)
        for value, count in zip(sensitivity.values, sensitivity.suggestions_counts):
            print(f"  {value:>6.2f}  ->  {count} suggestions")
        if sensitivity.recommendation:
            print(f"\n  {sensitivity.recommendation}")

    if output_path is not None:
        save_results(evaluations, metrics, output_path)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the suggestion engine evaluation harness")
    parser.add_argument("--dataset", type=Path, default=DATASET_PATH)
    parser.add_argument("--sweep", default=None, help="Threshold to sweep, e.g. T_overall_min")
    parser.add_argument("--output", type=Path, default=None)
    args = parser.parse_args()
    main(args.dataset, args.sweep, args.output)
