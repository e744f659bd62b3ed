"""Aggregate view over a finished DebugRun."""

from __future__ import annotations

from collections import Counter

from suggestion_engine.models.schemas import DebugRun, DebugRunSummary, DropReasonCount

TOP_DROP_REASONS = 5


def build_debug_run_summary(run: DebugRun) -> DebugRunSummary:
    stage_histogram: Counter[str] = Counter()
    reasons: Counter[str] = Counter()
    emitted_candidates = 0
    dropped_candidates = 0

    for section in run.sections:
        if not section.emitted and section.drop_stage:
            stage_histogram[section.drop_stage] += 1
        for candidate in section.candidates:
            if candidate.emitted:
                emitted_candidates += 1
                continue
            dropped_candidates += 1
            if candidate.drop_reason:
                reasons[candidate.drop_reason] += 1

    plan_change = [s for s in run.sections if s.decisions.intent_label == "plan_change"]
    # ties break by reason name
    top = sorted(reasons.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_DROP_REASONS]

    return DebugRunSummary(
        emitted_count=sum(1 for s in run.sections if s.emitted),
        total_sections=len(run.sections),
        drop_stage_histogram=dict(sorted(stage_histogram.items())),
        drop_reason_top=[DropReasonCount(reason=r, count=c) for r, c in top],
        emitted_candidates_count=emitted_candidates,
        dropped_candidates_count=dropped_candidates,
        plan_change_sections_count=len(plan_change),
        dropped_plan_change_count=sum(1 for s in plan_change if not s.emitted),
    )
