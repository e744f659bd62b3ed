"""Metric recording helpers for pipeline runs."""

from __future__ import annotations

from suggestion_engine.observability.logger import get_logger

logger = get_logger("metrics")


def log_section_metrics(
    run_id: str,
    total_sections: int,
    actionable_sections: int,
    split_sections: int,
) -> None:
    logger.info(
        "section_metrics",
        run_id=run_id,
        total_sections=total_sections,
        actionable_sections=actionable_sections,
        split_sections=split_sections,
    )


def log_candidate_metrics(
    run_id: str,
    synthesized: int,
    validated: int,
    scored: int,
    emitted: int,
    drops_by_reason: dict[str, int],
) -> None:
    logger.info(
        "candidate_metrics",
        run_id=run_id,
        synthesized=synthesized,
        validated=validated,
        scored=scored,
        emitted=emitted,
        drops_by_reason=dict(sorted(drops_by_reason.items())),
    )


def log_routing_metrics(run_id: str, attached: int, create_new: int) -> None:
    total = attached + create_new
    logger.info(
        "routing_metrics",
        run_id=run_id,
        attached=attached,
        create_new=create_new,
        attach_ratio=round(attached / total, 4) if total else 0.0,
    )


def log_latency(run_id: str, stage: str, duration_ms: float) -> None:
    logger.debug(
        "latency",
        run_id=run_id,
        stage=stage,
        duration_ms=round(duration_ms, 2),
    )
