"""Suggestion pipeline orchestrator: one note in, ordered suggestions out."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from pydantic import ValidationError

from suggestion_engine.classification.section_classifier import SectionClassifier
from suggestion_engine.debug.ledger import DebugLedger, create_debug_ledger
from suggestion_engine.debug.redaction import exceeds_payload_limit, resolve_debug_verbosity
from suggestion_engine.debug.summary import build_debug_run_summary
from suggestion_engine.exceptions import ConfigurationError, InvalidNoteError, ValidationStageError
from suggestion_engine.models.domain import (
    ClassifiedSection,
    GeneratorResult,
    NoteInput,
    PlanItem,
    Suggestion,
)
from suggestion_engine.models.schemas import GeneratorConfig, NoteRequest
from suggestion_engine.observability.logger import get_logger
from suggestion_engine.observability.metrics import (
    log_candidate_metrics,
    log_latency,
    log_routing_metrics,
    log_section_metrics,
)
from suggestion_engine.observability.tracing import TraceContext
from suggestion_engine.protocols.classifier_model import ClassifierModel
from suggestion_engine.protocols.embedder import Embedder
from suggestion_engine.routing.dedupe import dedupe_by_fingerprint
from suggestion_engine.routing.router import SuggestionRouter, compute_routing_stats
from suggestion_engine.scoring.reason_codes import VALIDATOR_DROP_REASON, DropReason, DropStage
from suggestion_engine.scoring.scorer import SuggestionScorer
from suggestion_engine.segmentation.sections import SectionProvider
from suggestion_engine.synthesis.fallbacks import FallbackSkip, plan_change_placeholder
from suggestion_engine.synthesis.ids import IdGenerator
from suggestion_engine.synthesis.synthesizer import SynthesisOutcome, Synthesizer, drop_reason_for_section
from suggestion_engine.verification.validators import V3_NAME, QualityValidator, ValidationReport

logger = get_logger("suggestion_pipeline")


@dataclass
class _RunState:
    """Per-run bookkeeping shared by the pipeline steps."""

    note_id: str
    trace: TraceContext
    ledger: DebugLedger | None
    sections: dict[str, ClassifiedSection] = field(default_factory=dict)
    split_parents: dict[str, list[str]] = field(default_factory=dict)
    fallback_skipped: dict[str, str] = field(default_factory=dict)
    drops: Counter = field(default_factory=Counter)

    def drop_candidate(self, candidate: Suggestion, reason: str, detail: str | None = None) -> None:
        self.drops[reason] += 1
        logger.debug(
            "candidate_dropped",
            note_id=self.note_id,
            candidate_id=candidate.suggestion_id,
            section_id=candidate.section_id,
            reason=reason,
            detail=detail,
        )
        if self.ledger is not None:
            self.ledger.drop_candidate(candidate.suggestion_id, reason, detail)

    def record_candidate(self, candidate: Suggestion) -> None:
        if self.ledger is not None:
            self.ledger.after_synthesis(candidate)

    def record_section(self, section: ClassifiedSection) -> None:
        self.sections[section.section_id] = section
        if self.ledger is None:
            return
        if self.ledger.get_section(section.section_id) is None:
            self.ledger.create_section(section.section)
        self.ledger.after_intent_classification(section)
        self.ledger.after_type_classification(section)

    def skip_fallback(self, section_id: str, reason: str) -> None:
        self.fallback_skipped[section_id] = reason
        if self.ledger is not None:
            self.ledger.mark_fallback_skipped(section_id, reason)


def validation_drop_reason(report: ValidationReport) -> str:
    if report.failed_validator == V3_NAME and report.failure_reason:
        if report.failure_reason.startswith("no evidence"):
            return DropReason.EVIDENCE_NOT_LOCATABLE
        if report.failure_reason.startswith("evidence span not found"):
            return DropReason.UNGROUNDED_EVIDENCE
    return VALIDATOR_DROP_REASON.get(report.failed_validator or "", DropReason.INTERNAL_ERROR)


class SuggestionPipeline:
    """Runs segmentation through routing for a single note.

    Components are built once per pipeline from the explicit config; every
    call to :meth:`run` gets a fresh id generator and ledger, so runs never
    share mutable state.
    """

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        classifier_model: ClassifierModel | None = None,
        embedder: Embedder | None = None,
    ) -> None:
        self._config = config or GeneratorConfig()
        if self._config.use_llm_classifiers and classifier_model is None:
            raise ConfigurationError("use_llm_classifiers is enabled but no classifier model was supplied")
        if self._config.embedding_enabled and embedder is None:
            raise ConfigurationError("embedding_enabled is set but no embedder was supplied")

        thresholds = self._config.thresholds
        self._provider = SectionProvider()
        self._classifier = SectionClassifier(
            thresholds, classifier_model if self._config.use_llm_classifiers else None
        )
        self._validator = QualityValidator(thresholds)
        self._scorer = SuggestionScorer(thresholds, self._config.max_suggestions)
        self._router = SuggestionRouter(thresholds, embedder if self._config.embedding_enabled else None)
        self._verbosity = resolve_debug_verbosity(
            self._config.debug_verbosity,
            self._config.enable_debug,
            self._config.allow_full_text_debug,
            self._config.environment,
        )

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    def run(self, note: NoteInput, plan_items: Sequence[PlanItem] = ()) -> GeneratorResult:
        trace = TraceContext()
        ledger = create_debug_ledger(note.note_id, note.raw_text, self._verbosity, self._config)
        state = _RunState(note_id=note.note_id, trace=trace, ledger=ledger)
        try:
            return self._execute(note, list(plan_items), state)
        except Exception as e:
            logger.error("pipeline_failed", note_id=note.note_id, error=str(e), error_type=type(e).__name__)
            if ledger is not None:
                ledger.mark_global_error(e)
            raise

    def _execute(self, note: NoteInput, plan_items: list[PlanItem], state: _RunState) -> GeneratorResult:
        trace = state.trace
        ids = IdGenerator(note.note_id)
        synthesizer = Synthesizer(self._classifier, ids)

        # STEP 1: Segmentation
        with trace.span("preprocess"):
            preprocessed = self._provider.preprocess(note, ids)
        if state.ledger is not None:
            for section in preprocessed.sections:
                state.ledger.create_section(section)

        # STEP 2: Classification and the actionability gate
        with trace.span("classification"):
            classified = self._classifier.classify_all(preprocessed.sections)
            actionable: list[ClassifiedSection] = []
            for section in classified:
                state.record_section(section)
                if section.is_actionable:
                    actionable.append(section)
                    continue
                reason = drop_reason_for_section(section)
                logger.debug("section_dropped", section_id=section.section_id, reason=reason)
                if state.ledger is not None:
                    state.ledger.drop_section(section.section_id, reason)

        # STEP 3: Synthesis
        with trace.span("synthesis"):
            outcome = synthesizer.synthesize(actionable)
            self._record_synthesis(outcome, state)

        # STEP 4: Validation
        with trace.span("validation"):
            validated = self._validate(outcome.candidates, state)

        # STEP 5: Scoring and thresholds
        with trace.span("scoring"):
            scored = self._score(validated, state)
            scored.extend(self._rescue_plan_changes(scored, outcome, synthesizer, state))
            scored = self._enforce_split_exclusivity(scored, state)

        # STEP 6: Dedupe, cap and routing
        with trace.span("routing"):
            unique, duplicates = dedupe_by_fingerprint(scored)
            for duplicate in duplicates:
                state.drop_candidate(duplicate, DropReason.DUPLICATE_FINGERPRINT)
            final, overflow = self._scorer.cap(unique, self._plan_change_groups(state))
            for candidate in overflow:
                state.drop_candidate(candidate, DropReason.SCORE_BELOW_THRESHOLD, "over max_suggestions cap")
            self._router.route_all(final, plan_items)

        # STEP 7: Reconcile and report
        routing_stats = compute_routing_stats(final)
        log_section_metrics(trace.trace_id, len(classified), len(actionable), len(outcome.splits))
        log_candidate_metrics(
            trace.trace_id,
            synthesized=len(outcome.candidates) + len(outcome.dropped),
            validated=len(validated),
            scored=len(scored),
            emitted=len(final),
            drops_by_reason=dict(state.drops),
        )
        log_routing_metrics(trace.trace_id, routing_stats.attached, routing_stats.create_new)
        for stage, duration in trace.stage_durations().items():
            log_latency(trace.trace_id, stage, duration)

        debug_run = None
        debug_summary = None
        if state.ledger is not None:
            for stage, duration in trace.stage_durations().items():
                state.ledger.record_stage_timing(stage, duration)
            state.ledger.record_total_time(trace.elapsed_ms)
            state.ledger.finalize([s.suggestion_id for s in final])
            debug_run = state.ledger.build_debug_run()
            debug_summary = build_debug_run_summary(debug_run)
            if exceeds_payload_limit(debug_run.to_dict()):
                logger.warning("debug_payload_large", note_id=note.note_id, run_id=state.ledger.run_id)

        logger.info(
            "suggestions_generated",
            note_id=note.note_id,
            trace_id=trace.trace_id,
            sections=len(classified),
            emitted=len(final),
            latency_ms=round(trace.elapsed_ms, 2),
        )
        stats = {
            "sections": len(classified),
            "actionable_sections": len(actionable),
            "split_sections": len(outcome.splits),
            "synthesized": len(outcome.candidates) + len(outcome.dropped),
            "validated": len(validated),
            "emitted": len(final),
            "drops_by_reason": dict(sorted(state.drops.items())),
            "attached": routing_stats.attached,
            "create_new": routing_stats.create_new,
        }
        return GeneratorResult(suggestions=final, debug_run=debug_run, stats=stats, debug_summary=debug_summary)

    # ============================================
    # Steps
    # ============================================

    def _record_synthesis(self, outcome: SynthesisOutcome, state: _RunState) -> None:
        ledger = state.ledger
        for split in outcome.splits:
            for child in split.children:
                state.record_section(child)
                if not child.is_actionable and ledger is not None:
                    ledger.drop_section(child.section_id, drop_reason_for_section(child))
            state.split_parents[split.parent.section_id] = split.child_ids
            if ledger is not None:
                ledger.mark_split_parent(split.parent.section_id, split.child_ids)

        for section_id, message in outcome.failures.items():
            if ledger is not None:
                ledger.after_synthesis_failure(section_id, message)

        for candidate in outcome.candidates:
            state.record_candidate(candidate)
        for drop in outcome.dropped:
            state.record_candidate(drop.candidate)
            state.drop_candidate(drop.candidate, drop.reason, drop.rule)

        for section_id, reason in outcome.fallback_skipped.items():
            state.skip_fallback(section_id, reason)

    def _validate(
        self, candidates: list[Suggestion], state: _RunState
    ) -> list[tuple[Suggestion, bool]]:
        validated: list[tuple[Suggestion, bool]] = []
        for candidate in candidates:
            try:
                section = state.sections.get(candidate.section_id)
                if section is None:
                    raise ValidationStageError(f"no classified section {candidate.section_id}")
                report = self._validator.validate(candidate, section)
            except Exception as e:
                logger.error(
                    "validation_error",
                    candidate_id=candidate.suggestion_id,
                    section_id=candidate.section_id,
                    error=str(e),
                )
                state.drop_candidate(candidate, DropReason.INTERNAL_ERROR, str(e))
                continue

            if state.ledger is not None:
                state.ledger.after_validation(candidate, report.results)
            if not report.passed:
                state.drop_candidate(candidate, validation_drop_reason(report), report.failure_reason)
                continue
            validated.append((candidate, report.evidence_weak))
        return validated

    def _score(self, validated: list[tuple[Suggestion, bool]], state: _RunState) -> list[Suggestion]:
        passed: list[Suggestion] = []
        for candidate, evidence_weak in validated:
            section = state.sections[candidate.section_id]
            self._scorer.refine(candidate, section)
            failure = self._scorer.apply_thresholds(candidate, section, evidence_weak)
            if state.ledger is not None:
                state.ledger.after_scoring(candidate)
            if failure is not None:
                state.drop_candidate(candidate, DropReason.SCORE_BELOW_THRESHOLD, failure)
                continue
            passed.append(candidate)
        return passed

    def _rescue_plan_changes(
        self,
        scored: list[Suggestion],
        outcome: SynthesisOutcome,
        synthesizer: Synthesizer,
        state: _RunState,
    ) -> list[Suggestion]:
        """Give every silent plan-change section a placeholder update."""
        covered = {s.section_id for s in scored}
        rescued: list[Suggestion] = []

        for section_id, section in state.sections.items():
            if not section.is_plan_change or not section.is_actionable:
                continue
            if section_id in covered or section_id in state.split_parents:
                continue
            if section_id in state.fallback_skipped:
                continue

            placeholder = plan_change_placeholder(section, synthesizer.factory)
            state.record_candidate(placeholder)
            try:
                report = self._validator.validate(placeholder, section)
            except Exception as e:
                logger.error("validation_error", candidate_id=placeholder.suggestion_id, error=str(e))
                state.drop_candidate(placeholder, DropReason.INTERNAL_ERROR, str(e))
                continue
            if state.ledger is not None:
                state.ledger.after_validation(placeholder, report.results)
            if not report.passed:
                state.drop_candidate(placeholder, validation_drop_reason(report), report.failure_reason)
                continue
            self._scorer.apply_thresholds(placeholder, section, report.evidence_weak)
            if state.ledger is not None:
                state.ledger.after_scoring(placeholder)
            logger.info("plan_change_placeholder", section_id=section_id, candidate_id=placeholder.suggestion_id)
            rescued.append(placeholder)
            covered.add(section_id)

        for split in outcome.splits:
            parent_id = split.parent.section_id
            if not split.parent.is_plan_change or parent_id in state.fallback_skipped:
                continue
            if not any(child_id in covered for child_id in split.child_ids):
                state.skip_fallback(parent_id, FallbackSkip.TOPIC_SPLIT_NO_CHILD_OUTPUT)
        return rescued

    def _plan_change_groups(self, state: _RunState) -> dict[str, str]:
        """Map each section that must not go silent to the plan change it answers for."""
        groups: dict[str, str] = {}
        for section_id, section in state.sections.items():
            if section.is_plan_change and section_id not in state.split_parents:
                groups[section_id] = section_id
        for parent_id, child_ids in state.split_parents.items():
            if state.sections[parent_id].is_plan_change:
                for child_id in child_ids:
                    groups[child_id] = parent_id
        return groups

    def _enforce_split_exclusivity(self, scored: list[Suggestion], state: _RunState) -> list[Suggestion]:
        kept: list[Suggestion] = []
        for candidate in scored:
            if candidate.section_id in state.split_parents:
                logger.error(
                    "split_parent_emitted",
                    section_id=candidate.section_id,
                    candidate_id=candidate.suggestion_id,
                )
                state.drop_candidate(candidate, DropReason.INTERNAL_ERROR, "candidate sourced from split parent")
                if state.ledger is not None:
                    state.ledger.mark_section_internal_error(
                        candidate.section_id, DropStage.TOPIC_ISOLATION, "split parent produced a candidate"
                    )
                continue
            kept.append(candidate)
        return kept


# ============================================
# Caller-facing entry point
# ============================================


def _parse_config(config: GeneratorConfig | Mapping | None) -> GeneratorConfig:
    if config is None:
        return GeneratorConfig()
    if isinstance(config, GeneratorConfig):
        return config
    try:
        return GeneratorConfig.model_validate(config)
    except ValidationError as e:
        raise ConfigurationError(f"invalid generator config: {e}") from e


def _parse_request(
    note: NoteRequest | Mapping, plan_items: Sequence | None
) -> tuple[NoteRequest, GeneratorConfig | None]:
    if isinstance(note, NoteRequest):
        if plan_items is None:
            return note, note.config
        data = note.model_dump(exclude={"config"})
        embedded = note.config
    else:
        data = dict(note)
        raw_config = data.pop("config", None)
        embedded = _parse_config(raw_config) if raw_config is not None else None
    if plan_items is not None:
        data["existing_plan_items"] = [
            {"id": p.id, "title": p.title, "description": p.description, "status": p.status}
            if isinstance(p, PlanItem)
            else p
            for p in plan_items
        ]
    try:
        return NoteRequest.model_validate(data), embedded
    except ValidationError as e:
        raise InvalidNoteError(f"invalid note input: {e}") from e


def generate_suggestions(
    note: NoteRequest | Mapping,
    plan_items: Sequence[PlanItem | Mapping] | None = None,
    config: GeneratorConfig | Mapping | None = None,
    classifier_model: ClassifierModel | None = None,
    embedder: Embedder | None = None,
) -> GeneratorResult:
    """Validate caller input, then run the pipeline for one note.

    ``config`` wins over a config embedded in the request.
    """
    request, embedded = _parse_request(note, plan_items)
    resolved = _parse_config(config) if config is not None else (embedded or GeneratorConfig())
    pipeline = SuggestionPipeline(resolved, classifier_model=classifier_model, embedder=embedder)
    items = [
        PlanItem(id=p.id, title=p.title, description=p.description, status=p.status)
        for p in request.existing_plan_items
    ]
    return pipeline.run(NoteInput(note_id=request.note_id, raw_text=request.raw_text), items)
