"""Debug ledger: a write-only audit of every section and candidate in a run.

The pipeline calls the ledger's hooks as it makes decisions; the ledger never
feeds anything back. Candidates move from pending to dropped(stage, reason)
as stages reject them, and ``finalize`` settles every record against the ids
that actually reached the output.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from suggestion_engine.config.constants import (
    CANDIDATE_PREVIEW_CHARS,
    CLASSIFICATION_MODEL,
    GENERATOR_VERSION,
    HEADING_PREVIEW_CHARS,
    SYNTHESIS_MODEL,
    TYPE_MODEL,
    VALIDATION_MODELS,
)
from suggestion_engine.debug.note_hash import compute_note_hash
from suggestion_engine.debug.redaction import make_evidence_debug, make_preview, make_text_preview
from suggestion_engine.exceptions import LedgerInvariantError
from suggestion_engine.models.domain import ClassifiedSection, Section, Suggestion, ValidationResult
from suggestion_engine.models.schemas import (
    ActionabilitySignals,
    CandidateSuggestionDebug,
    ClassifierDistribution,
    ConfigSnapshot,
    DebugRun,
    DebugRunMetadata,
    DebugVerbosity,
    GeneratorConfig,
    NoteSummary,
    RuntimeStats,
    ScoreSummary,
    SectionDebug,
    StructuralFeaturesSummary,
    SuggestionContextDebug,
    TextPreview,
    ValidatorResultDebug,
    ValidatorSummary,
)
from suggestion_engine.observability.logger import get_logger
from suggestion_engine.scoring.reason_codes import DropReason, DropStage, stage_for
from suggestion_engine.segmentation.lines import normalize_newlines

logger = get_logger("debug_ledger")

NOTE_PREVIEW_LINES = 5


class DebugLedger:
    def __init__(
        self,
        note_id: str,
        note_text: str,
        verbosity: DebugVerbosity,
        config: GeneratorConfig,
        run_id: str | None = None,
    ) -> None:
        self.note_id = note_id
        self.run_id = run_id or str(uuid4())
        self.verbosity = verbosity
        self.config = config
        self.note_lines = normalize_newlines(note_text).split("\n")
        self.note_hash = compute_note_hash(note_text)
        self.created_at = datetime.now(timezone.utc).isoformat()
        self.sections: dict[str, SectionDebug] = {}
        self.stage_ms: dict[str, float] = {}
        self.total_ms = 0.0
        self.global_error: str | None = None
        self._finalized = False

    @property
    def full_text(self) -> bool:
        return self.verbosity == "FULL_TEXT"

    def _text(self, raw: str, max_len: int) -> str:
        return raw if self.full_text else make_preview(raw, max_len)

    # ============================================
    # Sections
    # ============================================

    def create_section(self, section: Section) -> SectionDebug:
        features = section.structural_features
        record = SectionDebug(
            section_id=section.section_id,
            heading_text_preview=make_preview(section.heading_text, HEADING_PREVIEW_CHARS),
            line_range=(section.start_line, section.end_line),
            structural_features=StructuralFeaturesSummary(
                line_count=features.num_lines,
                char_count=features.char_count,
                bullet_count=features.num_list_items,
                heading_level=section.heading_level,
                extras={
                    "has_dates": features.has_dates,
                    "has_metrics": features.has_metrics,
                    "has_quarter_refs": features.has_quarter_refs,
                    "initiative_phrase_density": features.initiative_phrase_density,
                },
            ),
        )
        if section.parent_section_id is not None:
            record.metadata["parentSectionId"] = section.parent_section_id
        self.sections[section.section_id] = record
        return record

    def get_section(self, section_id: str) -> SectionDebug | None:
        return self.sections.get(section_id)

    def after_intent_classification(self, classified: ClassifiedSection) -> None:
        record = self.sections.get(classified.section_id)
        if record is None:
            return
        intent = classified.intent
        scores = intent.scores_by_label()
        top = intent.top_label()
        record.intent_classification = ClassifierDistribution(
            top_label=top,
            top_score=scores[top],
            scores_by_label=scores,
            flags=dict(intent.flags) or None,
        )
        record.decisions.is_actionable = classified.is_actionable
        record.decisions.intent_label = top
        record.decisions.actionability_reason = classified.actionability_reason
        record.actionability_signals = ActionabilitySignals(
            actionable_signal=classified.actionable_signal,
            out_of_scope_signal=classified.out_of_scope_signal,
            actionability_threshold=self.config.thresholds.t_action,
            out_of_scope_threshold=self.config.thresholds.t_out_of_scope,
        )
        if not classified.is_actionable:
            record.score_summary.actionability_score = classified.actionable_signal

    def after_type_classification(self, classified: ClassifiedSection) -> None:
        record = self.sections.get(classified.section_id)
        if record is None or classified.suggested_type is None:
            return
        confidence = classified.type_confidence or 0.0
        record.type_classification = ClassifierDistribution(
            top_label=classified.suggested_type,
            top_score=confidence,
            scores_by_label={classified.suggested_type: confidence},
        )
        record.decisions.type_label = classified.suggested_type
        record.score_summary.type_score = confidence

    def drop_section(self, section_id: str, reason: str) -> None:
        """Drop a section and every candidate of it still pending."""
        record = self.sections.get(section_id)
        if record is None:
            return
        record.emitted = False
        record.drop_reason = reason
        record.drop_stage = stage_for(reason)
        for candidate in record.candidates:
            if candidate.drop_reason is None:
                candidate.drop_reason = reason
                candidate.drop_stage = stage_for(reason)

    def mark_split_parent(self, section_id: str, child_ids: list[str]) -> None:
        record = self.sections.get(section_id)
        if record is None:
            return
        record.metadata["topicSplit"] = {"subSectionIds": list(child_ids)}
        self.drop_section(section_id, DropReason.SPLIT_INTO_SUBSECTIONS)

    def mark_fallback_skipped(self, section_id: str, reason: str) -> None:
        record = self.sections.get(section_id)
        if record is not None:
            record.metadata["fallbackSkipped"] = {"reason": reason}

    def mark_section_internal_error(self, section_id: str, stage: str, message: str) -> None:
        record = self.sections.get(section_id)
        if record is None:
            return
        record.error_stage = stage
        record.error_message = message
        record.emitted = False
        record.drop_reason = DropReason.INTERNAL_ERROR
        record.drop_stage = stage

    def mark_global_error(self, error: BaseException) -> None:
        self.global_error = f"{type(error).__name__}: {error}"
        for record in self.sections.values():
            if record.drop_reason is None:
                record.emitted = False
                record.drop_reason = DropReason.INTERNAL_ERROR
                record.drop_stage = DropStage.VALIDATION
                record.error_message = self.global_error
            for candidate in record.candidates:
                if candidate.drop_reason is None:
                    candidate.emitted = False
                    candidate.drop_reason = DropReason.INTERNAL_ERROR
                    candidate.drop_stage = DropStage.VALIDATION

    # ============================================
    # Candidates
    # ============================================

    def _find_candidate(self, suggestion_id: str) -> tuple[SectionDebug, CandidateSuggestionDebug] | None:
        for record in self.sections.values():
            for candidate in record.candidates:
                if candidate.candidate_id == suggestion_id:
                    return record, candidate
        return None

    def after_synthesis(self, suggestion: Suggestion) -> CandidateSuggestionDebug | None:
        record = self.sections.get(suggestion.section_id)
        if record is None:
            logger.warning(
                "ledger_unknown_section", section_id=suggestion.section_id, candidate_id=suggestion.suggestion_id
            )
            return None
        record.synthesis_ran = True
        spans = suggestion.evidence_spans
        candidate = CandidateSuggestionDebug(
            candidate_id=suggestion.suggestion_id,
            suggestion_preview=TextPreview(
                line_range=(spans[0].start_line, spans[-1].end_line) if spans else record.line_range,
                preview=make_preview(suggestion.title, CANDIDATE_PREVIEW_CHARS),
            ),
            suggestion=SuggestionContextDebug(
                title=self._text(suggestion.title, CANDIDATE_PREVIEW_CHARS),
                body=self._text(suggestion.body, CANDIDATE_PREVIEW_CHARS),
                evidence_preview=[self._text(s.text, CANDIDATE_PREVIEW_CHARS) for s in spans],
                source_section_id=suggestion.section_id,
                source_heading=self._text(suggestion.source_heading, HEADING_PREVIEW_CHARS),
            ),
            score_breakdown=self._score_summary(suggestion),
            metadata={"type": suggestion.type, "source": suggestion.source},
        )
        if self.full_text:
            candidate.raw_suggestion_text = suggestion.title
        if spans:
            candidate.evidence = make_evidence_debug([s.start_line for s in spans], self.note_lines)
            record.evidence_summary = candidate.evidence
        consolidated_from = suggestion.metadata.get("consolidated_from")
        if consolidated_from:
            candidate.metadata["consolidatedFrom"] = list(consolidated_from)
        record.candidates.append(candidate)
        return candidate

    def after_synthesis_failure(self, section_id: str, message: str) -> None:
        record = self.sections.get(section_id)
        if record is None:
            return
        record.synthesis_ran = True
        record.candidates.append(
            CandidateSuggestionDebug(
                candidate_id=f"synthesis-failed-{section_id}",
                drop_stage=DropStage.SYNTHESIS,
                drop_reason=DropReason.SYNTHESIS_FAILED,
                metadata={"error": message},
            )
        )
        record.emitted = False
        record.drop_stage = DropStage.SYNTHESIS
        record.drop_reason = DropReason.SYNTHESIS_FAILED
        record.error_message = message
        record.error_stage = DropStage.SYNTHESIS

    def after_validation(self, suggestion: Suggestion, results: list[ValidationResult]) -> None:
        found = self._find_candidate(suggestion.suggestion_id)
        if found is None:
            return
        record, candidate = found
        seen: set[tuple[str, bool, str]] = set()
        mapped: list[ValidatorResultDebug] = []
        for r in results:
            key = (r.validator, r.passed, r.reason or "")
            if key in seen:
                continue
            seen.add(key)
            mapped.append(ValidatorResultDebug(name=r.validator.upper(), passed=r.passed, score=r.score, reason=r.reason))
        candidate.validator_results = mapped
        record.validator_summary = ValidatorSummary(
            v2=next((r for r in mapped if r.name.startswith("V2")), None),
            v3=next((r for r in mapped if r.name.startswith("V3")), None),
        )

    def after_scoring(self, suggestion: Suggestion) -> None:
        found = self._find_candidate(suggestion.suggestion_id)
        if found is None:
            return
        record, candidate = found
        summary = self._score_summary(suggestion)
        candidate.score_breakdown = summary
        if candidate.metadata.get("type") != suggestion.type:
            candidate.metadata["type"] = suggestion.type
        candidate.metadata["needsClarification"] = suggestion.needs_clarification
        record.score_summary = summary.model_copy()

    def drop_candidate(self, suggestion_id: str, reason: str, detail: str | None = None) -> None:
        """Mark a pending candidate dropped; an earlier drop is never overwritten."""
        found = self._find_candidate(suggestion_id)
        if found is None:
            logger.warning("ledger_unknown_candidate", candidate_id=suggestion_id, reason=reason)
            return
        _, candidate = found
        if candidate.drop_reason is not None:
            return
        candidate.emitted = False
        candidate.drop_reason = reason
        candidate.drop_stage = stage_for(reason)
        if detail:
            candidate.metadata["dropDetail"] = detail

    @staticmethod
    def _score_summary(suggestion: Suggestion) -> ScoreSummary:
        scores = suggestion.scores
        return ScoreSummary(
            actionability_score=scores.actionability,
            type_score=scores.type_confidence,
            synthesis_score=scores.synthesis_confidence,
            overall_score=scores.overall,
        )

    # ============================================
    # Timing and finalization
    # ============================================

    def record_stage_timing(self, stage: str, duration_ms: float) -> None:
        self.stage_ms[stage] = round(self.stage_ms.get(stage, 0.0) + duration_ms, 3)

    def record_total_time(self, total_ms: float) -> None:
        self.total_ms = round(total_ms, 3)

    def finalize(self, emitted_ids: list[str]) -> None:
        """Seal the ledger against the ids that actually reached the output.

        Raises LedgerInvariantError when called twice or when an emitted id
        was never recorded as a candidate.
        """
        if self._finalized:
            raise LedgerInvariantError(f"ledger for run {self.run_id} is already finalized")
        emitted = set(emitted_ids)
        recorded = {c.candidate_id for record in self.sections.values() for c in record.candidates}
        unknown = sorted(emitted - recorded)
        if unknown:
            raise LedgerInvariantError(f"emitted suggestions missing from ledger: {', '.join(unknown)}")
        self._validate_topic_splits()

        for record in self.sections.values():
            has_emitted = False
            for candidate in record.candidates:
                if candidate.candidate_id in emitted:
                    candidate.emitted = True
                    candidate.drop_stage = None
                    candidate.drop_reason = None
                    has_emitted = True
                else:
                    candidate.emitted = False
                    if candidate.drop_reason is None:
                        is_update = candidate.metadata.get("type") == "project_update"
                        reason = DropReason.INTERNAL_ERROR if is_update else DropReason.SCORE_BELOW_THRESHOLD
                        candidate.drop_reason = reason
                        candidate.drop_stage = stage_for(reason)

            record.emitted = has_emitted
            if has_emitted:
                record.drop_stage = None
                record.drop_reason = None
                continue
            if record.drop_reason is None:
                if record.metadata.get("fallbackSkipped"):
                    reason = DropReason.LOW_RELEVANCE
                elif record.decisions.intent_label == "plan_change":
                    reason = DropReason.INTERNAL_ERROR
                    logger.error("plan_change_section_silent", section_id=record.section_id)
                else:
                    reason = DropReason.SCORE_BELOW_THRESHOLD
                record.drop_reason = reason
                record.drop_stage = stage_for(reason)
        self._finalized = True

    def _validate_topic_splits(self) -> None:
        """A split parent must list its subsections, and they must all be recorded."""
        for record in self.sections.values():
            if record.drop_reason != DropReason.SPLIT_INTO_SUBSECTIONS:
                continue
            split = record.metadata.get("topicSplit")
            if not split:
                failure = {"reason": "missing_topic_split_metadata"}
            else:
                expected = list(split.get("subSectionIds", []))
                missing = [sid for sid in expected if sid not in self.sections]
                if expected and not missing:
                    continue
                failure = {
                    "reason": "subsections_not_in_ledger",
                    "expectedSubsectionIds": expected,
                    "missingSubsectionIds": missing,
                }
            logger.error("topic_split_invariant_violation", section_id=record.section_id, **failure)
            record.metadata["topicIsolationFailure"] = failure
            record.drop_reason = DropReason.INTERNAL_ERROR
            record.drop_stage = DropStage.TOPIC_ISOLATION

    # ============================================
    # Read model
    # ============================================

    def _config_snapshot(self) -> ConfigSnapshot:
        t = self.config.thresholds
        return ConfigSnapshot(
            generator_version=GENERATOR_VERSION,
            thresholds={
                "T_action": t.t_action,
                "T_out_of_scope": t.t_out_of_scope,
                "T_section_min": t.t_section_min,
                "T_overall_min": t.t_overall_min,
                "MIN_EVIDENCE_CHARS": float(t.min_evidence_chars),
                "T_generic": t.t_generic,
                "T_attach": t.t_attach,
            },
            classification_model=CLASSIFICATION_MODEL,
            type_model=TYPE_MODEL,
            synthesis_model=SYNTHESIS_MODEL,
            validation_models=dict(VALIDATION_MODELS),
            max_suggestions_per_note=self.config.max_suggestions,
            additional_flags={
                "enable_debug": self.config.enable_debug,
                "use_llm_classifiers": self.config.use_llm_classifiers,
                "embedding_enabled": self.config.embedding_enabled,
            },
        )

    def build_debug_run(self) -> DebugRun:
        last = min(NOTE_PREVIEW_LINES, len(self.note_lines)) - 1
        return DebugRun(
            meta=DebugRunMetadata(
                note_id=self.note_id,
                run_id=self.run_id,
                generator_version=GENERATOR_VERSION,
                created_at=self.created_at,
                verbosity=self.verbosity,
                note_hash=self.note_hash,
            ),
            config=self._config_snapshot(),
            note_summary=NoteSummary(
                line_count=len(self.note_lines),
                preview=make_text_preview(self.note_lines, (0, max(last, 0))),
            ),
            sections=[record.model_copy(deep=True) for record in self.sections.values()],
            runtime_stats=RuntimeStats(total_ms=self.total_ms, stage_ms=dict(self.stage_ms)),
        )


def create_debug_ledger(
    note_id: str,
    note_text: str,
    verbosity: DebugVerbosity,
    config: GeneratorConfig,
) -> DebugLedger | None:
    """No ledger at all when verbosity is OFF."""
    if verbosity == "OFF":
        return None
    return DebugLedger(note_id, note_text, verbosity, config)
