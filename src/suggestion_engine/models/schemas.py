"""Pydantic models for caller input, configuration and debug serialization."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DebugVerbosity = Literal["OFF", "REDACTED", "FULL_TEXT"]


# ============================================
# Caller input and configuration
# ============================================


class ThresholdConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    t_action: float = Field(0.5, alias="T_action", ge=0.0, le=1.0)
    t_out_of_scope: float = Field(0.4, alias="T_out_of_scope", ge=0.0, le=1.0)
    t_section_min: float = Field(0.6, alias="T_section_min", ge=0.0, le=1.0)
    t_overall_min: float = Field(0.65, alias="T_overall_min", ge=0.0, le=1.0)
    min_evidence_chars: int = Field(120, alias="MIN_EVIDENCE_CHARS", ge=0)
    t_generic: float = Field(0.55, alias="T_generic", ge=0.0, le=1.0)
    t_attach: float = Field(0.80, alias="T_attach", ge=0.0, le=1.0)


class GeneratorConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    max_suggestions: int = Field(5, ge=1)
    enable_debug: bool = False
    use_llm_classifiers: bool = False
    embedding_enabled: bool = False
    # None lets enable_debug alone turn on a REDACTED ledger
    debug_verbosity: DebugVerbosity | None = None
    allow_full_text_debug: bool = False
    environment: str = "development"


class PlanItemSchema(BaseModel):
    id: str = Field(min_length=1)
    title: str
    description: str = ""
    status: str = ""


class NoteRequest(BaseModel):
    note_id: str = Field(min_length=1)
    raw_text: str
    existing_plan_items: list[PlanItemSchema] = Field(default_factory=list)
    config: GeneratorConfig | None = None

    @field_validator("note_id")
    @classmethod
    def _note_id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("note_id must not be blank")
        return value


# ============================================
# Debug read-model (camelCase on the wire)
# ============================================


class DebugModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class TextPreview(DebugModel):
    line_range: tuple[int, int]
    preview: str


class EvidenceSpanPreview(DebugModel):
    line_index: int
    preview: str


class EvidenceDebug(DebugModel):
    line_ids: list[int] = Field(default_factory=list)
    spans: list[EvidenceSpanPreview] = Field(default_factory=list)


class ValidatorResultDebug(DebugModel):
    name: str
    passed: bool
    score: float | None = None
    reason: str | None = None


class ScoreSummary(DebugModel):
    actionability_score: float | None = None
    type_score: float | None = None
    synthesis_score: float | None = None
    evidence_score: float | None = None
    validation_score: float | None = None
    overall_score: float = 0.0


class ClassifierDistribution(DebugModel):
    top_label: str = ""
    top_score: float = 0.0
    scores_by_label: dict[str, float] = Field(default_factory=dict)
    flags: dict[str, bool] | None = None


class StructuralFeaturesSummary(DebugModel):
    line_count: int
    char_count: int
    bullet_count: int
    heading_level: int | None = None
    extras: dict[str, int | float | str | bool] | None = None


class SectionDecisions(DebugModel):
    is_actionable: bool = False
    intent_label: str = ""
    type_label: str = ""
    actionability_reason: str | None = None


class ActionabilitySignals(DebugModel):
    actionable_signal: float
    out_of_scope_signal: float
    actionability_threshold: float
    out_of_scope_threshold: float


class SuggestionContextDebug(DebugModel):
    title: str
    body: str
    evidence_preview: list[str] = Field(default_factory=list)
    source_section_id: str
    source_heading: str


class CandidateSuggestionDebug(DebugModel):
    candidate_id: str
    emitted: bool = False
    drop_stage: str | None = None
    drop_reason: str | None = None
    suggestion_preview: TextPreview | None = None
    raw_suggestion_text: str | None = None
    suggestion: SuggestionContextDebug | None = None
    evidence: EvidenceDebug | None = None
    validator_results: list[ValidatorResultDebug] = Field(default_factory=list)
    score_breakdown: ScoreSummary = Field(default_factory=ScoreSummary)
    metadata: dict = Field(default_factory=dict)

    def to_dict(self) -> dict:
        # drop fields stay present as explicit nulls on emitted candidates
        data = super().to_dict()
        data.setdefault("dropStage", self.drop_stage)
        data.setdefault("dropReason", self.drop_reason)
        return data


class ValidatorSummary(DebugModel):
    v2: ValidatorResultDebug | None = None
    v3: ValidatorResultDebug | None = None


class SectionDebug(DebugModel):
    section_id: str
    heading_text_preview: str
    line_range: tuple[int, int]
    structural_features: StructuralFeaturesSummary
    intent_classification: ClassifierDistribution = Field(default_factory=ClassifierDistribution)
    type_classification: ClassifierDistribution = Field(default_factory=ClassifierDistribution)
    decisions: SectionDecisions = Field(default_factory=SectionDecisions)
    actionability_signals: ActionabilitySignals | None = None
    synthesis_ran: bool = False
    candidates: list[CandidateSuggestionDebug] = Field(default_factory=list)
    evidence_summary: EvidenceDebug | None = None
    validator_summary: ValidatorSummary | None = None
    score_summary: ScoreSummary = Field(default_factory=ScoreSummary)
    emitted: bool = False
    drop_stage: str | None = None
    drop_reason: str | None = None
    error_message: str | None = None
    error_stage: str | None = None
    metadata: dict = Field(default_factory=dict)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["candidates"] = [c.to_dict() for c in self.candidates]
        data.setdefault("dropStage", self.drop_stage)
        data.setdefault("dropReason", self.drop_reason)
        return data


class DebugRunMetadata(DebugModel):
    note_id: str
    run_id: str
    generator_version: str
    created_at: str
    verbosity: DebugVerbosity
    note_hash: str | None = None


class ConfigSnapshot(DebugModel):
    generator_version: str
    thresholds: dict[str, float]
    classification_model: str
    type_model: str
    synthesis_model: str
    validation_models: dict[str, str]
    dedupe_enabled: bool = True
    max_suggestions_per_note: int
    additional_flags: dict[str, bool | int | float | str] = Field(default_factory=dict)


class NoteSummary(DebugModel):
    line_count: int
    preview: TextPreview | None = None


class RuntimeStats(DebugModel):
    total_ms: float
    stage_ms: dict[str, float] = Field(default_factory=dict)


class DebugRun(DebugModel):
    meta: DebugRunMetadata
    config: ConfigSnapshot
    note_summary: NoteSummary
    sections: list[SectionDebug] = Field(default_factory=list)
    runtime_stats: RuntimeStats | None = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["sections"] = [s.to_dict() for s in self.sections]
        return data

    def section(self, section_id: str) -> SectionDebug | None:
        for s in self.sections:
            if s.section_id == section_id:
                return s
        return None


class DropReasonCount(DebugModel):
    reason: str
    count: int


class DebugRunSummary(DebugModel):
    emitted_count: int
    total_sections: int
    drop_stage_histogram: dict[str, int] = Field(default_factory=dict)
    drop_reason_top: list[DropReasonCount] = Field(default_factory=list)
    emitted_candidates_count: int = 0
    dropped_candidates_count: int = 0
    plan_change_sections_count: int = 0
    dropped_plan_change_count: int = 0
