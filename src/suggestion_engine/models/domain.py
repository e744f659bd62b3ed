"""Core domain objects used throughout the pipeline."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field

INTENT_LABELS = (
    "plan_change",
    "new_workstream",
    "status_informational",
    "communication",
    "research",
    "calendar",
    "micro_tasks",
)

SUGGESTION_TYPES = ("idea", "project_update", "risk", "bug")


@dataclass
class NoteInput:
    note_id: str
    raw_text: str


@dataclass
class PlanItem:
    """An existing plan item a suggestion may attach to."""

    id: str
    title: str
    description: str = ""
    status: str = ""


@dataclass(frozen=True)
class Line:
    index: int
    text: str
    line_type: str  # "heading", "list_item", "paragraph", "blank", "code", "quote"
    heading_level: int | None = None
    indent_level: int = 0
    in_code_block: bool = False


@dataclass(frozen=True)
class StructuralFeatures:
    num_lines: int
    num_list_items: int
    char_count: int
    has_dates: bool = False
    has_metrics: bool = False
    has_quarter_refs: bool = False
    has_version_refs: bool = False
    has_launch_keywords: bool = False
    initiative_phrase_density: float = 0.0


@dataclass(frozen=True)
class Section:
    section_id: str
    note_id: str
    heading_text: str
    heading_level: int
    start_line: int
    end_line: int
    body_lines: tuple[Line, ...]
    structural_features: StructuralFeatures
    raw_text: str
    parent_section_id: str | None = None

    @property
    def line_range(self) -> tuple[int, int]:
        return (self.start_line, self.end_line)


@dataclass
class IntentScores:
    plan_change: float = 0.0
    new_workstream: float = 0.0
    status_informational: float = 0.0
    communication: float = 0.0
    research: float = 0.0
    calendar: float = 0.0
    micro_tasks: float = 0.0
    # Routing flags kept outside the score distribution
    flags: dict[str, bool] = field(default_factory=dict)

    def scores_by_label(self) -> dict[str, float]:
        return {label: getattr(self, label) for label in INTENT_LABELS}

    def top_label(self) -> str:
        """Argmax over labels; ties resolve to the earliest declared label."""
        scores = self.scores_by_label()
        best = INTENT_LABELS[0]
        for label in INTENT_LABELS:
            if scores[label] > scores[best]:
                best = label
        return best

    @property
    def actionable_signal(self) -> float:
        return max(self.plan_change, self.new_workstream)

    @property
    def out_of_scope_signal(self) -> float:
        return max(self.calendar, self.communication, self.micro_tasks)


@dataclass
class ClassifiedSection:
    section: Section
    intent: IntentScores
    is_actionable: bool
    actionability_reason: str
    actionable_signal: float
    out_of_scope_signal: float
    type_label: str  # "idea" | "project_update"
    suggested_type: str | None = None
    type_confidence: float | None = None
    p_mutation: float = 0.0
    p_artifact: float = 0.0
    # Which gate rejected a non-actionable section
    out_of_scope: bool = False
    type_rejected: bool = False

    @property
    def section_id(self) -> str:
        return self.section.section_id

    @property
    def note_id(self) -> str:
        return self.section.note_id

    @property
    def heading_text(self) -> str:
        return self.section.heading_text

    @property
    def heading_level(self) -> int:
        return self.section.heading_level

    @property
    def raw_text(self) -> str:
        return self.section.raw_text

    @property
    def body_lines(self) -> tuple[Line, ...]:
        return self.section.body_lines

    @property
    def structural_features(self) -> StructuralFeatures:
        return self.section.structural_features

    @property
    def start_line(self) -> int:
        return self.section.start_line

    @property
    def end_line(self) -> int:
        return self.section.end_line

    @property
    def parent_section_id(self) -> str | None:
        return self.section.parent_section_id

    @property
    def intent_label(self) -> str:
        return self.intent.top_label()

    @property
    def is_plan_change(self) -> bool:
        return self.intent_label == "plan_change"


@dataclass(frozen=True)
class Signal:
    signal_type: str  # "FEATURE_DEMAND", "PLAN_CHANGE", "SCOPE_RISK", "BUG"
    label: str  # "idea", "update", "risk", "bug"
    proposed_type: str
    confidence: float
    sentence: str
    sentence_index: int


@dataclass
class EvidenceSpan:
    start_line: int
    end_line: int
    text: str


def aggregate_overall(actionability: float, type_confidence: float, synthesis_confidence: float) -> float:
    """Weakest-link aggregate: symmetric and monotonic in every input."""
    return min(actionability, type_confidence, synthesis_confidence)


@dataclass
class ScoreBreakdown:
    actionability: float
    type_confidence: float
    synthesis_confidence: float

    @property
    def overall(self) -> float:
        return aggregate_overall(
            self.actionability, self.type_confidence, self.synthesis_confidence
        )

    def to_dict(self) -> dict:
        return {
            "actionability": self.actionability,
            "type_confidence": self.type_confidence,
            "synthesis_confidence": self.synthesis_confidence,
            "overall": self.overall,
        }


@dataclass
class Routing:
    create_new: bool = True
    attached_plan_item_id: str | None = None
    similarity: float | None = None


@dataclass
class DraftInitiative:
    title: str
    description: str


@dataclass
class SuggestionPayload:
    after_description: str | None = None
    draft_initiative: DraftInitiative | None = None

    @property
    def description(self) -> str:
        if self.after_description is not None:
            return self.after_description
        if self.draft_initiative is not None:
            return self.draft_initiative.description
        return ""


@dataclass
class ValidationResult:
    validator: str
    passed: bool
    reason: str | None = None
    score: float | None = None
    # A non-blocking failure flags the candidate for clarification instead of dropping it
    blocking: bool = True


_FINGERPRINT_TITLE_RE = re.compile(r"[^a-z0-9]+")


def normalize_fingerprint_title(title: str) -> str:
    return _FINGERPRINT_TITLE_RE.sub(" ", title.lower()).strip()


def compute_fingerprint(note_id: str, section_id: str, suggestion_type: str, title: str) -> str:
    key = f"{note_id}|{section_id}|{suggestion_type}|{normalize_fingerprint_title(title)}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


@dataclass
class Suggestion:
    suggestion_id: str
    note_id: str
    section_id: str
    type: str  # one of SUGGESTION_TYPES
    title: str
    payload: SuggestionPayload
    evidence_spans: list[EvidenceSpan]
    scores: ScoreBreakdown
    routing: Routing = field(default_factory=Routing)
    body: str = ""
    source_heading: str = ""
    title_source: str | None = None
    metadata: dict = field(default_factory=dict)
    validation_results: list[ValidationResult] = field(default_factory=list)
    needs_clarification: bool = False
    clarification_reasons: list[str] = field(default_factory=list)
    is_high_confidence: bool = False
    action: str = "apply"  # "apply" | "comment"

    @property
    def fingerprint(self) -> str:
        return compute_fingerprint(self.note_id, self.section_id, self.type, self.title)

    @property
    def source(self) -> str:
        return self.metadata.get("source", "")

    def to_dict(self) -> dict:
        payload: dict = {}
        if self.payload.after_description is not None:
            payload["after_description"] = self.payload.after_description
        if self.payload.draft_initiative is not None:
            payload["draft_initiative"] = {
                "title": self.payload.draft_initiative.title,
                "description": self.payload.draft_initiative.description,
            }
        return {
            "suggestion_id": self.suggestion_id,
            "note_id": self.note_id,
            "section_id": self.section_id,
            "type": self.type,
            "title": self.title,
            "body": self.body,
            "payload": payload,
            "evidence_spans": [
                {"start_line": s.start_line, "end_line": s.end_line, "text": s.text}
                for s in self.evidence_spans
            ],
            "scores": self.scores.to_dict(),
            "routing": {
                "create_new": self.routing.create_new,
                "attached_plan_item_id": self.routing.attached_plan_item_id,
                "similarity": self.routing.similarity,
            },
            "fingerprint": self.fingerprint,
            "metadata": dict(self.metadata),
            "needs_clarification": self.needs_clarification,
            "clarification_reasons": list(self.clarification_reasons),
            "is_high_confidence": self.is_high_confidence,
            "action": self.action,
        }


@dataclass
class GeneratorResult:
    suggestions: list[Suggestion]
    debug_run: object | None = None  # DebugRun when the ledger is active
    stats: dict = field(default_factory=dict)
    debug_summary: object | None = None  # DebugRunSummary alongside debug_run

    def to_dict(self) -> dict:
        result: dict = {"suggestions": [s.to_dict() for s in self.suggestions], "stats": self.stats}
        if self.debug_run is not None:
            result["debug_run"] = self.debug_run.to_dict()
        if self.debug_summary is not None:
            result["debug_summary"] = self.debug_summary.to_dict()
        return result
