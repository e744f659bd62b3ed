"""Builds candidate suggestions with grounded evidence spans."""

from __future__ import annotations

from suggestion_engine.models.domain import (
    DraftInitiative,
    EvidenceSpan,
    ScoreBreakdown,
    Section,
    Suggestion,
    SuggestionPayload,
)
from suggestion_engine.segmentation.lines import normalize_whitespace, strip_list_marker
from suggestion_engine.synthesis.ids import IdGenerator

_LOCATE_PREFIX_CHARS = 40


def _norm(text: str) -> str:
    return normalize_whitespace(strip_list_marker(text)).lower()


def locate_lines(section: Section, text: str) -> tuple[int, int]:
    """Find the body line range an evidence text was taken from."""
    target = _norm(text)
    if not target:
        return section.start_line, section.end_line

    head = target[:_LOCATE_PREFIX_CHARS]
    tail = target[-_LOCATE_PREFIX_CHARS:]
    start = end = None
    for line in section.body_lines:
        line_text = _norm(line.text)
        if not line_text:
            continue
        if target in line_text or line_text == target:
            return line.index, line.index
        if start is None and (head in line_text or line_text in target):
            start = line.index
        if start is not None and tail in line_text:
            end = line.index
            break
    if start is None:
        return section.start_line, section.end_line
    return start, end if end is not None else start


def build_payload(suggestion_type: str, title: str, body: str) -> SuggestionPayload:
    if suggestion_type == "project_update":
        return SuggestionPayload(after_description=body)
    return SuggestionPayload(draft_initiative=DraftInitiative(title=title, description=body))


class CandidateFactory:
    """Creates candidates for one run, allocating ids from the run's generator."""

    def __init__(self, ids: IdGenerator) -> None:
        self.ids = ids

    def build(
        self,
        section: Section,
        suggestion_type: str,
        title: str,
        evidence: list[str],
        source: str,
        confidence: float,
        body: str | None = None,
        title_source: str | None = None,
        **metadata,
    ) -> Suggestion:
        spans = []
        for text in evidence:
            cleaned = text.strip()
            if not cleaned:
                continue
            start, end = locate_lines(section, cleaned)
            spans.append(EvidenceSpan(start_line=start, end_line=end, text=cleaned))
        body_text = body if body is not None else " ".join(s.text for s in spans)
        meta = {"source": source, "confidence": confidence, **metadata}
        return Suggestion(
            suggestion_id=self.ids.next_suggestion_id(),
            note_id=section.note_id,
            section_id=section.section_id,
            type=suggestion_type,
            title=title,
            payload=build_payload(suggestion_type, title, body_text),
            evidence_spans=spans,
            scores=ScoreBreakdown(confidence, confidence, confidence),
            body=body_text,
            source_heading=section.heading_text,
            title_source=title_source,
            metadata=meta,
        )


def retitle(suggestion: Suggestion, title: str) -> None:
    suggestion.title = title
    if suggestion.payload.draft_initiative is not None:
        suggestion.payload.draft_initiative.title = title


def rebody(suggestion: Suggestion, body: str) -> None:
    suggestion.body = body
    if suggestion.payload.draft_initiative is not None:
        suggestion.payload.draft_initiative.description = body
    else:
        suggestion.payload.after_description = body
