"""Heading-based section segmentation and structural feature extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass

from suggestion_engine.config.constants import GENERAL_SECTION_HEADING, PLAIN_HEADING_MAX_CHARS
from suggestion_engine.models.domain import Line, NoteInput, Section, StructuralFeatures
from suggestion_engine.observability.logger import get_logger
from suggestion_engine.segmentation.lines import annotate_lines, heading_text
from suggestion_engine.synthesis.ids import IdGenerator

logger = get_logger("segmentation")

_PSEUDO_HEADING_PATTERNS = [
    re.compile(r"^(Plan|Roadmap|Execution|Next Steps|Decisions|Goals|Scope|Timeline|Strategy):", re.I),
    re.compile(r"^(Q[1-4]\s+\d{4}|H[12]\s+\d{4})", re.I),
    re.compile(r"^(Phase\s+\d+|Sprint\s+\d+)", re.I),
]

_DATE_RE = re.compile(
    r"\b(january|february|march|april|may|june|july|august|september|october|november|december"
    r"|\d{1,2}/\d{1,2}|\d{4})\b",
    re.I,
)
_METRIC_RE = re.compile(r"(\b\d+%|\b\d+x\b|\$\d+|\b(?:arr|mrr|dau|mau|nps|okr)\b)", re.I)
_QUARTER_RE = re.compile(r"\b(q[1-4]|h[12])\b", re.I)
_VERSION_RE = re.compile(r"\b(v\d+|mvp|alpha|beta|ga|launch)\b", re.I)
_LAUNCH_RE = re.compile(r"\b(launch|rollout|ship|release|deploy|go-live)\b", re.I)
_INITIATIVE_PHRASE_RE = re.compile(
    r"\b(?:launch|build|create|spin\s+up|rollout|ship|deliver|implement)\s+\w+", re.I
)


@dataclass
class PreprocessedNote:
    lines: list[Line]
    sections: list[Section]


def compute_structural_features(body_lines: list[Line]) -> StructuralFeatures:
    full_text = " ".join(line.text for line in body_lines)
    words = full_text.split()
    phrase_count = len(_INITIATIVE_PHRASE_RE.findall(full_text))
    density = min(1.0, phrase_count / (len(words) / 10)) if words else 0.0
    return StructuralFeatures(
        num_lines=len(body_lines),
        num_list_items=sum(1 for line in body_lines if line.line_type == "list_item"),
        char_count=len("\n".join(line.text for line in body_lines)),
        has_dates=bool(_DATE_RE.search(full_text)),
        has_metrics=bool(_METRIC_RE.search(full_text)),
        has_quarter_refs=bool(_QUARTER_RE.search(full_text)),
        has_version_refs=bool(_VERSION_RE.search(full_text)),
        has_launch_keywords=bool(_LAUNCH_RE.search(full_text)),
        initiative_phrase_density=density,
    )


def _is_plain_text_heading(line: Line, next_line: Line | None) -> bool:
    if line.line_type != "paragraph":
        return False
    stripped = line.text.strip()
    if len(stripped) > PLAIN_HEADING_MAX_CHARS:
        return False
    if re.search(r"[.?!]$", stripped):
        return False
    if next_line is None:
        return True
    return next_line.line_type in ("blank", "paragraph", "list_item")


def _is_pseudo_heading(text: str) -> bool:
    stripped = text.strip()
    return any(p.search(stripped) for p in _PSEUDO_HEADING_PATTERNS)


@dataclass
class _Draft:
    heading_text: str
    heading_level: int
    start_line: int
    body_lines: list[Line]


class SectionProvider:
    """Splits a note into ordered, immutable sections.

    Markdown ``#`` headings always open a section. Plain-text and pseudo
    headings are only honoured before the first markdown heading (or inside
    the implicit ``General`` section), which keeps ordinary short sentences
    inside a structured note from being promoted to headings.
    """

    def preprocess(self, note: NoteInput, ids: IdGenerator) -> PreprocessedNote:
        lines = annotate_lines(note.raw_text)
        drafts = self._segment(lines)
        drafts = self._merge_empty(drafts)
        sections = [self._finalize(note.note_id, draft, ids) for draft in drafts]
        logger.debug("note_segmented", note_id=note.note_id, lines=len(lines), sections=len(sections))
        return PreprocessedNote(lines=lines, sections=sections)

    def _segment(self, lines: list[Line]) -> list[_Draft]:
        drafts: list[_Draft] = []
        current: _Draft | None = None
        has_markdown_heading = False
        has_any_heading = False

        for i, line in enumerate(lines):
            next_line = lines[i + 1] if i + 1 < len(lines) else None

            if line.line_type == "heading":
                has_markdown_heading = True
                has_any_heading = True
                current = _Draft(heading_text(line.text), line.heading_level or 2, line.index, [])
                drafts.append(current)
                continue

            in_general = current is not None and current.heading_text == GENERAL_SECTION_HEADING
            if (not has_markdown_heading or in_general) and _is_plain_text_heading(line, next_line):
                has_any_heading = True
                current = _Draft(line.text.strip().rstrip(":").strip(), 2, line.index, [])
                drafts.append(current)
                continue

            if not has_any_heading and _is_pseudo_heading(line.text):
                has_any_heading = True
                current = _Draft(line.text.strip().rstrip(":").strip(), 2, line.index, [])
                drafts.append(current)
                continue

            if current is None:
                if line.line_type == "blank":
                    continue
                current = _Draft(GENERAL_SECTION_HEADING, 1, line.index, [])
                drafts.append(current)
            current.body_lines.append(line)

        return drafts

    @staticmethod
    def _merge_empty(drafts: list[_Draft]) -> list[_Draft]:
        """Fold heading-only sections into the next section as ``Parent > Child``."""
        merged: list[_Draft] = []
        pending: str | None = None
        for draft in drafts:
            if not any(line.text.strip() for line in draft.body_lines):
                if draft.heading_text and draft.heading_text != GENERAL_SECTION_HEADING:
                    pending = f"{pending} > {draft.heading_text}" if pending else draft.heading_text
                continue
            if pending:
                draft.heading_text = f"{pending} > {draft.heading_text}" if draft.heading_text else pending
                pending = None
            merged.append(draft)
        return merged

    @staticmethod
    def _finalize(note_id: str, draft: _Draft, ids: IdGenerator) -> Section:
        body = list(draft.body_lines)
        # trailing blank lines do not belong to the section's range
        while body and body[-1].line_type == "blank":
            body.pop()
        return Section(
            section_id=ids.next_section_id(),
            note_id=note_id,
            heading_text=draft.heading_text,
            heading_level=draft.heading_level,
            start_line=draft.start_line,
            end_line=body[-1].index if body else draft.start_line,
            body_lines=tuple(body),
            structural_features=compute_structural_features(body),
            raw_text="\n".join(line.text for line in body),
        )
