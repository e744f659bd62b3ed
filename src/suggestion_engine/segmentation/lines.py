"""Line annotation: classify each raw note line by its markdown role."""

from __future__ import annotations

import re

from suggestion_engine.models.domain import Line

_FENCE_RE = re.compile(r"^(`{3,}|~{3,})")
_MD_HEADING_RE = re.compile(r"^(#{1,6})\s")
_NUMBERED_HEADING_RE = re.compile(r"^\s{0,2}(\d+)\.\s+(\S.*)$")
_QUOTE_RE = re.compile(r"^>\s")
_BULLET_RE = re.compile(r"^[-*+•]\s")
_NUMBERED_ITEM_RE = re.compile(r"^\d+[.)]\s")
_SENTENCE_END_RE = re.compile(r"[.?!,;]$")

NUMBERED_HEADING_MAX_WORDS = 6


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def indent_level(text: str) -> int:
    leading = text[: len(text) - len(text.lstrip(" \t"))]
    return len(leading.replace("\t", "  ")) // 2


def heading_text(text: str) -> str:
    """Strip markdown hashes or a numbered-heading marker from a heading line."""
    stripped = text.strip()
    stripped = re.sub(r"^#{1,6}\s+", "", stripped)
    stripped = re.sub(r"^\d+\.\s+", "", stripped)
    return stripped.strip()


def _looks_like_numbered_heading(text: str, next_text: str | None) -> bool:
    match = _NUMBERED_HEADING_RE.match(text)
    if not match:
        return False
    title = match.group(2).strip()
    if len(title.split()) > NUMBERED_HEADING_MAX_WORDS:
        return False
    if _SENTENCE_END_RE.search(title) or not title[0].isupper():
        return False
    # A run of numbered lines is a list, not a sequence of headings
    if next_text is not None and _NUMBERED_ITEM_RE.match(next_text.strip()):
        return False
    return True


def annotate_lines(raw_text: str) -> list[Line]:
    """Annotate every line of a note with its type, heading level and indent."""
    raw_lines = normalize_newlines(raw_text).split("\n")
    lines: list[Line] = []
    fence_marker = ""

    for i, text in enumerate(raw_lines):
        stripped = text.strip()

        fence = _FENCE_RE.match(stripped)
        if fence and not fence_marker:
            fence_marker = fence.group(1)[0]
            lines.append(Line(index=i, text=text, line_type="code", in_code_block=True))
            continue
        if fence_marker:
            if fence and stripped.startswith(fence_marker):
                fence_marker = ""
            lines.append(Line(index=i, text=text, line_type="code", in_code_block=True))
            continue

        if not stripped:
            lines.append(Line(index=i, text=text, line_type="blank"))
            continue

        md_heading = _MD_HEADING_RE.match(stripped)
        if md_heading:
            lines.append(
                Line(index=i, text=text, line_type="heading", heading_level=len(md_heading.group(1)))
            )
            continue

        next_text = _next_non_blank(raw_lines, i)
        if _looks_like_numbered_heading(text, next_text):
            lines.append(Line(index=i, text=text, line_type="heading", heading_level=2))
            continue

        if _QUOTE_RE.match(stripped):
            lines.append(Line(index=i, text=text, line_type="quote"))
            continue

        if _BULLET_RE.match(stripped) or _NUMBERED_ITEM_RE.match(stripped):
            lines.append(
                Line(index=i, text=text, line_type="list_item", indent_level=indent_level(text))
            )
            continue

        lines.append(Line(index=i, text=text, line_type="paragraph"))

    return lines


def _next_non_blank(raw_lines: list[str], index: int) -> str | None:
    for text in raw_lines[index + 1 :]:
        if text.strip():
            return text
    return None


def strip_list_marker(text: str) -> str:
    stripped = text.strip()
    stripped = re.sub(r"^[-*+•]\s+", "", stripped)
    stripped = re.sub(r"^\d+[.)]\s+", "", stripped)
    return stripped.strip()


def normalize_for_comparison(text: str) -> str:
    """Lowercase, strip non-word characters and collapse whitespace."""
    lowered = text.lower()
    lowered = re.sub(r"[^\w\s]", "", lowered)
    return re.sub(r"\s+", " ", lowered).strip()


def normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()
