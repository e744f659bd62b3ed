"""Topic isolation: split sections that mix clearly distinct subjects."""

from __future__ import annotations

import re

from suggestion_engine.config.constants import (
    TOPIC_SPLIT_MIN_ANCHORS,
    TOPIC_SPLIT_MIN_BULLETS,
    TOPIC_SPLIT_MIN_CHARS,
)
from suggestion_engine.models.domain import Line, Section
from suggestion_engine.segmentation.lines import strip_list_marker
from suggestion_engine.segmentation.sections import compute_structural_features
from suggestion_engine.synthesis.ids import IdGenerator

TOPIC_ANCHOR_PREFIXES = (
    "new feature",
    "feature request",
    "project timeline",
    "internal operation",
    "cultural shift",
    "bug:",
    "risk:",
)

_DISCUSSION_HEADING_RE = re.compile(r"\bdiscussion\b", re.I)


def is_topic_anchor(line: Line) -> bool:
    lower = strip_list_marker(line.text).lower()
    return lower.startswith(TOPIC_ANCHOR_PREFIXES)


def topic_anchor_lines(section: Section) -> list[Line]:
    return [line for line in section.body_lines if is_topic_anchor(line)]


def has_topic_anchors(section: Section) -> bool:
    return any(is_topic_anchor(line) for line in section.body_lines)


def is_long_or_discussion(section: Section) -> bool:
    features = section.structural_features
    return bool(
        _DISCUSSION_HEADING_RE.search(section.heading_text)
        or features.num_list_items >= TOPIC_SPLIT_MIN_BULLETS
        or features.char_count >= TOPIC_SPLIT_MIN_CHARS
    )


def should_split(section: Section) -> bool:
    if section.parent_section_id is not None:
        return False
    return is_long_or_discussion(section) and len(topic_anchor_lines(section)) >= TOPIC_SPLIT_MIN_ANCHORS


def _anchor_heading(line: Line) -> tuple[str, bool]:
    """Return the anchor label and whether the line carries content after it."""
    text = strip_list_marker(line.text)
    label, sep, rest = text.partition(":")
    if not sep:
        return text.strip(), False
    return label.strip(), bool(rest.strip())


def split_section(section: Section, ids: IdGenerator) -> list[Section]:
    """Split at topic-anchor lines into child sections, in source order.

    Lines before the first anchor become a preamble child that keeps the
    parent heading. Children reference the parent through ``parent_section_id``.
    """
    groups: list[tuple[str, int, list[Line]]] = []
    preamble: list[Line] = []
    for line in section.body_lines:
        if is_topic_anchor(line):
            heading, inline = _anchor_heading(line)
            groups.append((heading, line.index, [line] if inline else []))
        elif groups:
            groups[-1][2].append(line)
        else:
            preamble.append(line)

    if any(line.text.strip() for line in preamble):
        groups.insert(0, (section.heading_text, preamble[0].index, preamble))

    children: list[Section] = []
    for heading, start_line, body in groups:
        while body and body[-1].line_type == "blank":
            body.pop()
        if not any(line.text.strip() for line in body):
            continue
        children.append(
            Section(
                section_id=ids.child_section_id(section.section_id),
                note_id=section.note_id,
                heading_text=heading,
                heading_level=section.heading_level + 1,
                start_line=start_line,
                end_line=body[-1].index,
                body_lines=tuple(body),
                structural_features=compute_structural_features(body),
                raw_text="\n".join(line.text for line in body),
                parent_section_id=section.section_id,
            )
        )
    return children
