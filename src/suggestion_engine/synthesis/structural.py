"""Structural-bullet candidates: action-verb bullets in idea sections."""

from __future__ import annotations

import re

from suggestion_engine.models.domain import ClassifiedSection, Suggestion
from suggestion_engine.segmentation.lines import strip_list_marker
from suggestion_engine.synthesis.candidate_factory import CandidateFactory
from suggestion_engine.synthesis.titles import cap_at_word

BULLET_ACTION_VERBS = (
    "add", "build", "create", "implement", "introduce", "enable", "support", "integrate",
    "automate", "launch", "allow", "let", "show", "surface", "offer", "provide", "improve",
    "reduce", "streamline", "simplify", "use", "extend", "track", "migrate", "refactor",
)
_BULLET_VERB_RE = re.compile(rf"^(?:{'|'.join(BULLET_ACTION_VERBS)})\b", re.I)

STRUCTURAL_CONFIDENCE = 0.65
BULLET_TITLE_MAX_CHARS = 60


def structural_bullets(section: ClassifiedSection) -> list[str]:
    """List items that open with an action verb, markers stripped."""
    return [
        strip_list_marker(line.text)
        for line in section.body_lines
        if line.line_type == "list_item" and _BULLET_VERB_RE.match(strip_list_marker(line.text))
    ]


def seed_structural_bullets(section: ClassifiedSection, factory: CandidateFactory) -> list[Suggestion]:
    if section.suggested_type != "idea":
        return []
    candidates = []
    for bullet in structural_bullets(section):
        title = cap_at_word(bullet.rstrip(".").strip(), BULLET_TITLE_MAX_CHARS)
        candidates.append(
            factory.build(
                section.section,
                "idea",
                title,
                [bullet],
                source="structural-bullet",
                confidence=STRUCTURAL_CONFIDENCE,
                title_source="bullet",
            )
        )
    return candidates
