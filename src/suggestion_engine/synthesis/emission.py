"""Section-level enrichment of idea bodies: gamification clusters, automation and spec bullets."""

from __future__ import annotations

import re

from suggestion_engine.models.domain import ClassifiedSection, Suggestion
from suggestion_engine.synthesis.candidate_factory import rebody
from suggestion_engine.synthesis.gamification import apply_gamification_cluster, list_items
from suggestion_engine.synthesis.suppression import SPEC_HEADING_RE

AUTOMATION_HEADING_RE = re.compile(r"\b(automation|automate[sd]?|parsing|parser|ocr|upload|uploads)\b", re.I)

AUTOMATION_MIN_ITEMS = 2
SPEC_MIN_ITEMS = 3
MAX_BODY_BULLETS = 4


def bullet_body(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items[:MAX_BODY_BULLETS])


def multi_bullet_body(section: ClassifiedSection) -> str | None:
    items = list_items(section)
    heading = section.heading_text
    if AUTOMATION_HEADING_RE.search(heading) and len(items) >= AUTOMATION_MIN_ITEMS:
        return bullet_body(items)
    if SPEC_HEADING_RE.search(heading) and len(items) >= SPEC_MIN_ITEMS:
        return bullet_body(items)
    return None


def apply_multi_bullet_bodies(candidates: list[Suggestion], section: ClassifiedSection) -> None:
    """Replace idea bodies with the section's bullets where the heading calls for it.

    A gamification cluster takes precedence and also sets the idea titles.
    """
    if apply_gamification_cluster(candidates, section):
        return
    body = multi_bullet_body(section)
    if body is None:
        return
    for candidate in candidates:
        if candidate.type == "idea":
            rebody(candidate, body)
