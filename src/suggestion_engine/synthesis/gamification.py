"""Gamification clusters: engagement-loop bullet lists summarized as one idea.

A section qualifies when it has at least four bullets and the bullets carry
two or more distinct engagement tokens. Its ideas get a cluster-level title
and a body made of the leading bullets.
"""

from __future__ import annotations

import re

from suggestion_engine.models.domain import ClassifiedSection, Suggestion
from suggestion_engine.segmentation.lines import strip_list_marker
from suggestion_engine.synthesis.candidate_factory import rebody, retitle

GAMIFICATION_TOKENS = (
    "next episode",
    "one more",
    "worth €",
    "earning potential",
    "next highest-value field",
    "next field",
    "reward",
    "gamif",
    "streak",
    "badge",
)

CLUSTER_MIN_BULLETS = 4
CLUSTER_MIN_TOKENS = 2
CLUSTER_BODY_BULLETS = 4

NEXT_FIELD_TITLE = "Gamify data collection (next-field rewards)"
EARNING_POTENTIAL_TITLE = "Gamify data collection (earning-potential rewards)"
DEFAULT_CLUSTER_TITLE = "Gamify data collection"


def list_items(section: ClassifiedSection) -> list[str]:
    return [
        strip_list_marker(line.text)
        for line in section.body_lines
        if line.line_type == "list_item" and strip_list_marker(line.text)
    ]


def count_gamification_tokens(text: str) -> int:
    lower = text.lower()
    return sum(1 for token in GAMIFICATION_TOKENS if token in lower)


def is_gamification_cluster(items: list[str]) -> bool:
    if len(items) < CLUSTER_MIN_BULLETS:
        return False
    return count_gamification_tokens(" ".join(items)) >= CLUSTER_MIN_TOKENS


def cluster_title(heading: str, items: list[str]) -> str:
    joined = " ".join(items).lower()
    if "next highest-value field" in joined or "next field" in joined:
        return NEXT_FIELD_TITLE
    if "earning potential" in joined:
        return EARNING_POTENTIAL_TITLE
    return heading.strip() or DEFAULT_CLUSTER_TITLE


def cluster_body(items: list[str]) -> str:
    joined = re.sub(r"\.+", ".", ". ".join(items[:CLUSTER_BODY_BULLETS]))
    return re.sub(r"\.\s*$", "", joined) + "."


def apply_gamification_cluster(candidates: list[Suggestion], section: ClassifiedSection) -> bool:
    """Retitle and rebody the section's ideas when it is a gamification cluster.

    Returns True when the section qualified, whether or not it had ideas.
    """
    items = list_items(section)
    if not is_gamification_cluster(items):
        return False
    title = cluster_title(section.heading_text, items)
    body = cluster_body(items)
    for candidate in candidates:
        if candidate.type == "idea":
            retitle(candidate, title)
            rebody(candidate, body)
            candidate.metadata["gamification_cluster"] = True
    return True
