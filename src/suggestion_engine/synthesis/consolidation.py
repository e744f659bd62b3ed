"""Collapse fragmented idea candidates from one structured section."""

from __future__ import annotations

import re

from suggestion_engine.config.constants import (
    CONSOLIDATION_MAX_BODY_CHARS,
    CONSOLIDATION_MAX_HEADING_LEVEL,
    CONSOLIDATION_MAX_MERGED_SPANS,
    CONSOLIDATION_MAX_SPANS,
    CONSOLIDATION_MIN_BULLETS,
    CONSOLIDATION_MIN_CANDIDATES,
)
from suggestion_engine.models.domain import ClassifiedSection, Suggestion
from suggestion_engine.synthesis.candidate_factory import CandidateFactory
from suggestion_engine.synthesis.title_normalization import normalize_title

DELTA_PATTERNS = [
    re.compile(r"\d+-(?:week|day|month|year|sprint)s?", re.I),
    re.compile(r"\d+\s+(?:week|day|month|year|sprint)s?", re.I),
    re.compile(r"from\s+\d[-–]\w+\s+to\s+\d[-–]\w+", re.I),
    re.compile(r"\d+[-–]\w+\s+to\s+\d+[-–]\w+", re.I),
    re.compile(r"extend(?:ed|ing)?\s+from\s+", re.I),
    re.compile(r"delayed?\s+(?:to|until|by)\s+", re.I),
    re.compile(r"pushed?\s+(?:to|until)\s+", re.I),
    re.compile(r"Q[1-4]\s+\d{4}", re.I),
    re.compile(r"20\d\d[-–]20\d\d"),
]

_MARKER_RE = re.compile(r"^[\s\-*+•]+|^\d+[.)]\s*")


def has_delta_signal(text: str) -> bool:
    return any(pattern.search(text) for pattern in DELTA_PATTERNS)


def should_consolidate(candidates: list[Suggestion], section: ClassifiedSection) -> bool:
    if len(candidates) < CONSOLIDATION_MIN_CANDIDATES:
        return False
    if any(c.type != "idea" for c in candidates):
        return False
    if section.heading_level > CONSOLIDATION_MAX_HEADING_LEVEL:
        return False
    if section.structural_features.num_list_items < CONSOLIDATION_MIN_BULLETS:
        return False
    return not has_delta_signal(section.raw_text)


def merge_span_texts(candidates: list[Suggestion], limit: int = CONSOLIDATION_MAX_MERGED_SPANS) -> list[str]:
    seen: set[str] = set()
    merged: list[str] = []
    for candidate in candidates:
        for span in candidate.evidence_spans:
            key = span.text.strip()
            if key and key not in seen:
                seen.add(key)
                merged.append(key)
                if len(merged) >= limit:
                    return merged
    return merged


def build_consolidated_body(texts: list[str], max_spans: int = CONSOLIDATION_MAX_SPANS) -> str:
    parts = [_MARKER_RE.sub("", t.strip()).strip() for t in texts[:max_spans]]
    parts = [p for p in parts if p]
    if not parts:
        return ""
    joined = re.sub(r"\.+", ".", ". ".join(parts))
    joined = re.sub(r"\.\s*$", "", joined) + "."
    if len(joined) > CONSOLIDATION_MAX_BODY_CHARS:
        return joined[: CONSOLIDATION_MAX_BODY_CHARS - 3] + "…"
    return joined


def consolidate(
    candidates: list[Suggestion],
    section: ClassifiedSection,
    factory: CandidateFactory,
) -> list[Suggestion]:
    """Return the candidates unchanged, or one consolidated idea replacing them."""
    if not should_consolidate(candidates, section):
        return candidates

    texts = merge_span_texts(candidates)
    heading = section.heading_text.strip() or candidates[0].title
    confidence = max(c.metadata.get("confidence", 0.0) for c in candidates)
    consolidated = factory.build(
        section.section,
        "idea",
        normalize_title(heading, "idea", texts),
        texts,
        source="consolidated-section",
        confidence=confidence,
        body=build_consolidated_body(texts) or candidates[0].body,
        title_source="consolidated",
        consolidated_from=[c.suggestion_id for c in candidates],
    )
    return [consolidated]
