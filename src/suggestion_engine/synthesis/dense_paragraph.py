"""Dense-paragraph detection: one long block of prose with no list structure."""

from __future__ import annotations

from suggestion_engine.classification.topic_isolation import has_topic_anchors
from suggestion_engine.config.constants import DENSE_PARAGRAPH_MIN_CHARS
from suggestion_engine.models.domain import Section
from suggestion_engine.signals.sentences import split_dense_sentences


def is_dense_paragraph_section(section: Section) -> bool:
    features = section.structural_features
    if features.num_list_items != 0:
        return False
    if features.num_lines > 1 and len(section.raw_text) < DENSE_PARAGRAPH_MIN_CHARS:
        return False
    return not has_topic_anchors(section)


def dense_sentences(section: Section) -> list[str]:
    return split_dense_sentences(section.raw_text)
