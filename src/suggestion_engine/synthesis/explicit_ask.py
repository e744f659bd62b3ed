"""Explicit-ask fallback: a request clause such as "asks for X" or "need X"."""

from __future__ import annotations

import re

from suggestion_engine.classification.topic_isolation import has_topic_anchors
from suggestion_engine.models.domain import Section, Suggestion
from suggestion_engine.signals.sentences import split_sentences
from suggestion_engine.synthesis.candidate_factory import CandidateFactory
from suggestion_engine.synthesis.titles import cap_at_word

_EXPLICIT_ASK_RE = re.compile(
    r"\b(?:asks?\s+for|asked\s+for|asking\s+for|would\s+like(?:\s+to\s+(?:see|have|get))?"
    r"|needs?(?:\s+to\s+have)?|we\s+should|let'?s)\s+([^.;!?\n]{3,120})",
    re.I,
)
_ARTICLE_RE = re.compile(r"^(?:a|an|the|some|more)\s+", re.I)
_CLAUSE_CUT_RE = re.compile(r",|\b(?:but|because|so that|since|which)\b", re.I)

EXPLICIT_ASK_CONFIDENCE = 0.7
ASK_TITLE_MAX_CHARS = 60


def find_explicit_ask(section: Section) -> tuple[str, str] | None:
    """Return (sentence, requested object) for the first extractable ask."""
    if has_topic_anchors(section):
        return None
    for sentence in split_sentences(section.raw_text):
        match = _EXPLICIT_ASK_RE.search(sentence)
        if not match:
            continue
        obj = _CLAUSE_CUT_RE.split(match.group(1))[0].strip()
        obj = _ARTICLE_RE.sub("", obj).strip()
        if len(obj) >= 3:
            return sentence, cap_at_word(obj, ASK_TITLE_MAX_CHARS)
    return None


def synthesize_explicit_ask(section: Section, factory: CandidateFactory) -> Suggestion | None:
    found = find_explicit_ask(section)
    if found is None:
        return None
    sentence, obj = found
    title = obj[:1].upper() + obj[1:]
    return factory.build(
        section,
        "idea",
        title,
        [sentence],
        source="explicit-ask",
        confidence=EXPLICIT_ASK_CONFIDENCE,
        title_source="explicit-ask",
    )
