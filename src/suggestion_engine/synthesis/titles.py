"""Deterministic title derivation from source sentences."""

from __future__ import annotations

import re

from suggestion_engine.config.constants import TIMELINE_TITLE_MAX_CHARS, TITLE_OBJECT_MAX_CHARS
from suggestion_engine.models.domain import Signal
from suggestion_engine.segmentation.lines import strip_list_marker

_TRIGGER_OBJECT_RE = re.compile(
    r"\b(?:need|needs|require|requires|want|wants|requesting|asking\s+for|screaming\s+for"
    r"|implement|build|add|fix|push(?:ing)?|pull(?:ing)?|slip(?:ping)?|fail(?:ing)?|block(?:ing)?)"
    r"\s+([^.,;!?\n]{3,120})",
    re.I,
)
_CLAUSE_BOUNDARY_RE = re.compile(r"\b(?:but|until|because|so|when|unless)\b", re.I)
_LEADING_TO_RE = re.compile(r"^to\s+", re.I)
_LEADING_ACTION_VERB_RE = re.compile(
    r"^(?:add|implement|build|create|enable|fix|support|integrate|improve|ship|deliver|have|get|make|see)\s+",
    re.I,
)
_ARTICLE_RE = re.compile(r"^(?:a|an|the)\s+", re.I)

_CONDITIONAL_PREFIX_RE = re.compile(r"^(?:if|when|unless|once|because|since)\s+", re.I)
_SUBJECT_AUX_RE = re.compile(
    r"^(?:we|they|i|you|it|he|she|our team|the team)"
    r"(?:'re|'ll|'ve|'d|\s+are|\s+were|\s+will|\s+would|\s+have|\s+had|\s+can't|\s+cannot|\s+can"
    r"|\s+don't|\s+do not|\s+should|\s+must|\s+might|\s+may|\s+could|\s+need\s+to|\s+want\s+to|\s+is)?"
    r"(?:\s+(?:looking\s+at|seeing|facing|going\s+to|planning\s+to|trying\s+to|able\s+to|not))*\s+",
    re.I,
)
_CLAUSE_PUNCT_RE = re.compile(r"[.,;:!?\n(]")

DANGLING_WORDS = {
    "a", "an", "the", "and", "or", "but", "nor", "so", "because", "since", "until", "unless",
    "when", "while", "than", "that", "of", "on", "in", "at", "by", "to", "for", "from", "with",
    "into", "onto", "over", "under", "about", "as", "via", "per", "due",
}

RISK_SECTION_HEADING_RE = re.compile(r"\b(security|compliance|risk|considerations)\b", re.I)
TIMELINE_SECTION_HEADING_RE = re.compile(r"\b(timeline|implementation|schedule|roadmap|milestones?)\b", re.I)
_LABEL_PREFIX_RE = re.compile(r"^[\w\s]+:\s*")

TEMPLATE_TITLES = {
    "FEATURE_DEMAND": "Implement requested feature",
    "PLAN_CHANGE": "Update: project plan",
    "SCOPE_RISK": "Mitigate release risk",
    "BUG": "Fix reported issue",
}


def cap_at_word(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    truncated = text[:limit]
    last_space = truncated.rfind(" ")
    return truncated[:last_space] if last_space > 10 else truncated


def trim_dangling_words(phrase: str) -> str:
    """Drop trailing prepositions, conjunctions and articles left by a cut."""
    words = phrase.split()
    while words and words[-1].lower() in DANGLING_WORDS:
        words.pop()
    return " ".join(words)


def _leading_clause(text: str) -> str:
    head = _CLAUSE_BOUNDARY_RE.split(text)[0].strip()
    return head or text


def extract_object(sentence: str) -> str | None:
    """The object phrase after a trigger verb, cut at the first clause boundary."""
    match = _TRIGGER_OBJECT_RE.search(sentence)
    if not match:
        return None
    obj = _leading_clause(match.group(1))
    obj = _LEADING_TO_RE.sub("", obj)
    obj = _LEADING_ACTION_VERB_RE.sub("", obj)
    obj = _ARTICLE_RE.sub("", obj).strip()
    obj = trim_dangling_words(cap_at_word(obj, TITLE_OBJECT_MAX_CHARS))
    return obj if len(obj) >= 3 else None


def derive_from_evidence(text: str) -> str | None:
    """A title phrase from the leading clause of an evidence sentence."""
    clause = strip_list_marker(text.strip())
    clause = _CONDITIONAL_PREFIX_RE.sub("", clause)
    clause = _SUBJECT_AUX_RE.sub("", clause, count=1)
    clause = _CLAUSE_PUNCT_RE.split(clause)[0].strip()
    clause = _leading_clause(clause)
    clause = _ARTICLE_RE.sub("", clause).strip()
    clause = trim_dangling_words(cap_at_word(clause, TITLE_OBJECT_MAX_CHARS))
    return clause if len(clause) >= 3 else None


def _object_or_clause(sentence: str) -> str | None:
    return extract_object(sentence) or derive_from_evidence(sentence)


def timeline_title(sentence: str) -> str:
    first_line = strip_list_marker(sentence.split("\n")[0])
    content = _LABEL_PREFIX_RE.sub("", first_line).strip() or first_line
    if len(content) > TIMELINE_TITLE_MAX_CHARS:
        content = content[: TIMELINE_TITLE_MAX_CHARS - 3] + "..."
    return f"Update: {content}"


def title_from_signal(signal: Signal, heading_text: str = "") -> str:
    if signal.signal_type == "SCOPE_RISK":
        if heading_text and RISK_SECTION_HEADING_RE.search(heading_text):
            return f"Risk: {heading_text}"
        obj = _object_or_clause(signal.sentence)
        return f"Risk: {obj}" if obj else TEMPLATE_TITLES["SCOPE_RISK"]

    obj = _object_or_clause(signal.sentence)
    if not obj:
        return TEMPLATE_TITLES[signal.signal_type]
    if signal.signal_type == "FEATURE_DEMAND":
        return f"Implement {obj}"
    if signal.signal_type == "PLAN_CHANGE":
        return f"Update: {obj}"
    return f"Fix {obj} issue"
