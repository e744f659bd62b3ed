"""Semantic idea candidates from strategy and mechanism language.

A section (or paragraph) qualifies when it carries both a strategy-level token
and a mechanism-level token; feature constructs such as "photo upload" satisfy
both sides and count double. A usable heading titles the candidate; otherwise
the title is derived from the sentence with the most signal tokens.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from suggestion_engine.config.constants import SEMANTIC_TITLE_MAX_CHARS
from suggestion_engine.models.domain import Section, Suggestion
from suggestion_engine.segmentation.lines import strip_list_marker
from suggestion_engine.synthesis.candidate_factory import CandidateFactory
from suggestion_engine.synthesis.titles import cap_at_word

STRATEGY_TOKENS = ("strategy", "approach", "system", "framework", "prioritization", "scoring", "automation")
MECHANISM_VERBS = ("introduce", "use", "extend", "calculate", "integrate", "automate", "parse", "upload", "layer")
FEATURE_CONSTRUCTS = ("photo upload", "ai parsing", "scoring model", "prioritization system")

GENERIC_HEADINGS = {
    "general", "overview", "summary", "notes", "misc", "other", "details", "background",
    "context", "introduction", "appendix", "todo", "update", "updates", "status", "info",
}

_MECHANISM_OBJECT_RE = re.compile(
    r"\b(?:introduce|use|extend|calculate|integrate|automate|parse|upload|layer)\s+([^,.;!?\n]{5,60})", re.I
)
_STRATEGY_OBJECT_RE = re.compile(
    r"\b(?:strategy|system|framework|approach|automation)\s+(?:for\s+|to\s+)?([^,.;!?\n]{5,60})", re.I
)
_TITLE_NOISE_RE = re.compile(r"^(?:we|i|they|it)\s+(?:should|will|need\s+to|plan\s+to|want\s+to|can)\s+", re.I)
_MECHANISM_PREFIX_RE = re.compile(r"^(?:use|using|introduce|introducing)\s+", re.I)
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+|\n")

MAX_CONFIDENCE = 0.75
BASE_CONFIDENCE = 0.6
PER_TOKEN = 0.05


@dataclass
class TokenMatch:
    strategy: int
    mechanism: int
    constructs: int

    @property
    def total(self) -> int:
        return self.strategy + self.mechanism + 2 * self.constructs

    def passes_gate(self) -> bool:
        if self.total < 2:
            return False
        has_strategy = self.strategy >= 1 or self.constructs >= 1
        has_mechanism = self.mechanism >= 1 or self.constructs >= 1
        return has_strategy and has_mechanism


def match_tokens(text: str) -> TokenMatch:
    lower = text.lower()
    return TokenMatch(
        strategy=sum(1 for t in STRATEGY_TOKENS if re.search(rf"\b{t}\b", lower)),
        mechanism=sum(1 for t in MECHANISM_VERBS if re.search(rf"\b{t}\b", lower)),
        constructs=sum(1 for c in FEATURE_CONSTRUCTS if c in lower),
    )


def is_generic_heading(heading: str) -> bool:
    lower = heading.lower().strip()
    return lower in GENERIC_HEADINGS or (len(lower) <= 6 and " " not in lower)


def has_usable_heading(section: Section) -> bool:
    heading = section.heading_text.strip()
    return bool(heading) and section.heading_level <= 3 and not is_generic_heading(heading)


def best_evidence_sentence(text: str) -> str:
    sentences = [strip_list_marker(s) for s in _SENTENCE_RE.split(text)]
    sentences = [s for s in sentences if len(s) >= 10]
    if not sentences:
        return strip_list_marker(text.strip())
    best, best_count = sentences[0], 0
    for sentence in sentences:
        count = match_tokens(sentence).total
        if count > best_count:
            best, best_count = sentence, count
    return best


def _clean_phrase(text: str) -> str:
    text = _TITLE_NOISE_RE.sub("", text.strip())
    return _MECHANISM_PREFIX_RE.sub("", text).strip()


def derive_semantic_title(sentence: str) -> str:
    for pattern in (_MECHANISM_OBJECT_RE, _STRATEGY_OBJECT_RE):
        match = pattern.search(sentence)
        if match:
            noun = _clean_phrase(match.group(1))
            if len(noun) >= 5:
                noun = cap_at_word(noun, SEMANTIC_TITLE_MAX_CHARS)
                return noun[:1].upper() + noun[1:]
    clause = _clean_phrase(re.split(r"[,;]", sentence)[0])
    clause = cap_at_word(clause, SEMANTIC_TITLE_MAX_CHARS)
    return clause[:1].upper() + clause[1:]


def _paragraphs(raw_text: str) -> list[str]:
    return [p.strip() for p in re.split(r"\n\s*\n", raw_text) if len(p.strip()) >= 20]


def _confidence(match: TokenMatch) -> float:
    return min(MAX_CONFIDENCE, BASE_CONFIDENCE + PER_TOKEN * match.total)


def extract_idea_candidates(
    section: Section,
    factory: CandidateFactory,
    covered: set[str] | None = None,
) -> list[Suggestion]:
    covered = covered if covered is not None else set()
    results: list[Suggestion] = []

    if has_usable_heading(section):
        match = match_tokens(f"{section.heading_text} {section.raw_text}")
        if not match.passes_gate():
            return []
        evidence = best_evidence_sentence(section.raw_text)
        if evidence in covered or evidence not in section.raw_text:
            return []
        results.append(
            factory.build(
                section,
                "idea",
                section.heading_text.strip(),
                [evidence],
                source="idea-semantic",
                confidence=_confidence(match),
                title_source="heading",
                explicit_type=True,
            )
        )
        return results

    paragraphs = _paragraphs(section.raw_text)
    texts = paragraphs if len(paragraphs) >= 2 else [section.raw_text]
    for paragraph in texts:
        match = match_tokens(paragraph)
        if not match.passes_gate():
            continue
        evidence = best_evidence_sentence(paragraph)
        if not evidence or evidence in covered or evidence not in section.raw_text:
            continue
        results.append(
            factory.build(
                section,
                "idea",
                derive_semantic_title(evidence),
                [evidence],
                source="idea-semantic",
                confidence=_confidence(match),
                title_source="semantic",
                explicit_type=True,
            )
        )
        covered.add(evidence)
    return results
