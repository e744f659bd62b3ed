"""Signal-seeded candidates: one candidate per (sentence, proposed type)."""

from __future__ import annotations

import re

from suggestion_engine.models.domain import Section, Signal, Suggestion
from suggestion_engine.signals.extract import extract_signals
from suggestion_engine.signals.sentences import split_sentences
from suggestion_engine.synthesis.candidate_factory import CandidateFactory
from suggestion_engine.synthesis.dense_paragraph import dense_sentences, is_dense_paragraph_section
from suggestion_engine.synthesis.titles import TIMELINE_SECTION_HEADING_RE, timeline_title, title_from_signal

TIMELINE_DATE_TOKENS = re.compile(
    r"\b(\d+-(?:week|day|month|year|sprint)s?|target\s+\w+|q[1-4]\s*\d{4}"
    r"|jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|jul(?:y)?|aug(?:ust)?"
    r"|sep(?:tember)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b",
    re.I,
)
SECURITY_LEXICAL_TOKENS = re.compile(
    r"\b(pii|security|compliance|gdpr|privacy|vulnerability|exposure|logging|blocker)\b", re.I
)

TIMELINE_CONFIDENCE = 0.75


def is_timeline_section(section: Section) -> bool:
    return bool(TIMELINE_SECTION_HEADING_RE.search(section.heading_text))


def _is_timeline_line(sentence: str) -> bool:
    return bool(TIMELINE_DATE_TOKENS.search(sentence)) and not SECURITY_LEXICAL_TOKENS.search(sentence)


def timeline_signal(sentences: list[str]) -> tuple[Signal, list[str]] | None:
    """Merge every dated line of a timeline section into one PLAN_CHANGE signal.

    Returns the signal (anchored on the first dated line) and all dated lines,
    each of which becomes its own evidence span.
    """
    matching = [(i, s) for i, s in enumerate(sentences) if _is_timeline_line(s)]
    if not matching:
        return None
    first_index, first_sentence = matching[0]
    signal = Signal(
        signal_type="PLAN_CHANGE",
        label="update",
        proposed_type="project_update",
        confidence=TIMELINE_CONFIDENCE,
        sentence=first_sentence,
        sentence_index=first_index,
    )
    return signal, [s for _, s in matching]


def dedupe_signals(signals: list[Signal]) -> list[Signal]:
    """Keep the highest-confidence signal per (sentence index, proposed type).

    First occurrence wins ties and output keeps first-seen key order.
    """
    best: dict[tuple[int, str], Signal] = {}
    for signal in signals:
        key = (signal.sentence_index, signal.proposed_type)
        current = best.get(key)
        if current is None or signal.confidence > current.confidence:
            best[key] = signal
    return list(best.values())


def section_sentences(section: Section) -> tuple[list[str], str]:
    """Sentences for extraction and the provenance tag they produce."""
    if is_dense_paragraph_section(section):
        return dense_sentences(section), "dense-paragraph"
    return split_sentences(section.raw_text), "b-signal"


def seed_from_signals(section: Section, factory: CandidateFactory) -> list[Suggestion]:
    sentences, source = section_sentences(section)
    if not sentences:
        return []

    signals = extract_signals(sentences)
    timeline_lines: list[str] = []
    if is_timeline_section(section):
        merged = timeline_signal(sentences)
        if merged is not None:
            signal, timeline_lines = merged
            # the merged signal replaces shift-verb updates on the same line
            signals = [
                s
                for s in signals
                if not (s.signal_type == "PLAN_CHANGE" and s.sentence_index == signal.sentence_index)
            ]
            signals.append(signal)

    heading = section.heading_text.strip()
    candidates = []
    for signal in dedupe_signals(signals):
        evidence = [signal.sentence]
        title = title_from_signal(signal, heading)
        timeline = (
            bool(timeline_lines)
            and signal.signal_type == "PLAN_CHANGE"
            and signal.sentence == timeline_lines[0]
        )
        if timeline:
            evidence = timeline_lines
            title = timeline_title(signal.sentence)
        candidates.append(
            factory.build(
                section,
                signal.proposed_type,
                title,
                evidence,
                source=source,
                confidence=signal.confidence,
                body="\n".join(evidence),
                title_source="timeline" if timeline else "signal",
                signal_type=signal.signal_type,
                label=signal.label,
                sentence_index=signal.sentence_index,
                explicit_type=True,
            )
        )
    return candidates

