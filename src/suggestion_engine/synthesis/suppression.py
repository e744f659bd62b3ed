"""Post-synthesis suppression: an ordered chain of named candidate predicates.

Each rule sees the candidate, its classified section and the section's other
candidates. The first rule that matches decides the drop reason; later rules
are not consulted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from suggestion_engine.config.constants import PII_RISK_CONFIDENCE
from suggestion_engine.models.domain import ClassifiedSection, Suggestion
from suggestion_engine.scoring.reason_codes import DropReason
from suggestion_engine.synthesis.consolidation import has_delta_signal

PROCESS_NOISE_PATTERNS = [
    re.compile(r"\bwho\s+owns?\b", re.I),
    re.compile(r"\bunclear\s+who\b", re.I),
    re.compile(r"\bambiguity\s+around\b", re.I),
    re.compile(r"\bambiguous\b", re.I),
    re.compile(r"\bhand-?over\b", re.I),
    re.compile(r"\bsign.?off\b", re.I),
    re.compile(r"\bfinal\s+qa\b", re.I),
    re.compile(r"\bprocess\s+ownership\b", re.I),
    re.compile(r"\bownership\s+(?:of|around|for)\b", re.I),
]

DELIVERY_ROLES = r"(?:pm|engineering|eng|product\s+manager|customer\s+success|cs|design|qa|security|legal)"
DELIVERY_ASSIGNMENT_PATTERNS = [
    re.compile(r"\bowner\s*:", re.I),
    re.compile(rf"\b{DELIVERY_ROLES}\s+to\s+\w", re.I),
]

LOW_RELEVANCE_HEADINGS = {
    "summary", "next steps", "next step", "recap", "tl;dr", "tldr", "takeaways",
    "key takeaways", "attendees", "agenda", "action items recap",
}
_EMOJI_RE = re.compile(r"[^\w\s;:&/>-]+", re.UNICODE)

SPEC_HEADING_RE = re.compile(
    r"\b(scoring|prioriti[sz]ation|framework|eligibility|weighting|criteria|rubric|methodology)\b", re.I
)
SPEC_FRAMEWORK_TOKEN_LIST = [
    re.compile(r"\bscoring\b", re.I),
    re.compile(r"\bprioriti[sz]ation\b", re.I),
    re.compile(r"\bthree[-\s]factor\b", re.I),
    re.compile(r"\beligibility\b", re.I),
    re.compile(r"\badditionality\b", re.I),
    re.compile(r"\bweighting\b", re.I),
    re.compile(r"\bframework\b", re.I),
    re.compile(r"\bsystem\b", re.I),
]
TIMELINE_EXCLUSION_RE = re.compile(
    r"\b(deploy\w*|launch\w*|eta|target\s+date|window|shipped|in\s+progress|completed?)\b", re.I
)
STRATEGY_ONLY_HEADING_RE = re.compile(
    r"^(?:[\w\s]+\s)?(strategy|strategic\s+\w+|approach|vision|principles?)$", re.I
)


def _evidence_text(candidate: Suggestion) -> str:
    return " ".join(span.text for span in candidate.evidence_spans)


def is_process_noise(text: str) -> bool:
    if not any(p.search(text) for p in PROCESS_NOISE_PATTERNS):
        return False
    return not any(p.search(text) for p in DELIVERY_ASSIGNMENT_PATTERNS)


def normalize_heading(heading: str) -> str:
    text = _EMOJI_RE.sub(" ", heading)
    return re.sub(r"\s+", " ", text).strip().rstrip(":").lower()


def is_low_relevance_heading(heading: str) -> bool:
    normalized = normalize_heading(heading)
    # "Parent > Child" merged headings are judged by their last part
    last = normalized.split(">")[-1].strip()
    return normalized in LOW_RELEVANCE_HEADINGS or last in LOW_RELEVANCE_HEADINGS


def spec_token_count(text: str) -> int:
    return sum(1 for pattern in SPEC_FRAMEWORK_TOKEN_LIST if pattern.search(text))


def has_concrete_change(text: str) -> bool:
    return bool(TIMELINE_EXCLUSION_RE.search(text)) or has_delta_signal(text)


def is_spec_framework_section(section: ClassifiedSection) -> bool:
    """Strategy or spec/framework sections that describe no concrete schedule change."""
    heading = section.heading_text.strip()
    looks_like_spec = (
        bool(STRATEGY_ONLY_HEADING_RE.match(heading))
        or bool(SPEC_HEADING_RE.search(heading))
        or spec_token_count(section.raw_text) >= 2
    )
    return looks_like_spec and not has_concrete_change(section.raw_text)


# ============================================
# Predicates
# ============================================

Predicate = Callable[[Suggestion, ClassifiedSection, list[Suggestion]], bool]


def _process_noise(candidate: Suggestion, section: ClassifiedSection, siblings: list[Suggestion]) -> bool:
    return is_process_noise(_evidence_text(candidate))


def _low_relevance_heading(candidate: Suggestion, section: ClassifiedSection, siblings: list[Suggestion]) -> bool:
    return is_low_relevance_heading(section.heading_text)


def _spec_framework_update(candidate: Suggestion, section: ClassifiedSection, siblings: list[Suggestion]) -> bool:
    return candidate.type == "project_update" and is_spec_framework_section(section)


def _pii_risk_preference(candidate: Suggestion, section: ClassifiedSection, siblings: list[Suggestion]) -> bool:
    if candidate.type != "risk":
        return False
    confidence = candidate.metadata.get("confidence", 0.0)
    if confidence >= PII_RISK_CONFIDENCE:
        return False
    return any(
        other.type == "risk" and other.metadata.get("confidence", 0.0) >= PII_RISK_CONFIDENCE
        for other in siblings
        if other is not candidate
    )


@dataclass(frozen=True)
class SuppressionRule:
    name: str
    reason: str
    applies: Predicate


SUPPRESSION_CHAIN: tuple[SuppressionRule, ...] = (
    SuppressionRule("process_noise", DropReason.PROCESS_NOISE, _process_noise),
    SuppressionRule("low_relevance_heading", DropReason.LOW_RELEVANCE, _low_relevance_heading),
    SuppressionRule("spec_framework_update_guard", DropReason.SUPPRESSED_SECTION, _spec_framework_update),
    SuppressionRule("pii_risk_preference", DropReason.SUPPRESSED_SECTION, _pii_risk_preference),
)


def first_matching_rule(
    candidate: Suggestion,
    section: ClassifiedSection,
    siblings: list[Suggestion],
    chain: tuple[SuppressionRule, ...] = SUPPRESSION_CHAIN,
) -> SuppressionRule | None:
    for rule in chain:
        if rule.applies(candidate, section, siblings):
            return rule
    return None


def apply_suppression(
    candidates: list[Suggestion],
    section: ClassifiedSection,
    chain: tuple[SuppressionRule, ...] = SUPPRESSION_CHAIN,
) -> tuple[list[Suggestion], list[tuple[Suggestion, SuppressionRule]]]:
    """Split candidates into kept and suppressed, preserving order.

    Siblings are the full input list so a rule's verdict does not depend on
    which other candidates were suppressed before it.
    """
    kept: list[Suggestion] = []
    suppressed: list[tuple[Suggestion, SuppressionRule]] = []
    for candidate in candidates:
        rule = first_matching_rule(candidate, section, candidates, chain)
        if rule is None:
            kept.append(candidate)
        else:
            suppressed.append((candidate, rule))
    return kept, suppressed
