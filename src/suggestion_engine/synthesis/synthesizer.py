"""Synthesizer: turns actionable sections into candidate suggestions."""

from __future__ import annotations

from dataclasses import dataclass, field

from suggestion_engine.classification.section_classifier import SectionClassifier
from suggestion_engine.classification.topic_isolation import split_section, should_split
from suggestion_engine.exceptions import SynthesisError
from suggestion_engine.models.domain import ClassifiedSection, Suggestion
from suggestion_engine.observability.logger import get_logger
from suggestion_engine.scoring.reason_codes import DropReason
from suggestion_engine.synthesis.candidate_factory import CandidateFactory, retitle
from suggestion_engine.synthesis.consolidation import consolidate
from suggestion_engine.synthesis.emission import apply_multi_bullet_bodies
from suggestion_engine.synthesis.explicit_ask import synthesize_explicit_ask
from suggestion_engine.synthesis.fallbacks import FallbackSkip, is_discussion_details, plan_change_placeholder
from suggestion_engine.synthesis.idea_semantic import extract_idea_candidates
from suggestion_engine.synthesis.ids import IdGenerator
from suggestion_engine.synthesis.signal_seeding import seed_from_signals
from suggestion_engine.synthesis.structural import seed_structural_bullets
from suggestion_engine.synthesis.suppression import apply_suppression, is_low_relevance_heading
from suggestion_engine.synthesis.title_normalization import normalize_title

logger = get_logger("synthesis")

MIN_SPLIT_CHILDREN = 2


@dataclass
class CandidateDrop:
    candidate: Suggestion
    reason: str
    rule: str | None = None


@dataclass
class SectionSplit:
    parent: ClassifiedSection
    children: list[ClassifiedSection]

    @property
    def child_ids(self) -> list[str]:
        return [c.section_id for c in self.children]


@dataclass
class SynthesisOutcome:
    """Everything synthesis decided, for the pipeline to forward to the ledger."""

    candidates: list[Suggestion] = field(default_factory=list)
    dropped: list[CandidateDrop] = field(default_factory=list)
    fallback_skipped: dict[str, str] = field(default_factory=dict)
    splits: list[SectionSplit] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)


class Synthesizer:
    def __init__(self, classifier: SectionClassifier, ids: IdGenerator) -> None:
        self._classifier = classifier
        self._ids = ids
        self._factory = CandidateFactory(ids)

    @property
    def factory(self) -> CandidateFactory:
        return self._factory

    def synthesize(self, sections: list[ClassifiedSection]) -> SynthesisOutcome:
        outcome = SynthesisOutcome()
        for section in sections:
            if should_split(section.section):
                children = split_section(section.section, self._ids)
                if len(children) >= MIN_SPLIT_CHILDREN:
                    self._synthesize_split(section, children, outcome)
                    continue
            self._synthesize_section(section, outcome)
        return outcome

    def _synthesize_split(self, parent: ClassifiedSection, children, outcome: SynthesisOutcome) -> None:
        classified = self._classifier.classify_all(children)
        outcome.splits.append(SectionSplit(parent, classified))
        logger.debug(
            "section_split",
            section_id=parent.section_id,
            children=[c.section_id for c in classified],
        )

        produced = 0
        for child in classified:
            if child.is_actionable:
                produced += self._synthesize_section(child, outcome)
        if produced == 0 and parent.is_plan_change:
            outcome.fallback_skipped[parent.section_id] = FallbackSkip.TOPIC_SPLIT_NO_CHILD_OUTPUT

    def _synthesize_section(self, section: ClassifiedSection, outcome: SynthesisOutcome) -> int:
        try:
            candidates = self._generate(section, outcome)
        except SynthesisError as e:
            logger.error("synthesis_failed", section_id=section.section_id, error=str(e))
            outcome.failures[section.section_id] = str(e)
            return 0
        outcome.candidates.extend(candidates)
        return len(candidates)

    def _generate(self, section: ClassifiedSection, outcome: SynthesisOutcome) -> list[Suggestion]:
        try:
            return self._run_generators(section, outcome)
        except Exception as e:
            raise SynthesisError(f"section {section.section_id}: {type(e).__name__}: {e}") from e

    def _run_generators(self, section: ClassifiedSection, outcome: SynthesisOutcome) -> list[Suggestion]:
        factory = self._factory

        # STEP 1: Signal-seeded and structural candidates
        candidates = seed_from_signals(section.section, factory)
        candidates.extend(seed_structural_bullets(section, factory))
        if section.suggested_type == "idea":
            covered = {span.text for c in candidates for span in c.evidence_spans}
            candidates.extend(extract_idea_candidates(section.section, factory, covered))

        # STEP 2: Suppression chain
        low_relevance = is_low_relevance_heading(section.heading_text)
        if low_relevance:
            outcome.fallback_skipped[section.section_id] = FallbackSkip.LOW_RELEVANCE_HEADING
        candidates, suppressed = apply_suppression(candidates, section)
        for candidate, rule in suppressed:
            outcome.dropped.append(CandidateDrop(candidate, rule.reason, rule.name))
        spec_guarded = any(rule.name == "spec_framework_update_guard" for _, rule in suppressed)

        # STEP 3: Consolidation and presentation
        candidates = consolidate(candidates, section, factory)
        apply_multi_bullet_bodies(candidates, section)
        for candidate in candidates:
            texts = [span.text for span in candidate.evidence_spans]
            retitle(candidate, normalize_title(candidate.title, candidate.type, texts))

        if candidates or low_relevance:
            return candidates

        # STEP 4: Fallbacks for sections with no candidates
        ask = synthesize_explicit_ask(section.section, factory)
        if ask is not None:
            retitle(ask, normalize_title(ask.title, ask.type, [s.text for s in ask.evidence_spans]))
            return [ask]

        if is_discussion_details(section):
            outcome.fallback_skipped[section.section_id] = FallbackSkip.DISCUSSION_DETAILS
            return []

        if spec_guarded:
            outcome.fallback_skipped[section.section_id] = FallbackSkip.SPEC_FRAMEWORK_SECTION
            return []

        if section.is_plan_change:
            return [plan_change_placeholder(section, factory)]
        return []


def drop_reason_for_section(section: ClassifiedSection) -> str:
    """Drop reason for a section that never reached synthesis."""
    if section.out_of_scope:
        return DropReason.OUT_OF_SCOPE
    if section.type_rejected:
        return DropReason.TYPE_LOW_CONFIDENCE
    return DropReason.NOT_ACTIONABLE
