"""Tests for suggestion scoring, threshold gates and the output cap."""

from suggestion_engine.models.domain import ScoreBreakdown, aggregate_overall
from suggestion_engine.models.schemas import ThresholdConfig
from suggestion_engine.scoring.reason_codes import ClarificationReason
from suggestion_engine.scoring.scorer import SuggestionScorer

BODY = "Move the partner launch to April because the handshake protocol rework slipped."


def _candidate(factory, section, suggestion_type="idea", scores=(0.9, 0.9, 0.9), **metadata):
    candidate = factory.build(
        section.section, suggestion_type, "Move partner launch", [BODY],
        source=metadata.pop("source", "b-signal"), confidence=metadata.pop("confidence", 0.7), **metadata,
    )
    candidate.scores = ScoreBreakdown(*scores)
    return candidate


def test_overall_is_weakest_link():
    assert ScoreBreakdown(0.9, 0.7, 0.8).overall == 0.7
    assert aggregate_overall(0.2, 0.9, 0.9) == aggregate_overall(0.9, 0.9, 0.2)


def test_low_scoring_idea_is_dropped(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Ideas", BODY), new_workstream=0.8)
    candidate = _candidate(candidate_factory, section, scores=(0.5, 0.5, 0.5))
    failure = SuggestionScorer(ThresholdConfig(), 5).apply_thresholds(candidate, section)
    assert failure == "overall 0.50 < 0.65"


def test_plan_change_update_downgraded_not_dropped(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Timeline", BODY), plan_change=0.8)
    candidate = _candidate(candidate_factory, section, "project_update", scores=(0.5, 0.5, 0.5))

    assert SuggestionScorer(ThresholdConfig(), 5).apply_thresholds(candidate, section) is None
    assert candidate.needs_clarification
    assert candidate.action == "comment"
    assert ClarificationReason.LOW_OVERALL_SCORE in candidate.clarification_reasons
    assert ClarificationReason.LOW_ACTIONABILITY_SCORE in candidate.clarification_reasons
    assert not candidate.is_high_confidence


def test_evidence_weak_flags_passing_candidate(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Ideas", BODY), new_workstream=0.8)
    candidate = _candidate(candidate_factory, section)

    assert SuggestionScorer(ThresholdConfig(), 5).apply_thresholds(candidate, section, evidence_weak=True) is None
    assert candidate.clarification_reasons == [ClarificationReason.EVIDENCE_WEAK]
    assert candidate.action == "comment"
    assert candidate.is_high_confidence


def test_clean_candidate_is_applied(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Ideas", BODY), new_workstream=0.8)
    candidate = _candidate(candidate_factory, section, scores=(0.7, 0.7, 0.7))

    assert SuggestionScorer(ThresholdConfig(), 5).apply_thresholds(candidate, section) is None
    assert not candidate.needs_clarification
    assert candidate.action == "apply"
    assert not candidate.is_high_confidence


def test_refine_keeps_fallback_scores(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Timeline", BODY), plan_change=0.8)
    candidate = _candidate(
        candidate_factory, section, "project_update", scores=(0.3, 0.3, 0.3), source="plan-change-fallback"
    )
    refined = SuggestionScorer(ThresholdConfig(), 5).refine(candidate, section)
    assert refined.overall == 0.3


def test_refine_lifts_actionability_for_signals(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Timeline", BODY), new_workstream=0.2)
    candidate = _candidate(candidate_factory, section, confidence=0.75, signal_type="PLAN_CHANGE")
    refined = SuggestionScorer(ThresholdConfig(), 5).refine(candidate, section)
    assert refined.actionability >= 0.75
    assert 0.0 <= refined.synthesis_confidence <= 1.0


def test_cap_keeps_all_updates(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Timeline", BODY), plan_change=0.8)
    update = _candidate(candidate_factory, section, "project_update", scores=(0.4, 0.4, 0.4))
    strong = _candidate(candidate_factory, section, scores=(0.9, 0.9, 0.9))
    weak = _candidate(candidate_factory, section, scores=(0.7, 0.7, 0.7))

    kept, overflow = SuggestionScorer(ThresholdConfig(), 2).cap([weak, update, strong])
    assert kept == [update, strong]
    assert overflow == [weak]

    kept, overflow = SuggestionScorer(ThresholdConfig(), 1).cap([weak, update, strong])
    assert kept == [update]
    assert overflow == [strong, weak]


def _sections(section_factory, classified_factory, *section_ids, **intent):
    return [
        classified_factory(section_factory("Timeline", BODY, section_id=section_id), **intent)
        for section_id in section_ids
    ]


def test_cap_reserves_plan_change_sections(section_factory, classified_factory, candidate_factory):
    first, second = _sections(section_factory, classified_factory, "sec_a", "sec_b", plan_change=0.8)
    (ideas,) = _sections(section_factory, classified_factory, "sec_c", new_workstream=0.8)
    first_bug = _candidate(candidate_factory, first, "bug", scores=(0.9, 0.9, 0.9))
    second_bug = _candidate(candidate_factory, second, "bug", scores=(0.7, 0.7, 0.7))
    idea = _candidate(candidate_factory, ideas, scores=(0.8, 0.8, 0.8))

    groups = {"sec_a": "sec_a", "sec_b": "sec_b"}
    kept, overflow = SuggestionScorer(ThresholdConfig(), 1).cap([first_bug, second_bug, idea], groups)
    assert kept == [first_bug, second_bug]
    assert overflow == [idea]


def test_cap_reservation_skips_sections_with_an_update(section_factory, classified_factory, candidate_factory):
    (section,) = _sections(section_factory, classified_factory, "sec_a", plan_change=0.8)
    update = _candidate(candidate_factory, section, "project_update", scores=(0.7, 0.7, 0.7))
    bug = _candidate(candidate_factory, section, "bug", scores=(0.9, 0.9, 0.9))

    kept, overflow = SuggestionScorer(ThresholdConfig(), 1).cap([bug, update], {"sec_a": "sec_a"})
    assert kept == [update]
    assert overflow == [bug]


def test_cap_reserves_one_candidate_per_split_group(section_factory, classified_factory, candidate_factory):
    first, second = _sections(
        section_factory, classified_factory, "sec_a__topic_1", "sec_a__topic_2", new_workstream=0.8
    )
    strong = _candidate(candidate_factory, first, scores=(0.9, 0.9, 0.9))
    weak = _candidate(candidate_factory, second, scores=(0.7, 0.7, 0.7))
    groups = {"sec_a__topic_1": "sec_a", "sec_a__topic_2": "sec_a"}

    kept, overflow = SuggestionScorer(ThresholdConfig(), 0).cap([weak, strong], groups)
    assert kept == [strong]
    assert overflow == [weak]
