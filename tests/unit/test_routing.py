"""Tests for plan-item routing and fingerprint deduplication."""

import pytest

from suggestion_engine.models.domain import PlanItem
from suggestion_engine.models.schemas import ThresholdConfig
from suggestion_engine.routing.dedupe import dedupe_by_fingerprint
from suggestion_engine.routing.router import (
    SuggestionRouter,
    compute_routing_stats,
    term_frequency_similarity,
)


class StubEmbedder:
    dimensions = 2

    def __init__(self, vectors):
        self._vectors = vectors

    def embed_texts(self, texts):
        return self._vectors[: len(texts)]


def _suggestion(factory, section, title, evidence="Partner API launch"):
    return factory.build(section.section, "idea", title, [evidence], source="b-signal", confidence=0.7)


@pytest.fixture
def section(section_factory, classified_factory):
    return classified_factory(section_factory("Partners", "Partner API launch"), new_workstream=0.8)


def test_term_frequency_similarity():
    assert term_frequency_similarity("partner launch", "partner launch") == pytest.approx(1.0)
    assert term_frequency_similarity("partner launch", "billing export") == 0.0
    assert term_frequency_similarity("", "partner launch") == 0.0


def test_no_plan_items_means_create_new(section, candidate_factory):
    suggestion = _suggestion(candidate_factory, section, "Partner API launch")
    routing = SuggestionRouter(ThresholdConfig()).route(suggestion, [])
    assert routing.create_new
    assert routing.similarity is None


def test_similar_plan_item_is_attached(section, candidate_factory):
    suggestion = _suggestion(candidate_factory, section, "Partner API launch")
    items = [
        PlanItem(id="plan-2", title="Billing export"),
        PlanItem(id="plan-1", title="Partner API launch"),
    ]
    routing = SuggestionRouter(ThresholdConfig()).route(suggestion, items)
    assert not routing.create_new
    assert routing.attached_plan_item_id == "plan-1"
    assert routing.similarity == pytest.approx(1.0)


def test_unrelated_plan_items_create_new(section, candidate_factory):
    suggestion = _suggestion(candidate_factory, section, "Partner API launch")
    routing = SuggestionRouter(ThresholdConfig()).route(suggestion, [PlanItem(id="plan-2", title="Billing export")])
    assert routing.create_new
    assert routing.attached_plan_item_id is None


def test_earliest_plan_item_wins_ties(section, candidate_factory):
    suggestion = _suggestion(candidate_factory, section, "Partner API launch")
    items = [
        PlanItem(id="plan-a", title="Partner API launch"),
        PlanItem(id="plan-b", title="Partner API launch"),
    ]
    routing = SuggestionRouter(ThresholdConfig()).route(suggestion, items)
    assert routing.attached_plan_item_id == "plan-a"


def test_embedder_similarity(section, candidate_factory):
    suggestion = _suggestion(candidate_factory, section, "Partner API launch")
    embedder = StubEmbedder([[1.0, 0.0], [0.0, 1.0], [1.0, 0.0]])
    items = [PlanItem(id="plan-x", title="Unrelated"), PlanItem(id="plan-y", title="Also unrelated")]
    routing = SuggestionRouter(ThresholdConfig(), embedder).route(suggestion, items)
    assert routing.attached_plan_item_id == "plan-y"


def test_routing_stats(section, candidate_factory):
    router = SuggestionRouter(ThresholdConfig())
    attached = _suggestion(candidate_factory, section, "Partner API launch")
    new = _suggestion(candidate_factory, section, "Partner API launch")
    router.route(attached, [PlanItem(id="plan-1", title="Partner API launch")])
    router.route(new, [])

    stats = compute_routing_stats([attached, new])
    assert stats.attached == 1
    assert stats.create_new == 1
    assert stats.attach_ratio == 0.5


def test_dedupe_keeps_first_occurrence(section, section_factory, classified_factory, candidate_factory):
    first = _suggestion(candidate_factory, section, "Add SSO support")
    dup = _suggestion(candidate_factory, section, "add sso support!")
    other_section = classified_factory(
        section_factory("Partners", "Partner API launch", section_id="sec_test_2"), new_workstream=0.8
    )
    elsewhere = _suggestion(candidate_factory, other_section, "Add SSO support")

    kept, duplicates = dedupe_by_fingerprint([first, dup, elsewhere])
    assert kept == [first, elsewhere]
    assert duplicates == [dup]
    assert first.fingerprint == dup.fingerprint
