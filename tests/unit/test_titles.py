"""Tests for title derivation and normalization."""

from suggestion_engine.models.domain import Signal
from suggestion_engine.synthesis.title_normalization import (
    is_vacuous,
    normalize_suggestion_title,
    normalize_title,
)
from suggestion_engine.synthesis.titles import (
    derive_from_evidence,
    extract_object,
    title_from_signal,
    trim_dangling_words,
)

DELAY_SENTENCE = "We're looking at a 4-week delay due to infrastructure work."


def test_derive_from_evidence_strips_subject_and_article():
    assert derive_from_evidence(DELAY_SENTENCE) == "4-week delay due to infrastructure work"


def test_vacuous_title_rederived_from_evidence():
    title = normalize_title("Update: Discussion They", "project_update", [DELAY_SENTENCE])
    assert title == "Update: 4-week delay due to infrastructure work"


def test_derive_from_evidence_stops_at_clause_boundary():
    sentence = "We're looking at a 4-week delay on the partner launch because of the handshake protocol rework."
    assert derive_from_evidence(sentence) == "4-week delay on the partner launch"


def test_capped_title_drops_dangling_words():
    sentence = "We are planning a rollout of the new billing flow for the platform team"
    assert derive_from_evidence(sentence) == "planning a rollout of the new billing flow"


def test_trim_dangling_words():
    assert trim_dangling_words("slipped the v2 release by") == "slipped the v2 release"
    assert trim_dangling_words("rollout of the and") == "rollout"
    assert trim_dangling_words("the") == ""


def test_extract_object_cut_at_clause_boundary():
    assert extract_object("We need to fix the login flow but QA is blocked") == "login flow"


def test_normalize_title_is_idempotent():
    first = normalize_title("Update: Discussion They", "project_update", [DELAY_SENTENCE])
    assert normalize_title(first, "project_update", [DELAY_SENTENCE]) == first

    idea = normalize_title("Maybe we could explore caching for the search API", "idea")
    assert normalize_title(idea, "idea") == idea


def test_weak_verbs_mapped_to_strong_verbs():
    assert normalize_suggestion_title("Maybe we could explore caching for the search API") == (
        "Investigate caching for the search API"
    )


def test_trailing_deadline_removed():
    assert normalize_title("Add SSO support by end of quarter", "idea") == "Add SSO support"


def test_is_vacuous():
    assert is_vacuous("Discussion They")
    assert is_vacuous("the project")
    assert not is_vacuous("SSO support")


def test_title_from_feature_demand_signal():
    signal = Signal(
        signal_type="FEATURE_DEMAND",
        label="idea",
        proposed_type="idea",
        confidence=0.65,
        sentence="Customers want saved filters on the dashboard",
        sentence_index=0,
    )
    assert title_from_signal(signal) == "Implement saved filters on the dashboard"


def test_risk_title_prefers_risk_heading():
    signal = Signal(
        signal_type="SCOPE_RISK",
        label="risk",
        proposed_type="risk",
        confidence=0.7,
        sentence="If we miss the audit, the deal falls through.",
        sentence_index=0,
    )
    assert title_from_signal(signal, "Security considerations") == "Risk: Security considerations"
