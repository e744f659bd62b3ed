"""Tests for the sentence-level signal extractors."""

from suggestion_engine.signals.bug import extract_bug
from suggestion_engine.signals.extract import extract_signals
from suggestion_engine.signals.feature_demand import extract_feature_demand
from suggestion_engine.signals.plan_change import extract_plan_change
from suggestion_engine.signals.scope_risk import extract_scope_risk
from suggestion_engine.signals.sentences import split_sentences


def test_feature_demand_requires_actor_and_desire():
    signals = extract_feature_demand(["Customers want saved filters on the dashboard"])
    assert len(signals) == 1
    assert signals[0].proposed_type == "idea"
    assert signals[0].confidence == 0.65

    assert extract_feature_demand(["Saved filters on the dashboard"]) == []
    assert extract_feature_demand(["We want saved filters"]) == []


def test_feature_demand_amplifier_raises_confidence():
    signals = extract_feature_demand(["Users need SSO, it is a blocker for the expansion deal"])
    assert signals[0].confidence == 0.75


def test_plan_change_needs_milestone_and_shift_verb():
    signals = extract_plan_change(["We pushed the launch to Q3"])
    assert len(signals) == 1
    assert signals[0].signal_type == "PLAN_CHANGE"
    assert signals[0].proposed_type == "project_update"
    assert signals[0].confidence == 0.75

    assert extract_plan_change(["We discussed the launch"]) == []


def test_plan_change_suppressed_by_conditional():
    assert extract_plan_change(["We might push the launch to Q3"]) == []
    assert extract_plan_change(["If legal objects we delay the release"]) == []


def test_scope_risk_actionable_conditional():
    signals = extract_scope_risk(["If we can't prove GDPR compliance, the deal is off"])
    assert len(signals) == 1
    assert signals[0].confidence == 0.7


def test_scope_risk_pii_logging_elevated():
    signals = extract_scope_risk(["We are writing PII into the request logs"])
    assert signals[0].confidence == 0.85


def test_scope_risk_subjective_prefix_never_fires():
    assert extract_scope_risk(["Some concern that the security review is slow"]) == []


def test_scope_risk_lexical_path_yields_to_schedule_slip():
    assert extract_scope_risk(["Security review pushed by 2 weeks"]) == []


def test_bug_suppressed_by_speculation():
    assert len(extract_bug(["Checkout is failing on Safari"])) == 1
    assert extract_bug(["Checkout might be failing on Safari"]) == []


def test_extract_signals_concatenates_extractors():
    sentences = split_sentences(
        "Customers want CSV export. We pushed the launch to Q3. Checkout is broken on Safari."
    )
    kinds = [s.signal_type for s in extract_signals(sentences)]
    assert kinds == ["FEATURE_DEMAND", "PLAN_CHANGE", "BUG"]


def test_split_sentences_keeps_lines_separate():
    assert split_sentences("- first item\n- second item. Third part") == [
        "first item",
        "second item.",
        "Third part",
    ]
