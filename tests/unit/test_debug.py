"""Tests for the debug ledger, redaction helpers and run summary."""

import pytest

from suggestion_engine.debug.ledger import DebugLedger, create_debug_ledger
from suggestion_engine.debug.note_hash import compute_note_hash
from suggestion_engine.debug.redaction import make_preview, redact_text, resolve_debug_verbosity
from suggestion_engine.debug.summary import build_debug_run_summary
from suggestion_engine.exceptions import LedgerInvariantError
from suggestion_engine.models.schemas import GeneratorConfig
from suggestion_engine.pipeline.suggestion_pipeline import SuggestionPipeline
from suggestion_engine.scoring.reason_codes import DropReason, DropStage

NOTE_TEXT = "# Sync\n\nShip the partner API.\nEmail dana@example.com for access."
BODY = "Ship the partner API.\nEmail dana@example.com for access."


@pytest.fixture
def ledger():
    return DebugLedger("note-test", NOTE_TEXT, "REDACTED", GeneratorConfig(), run_id="run-1")


@pytest.fixture
def section(section_factory):
    return section_factory("Sync", BODY, section_id="sec_test_1")


def _candidate(factory, section, suggestion_type="idea", title="Ship the partner API"):
    return factory.build(
        section, suggestion_type, title, ["Ship the partner API."], source="b-signal", confidence=0.7
    )


# ============================================
# Redaction and verbosity
# ============================================


def test_redact_text_patterns():
    assert redact_text("mail dana@example.com") == "mail [email]"
    assert redact_text("ssn 123-45-6789") == "ssn [ssn]"
    assert redact_text("card 4111 1111 1111 1111") == "card [card]"
    assert redact_text("call 555-123-4567") == "call [phone]"


def test_make_preview_truncates():
    preview = make_preview("x" * 200, 160)
    assert len(preview) == 161
    assert preview.endswith("…")


@pytest.mark.parametrize(
    "requested,enabled,allow,env,expected",
    [
        ("FULL_TEXT", False, True, "development", "OFF"),
        ("OFF", True, True, "development", "OFF"),
        (None, True, False, "development", "REDACTED"),
        ("FULL_TEXT", True, False, "development", "REDACTED"),
        ("FULL_TEXT", True, True, "production", "REDACTED"),
        ("FULL_TEXT", True, True, "development", "FULL_TEXT"),
    ],
)
def test_resolve_debug_verbosity(requested, enabled, allow, env, expected):
    assert resolve_debug_verbosity(requested, enabled, allow, env) == expected


def test_note_hash_is_djb2_hex():
    assert compute_note_hash("") == "00001505"
    assert compute_note_hash("a") == "0002b606"
    assert compute_note_hash(NOTE_TEXT) == compute_note_hash(NOTE_TEXT)


# ============================================
# Ledger
# ============================================


def test_off_verbosity_has_no_ledger():
    assert create_debug_ledger("note-test", NOTE_TEXT, "OFF", GeneratorConfig()) is None
    assert create_debug_ledger("note-test", NOTE_TEXT, "REDACTED", GeneratorConfig()) is not None


def test_redacted_candidate_previews(ledger, section, candidate_factory):
    ledger.create_section(section)
    candidate = _candidate(candidate_factory, section, title="Email dana@example.com")
    record = ledger.after_synthesis(candidate)
    assert record.suggestion.title == "Email [email]"
    assert record.raw_suggestion_text is None


def test_full_text_keeps_raw_title(section, candidate_factory):
    ledger = DebugLedger("note-test", NOTE_TEXT, "FULL_TEXT", GeneratorConfig())
    ledger.create_section(section)
    candidate = _candidate(candidate_factory, section, title="Email dana@example.com")
    record = ledger.after_synthesis(candidate)
    assert record.suggestion.title == "Email dana@example.com"
    assert record.raw_suggestion_text == "Email dana@example.com"


def test_drop_is_never_overwritten(ledger, section, candidate_factory):
    ledger.create_section(section)
    candidate = _candidate(candidate_factory, section)
    ledger.after_synthesis(candidate)

    ledger.drop_candidate(candidate.suggestion_id, DropReason.VALIDATION_V2_TOO_GENERIC, "too generic")
    ledger.drop_candidate(candidate.suggestion_id, DropReason.DUPLICATE_FINGERPRINT)

    record = ledger.get_section(section.section_id).candidates[0]
    assert record.drop_reason == DropReason.VALIDATION_V2_TOO_GENERIC
    assert record.drop_stage == DropStage.VALIDATION
    assert record.metadata["dropDetail"] == "too generic"


def test_finalize_settles_every_candidate(ledger, section, candidate_factory):
    ledger.create_section(section)
    emitted = _candidate(candidate_factory, section)
    idea = _candidate(candidate_factory, section, title="Add partner onboarding")
    update = _candidate(candidate_factory, section, "project_update", title="Update: partner API")
    for c in (emitted, idea, update):
        ledger.after_synthesis(c)

    ledger.finalize([emitted.suggestion_id])

    record = ledger.get_section(section.section_id)
    by_id = {c.candidate_id: c for c in record.candidates}
    assert record.emitted
    assert record.drop_reason is None
    assert by_id[emitted.suggestion_id].emitted
    assert by_id[idea.suggestion_id].drop_reason == DropReason.SCORE_BELOW_THRESHOLD
    assert by_id[update.suggestion_id].drop_reason == DropReason.INTERNAL_ERROR

    wire = record.to_dict()
    assert wire["dropStage"] is None
    assert wire["dropReason"] is None
    assert wire["candidates"][0]["dropReason"] is None


def test_silent_sections_get_a_reason(ledger, section_factory, classified_factory):
    plan = section_factory("Timeline", BODY, section_id="sec_plan")
    skipped = section_factory("Timeline", BODY, section_id="sec_skipped")
    plain = section_factory("Ideas", BODY, section_id="sec_plain")
    for s in (plan, skipped, plain):
        ledger.create_section(s)
    ledger.after_intent_classification(classified_factory(plan, plan_change=0.8))
    ledger.after_intent_classification(classified_factory(skipped, plan_change=0.8))
    ledger.after_intent_classification(classified_factory(plain, new_workstream=0.8))
    ledger.mark_fallback_skipped("sec_skipped", "low relevance heading")

    ledger.finalize([])

    assert ledger.get_section("sec_plan").drop_reason == DropReason.INTERNAL_ERROR
    assert ledger.get_section("sec_skipped").drop_reason == DropReason.LOW_RELEVANCE
    assert ledger.get_section("sec_plain").drop_reason == DropReason.SCORE_BELOW_THRESHOLD
    assert ledger.get_section("sec_plain").drop_stage == DropStage.THRESHOLD


def test_drop_section_cascades_to_pending_candidates(ledger, section, candidate_factory):
    ledger.create_section(section)
    dropped = _candidate(candidate_factory, section)
    pending = _candidate(candidate_factory, section, title="Add partner onboarding")
    ledger.after_synthesis(dropped)
    ledger.after_synthesis(pending)
    ledger.drop_candidate(dropped.suggestion_id, DropReason.PROCESS_NOISE)

    ledger.drop_section(section.section_id, DropReason.LOW_RELEVANCE)

    by_id = {c.candidate_id: c for c in ledger.get_section(section.section_id).candidates}
    assert by_id[dropped.suggestion_id].drop_reason == DropReason.PROCESS_NOISE
    assert by_id[pending.suggestion_id].drop_reason == DropReason.LOW_RELEVANCE


def test_split_parent_with_recorded_children(ledger, section_factory):
    parent = section_factory("Platform", BODY, section_id="sec_p")
    child = section_factory("Platform", BODY, section_id="sec_p__topic_0", parent_section_id="sec_p")
    ledger.create_section(parent)
    ledger.create_section(child)
    ledger.mark_split_parent("sec_p", ["sec_p__topic_0"])

    ledger.finalize([])

    record = ledger.get_section("sec_p")
    assert record.drop_reason == DropReason.SPLIT_INTO_SUBSECTIONS
    assert record.drop_stage == DropStage.TOPIC_ISOLATION
    assert record.metadata["topicSplit"] == {"subSectionIds": ["sec_p__topic_0"]}
    assert ledger.get_section("sec_p__topic_0").metadata["parentSectionId"] == "sec_p"


def test_split_parent_with_missing_child_is_internal_error(ledger, section_factory):
    ledger.create_section(section_factory("Platform", BODY, section_id="sec_p"))
    ledger.mark_split_parent("sec_p", ["sec_p__topic_0"])

    ledger.finalize([])

    record = ledger.get_section("sec_p")
    assert record.drop_reason == DropReason.INTERNAL_ERROR
    assert record.drop_stage == DropStage.TOPIC_ISOLATION
    assert record.metadata["topicIsolationFailure"]["missingSubsectionIds"] == ["sec_p__topic_0"]


def test_global_error_marks_pending_records(ledger, section, candidate_factory):
    ledger.create_section(section)
    ledger.after_synthesis(_candidate(candidate_factory, section))

    ledger.mark_global_error(RuntimeError("boom"))

    record = ledger.get_section(section.section_id)
    assert record.drop_reason == DropReason.INTERNAL_ERROR
    assert record.error_message == "RuntimeError: boom"
    assert record.candidates[0].drop_reason == DropReason.INTERNAL_ERROR


def test_debug_run_read_model(ledger, section):
    ledger.create_section(section)
    ledger.record_stage_timing("classify", 1.5)
    ledger.record_stage_timing("classify", 1.0)
    ledger.record_total_time(12.3456)
    ledger.finalize([])

    run = ledger.build_debug_run()
    assert run.meta.run_id == "run-1"
    assert run.meta.note_hash == compute_note_hash(NOTE_TEXT)
    assert run.config.thresholds["T_overall_min"] == 0.65
    assert run.runtime_stats.stage_ms == {"classify": 2.5}
    assert run.note_summary.line_count == 4
    assert "[email]" in run.note_summary.preview.preview

    wire = run.to_dict()
    assert wire["meta"]["noteId"] == "note-test"
    assert wire["config"]["maxSuggestionsPerNote"] == 5
    assert wire["sections"][0]["sectionId"] == section.section_id
    assert wire["runtimeStats"]["totalMs"] == 12.346


# ============================================
# Summary
# ============================================


def test_debug_run_summary(ledger, section_factory, classified_factory, candidate_factory):
    kept = section_factory("Partners", BODY, section_id="sec_a")
    noisy = section_factory("Ops", BODY, section_id="sec_b")
    for s in (kept, noisy):
        ledger.create_section(s)
    ledger.after_intent_classification(classified_factory(kept, plan_change=0.8))
    ledger.after_intent_classification(classified_factory(noisy, new_workstream=0.8))

    emitted = _candidate(candidate_factory, kept, "project_update", title="Update: partner API")
    noise_a = _candidate(candidate_factory, noisy, title="Clarify ownership")
    noise_b = _candidate(candidate_factory, noisy, title="Clarify sign-off")
    dup = _candidate(candidate_factory, noisy, title="Ship the partner API again")
    for c in (emitted, noise_a, noise_b, dup):
        ledger.after_synthesis(c)
    ledger.drop_candidate(noise_a.suggestion_id, DropReason.PROCESS_NOISE)
    ledger.drop_candidate(noise_b.suggestion_id, DropReason.PROCESS_NOISE)
    ledger.drop_candidate(dup.suggestion_id, DropReason.DUPLICATE_FINGERPRINT)
    ledger.finalize([emitted.suggestion_id])

    summary = build_debug_run_summary(ledger.build_debug_run())
    assert summary.total_sections == 2
    assert summary.emitted_count == 1
    assert summary.emitted_candidates_count == 1
    assert summary.dropped_candidates_count == 3
    assert [(r.reason, r.count) for r in summary.drop_reason_top] == [
        (DropReason.PROCESS_NOISE, 2),
        (DropReason.DUPLICATE_FINGERPRINT, 1),
    ]
    assert summary.drop_stage_histogram == {DropStage.THRESHOLD: 1}
    assert summary.plan_change_sections_count == 1
    assert summary.dropped_plan_change_count == 0


def test_finalize_twice_raises(ledger, section, candidate_factory):
    ledger.create_section(section)
    candidate = _candidate(candidate_factory, section)
    ledger.after_synthesis(candidate)
    ledger.finalize([candidate.suggestion_id])

    with pytest.raises(LedgerInvariantError, match="already finalized"):
        ledger.finalize([candidate.suggestion_id])


def test_finalize_rejects_unrecorded_ids(ledger, section):
    ledger.create_section(section)
    with pytest.raises(LedgerInvariantError, match="missing from ledger"):
        ledger.finalize(["note-test_sug_999"])


# ============================================
# Pipeline wiring
# ============================================


def test_enable_debug_alone_means_redacted(gdpr_note):
    result = SuggestionPipeline(GeneratorConfig(enable_debug=True)).run(gdpr_note)
    assert result.debug_run is not None
    assert result.debug_run.meta.verbosity == "REDACTED"


def test_explicit_off_wins_over_enable_debug(gdpr_note):
    config = GeneratorConfig(enable_debug=True, debug_verbosity="OFF")
    result = SuggestionPipeline(config).run(gdpr_note)
    assert result.debug_run is None
    assert result.debug_summary is None


def test_result_carries_run_summary(gdpr_note, debug_config):
    result = SuggestionPipeline(debug_config).run(gdpr_note)

    summary = result.debug_summary
    assert summary.total_sections == len(result.debug_run.sections)
    assert summary.emitted_candidates_count == len(result.suggestions)
    assert result.to_dict()["debug_summary"]["totalSections"] == summary.total_sections
