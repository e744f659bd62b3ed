"""Concrete note scenarios and caller-facing error behaviour."""

import pytest

from suggestion_engine.exceptions import ClassificationError, ConfigurationError, InvalidNoteError
from suggestion_engine.models.domain import NoteInput, PlanItem
from suggestion_engine.models.schemas import GeneratorConfig, NoteRequest
from suggestion_engine.pipeline import suggestion_pipeline
from suggestion_engine.pipeline.suggestion_pipeline import SuggestionPipeline, generate_suggestions
from suggestion_engine.scoring.reason_codes import DropReason
from suggestion_engine.synthesis.title_normalization import normalize_title
from suggestion_engine.verification.validators import QualityValidator

GDPR_SENTENCE = "If we can't prove GDPR compliance before the pilot, the partnership is dead in the water."
DELAY_FRAGMENT = "4-week delay on the partner launch"


class FailingModel:
    @property
    def name(self):
        return "failing"

    def classify(self, section):
        raise RuntimeError("model offline")


# ============================================
# Scenarios
# ============================================


def test_gdpr_paragraph_yields_risk_and_update(gdpr_note, config):
    suggestions = SuggestionPipeline(config).run(gdpr_note).suggestions

    risks = [s for s in suggestions if s.type == "risk"]
    updates = [s for s in suggestions if s.type == "project_update"]
    assert any(any("GDPR compliance" in span.text for span in s.evidence_spans) for s in risks)
    assert any(any(DELAY_FRAGMENT in span.text for span in s.evidence_spans) for s in updates)

    # no section-spanning placeholder without signal provenance
    for update in updates:
        assert update.source != "plan-change-fallback"
        assert "signal_type" in update.metadata


def test_gdpr_risk_evidence_is_the_gdpr_sentence(gdpr_note, config):
    suggestions = SuggestionPipeline(config).run(gdpr_note).suggestions
    risk_spans = [span.text for s in suggestions if s.type == "risk" for span in s.evidence_spans]
    assert GDPR_SENTENCE in risk_spans


def test_next_steps_section_is_silent(roadmap_note, debug_config):
    result = SuggestionPipeline(debug_config).run(roadmap_note)

    assert not [s for s in result.suggestions if s.source_heading.endswith("Next Steps")]
    next_steps = [s for s in result.debug_run.sections if s.heading_text_preview.endswith("Next Steps")]
    assert len(next_steps) == 1
    assert not next_steps[0].emitted
    assert next_steps[0].drop_reason is not None


def test_schedule_change_under_strategy_heading_is_kept(debug_config):
    note = NoteInput(
        note_id="note-strategy",
        raw_text=(
            "## Launch strategy\n"
            "We pushed the mobile launch to Q3 because of the 2-week payments slip.\n"
            "The v2 release moved out by 3 weeks.\n"
        ),
    )
    result = SuggestionPipeline(debug_config).run(note)

    assert result.suggestions
    for section in result.debug_run.sections:
        assert "fallbackSkipped" not in section.metadata
        assert all(c.drop_reason != DropReason.SUPPRESSED_SECTION for c in section.candidates)


def test_vacuous_update_title_is_rewritten():
    evidence = "We are looking at a 4-week delay due to infrastructure work"
    title = normalize_title("Update: Discussion They", "project_update", [evidence])

    assert title != "Update: Discussion They"
    content_words = {w.lower() for w in title.split(":", 1)[1].split()}
    assert not content_words & {"they", "discussion"}
    assert "4-week" in content_words


def test_suggestions_attach_to_matching_plan_item(gdpr_note, config):
    items = [
        PlanItem(id="plan-1", title="Partner launch delay", description="4-week delay on the partner launch"),
    ]
    result = SuggestionPipeline(config).run(gdpr_note, items)
    assert result.stats["attached"] + result.stats["create_new"] == len(result.suggestions)
    for suggestion in result.suggestions:
        if not suggestion.routing.create_new:
            assert suggestion.routing.attached_plan_item_id == "plan-1"


def test_cap_limits_output(roadmap_note):
    result = SuggestionPipeline(GeneratorConfig(max_suggestions=1)).run(roadmap_note)
    updates = [s for s in result.suggestions if s.type == "project_update"]
    others = [s for s in result.suggestions if s.type != "project_update"]
    # project updates are never capped away; other types only fill free slots
    assert len(others) <= max(0, 1 - len(updates))


# ============================================
# Caller input errors
# ============================================


def test_generate_suggestions_from_mapping(gdpr_note):
    result = generate_suggestions(
        {"note_id": gdpr_note.note_id, "raw_text": gdpr_note.raw_text},
        plan_items=[{"id": "plan-1", "title": "Partner launch"}],
        config={"enable_debug": True, "debug_verbosity": "REDACTED"},
    )
    assert result.suggestions
    assert result.debug_run is not None


def test_explicit_config_wins_over_embedded(gdpr_note):
    request = {
        "note_id": gdpr_note.note_id,
        "raw_text": gdpr_note.raw_text,
        "config": {"enable_debug": True, "debug_verbosity": "REDACTED"},
    }
    assert generate_suggestions(request).debug_run is not None
    assert generate_suggestions(request, config=GeneratorConfig()).debug_run is None


def test_request_model_is_accepted(gdpr_note):
    request = NoteRequest(note_id=gdpr_note.note_id, raw_text=gdpr_note.raw_text)
    assert generate_suggestions(request).suggestions


@pytest.mark.parametrize(
    "note",
    [
        {"note_id": "   ", "raw_text": "text"},
        {"note_id": "", "raw_text": "text"},
        {"note_id": "n-1"},
        {"note_id": "n-1", "raw_text": "text", "existing_plan_items": [{"id": "", "title": "x"}]},
    ],
)
def test_invalid_note_rejected(note):
    with pytest.raises(InvalidNoteError):
        generate_suggestions(note)


def test_invalid_config_rejected(gdpr_note):
    note = {"note_id": gdpr_note.note_id, "raw_text": gdpr_note.raw_text}
    with pytest.raises(ConfigurationError):
        generate_suggestions(note, config={"max_suggestions": 0})
    with pytest.raises(ConfigurationError):
        generate_suggestions({**note, "config": {"debug_verbosity": "LOUD"}})


def test_missing_collaborators_rejected():
    with pytest.raises(ConfigurationError):
        SuggestionPipeline(GeneratorConfig(use_llm_classifiers=True))
    with pytest.raises(ConfigurationError):
        SuggestionPipeline(GeneratorConfig(embedding_enabled=True))


# ============================================
# Error recovery
# ============================================


def test_global_failure_is_recorded_and_reraised(gdpr_note, monkeypatch):
    ledgers = []
    original = suggestion_pipeline.create_debug_ledger

    def recording_ledger(*args):
        ledger = original(*args)
        ledgers.append(ledger)
        return ledger

    monkeypatch.setattr(suggestion_pipeline, "create_debug_ledger", recording_ledger)
    config = GeneratorConfig(use_llm_classifiers=True, enable_debug=True, debug_verbosity="REDACTED")
    pipeline = SuggestionPipeline(config, classifier_model=FailingModel())

    with pytest.raises(ClassificationError):
        pipeline.run(gdpr_note)

    ledger = ledgers[0]
    assert ledger.global_error.startswith("ClassificationError")
    assert all(r.drop_reason == DropReason.INTERNAL_ERROR for r in ledger.sections.values())


def test_validator_crash_drops_only_that_candidate(gdpr_note, config, monkeypatch):
    original = QualityValidator.validate
    calls = []

    def flaky_validate(self, suggestion, section):
        calls.append(suggestion.suggestion_id)
        if len(calls) == 1:
            raise RuntimeError("validator exploded")
        return original(self, suggestion, section)

    monkeypatch.setattr(QualityValidator, "validate", flaky_validate)
    result = SuggestionPipeline(config).run(gdpr_note)

    assert result.stats["drops_by_reason"][DropReason.INTERNAL_ERROR] == 1
    assert calls[0] not in {s.suggestion_id for s in result.suggestions}
    assert len(calls) > 1
