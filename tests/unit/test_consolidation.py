"""Tests for idea consolidation."""

from suggestion_engine.synthesis.consolidation import consolidate, has_delta_signal, should_consolidate

IDEAS_BODY = (
    "- Saved filters for the reporting dashboard\n"
    "- CSV import for contacts\n"
    "- Dark mode for the admin console\n"
)


def _idea_candidates(section, factory, lines):
    return [
        factory.build(section.section, "idea", f"Add {text.lower()}", [text], source="structural", confidence=0.7)
        for text in lines
    ]


def test_fragmented_ideas_collapse_into_one(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Dashboard ideas", IDEAS_BODY), new_workstream=0.8)
    lines = [
        "Saved filters for the reporting dashboard",
        "CSV import for contacts",
        "Dark mode for the admin console",
    ]
    candidates = _idea_candidates(section, candidate_factory, lines)

    result = consolidate(candidates, section, candidate_factory)
    assert len(result) == 1
    merged = result[0]
    assert merged.type == "idea"
    assert merged.source == "consolidated-section"
    assert merged.metadata["consolidated_from"] == [c.suggestion_id for c in candidates]
    assert [s.text for s in merged.evidence_spans] == lines
    assert merged.body.startswith("Saved filters for the reporting dashboard.")


def test_consolidation_is_idempotent(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Dashboard ideas", IDEAS_BODY), new_workstream=0.8)
    candidates = _idea_candidates(
        section, candidate_factory,
        ["Saved filters for the reporting dashboard", "CSV import for contacts", "Dark mode for the admin console"],
    )
    once = consolidate(candidates, section, candidate_factory)
    assert consolidate(once, section, candidate_factory) == once


def test_too_few_candidates_left_alone(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Dashboard ideas", IDEAS_BODY), new_workstream=0.8)
    candidates = _idea_candidates(section, candidate_factory, ["CSV import for contacts", "Dark mode"])
    assert consolidate(candidates, section, candidate_factory) is candidates


def test_delta_signal_blocks_consolidation(section_factory, classified_factory, candidate_factory):
    body = IDEAS_BODY + "- Move the billing migration to Q3 2025\n"
    section = classified_factory(section_factory("Dashboard ideas", body), new_workstream=0.8)
    candidates = _idea_candidates(
        section, candidate_factory,
        ["Saved filters for the reporting dashboard", "CSV import for contacts", "Dark mode for the admin console"],
    )
    assert has_delta_signal(section.raw_text)
    assert not should_consolidate(candidates, section)


def test_mixed_types_not_consolidated(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Dashboard ideas", IDEAS_BODY), new_workstream=0.8)
    candidates = _idea_candidates(
        section, candidate_factory,
        ["Saved filters for the reporting dashboard", "CSV import for contacts"],
    )
    candidates.append(
        candidate_factory.build(
            section.section, "risk", "Risk: admin console", ["Dark mode for the admin console"],
            source="b-signal", confidence=0.7,
        )
    )
    assert not should_consolidate(candidates, section)


def test_deep_heading_not_consolidated(section_factory, classified_factory, candidate_factory):
    section = classified_factory(section_factory("Dashboard ideas", IDEAS_BODY, heading_level=4), new_workstream=0.8)
    candidates = _idea_candidates(
        section, candidate_factory,
        ["Saved filters for the reporting dashboard", "CSV import for contacts", "Dark mode for the admin console"],
    )
    assert not should_consolidate(candidates, section)
    assert consolidate(candidates, section, candidate_factory) is candidates


def test_fewer_than_three_bullets_not_consolidated(section_factory, classified_factory, candidate_factory):
    body = (
        "- Saved filters for the reporting dashboard\n"
        "- CSV import for contacts\n"
        "Dark mode for the admin console\n"
    )
    section = classified_factory(section_factory("Dashboard ideas", body), new_workstream=0.8)
    candidates = _idea_candidates(
        section, candidate_factory,
        ["Saved filters for the reporting dashboard", "CSV import for contacts", "Dark mode for the admin console"],
    )
    assert section.structural_features.num_list_items == 2
    assert consolidate(candidates, section, candidate_factory) is candidates
