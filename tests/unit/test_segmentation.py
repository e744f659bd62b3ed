"""Tests for line annotation and section segmentation."""

from suggestion_engine.models.domain import NoteInput
from suggestion_engine.segmentation.lines import annotate_lines, normalize_for_comparison
from suggestion_engine.segmentation.sections import SectionProvider
from suggestion_engine.synthesis.ids import IdGenerator


def _sections(text: str, note_id: str = "note-seg"):
    return SectionProvider().preprocess(NoteInput(note_id=note_id, raw_text=text), IdGenerator(note_id)).sections


def test_annotate_line_types():
    lines = annotate_lines("# Title\r\n\n- item\n> quoted\n```\n# not a heading\n```\nplain text")
    assert [line.line_type for line in lines] == [
        "heading", "blank", "list_item", "quote", "code", "code", "code", "paragraph",
    ]
    assert lines[0].heading_level == 1


def test_indent_level_counts_pairs_of_spaces():
    lines = annotate_lines("- top\n    - nested")
    assert lines[1].indent_level == 2


def test_content_before_first_heading_forms_general_section():
    sections = _sections("Loose intro line that is long enough to be a sentence.\n\n## Plan\n\nShip it.")
    assert sections[0].heading_text == "General"
    assert sections[0].heading_level == 1
    assert sections[1].heading_text == "Plan"


def test_empty_heading_merges_forward():
    sections = _sections("# Roadmap review\n\n## Launch timeline\n\n- Push the beta to April\n")
    assert len(sections) == 1
    assert sections[0].heading_text == "Roadmap review > Launch timeline"


def test_section_ids_are_run_scoped():
    first = _sections("## A\n\nalpha body\n\n## B\n\nbeta body\n", note_id="note-ids")
    second = _sections("## A\n\nalpha body\n\n## B\n\nbeta body\n", note_id="note-ids")
    assert [s.section_id for s in first] == ["sec_noteids_1", "sec_noteids_2"]
    assert [s.section_id for s in first] == [s.section_id for s in second]


def test_structural_features():
    sections = _sections("## Launch\n\n- Ship v2 in Q3\n- Grow MAU by 20%\n- Launch on March 3\n")
    features = sections[0].structural_features
    assert features.num_list_items == 3
    assert features.has_quarter_refs
    assert features.has_metrics
    assert features.has_launch_keywords


def test_trailing_blank_lines_excluded_from_range():
    sections = _sections("## Plan\n\nShip the export API.\n\n\n")
    assert sections[0].end_line == 2
    assert sections[0].raw_text.strip() == "Ship the export API."


def test_normalize_for_comparison():
    assert normalize_for_comparison("  We're   LOOKING at a 4-week delay!") == "were looking at a 4week delay"
