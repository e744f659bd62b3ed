"""Shared test fixtures."""

from __future__ import annotations

import pytest

from suggestion_engine.config.settings import Settings
from suggestion_engine.models.domain import (
    ClassifiedSection,
    IntentScores,
    Line,
    NoteInput,
    Section,
    StructuralFeatures,
)
from suggestion_engine.models.schemas import GeneratorConfig
from suggestion_engine.segmentation.lines import annotate_lines
from suggestion_engine.segmentation.sections import compute_structural_features
from suggestion_engine.synthesis.candidate_factory import CandidateFactory
from suggestion_engine.synthesis.ids import IdGenerator

GDPR_NOTE = (
    "# Partner sync\n"
    "\n"
    "If we can't prove GDPR compliance before the pilot, the partnership is dead in the water. "
    "We're looking at a 4-week delay on the partner launch because of the handshake protocol rework.\n"
)

ROADMAP_NOTE = (
    "# Roadmap review\n"
    "\n"
    "## Launch timeline\n"
    "\n"
    "- Push the mobile beta launch from March to April\n"
    "- Move the billing migration to Q3 2025\n"
    "\n"
    "## Customer requests\n"
    "\n"
    "Enterprise customers are asking for SSO support on the admin console. "
    "Several users need a bulk export of their audit logs.\n"
    "\n"
    "## Next Steps\n"
    "\n"
    "- They need to build the export API\n"
    "- Send the recap to the team\n"
)

DISCUSSION_NOTE = (
    "# Platform discussion\n"
    "\n"
    "New feature requests:\n"
    "- Customers want saved filters on the reporting dashboard\n"
    "- Add CSV import for contacts\n"
    "\n"
    "Project timelines:\n"
    "- The search reindex slips two weeks to June 12\n"
    "- Data warehouse cutover moves to Q4\n"
    "\n"
    "Internal operations:\n"
    "- Unclear who owns the release sign-off\n"
    "- Weekly sync moves to Thursdays\n"
)


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def config():
    return GeneratorConfig()


@pytest.fixture
def debug_config():
    return GeneratorConfig(enable_debug=True, debug_verbosity="REDACTED")


@pytest.fixture
def gdpr_note():
    return NoteInput(note_id="note-gdpr", raw_text=GDPR_NOTE)


@pytest.fixture
def roadmap_note():
    return NoteInput(note_id="note-roadmap", raw_text=ROADMAP_NOTE)


@pytest.fixture
def discussion_note():
    return NoteInput(note_id="note-discussion", raw_text=DISCUSSION_NOTE)


@pytest.fixture
def sample_notes(gdpr_note, roadmap_note, discussion_note):
    return [gdpr_note, roadmap_note, discussion_note]


def build_section(
    heading: str,
    body: str,
    section_id: str = "sec_test_1",
    note_id: str = "note-test",
    heading_level: int = 2,
    parent_section_id: str | None = None,
) -> Section:
    """Build a Section directly from a heading and body text."""
    lines = annotate_lines(body)
    body_lines = tuple(
        Line(
            index=line.index + 1,
            text=line.text,
            line_type=line.line_type,
            heading_level=line.heading_level,
            indent_level=line.indent_level,
            in_code_block=line.in_code_block,
        )
        for line in lines
    )
    features: StructuralFeatures = compute_structural_features(list(body_lines))
    return Section(
        section_id=section_id,
        note_id=note_id,
        heading_text=heading,
        heading_level=heading_level,
        start_line=0,
        end_line=len(body_lines),
        body_lines=body_lines,
        structural_features=features,
        raw_text="\n".join(line.text for line in body_lines),
        parent_section_id=parent_section_id,
    )


@pytest.fixture
def section_factory():
    return build_section


def build_classified(
    section: Section,
    plan_change: float = 0.0,
    new_workstream: float = 0.0,
    is_actionable: bool = True,
    type_label: str | None = None,
) -> ClassifiedSection:
    """Wrap a Section with a fixed intent distribution, bypassing the classifier."""
    intent = IntentScores(plan_change=plan_change, new_workstream=new_workstream)
    if type_label is None:
        type_label = "project_update" if plan_change > new_workstream else "idea"
    return ClassifiedSection(
        section=section,
        intent=intent,
        is_actionable=is_actionable,
        actionability_reason="fixed for test",
        actionable_signal=intent.actionable_signal,
        out_of_scope_signal=intent.out_of_scope_signal,
        type_label=type_label,
        suggested_type=type_label,
        type_confidence=max(plan_change, new_workstream),
    )


@pytest.fixture
def classified_factory():
    return build_classified


@pytest.fixture
def candidate_factory():
    return CandidateFactory(IdGenerator("note-test"))
