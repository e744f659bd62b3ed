"""Section type classification: plan mutation versus new execution artifact."""

from __future__ import annotations

import re
from dataclasses import dataclass

from suggestion_engine.models.domain import IntentScores, Section

PLAN_MUTATION_PATTERNS = [
    re.compile(r"\b(narrow|expand|shift|reframe|reprioritize|defer|adjust|revise|update)\b", re.I),
    re.compile(r"\b(current|existing|today's|our\s+current|the\s+current)\b", re.I),
    re.compile(r"\b(from\s+.+\s+to|instead of|rather than|no longer|previously)\b", re.I),
    re.compile(r"\b(descope|add to|remove from|in scope|out of scope)\b", re.I),
]

EXECUTION_ARTIFACT_PATTERNS = [
    re.compile(r"\b(new|launch|spin up|kick off|create|build|start|introduce)\s+(a\s+|an\s+|the\s+)?", re.I),
    re.compile(r"\b(initiative|project|workstream|program|effort|track)\b", re.I),
    re.compile(r"\b(objective|goal|mission)\s*:", re.I),
    re.compile(r"\b(from scratch|greenfield|net new|brand new)\b", re.I),
]

INTENT_BOOST = 0.3
FORCED_MUTATION_FLOOR = 0.8
NON_ACTIONABLE_CEILING = 0.2


@dataclass
class TypeResult:
    type: str  # "project_update" | "idea" | "non_actionable"
    confidence: float
    p_mutation: float
    p_artifact: float


def pattern_strength(text: str, patterns: list[re.Pattern]) -> float:
    matches = sum(1 for p in patterns if p.search(text))
    return min(1.0, matches / max(1.0, len(patterns) * 0.3))


def has_forced_update(intent: IntentScores) -> bool:
    return bool(intent.flags.get("force_decision_marker") or intent.flags.get("force_role_assignment"))


def classify_type(section: Section, intent: IntentScores) -> TypeResult:
    text = f"{section.heading_text} {section.raw_text}"
    p_mutation = pattern_strength(text, PLAN_MUTATION_PATTERNS) + intent.plan_change * INTENT_BOOST
    p_artifact = pattern_strength(text, EXECUTION_ARTIFACT_PATTERNS) + intent.new_workstream * INTENT_BOOST

    if has_forced_update(intent):
        p_mutation = max(p_mutation, FORCED_MUTATION_FLOOR)

    p_mutation = min(1.0, p_mutation)
    p_artifact = min(1.0, p_artifact)

    if (
        p_mutation < NON_ACTIONABLE_CEILING
        and p_artifact < NON_ACTIONABLE_CEILING
        and not intent.flags.get("force_decision_marker")
    ):
        return TypeResult("non_actionable", 1.0 - max(p_mutation, p_artifact), p_mutation, p_artifact)

    if p_mutation > p_artifact:
        return TypeResult("project_update", min(1.0, 0.5 + p_mutation - p_artifact), p_mutation, p_artifact)
    return TypeResult("idea", min(1.0, 0.5 + p_artifact - p_mutation), p_mutation, p_artifact)


def compute_type_label(intent: IntentScores) -> str:
    """Label used by validators and title templates: idea or project_update."""
    if has_forced_update(intent) or intent.top_label() == "plan_change":
        return "project_update"
    return "idea"
