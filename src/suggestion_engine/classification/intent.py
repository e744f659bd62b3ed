"""Rule-based intent scoring over a section's body lines.

Each sentence is scored against a set of explainable rules; the strongest
sentence sets the section's actionable signal. Out-of-scope markers
(calendar, communication, micro-admin) are scored per line. The two signals
are then spread over the seven intent labels:

* change operators, structured tasks, decisions and role assignments make the
  section plan_change dominant; everything else is new_workstream dominant;
* the out-of-scope signal goes to whichever marker family fired (calendar when
  none is identifiable);
* status_informational is the inverse of actionability; research stays 0.

Rule scores:

====================================  =====
strong request (stem + action verb)   1.00
imperative verb at sentence start     0.90
hedged directive ("we should")        0.90
role assignment ("PM to ...")         0.85
change operator ("push", "defer")     0.80
structured task ("- [ ]", "todo:")    0.80
implicit feature request              0.76
status marker ("blocked", "shipped")  0.70
decision marker ("agreed")            0.70
implicit idea statement               0.61
target-noun bonus (if score >= 0.6)   +0.20
====================================  =====
"""

from __future__ import annotations

import re

from suggestion_engine.models.domain import IntentScores, Section

REQUEST_STEMS = [
    "please",
    "can you",
    "could you",
    "would you",
    "i want you to",
    "i'd like you to",
    "i would like you to",
    "i would really like you to",
    "we should",
    "we probably should",
    "should",
    "let's",
    "lets",
    "need to",
    "we need to",
    "maybe we need",
    "we may need to",
    "it would be good to",
    "asking for",
    "requested",
    "want to",
    "would like",
]

ACTION_VERBS = [
    "add",
    "implement",
    "build",
    "create",
    "enable",
    "disable",
    "remove",
    "delete",
    "fix",
    "update",
    "change",
    "refactor",
    "improve",
    "support",
    "integrate",
    "adjust",
    "modify",
    "revise",
]

CHANGE_OPERATORS = [
    "move", "moving", "moved",
    "push", "pushing", "pushed",
    "delay", "delaying", "delayed",
    "slip", "slipping", "slipped",
    "bring forward", "bringing forward", "brought forward",
    "postpone", "postponing", "postponed",
    "deprioritize", "deprioritizing", "deprioritized",
    "prioritize", "prioritizing", "prioritized",
    "shift", "shifting", "shifted",
    "pivot", "pivoting", "pivoted",
    "reframe", "reframing", "reframed",
    "reprioritize", "reprioritizing", "reprioritized",
    "defer", "deferring", "deferred",
    "accelerate", "accelerating", "accelerated",
    "narrow", "narrowing", "narrowed",
    "expand", "expanding", "expanded",
    "refocus", "refocusing", "refocused",
    "adjust", "adjusting", "adjusted",
    "modify", "modifying", "modified",
    "revise", "revising", "revised",
    "take over", "taking over", "took over",
    "instead of",
    "now p0", "now p1", "now p2",
]

STATUS_MARKERS = [
    "done",
    "shipped",
    "deployed",
    "released",
    "implemented",
    "merged",
    "blocked",
    "waiting on",
    "in progress",
]

PRODUCT_NOUNS = [
    "onboarding",
    "signup",
    "flow",
    "ui",
    "api",
    "integration",
    "pricing",
    "dashboard",
    "tracking",
    "analytics",
]

# Two or more of these opening a clause mark a section as real product work
ACTIONABILITY_VERBS = [
    "add", "verify", "update", "share", "remove", "fix", "create", "build",
    "implement", "test", "review", "check", "ensure", "set up", "deploy",
    "migrate", "refactor", "integrate", "move", "send", "confirm", "finalize",
]

HEDGED_DIRECTIVES = [
    "we should",
    "we probably should",
    "maybe we need",
    "we may need to",
    "it would be good to",
    "let's",
    "lets",
]

NEGATION_PATTERNS = ["don't", "do not", "no need to", "not necessary to"]

# Weekdays and explicit scheduling phrases only; quarters are plan timelines
CALENDAR_MARKERS = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
    "next week",
    "this week",
    "next month",
]

COMMUNICATION_MARKERS = ["email", "send", "slack", "follow up", "reach out", "ping"]

MICRO_ADMIN_MARKERS = ["rename file", "update doc link", "fix typo"]

IMPLICIT_IDEA_NEED_SIGNALS = [
    "we need",
    "we don't have",
    "users can't",
    "it's hard to",
    "missing",
    "no way to",
    "can't",
    "lack of",
    "lacking",
]

IMPLICIT_IDEA_PURPOSE_SIGNALS = [
    "so we can",
    "so we",
    "so that",
    "to help",
    "to see",
    "because",
    "in order to",
    "so users can",
]

IMPLICIT_IDEA_CAPABILITY_NOUNS = [
    "boundary detection",
    "dashboard",
    "errors",
    "visibility",
    "alerts",
    "tracking",
    "monitoring",
    "reporting",
    "analytics",
    "notifications",
    "logging",
    "metrics",
    "search",
    "filtering",
    "sorting",
    "pagination",
]

COMPLETION_MARKERS = ["done", "completed", "finished", "shipped"]

IMPLICIT_FEATURE_REQUEST_PAIN_SIGNALS = [
    "dissatisfied",
    "too many clicks",
    "number of clicks",
    "confusing",
    "frustrating",
    "usability issue",
    "hard to use",
    "difficult to",
    "painful",
    "annoying",
    "slow",
    "inefficient",
    "broken",
    "impacting",
]

IMPLICIT_FEATURE_REQUEST_CONTEXT_SIGNALS = [
    "workflow",
    "attestation",
    "completion",
    "usability",
    "customer satisfaction",
    "user experience",
    "productivity",
    "efficiency",
    "employees",
]

ROLE_ASSIGNMENT_PATTERNS = [
    "pm to",
    "cs to",
    "eng to",
    "design to",
    "designer to",
    "project manager to",
    "product manager to",
    "engineering to",
    "customer success to",
]

DECISION_MARKERS = [
    "will be logged",
    "will be",
    "no near-term",
    "near-term",
    "revisit",
    "decided",
    "agreed",
    "approved",
]

REQUEST_SCORE = 1.0
IMPERATIVE_SCORE = 0.9
HEDGED_SCORE = 0.9
ROLE_ASSIGNMENT_SCORE = 0.85
CHANGE_OPERATOR_SCORE = 0.8
STRUCTURED_TASK_SCORE = 0.8
MULTI_VERB_SCORE = 0.8
IMPLICIT_FEATURE_REQUEST_SCORE = 0.76
STATUS_SCORE = 0.7
DECISION_SCORE = 0.7
IMPLICIT_IDEA_SCORE = 0.61
TARGET_BONUS = 0.2
CALENDAR_SCORE = 0.6
COMMUNICATION_SCORE = 0.6
MICRO_SCORE = 0.4
OOS_CLAMP = 0.3
PARTIAL_LABEL_WEIGHT = 0.4

_SMART_QUOTES = str.maketrans({"‘": "'", "’": "'", "“": '"', "”": '"'})
_FRAGMENT_SPLIT_RE = re.compile(r"[.!?]\s+|\.{3,}\s*")

_WORD_PATTERNS: dict[str, re.Pattern] = {}


def _word_re(word: str) -> re.Pattern:
    pattern = _WORD_PATTERNS.get(word)
    if pattern is None:
        pattern = re.compile(rf"\b{re.escape(word)}\b")
        _WORD_PATTERNS[word] = pattern
    return pattern


def has_word(text: str, word: str) -> bool:
    """Whole-word match for single words, substring match for phrases."""
    if " " in word:
        return word in text
    return bool(_word_re(word).search(text))


def preprocess_line(text: str) -> str:
    processed = text.translate(_SMART_QUOTES).lower().strip()
    processed = re.sub(r"^\s*[-*+•]\s+", "", processed)
    processed = re.sub(r"^\s*\d+[.)]\s+", "", processed)
    return re.sub(r"\s+", " ", processed)


def split_fragments(text: str) -> list[str]:
    return [f.strip() for f in _FRAGMENT_SPLIT_RE.split(text) if f.strip()]


def _has_action_verb(text: str) -> bool:
    return any(_word_re(verb).search(text) for verb in ACTION_VERBS)


def starts_with_action_verb(text: str) -> bool:
    return any(re.match(rf"{verb}\b", text) for verb in ACTION_VERBS)


def match_strong_request(text: str) -> float:
    has_stem = any(stem in text for stem in REQUEST_STEMS)
    return REQUEST_SCORE if has_stem and _has_action_verb(text) else 0.0


def match_imperative(text: str) -> float:
    return IMPERATIVE_SCORE if starts_with_action_verb(text) else 0.0


def match_change_operator(text: str) -> float:
    return CHANGE_OPERATOR_SCORE if any(op in text for op in CHANGE_OPERATORS) else 0.0


def match_status_marker(text: str) -> float:
    return STATUS_SCORE if any(m in text for m in STATUS_MARKERS) else 0.0


def match_structured_task(text: str) -> float:
    if any(token in text for token in ("- [ ]", "todo:", "action:", "owner:")):
        return STRUCTURED_TASK_SCORE
    return 0.0


def match_hedged_directive(text: str) -> float:
    return HEDGED_SCORE if any(p in text for p in HEDGED_DIRECTIVES) else 0.0


def match_role_assignment(text: str) -> float:
    return ROLE_ASSIGNMENT_SCORE if any(p in text for p in ROLE_ASSIGNMENT_PATTERNS) else 0.0


def match_decision_marker(text: str) -> float:
    return DECISION_SCORE if any(m in text for m in DECISION_MARKERS) else 0.0


def match_target_bonus(text: str, current: float) -> float:
    if current >= 0.6 and any(noun in text for noun in PRODUCT_NOUNS):
        return TARGET_BONUS
    return 0.0


def has_negation_override(text: str) -> bool:
    return any(neg in text for neg in NEGATION_PATTERNS) and _has_action_verb(text)


def match_implicit_idea(text: str) -> float:
    has_need = any(s in text for s in IMPLICIT_IDEA_NEED_SIGNALS)
    has_purpose = any(s in text for s in IMPLICIT_IDEA_PURPOSE_SIGNALS)
    has_capability = any(has_word(text, noun) for noun in IMPLICIT_IDEA_CAPABILITY_NOUNS)
    has_scheduling = any(has_word(text, m) for m in CALENDAR_MARKERS)
    has_completion = any(m in text for m in COMPLETION_MARKERS)
    if has_need and has_purpose and has_capability and not has_scheduling and not has_completion:
        return IMPLICIT_IDEA_SCORE
    return 0.0


def match_implicit_feature_request(text: str) -> float:
    has_pain = any(s in text for s in IMPLICIT_FEATURE_REQUEST_PAIN_SIGNALS)
    has_context = any(s in text for s in IMPLICIT_FEATURE_REQUEST_CONTEXT_SIGNALS)
    return IMPLICIT_FEATURE_REQUEST_SCORE if has_pain and has_context else 0.0


def count_actionability_verbs(text: str) -> int:
    return sum(1 for verb in ACTIONABILITY_VERBS if re.search(rf"\b{re.escape(verb)}\s+\w", text))


def has_explicit_imperative(section: Section) -> bool:
    for line in section.body_lines:
        processed = preprocess_line(line.text)
        if len(processed) < 5:
            continue
        for fragment in split_fragments(processed):
            if len(fragment) >= 5 and starts_with_action_verb(fragment):
                return True
    return False


def classify_intent(section: Section) -> IntentScores:
    max_actionable = 0.0
    max_non_hedged = 0.0
    max_change_operator = 0.0
    max_out_of_scope = 0.0

    has_change_operators = False
    has_structured_tasks = False
    has_role_assignment = False
    has_decision_marker = False
    has_calendar = False
    has_communication = False
    has_micro = False

    for line in section.body_lines:
        processed = preprocess_line(line.text)
        if len(processed) < 5:
            continue

        line_max = 0.0
        line_non_hedged = 0.0
        for fragment in split_fragments(processed):
            if len(fragment) < 5:
                continue

            score = max(match_strong_request(fragment), match_imperative(fragment))

            change = match_change_operator(fragment)
            if change:
                has_change_operators = True
                max_change_operator = max(max_change_operator, change)
            score = max(score, change, match_status_marker(fragment))

            structured = match_structured_task(fragment)
            if structured:
                has_structured_tasks = True
            role = match_role_assignment(fragment)
            if role:
                has_role_assignment = True
            decision = match_decision_marker(fragment)
            if decision:
                has_decision_marker = True
            score = max(score, structured, role, decision)

            non_hedged = score
            score = max(score, match_hedged_directive(fragment))
            score += match_target_bonus(fragment, score)
            if has_negation_override(fragment):
                score = 0.0
            score = min(1.0, max(0.0, score))

            line_max = max(line_max, score)
            line_non_hedged = max(line_non_hedged, non_hedged)

        max_actionable = max(max_actionable, line_max)
        max_non_hedged = max(max_non_hedged, line_non_hedged)

        # Out-of-scope markers are scored per line, not per sentence
        line_oos = 0.0
        if any(has_word(processed, m) for m in CALENDAR_MARKERS):
            has_calendar = True
            line_oos = max(line_oos, CALENDAR_SCORE)
        if any(has_word(processed, m) for m in COMMUNICATION_MARKERS):
            has_communication = True
            line_oos = max(line_oos, COMMUNICATION_SCORE)
        if any(has_word(processed, m) for m in MICRO_ADMIN_MARKERS):
            has_micro = True
            line_oos = max(line_oos, MICRO_SCORE)
        max_out_of_scope = max(max_out_of_scope, line_oos)

    lower_text = section.raw_text.lower()
    multi_verb = count_actionability_verbs(lower_text) >= 2
    if multi_verb and max_out_of_scope < 0.4:
        max_actionable = max(max_actionable, MULTI_VERB_SCORE)
        max_non_hedged = max(max_non_hedged, MULTI_VERB_SCORE)

    max_actionable = max(max_actionable, match_implicit_idea(lower_text))
    full_text = f"{section.heading_text} {section.raw_text}".lower()
    max_actionable = max(max_actionable, match_implicit_feature_request(full_text))

    substantial = section.structural_features.num_lines >= 5
    if max_change_operator >= 0.8 or multi_verb or (max_non_hedged >= 0.8 and substantial):
        max_out_of_scope = min(OOS_CLAMP, max_out_of_scope)

    scores = IntentScores()
    if has_change_operators or has_structured_tasks or has_decision_marker or has_role_assignment:
        scores.plan_change = max_actionable
        scores.new_workstream = max_actionable * PARTIAL_LABEL_WEIGHT
    else:
        scores.new_workstream = max_actionable
        scores.plan_change = max_actionable * PARTIAL_LABEL_WEIGHT

    if has_calendar:
        scores.calendar = max_out_of_scope
    if has_communication:
        scores.communication = max_out_of_scope
    if has_micro:
        scores.micro_tasks = max_out_of_scope
    if max_out_of_scope > 0 and not (has_calendar or has_communication or has_micro):
        scores.calendar = max_out_of_scope

    scores.status_informational = max(0.0, 0.5 - max_actionable + max_out_of_scope * 0.3)
    scores.research = 0.0

    if has_role_assignment:
        scores.flags["force_role_assignment"] = True
    if has_decision_marker:
        scores.flags["force_decision_marker"] = True
    return scores
