"""Title post-processing: fillers, weak verbs, deadlines and vacuous content.

``normalize_title`` is idempotent: applying it to its own output returns the
same string.
"""

from __future__ import annotations

import re

from suggestion_engine.synthesis.titles import derive_from_evidence

STRONG_VERBS = {
    "implement", "add", "build", "create", "enable", "investigate", "evaluate",
    "launch", "develop", "improve", "update", "fix", "remove", "migrate",
    "refactor", "optimize", "integrate", "deploy", "configure", "establish",
    "reduce", "streamline",
}

LEADING_MARKERS = [
    re.compile(r"^suggestion:\s*", re.I),
    re.compile(r"^request\s+for\s+", re.I),
    re.compile(r"^request\s+to\s+", re.I),
    re.compile(r"^it\s+would\s+be\s+good\s+to\s+", re.I),
    re.compile(r"^maybe\s+we\s+could\s+", re.I),
    re.compile(r"^we\s+should\s+consider\s+", re.I),
    re.compile(r"^we\s+could\s+consider\s+", re.I),
    re.compile(r"^consider\s+", re.I),
    re.compile(r"^could\s+we\s+", re.I),
    re.compile(r"^should\s+we\s+", re.I),
]

POST_VERB_FILLERS = [
    re.compile(r"\s+maybe\s+we\s+could\s+", re.I),
    re.compile(r"\s+we\s+should\s+consider\s+", re.I),
    re.compile(r"\s+we\s+could\s+consider\s+", re.I),
    re.compile(r"\s+consider\s+", re.I),
    re.compile(r"\s+maybe\s+", re.I),
]

TRAILING_DEADLINES = [
    re.compile(r"\s+by\s+(?:the\s+)?end\s+of\s+(?:the\s+)?\w+$", re.I),
    re.compile(r"\s+(?:in|by)\s+Q[1-4](?:\s+\d{4})?$", re.I),
    re.compile(r"\s+before\s+\w+\s+\d{1,2}$", re.I),
    re.compile(r"\s+by\s+\w+\s+\d{1,2}$", re.I),
]

WEAK_VERB_MAPPINGS = [
    ("look into", "Investigate"),
    ("explore", "Investigate"),
    ("research", "Investigate"),
    ("check out", "Evaluate"),
    ("think about", "Evaluate"),
    ("test", "Evaluate"),
]

CREATION_NOUNS = ("system", "tool", "feature", "ui", "component", "service", "module", "integration", "template")

TYPE_PREFIX_RE = re.compile(r"^(Update|Risk|Fix|Implement|New idea|Idea|Review)\s*:\s*", re.I)

PRONOUNS = {"they", "them", "it", "we", "us", "he", "she", "this", "that", "these", "those", "i", "you"}
GENERIC_WORDS = {
    "discussion", "discussions", "notes", "note", "update", "updates", "misc", "general",
    "item", "items", "stuff", "things", "thing", "topic", "topics", "meeting", "sync",
    "project", "plan", "details", "overview", "summary",
}
EDGE_FILLERS = PRONOUNS | GENERIC_WORDS | {"about", "on", "of", "for", "the", "a", "an", "and", "re"}

_TOKEN_RE = re.compile(r"[A-Za-z0-9][\w'-]*")


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text


def _strip_trailing_deadlines(title: str) -> str:
    changed = True
    while changed:
        changed = False
        for pattern in TRAILING_DEADLINES:
            stripped = pattern.sub("", title)
            if stripped != title:
                title = stripped.strip()
                changed = True
    return title


def infer_strong_verb(title: str) -> str:
    lower = title.lower()
    if re.match(r"use\s+", lower):
        return infer_strong_verb(re.sub(r"^use\s+", "", title, flags=re.I).strip())
    if re.match(r"(?:better|improved|faster|more efficient)\s+", lower):
        return re.sub(r"^(?:better|improved|faster|more efficient)\s+", "Improve ", title, flags=re.I)
    if re.match(r"more\s+", lower):
        return re.sub(r"^more\s+", "Add more ", title, flags=re.I)
    if re.match(r"(?:a\s+)?new\s+", lower):
        return re.sub(r"^(?:a\s+)?new\s+", "Add ", title, flags=re.I)
    if any(re.search(rf"\b{noun}s?\b", lower) for noun in CREATION_NOUNS):
        return f"Add {title}"
    if re.match(r"[a-z]+(?:ed|ing)\s+\w+", lower):
        return f"Add {title}"
    return title


def normalize_suggestion_title(raw_title: str) -> str:
    """Clean an idea title and lead with a strong imperative verb where possible."""
    title = raw_title.strip()
    if not title:
        return ""
    for pattern in LEADING_MARKERS:
        title = pattern.sub("", title)
    title = title.strip()
    for pattern in POST_VERB_FILLERS:
        title = pattern.sub(" ", title)
    title = re.sub(r"\s+", " ", title).strip()

    for weak, strong in WEAK_VERB_MAPPINGS:
        match = re.match(rf"{weak}(?:s|ing|ed)?\s+(.+)", title, re.I)
        if match and not re.match(r"(?:whether|if|how|why|what)\b", match.group(1), re.I):
            title = f"{strong} {match.group(1)}"
            break

    title = _strip_trailing_deadlines(title)

    first = title.split(" ")[0].lower() if title else ""
    is_gerund = first.endswith("ing") and len(first) > 4
    if first not in STRONG_VERBS and not is_gerund:
        title = infer_strong_verb(title)
    return _capitalize(title)


def meaningful_tokens(text: str) -> list[str]:
    return [t for t in _TOKEN_RE.findall(text) if t.lower() not in PRONOUNS and t.lower() not in GENERIC_WORDS]


def is_vacuous(content: str) -> bool:
    """True when nothing concrete remains once pronouns and generic words are removed."""
    tokens = _TOKEN_RE.findall(content)
    meaningful = meaningful_tokens(content)
    if not meaningful:
        return True
    has_filler = len(meaningful) < len(tokens)
    return has_filler and len(meaningful) < 2


def _strip_edge_fillers(content: str) -> str:
    words = content.split()
    while words and words[0].lower().strip(",.:;") in EDGE_FILLERS:
        words.pop(0)
    while words and words[-1].lower().strip(",.:;") in EDGE_FILLERS:
        words.pop()
    return " ".join(words)


def split_type_prefix(title: str) -> tuple[str | None, str]:
    match = TYPE_PREFIX_RE.match(title)
    if not match:
        return None, title
    return match.group(1), title[match.end():]


def normalize_title(title: str, suggestion_type: str, evidence: list[str] | None = None) -> str:
    prefix, content = split_type_prefix(title.strip())
    content = content.strip()

    if is_vacuous(content):
        derived = None
        for text in evidence or []:
            derived = derive_from_evidence(text)
            if derived and not is_vacuous(derived):
                break
            derived = None
        if derived:
            content = derived

    content = _strip_edge_fillers(content) or content
    content = _strip_edge_fillers(_strip_trailing_deadlines(content)) or content
    if prefix is None and suggestion_type == "idea":
        content = normalize_suggestion_title(content)
    content = _capitalize(content.strip())

    if prefix is None:
        return content
    return f"{_capitalize(prefix.lower()) if prefix.lower() != 'new idea' else 'New idea'}: {content}"
