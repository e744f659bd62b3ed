"""Exact-fingerprint deduplication: the first occurrence wins."""

from __future__ import annotations

from suggestion_engine.models.domain import Suggestion


def dedupe_by_fingerprint(suggestions: list[Suggestion]) -> tuple[list[Suggestion], list[Suggestion]]:
    """Return (kept, duplicates), both in input order."""
    seen: set[str] = set()
    kept: list[Suggestion] = []
    duplicates: list[Suggestion] = []
    for suggestion in suggestions:
        fingerprint = suggestion.fingerprint
        if fingerprint in seen:
            duplicates.append(suggestion)
            continue
        seen.add(fingerprint)
        kept.append(suggestion)
    return kept, duplicates
