"""Redaction and preview helpers for debug records."""

from __future__ import annotations

import json
import re

from suggestion_engine.config.constants import (
    EVIDENCE_PREVIEW_CHARS,
    MAX_DEBUG_PAYLOAD_BYTES,
    NOTE_PREVIEW_CHARS,
)
from suggestion_engine.models.schemas import DebugVerbosity, EvidenceDebug, EvidenceSpanPreview, TextPreview

# Specific numeric patterns run before the phone pattern so SSNs and cards keep their own tag
REDACTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.I), "[email]"),
    (re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "[ssn]"),
    (re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b"), "[card]"),
    (re.compile(r"(?:\+\d{1,3}[\s-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\b"), "[phone]"),
]


def redact_text(raw: str) -> str:
    for pattern, replacement in REDACTION_PATTERNS:
        raw = pattern.sub(replacement, raw)
    return raw


def make_preview(raw: str, max_len: int = 160) -> str:
    redacted = redact_text(raw.strip())
    if len(redacted) <= max_len:
        return redacted
    return redacted[:max_len] + "…"


def make_text_preview(lines: list[str], line_range: tuple[int, int], max_len: int = NOTE_PREVIEW_CHARS) -> TextPreview:
    start, end = line_range
    text = " ".join(lines[start : end + 1])
    return TextPreview(line_range=line_range, preview=make_preview(text, max_len))


def make_evidence_debug(line_ids: list[int], lines: list[str], max_len: int = EVIDENCE_PREVIEW_CHARS) -> EvidenceDebug:
    spans = [
        EvidenceSpanPreview(
            line_index=line_id,
            preview=make_preview(lines[line_id] if 0 <= line_id < len(lines) else "", max_len),
        )
        for line_id in line_ids
    ]
    return EvidenceDebug(line_ids=list(line_ids), spans=spans)


def resolve_debug_verbosity(
    requested: DebugVerbosity | None,
    enable_debug: bool,
    allow_full_text: bool = False,
    environment: str = "development",
) -> DebugVerbosity:
    """OFF unless debug is enabled; FULL_TEXT only when allowed outside production."""
    if not enable_debug or requested == "OFF":
        return "OFF"
    if requested == "FULL_TEXT" and allow_full_text and environment != "production":
        return "FULL_TEXT"
    return "REDACTED"


def json_byte_size(data: object) -> int:
    return len(json.dumps(data, ensure_ascii=False).encode("utf-8"))


def exceeds_payload_limit(data: object, max_bytes: int = MAX_DEBUG_PAYLOAD_BYTES) -> bool:
    return json_byte_size(data) > max_bytes
