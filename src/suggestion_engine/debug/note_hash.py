"""Deterministic content hash stored in debug run metadata."""

from __future__ import annotations

import struct


def compute_note_hash(text: str) -> str:
    """djb2 over UTF-16 code units, as 8 lowercase hex characters."""
    data = text.encode("utf-16-le")
    units = struct.unpack(f"<{len(data) // 2}H", data)
    h = 5381
    for unit in units:
        h = ((h << 5) + h + unit) & 0xFFFFFFFF
    return f"{h:08x}"
