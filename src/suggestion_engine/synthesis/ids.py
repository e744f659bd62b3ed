"""Run-scoped id allocation for sections and suggestions."""

from __future__ import annotations

import re


class IdGenerator:
    """Allocates deterministic ids for one pipeline run.

    A fresh generator is created per note, so repeated runs over the same
    note produce identical ids without any process-wide counter.
    """

    def __init__(self, note_id: str) -> None:
        slug = re.sub(r"[^A-Za-z0-9]", "", note_id)[:8] or "note"
        self.note_slug = slug
        self._section_counter = 0
        self._suggestion_counter = 0
        self._children: dict[str, int] = {}

    def next_section_id(self) -> str:
        self._section_counter += 1
        return f"sec_{self.note_slug}_{self._section_counter}"

    def next_suggestion_id(self) -> str:
        self._suggestion_counter += 1
        return f"sug_{self.note_slug}_{self._suggestion_counter}"

    def child_section_id(self, parent_id: str) -> str:
        n = self._children.get(parent_id, 0)
        self._children[parent_id] = n + 1
        return f"{parent_id}__topic_{n}"
