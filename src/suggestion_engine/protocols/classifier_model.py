"""Protocol for optional external section classifiers."""

from __future__ import annotations

from typing import Protocol

from suggestion_engine.models.domain import Section


class ClassifierModel(Protocol):
    def classify(self, section: Section) -> tuple[dict[str, float], float]:
        """Returns (intent scores by label, model confidence in [0, 1])."""
        ...

    @property
    def name(self) -> str: ...
