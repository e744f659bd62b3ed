"""Protocol for optional embedding providers used in routing."""

from __future__ import annotations

from typing import Protocol


class Embedder(Protocol):
    def embed_texts(self, texts: list[str]) -> list[list[float]]: ...

    @property
    def dimensions(self) -> int: ...
