"""Routing: attach a suggestion to an existing plan item or mark it create-new."""

from __future__ import annotations

import re
from dataclasses import dataclass

import numpy as np

from suggestion_engine.models.domain import PlanItem, Routing, Suggestion
from suggestion_engine.models.schemas import ThresholdConfig
from suggestion_engine.protocols.embedder import Embedder

_NON_WORD_RE = re.compile(r"[^a-z0-9\s]")
MIN_TOKEN_CHARS = 4


def tokenize(text: str) -> list[str]:
    return [t for t in _NON_WORD_RE.sub(" ", text.lower()).split() if len(t) >= MIN_TOKEN_CHARS]


def _cosine(a: np.ndarray, b: np.ndarray) -> float:
    norm = float(np.linalg.norm(a) * np.linalg.norm(b))
    if norm == 0.0:
        return 0.0
    return float(np.dot(a, b) / norm)


def term_frequency_similarity(text_a: str, text_b: str) -> float:
    """Cosine similarity over term-frequency vectors of tokens longer than 3 chars."""
    tokens_a = tokenize(text_a)
    tokens_b = tokenize(text_b)
    if not tokens_a or not tokens_b:
        return 0.0
    vocab = {t: i for i, t in enumerate(sorted(set(tokens_a) | set(tokens_b)))}
    vec_a = np.zeros(len(vocab), dtype=np.float64)
    vec_b = np.zeros(len(vocab), dtype=np.float64)
    for t in tokens_a:
        vec_a[vocab[t]] += 1.0
    for t in tokens_b:
        vec_b[vocab[t]] += 1.0
    return _cosine(vec_a, vec_b)


def suggestion_text(suggestion: Suggestion) -> str:
    return f"{suggestion.title}\n{suggestion.payload.description}"


def plan_item_text(item: PlanItem) -> str:
    return f"{item.title}\n{item.description}"


@dataclass
class RoutingStats:
    total: int
    attached: int
    create_new: int
    avg_similarity: float

    @property
    def attach_ratio(self) -> float:
        return self.attached / self.total if self.total else 0.0


class SuggestionRouter:
    def __init__(self, thresholds: ThresholdConfig, embedder: Embedder | None = None) -> None:
        self._t_attach = thresholds.t_attach
        self._embedder = embedder

    def _similarities(self, suggestion: Suggestion, items: list[PlanItem]) -> list[float]:
        if self._embedder is None:
            text = suggestion_text(suggestion)
            return [term_frequency_similarity(text, plan_item_text(item)) for item in items]
        vectors = self._embedder.embed_texts([suggestion_text(suggestion)] + [plan_item_text(i) for i in items])
        matrix = np.array(vectors, dtype=np.float32)
        return [_cosine(matrix[0], row) for row in matrix[1:]]

    def route(self, suggestion: Suggestion, items: list[PlanItem]) -> Routing:
        if not items:
            suggestion.routing = Routing(create_new=True)
            return suggestion.routing

        similarities = self._similarities(suggestion, items)
        # earliest plan item wins ties
        best = int(np.argmax(similarities))
        similarity = round(similarities[best], 4)
        if similarity >= self._t_attach:
            suggestion.routing = Routing(
                create_new=False, attached_plan_item_id=items[best].id, similarity=similarity
            )
        else:
            suggestion.routing = Routing(create_new=True, similarity=similarity or None)
        return suggestion.routing

    def route_all(self, suggestions: list[Suggestion], items: list[PlanItem]) -> list[Suggestion]:
        for suggestion in suggestions:
            self.route(suggestion, items)
        return suggestions


def compute_routing_stats(suggestions: list[Suggestion]) -> RoutingStats:
    attached = sum(1 for s in suggestions if not s.routing.create_new and s.routing.attached_plan_item_id)
    create_new = sum(1 for s in suggestions if s.routing.create_new)
    similarities = [s.routing.similarity for s in suggestions if s.routing.similarity is not None]
    avg = sum(similarities) / len(similarities) if similarities else 0.0
    return RoutingStats(len(suggestions), attached, create_new, round(avg, 4))
