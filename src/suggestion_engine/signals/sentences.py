"""Sentence splitting shared by the signal extractors and synthesis."""

from __future__ import annotations

import re

from suggestion_engine.segmentation.lines import strip_list_marker

_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Split text into sentences; every line of a multi-line chunk stands alone.

    Sentence texts are verbatim slices of the input (list markers aside), so
    evidence built from them stays grounded.
    """
    sentences: list[str] = []
    for chunk in _SENTENCE_BOUNDARY_RE.split(text):
        for line in chunk.split("\n"):
            cleaned = strip_list_marker(line)
            if cleaned:
                sentences.append(cleaned)
    return sentences


def split_dense_sentences(text: str) -> list[str]:
    """Split a dense paragraph, re-joining fragments that start lowercase.

    Abbreviations such as ``e.g. the`` would otherwise produce a fragment that
    cannot stand on its own as evidence.
    """
    merged: list[str] = []
    for part in _SENTENCE_BOUNDARY_RE.split(" ".join(text.split())):
        part = part.strip()
        if not part:
            continue
        if merged and part[0].islower():
            merged[-1] = f"{merged[-1]} {part}"
        else:
            merged.append(part)
    return merged
