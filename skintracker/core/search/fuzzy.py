from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable

from rapidfuzz import fuzz


MATCH_THRESHOLD = 70.0

_STRIP_RE = re.compile(r"[^a-z0-9\s]")


@dataclass(frozen=True)
class RankedResult:
    name: str
    score: int


def normalize(text: object) -> str:
    return _STRIP_RE.sub("", str(text or "").lower())


def rank(corpus: Iterable[str], query: str, *, threshold: float = MATCH_THRESHOLD) -> list[RankedResult]:
    """Score every corpus entry against ``query`` with a partial ratio.

    Entries scoring strictly above ``threshold`` are kept, best first. Equal
    scores keep their corpus order.
    """
    needle = normalize(query)
    if not needle.strip():
        return []

    scored: list[RankedResult] = []
    for entry in corpus:
        # Scores are whole numbers, rounded half up.
        score = math.floor(fuzz.partial_ratio(needle, normalize(entry)) + 0.5)
        if score > threshold:
            scored.append(RankedResult(name=entry, score=score))
    return sorted(scored, key=lambda row: row.score, reverse=True)


def search(corpus: Iterable[str], query: str) -> list[str]:
    return [row.name for row in rank(corpus, query)]
