from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

ACCEPT_THRESHOLD = 0.8
EXACT_QUESTION_BONUS = 1.0
KEYWORD_BONUS = 0.2
PARTIAL_TOKEN_BONUS = 0.1


@dataclass(frozen=True)
class FaqEntry:
    question: str
    answer: str
    keywords: Tuple[str, ...]
    base_confidence: float


@dataclass(frozen=True)
class FaqMatch:
    entry: Optional[FaqEntry]
    score: float

    @property
    def is_accepted(self) -> bool:
        return self.entry is not None and self.score > ACCEPT_THRESHOLD


def normalize_message(text: str) -> str:
    return text.strip().lower()


def score_entry(normalized: str, entry: FaqEntry) -> float:
    """Score one entry against an already normalized message.

    Bonuses accumulate without bound and are clamped to 1.0 only at the end,
    so entries with many keywords can saturate on partial overlap.
    """
    if not normalized:
        return 0.0

    score = 0.0
    if entry.question.lower() in normalized:
        score += EXACT_QUESTION_BONUS

    keywords = [keyword.lower() for keyword in entry.keywords]
    for keyword in keywords:
        if keyword in normalized:
            score += KEYWORD_BONUS

    for token in normalized.split():
        for keyword in keywords:
            if keyword in token or token in keyword:
                score += PARTIAL_TOKEN_BONUS

    return min(1.0, score)


def match_faq(text: str, table: Sequence[FaqEntry]) -> FaqMatch:
    normalized = normalize_message(text)
    best_entry: Optional[FaqEntry] = None
    best_score = 0.0

    for entry in table:
        score = score_entry(normalized, entry)
        # strict comparison keeps the earliest entry on ties
        if score > best_score:
            best_entry = entry
            best_score = score

    return FaqMatch(entry=best_entry, score=best_score)
