from __future__ import annotations

from typing import Any, Dict

BASE_CONFIDENCE = 0.8
UNSAFE_PENALTY = 0.3
SHORT_REPLY_PENALTY = 0.2
HEDGING_PENALTY = 0.1
SHORT_REPLY_CHARS = 20

RISKY_PROBABILITIES = ("MEDIUM", "HIGH")
HEDGING_PHRASES = ("might", "maybe", "possibly", "not sure", "unclear", "uncertain")


def is_well_formed_candidate(candidate: object) -> bool:
    """Check that the fields read from a candidate have the documented types.

    Missing ``content``, ``parts`` or ``text`` is allowed; a present field of the
    wrong type is not.
    """
    if not isinstance(candidate, dict):
        return False

    ratings = candidate.get("safetyRatings")
    if ratings is not None and not (
        isinstance(ratings, list) and all(isinstance(rating, dict) for rating in ratings)
    ):
        return False

    content = candidate.get("content")
    if content is None:
        return True
    if not isinstance(content, dict):
        return False

    parts = content.get("parts")
    if not parts:
        return parts is None or isinstance(parts, list)
    if not isinstance(parts, list) or not isinstance(parts[0], dict):
        return False
    text = parts[0].get("text")
    return text is None or isinstance(text, str)


def candidate_text(candidate: Dict[str, Any]) -> str:
    content = candidate.get("content") or {}
    parts = content.get("parts") or []
    if not parts:
        return ""
    text = parts[0].get("text") if isinstance(parts[0], dict) else None
    return text or ""


def has_risky_rating(candidate: Dict[str, Any]) -> bool:
    ratings = candidate.get("safetyRatings") or []
    return any(rating.get("probability") in RISKY_PROBABILITIES for rating in ratings)


def estimate_confidence(candidate: Dict[str, Any]) -> float:
    """Heuristic confidence for a Gemini candidate; the API reports none itself."""
    confidence = BASE_CONFIDENCE

    if has_risky_rating(candidate):
        confidence -= UNSAFE_PENALTY

    text = candidate_text(candidate)
    if len(text) < SHORT_REPLY_CHARS:
        confidence -= SHORT_REPLY_PENALTY

    lowered = text.lower()
    if any(phrase in lowered for phrase in HEDGING_PHRASES):
        confidence -= HEDGING_PENALTY

    return max(0.0, min(1.0, confidence))
