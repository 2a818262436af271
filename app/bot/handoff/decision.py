from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.bot.faq.engine import FaqMatch
from app.bot.llm.models import AiResponse

LOW_AI_CONFIDENCE_THRESHOLD = 0.6
WEAK_FAQ_SCORE_THRESHOLD = 0.5
UNCERTAINTY_PHRASES = (
    "i don't know",
    "i'm not sure",
    "i can't help",
    "i'm unable to",
    "i don't have information",
    "i'm not certain",
)


@dataclass(frozen=True)
class EscalationDecision:
    should_escalate: bool
    reason: Optional[str] = None


def _admits_uncertainty(reply: str) -> bool:
    lowered = reply.lower()
    return any(phrase in lowered for phrase in UNCERTAINTY_PHRASES)


def evaluate_escalation(faq_match: Optional[FaqMatch], ai_response: AiResponse) -> EscalationDecision:
    """Decide whether a human handoff should be offered with the AI reply.

    Rules are checked in order and the first match names the reason.
    """
    if ai_response.confidence < LOW_AI_CONFIDENCE_THRESHOLD:
        return EscalationDecision(should_escalate=True, reason="low_ai_confidence")

    if faq_match is None or faq_match.entry is None:
        return EscalationDecision(should_escalate=True, reason="no_faq_match")

    if faq_match.score < WEAK_FAQ_SCORE_THRESHOLD:
        return EscalationDecision(should_escalate=True, reason="weak_faq_match")

    if _admits_uncertainty(ai_response.reply):
        return EscalationDecision(should_escalate=True, reason="ai_uncertain")

    return EscalationDecision(should_escalate=False)
