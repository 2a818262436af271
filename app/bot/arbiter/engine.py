from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from app.bot.faq.engine import FaqMatch
from app.bot.handoff.decision import evaluate_escalation
from app.bot.llm.models import AiResponse

FAQ_OVERRIDE_SCORE = 0.95
FAQ_OVERRIDE_MAX_AI_CONFIDENCE = 0.7
ESCALATION_OFFER = (
    "I'm not entirely sure about that. Would you like me to connect you to a human "
    "support agent who can help you better?"
)
APOLOGY_REPLY = (
    "I apologize, but I'm experiencing technical difficulties. Please try again in a moment, "
    "or contact our support team directly."
)


class ReplySource(str, Enum):
    faq = "faq"
    ai = "ai"
    ai_with_escalation = "ai_with_escalation"
    error = "error"


@dataclass(frozen=True)
class ArbitrationOutcome:
    reply: str
    confidence: float
    source: ReplySource
    escalation_offered: bool
    escalation_reason: Optional[str] = None


Rule = Callable[[Optional[FaqMatch], AiResponse], Optional[ArbitrationOutcome]]


def _faq_override(faq_match: Optional[FaqMatch], ai_response: AiResponse) -> Optional[ArbitrationOutcome]:
    if faq_match is None or faq_match.entry is None:
        return None
    if faq_match.score > FAQ_OVERRIDE_SCORE and ai_response.confidence < FAQ_OVERRIDE_MAX_AI_CONFIDENCE:
        return ArbitrationOutcome(
            reply=faq_match.entry.answer,
            confidence=faq_match.score,
            source=ReplySource.faq,
            escalation_offered=False,
        )
    return None


def _ai_with_escalation(faq_match: Optional[FaqMatch], ai_response: AiResponse) -> Optional[ArbitrationOutcome]:
    escalation = evaluate_escalation(faq_match, ai_response)
    if not escalation.should_escalate:
        return None
    return ArbitrationOutcome(
        reply=f"{ai_response.reply}\n\n{ESCALATION_OFFER}",
        confidence=ai_response.confidence,
        source=ReplySource.ai_with_escalation,
        escalation_offered=True,
        escalation_reason=escalation.reason,
    )


def _ai_plain(faq_match: Optional[FaqMatch], ai_response: AiResponse) -> Optional[ArbitrationOutcome]:
    return ArbitrationOutcome(
        reply=ai_response.reply,
        confidence=ai_response.confidence,
        source=ReplySource.ai,
        escalation_offered=False,
    )


# Evaluated in order; the first rule returning an outcome wins.
RULES: Sequence[Rule] = (_faq_override, _ai_with_escalation, _ai_plain)


def decide(faq_match: Optional[FaqMatch], ai_response: AiResponse) -> ArbitrationOutcome:
    for rule in RULES:
        outcome = rule(faq_match, ai_response)
        if outcome is not None:
            return outcome
    raise AssertionError("rule list must end with an unconditional rule")


def error_outcome() -> ArbitrationOutcome:
    return ArbitrationOutcome(
        reply=APOLOGY_REPLY,
        confidence=0.0,
        source=ReplySource.error,
        escalation_offered=True,
        escalation_reason="ai_backend_unavailable",
    )
