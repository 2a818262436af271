from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from app.bot.arbiter.engine import ArbitrationOutcome, decide, error_outcome
from app.bot.faq.engine import FaqEntry, match_faq
from app.bot.llm.models import AiResponse, BackendUnavailable, HistoryTurn
from app.infra.metrics import Metrics

logger = logging.getLogger(__name__)


class AiBackend(Protocol):
    async def generate(self, message: str, history: Sequence[HistoryTurn] = ()) -> AiResponse: ...


class ChatService:
    """Answers one user message from the FAQ table or the AI backend."""

    def __init__(
        self,
        faq_table: Sequence[FaqEntry],
        ai_backend: AiBackend,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self.faq_table = tuple(faq_table)
        self.ai_backend = ai_backend
        self.metrics = metrics

    async def process_message(
        self,
        message: str,
        history: Sequence[HistoryTurn] = (),
        conversation_id: Optional[str] = None,
    ) -> ArbitrationOutcome:
        faq_match = match_faq(message, self.faq_table)

        try:
            ai_response = await self.ai_backend.generate(message, history)
        except BackendUnavailable as exc:
            logger.error(
                "ai_backend_unavailable",
                extra={
                    "extra": {
                        "conversation_id": conversation_id,
                        "reason": exc.reason,
                        "status_code": exc.status_code,
                        "detail": exc.detail,
                    }
                },
            )
            if self.metrics:
                self.metrics.record_ai_backend_error(exc.reason)
            outcome = error_outcome()
        else:
            outcome = decide(faq_match, ai_response)

        logger.info(
            "chat_reply",
            extra={
                "extra": {
                    "conversation_id": conversation_id,
                    "source": outcome.source.value,
                    "confidence": outcome.confidence,
                    "escalation_offered": outcome.escalation_offered,
                    "escalation_reason": outcome.escalation_reason,
                    "faq_score": faq_match.score,
                    "faq_question": faq_match.entry.question if faq_match.entry else None,
                }
            },
        )
        if self.metrics:
            self.metrics.record_reply(outcome.source.value, outcome.escalation_offered)
        return outcome
