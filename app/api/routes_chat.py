import logging
import secrets
import string
import time

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError

from app.bot.llm.models import HistoryTurn
from app.bot.service import ChatService
from app.dependencies import get_chat_service
from app.domain.chat.models import (
    QUICK_ACTIONS,
    ChatConfigResponse,
    ChatFeatures,
    ChatRequest,
    ChatResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_conversation_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"conv_{int(time.time() * 1000)}_{suffix}"


def check_message_length(message: str, max_length: int) -> None:
    if len(message) > max_length:
        raise RequestValidationError(
            [
                {
                    "type": "value_error",
                    "loc": ("body", "message"),
                    "msg": f"Message must be between 1 and {max_length} characters",
                    "input": message,
                }
            ]
        )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    http_request: Request,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    check_message_length(request.message, http_request.app.state.app_settings.chat_message_max_length)
    conversation_id = request.conversation_id or new_conversation_id()
    history = [HistoryTurn(role=turn.role, content=turn.content) for turn in request.history]
    outcome = await service.process_message(request.message, history, conversation_id=conversation_id)

    logger.info(
        "chat_turn",
        extra={
            "extra": {
                "request_id": getattr(http_request.state, "request_id", None),
                "conversation_id": conversation_id,
                "source": outcome.source.value,
            }
        },
    )
    return ChatResponse(
        response=outcome.reply,
        conversation_id=conversation_id,
        confidence=outcome.confidence,
        source=outcome.source.value,
        escalation_offered=outcome.escalation_offered,
    )


@router.get("/chat/config", response_model=ChatConfigResponse)
async def chat_config() -> ChatConfigResponse:
    return ChatConfigResponse(quick_actions=QUICK_ACTIONS, features=ChatFeatures())
