from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import httpx

from app.bot.llm.confidence import candidate_text, estimate_confidence, is_well_formed_candidate
from app.bot.llm.models import AiResponse, BackendUnavailable, HistoryTurn
from app.bot.llm.prompts import build_prompt
from app.settings import GEMINI_PLACEHOLDER_KEY

logger = logging.getLogger(__name__)

DEMO_CONFIDENCE = 0.5
EMPTY_CANDIDATE_REPLY = "I apologize, but I couldn't generate a response."
HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)
SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"


def demo_reply(message: str) -> str:
    return (
        f'I understand you\'re asking: "{message}". I\'m currently in demo mode. '
        "To get AI-powered responses, please configure your Gemini API key. "
        "For now, I can help with our FAQ questions!"
    )


class GeminiClient:
    """Adapter over the Gemini ``generateContent`` endpoint.

    Without an API key the client answers in demo mode and never touches the
    network. Every failure to obtain a candidate surfaces as ``BackendUnavailable``.
    """

    def __init__(
        self,
        api_key: str | None,
        api_url: str,
        timeout_seconds: float = 30.0,
        temperature: float = 0.9,
        top_k: int = 40,
        top_p: float = 0.95,
        max_output_tokens: int = 1024,
        history_turns: int = 5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = (api_key or "").strip() or None
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.top_k = top_k
        self.top_p = top_p
        self.max_output_tokens = max_output_tokens
        self.history_turns = history_turns
        self.transport = transport

    @classmethod
    def from_settings(cls, app_settings, transport: httpx.AsyncBaseTransport | None = None) -> "GeminiClient":
        return cls(
            api_key=app_settings.gemini_api_key,
            api_url=app_settings.gemini_api_url,
            timeout_seconds=app_settings.gemini_timeout_seconds,
            temperature=app_settings.gemini_temperature,
            top_k=app_settings.gemini_top_k,
            top_p=app_settings.gemini_top_p,
            max_output_tokens=app_settings.gemini_max_output_tokens,
            history_turns=app_settings.chat_history_turns,
            transport=transport,
        )

    @property
    def demo_mode(self) -> bool:
        return self.api_key is None or self.api_key == GEMINI_PLACEHOLDER_KEY

    def build_request_body(self, message: str, history: Sequence[HistoryTurn] = ()) -> Dict[str, Any]:
        prompt = build_prompt(message, history, max_turns=self.history_turns)
        safety_settings: List[Dict[str, str]] = [
            {"category": category, "threshold": SAFETY_THRESHOLD} for category in HARM_CATEGORIES
        ]
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topK": self.top_k,
                "topP": self.top_p,
                "maxOutputTokens": self.max_output_tokens,
            },
            "safetySettings": safety_settings,
        }

    async def generate(self, message: str, history: Sequence[HistoryTurn] = ()) -> AiResponse:
        if self.demo_mode:
            return AiResponse(reply=demo_reply(message), confidence=DEMO_CONFIDENCE)

        body = self.build_request_body(message, history)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(self.api_url, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as exc:
            raise BackendUnavailable("transport_error", detail=type(exc).__name__) from exc

        if not 200 <= response.status_code < 300:
            raise BackendUnavailable("non_2xx", status_code=response.status_code, detail=response.text[:500])

        try:
            data = response.json()
        except ValueError as exc:
            raise BackendUnavailable("invalid_json", status_code=response.status_code) from exc

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates:
            raise BackendUnavailable("no_candidates", status_code=response.status_code)
        if not isinstance(candidates, list) or not is_well_formed_candidate(candidates[0]):
            raise BackendUnavailable(
                "malformed_candidate",
                status_code=response.status_code,
                detail=response.text[:500],
            )

        candidate = candidates[0]
        reply = candidate_text(candidate) or EMPTY_CANDIDATE_REPLY
        confidence = estimate_confidence(candidate)
        logger.info(
            "gemini_reply",
            extra={"extra": {"confidence": confidence, "reply_chars": len(reply)}},
        )
        return AiResponse(reply=reply.strip(), confidence=confidence)
