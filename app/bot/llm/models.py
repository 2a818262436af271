from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AiResponse:
    reply: str
    confidence: float


@dataclass(frozen=True)
class HistoryTurn:
    role: str
    content: str


class AiBackendError(Exception):
    pass


class BackendUnavailable(AiBackendError):
    """The generative backend could not produce a usable candidate."""

    def __init__(self, reason: str, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code
        self.detail = detail
