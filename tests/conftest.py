import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from fastapi.testclient import TestClient

from app.bot.faq.engine import FaqEntry
from app.bot.faq.table import load_faq_table
from app.bot.llm.models import AiResponse
from app.main import create_app
from app.settings import Settings

DEFAULT_AI_REPLY = "Thanks for reaching out! Here is how we can help you with that today."


class StubAiBackend:
    def __init__(self, response: AiResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or AiResponse(reply=DEFAULT_AI_REPLY, confidence=0.8)
        self.error = error
        self.demo_mode = False
        self.calls: list[tuple[str, list]] = []

    async def generate(self, message, history=()):
        self.calls.append((message, list(history)))
        if self.error is not None:
            raise self.error
        return self.response


def make_settings(**overrides) -> Settings:
    values = {"app_env": "dev", "testing": True, "gemini_api_key": None, "metrics_enabled": True}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_entry(question: str, keywords: tuple[str, ...], answer: str = "Canned answer.", base_confidence: float = 0.9):
    return FaqEntry(question=question, answer=answer, keywords=keywords, base_confidence=base_confidence)


@pytest.fixture(scope="session")
def faq_table():
    return load_faq_table()


@pytest.fixture()
def ai_backend():
    return StubAiBackend()


@pytest.fixture()
def test_settings():
    return make_settings()


@pytest.fixture()
def client(test_settings, ai_backend, faq_table):
    app = create_app(test_settings, ai_backend=ai_backend, faq_table=faq_table)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def client_no_raise(test_settings, ai_backend, faq_table):
    """Test client that returns HTTP responses instead of raising server exceptions."""
    app = create_app(test_settings, ai_backend=ai_backend, faq_table=faq_table)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
