import pytest

from app.bot.arbiter.engine import (
    APOLOGY_REPLY,
    ESCALATION_OFFER,
    ReplySource,
    decide,
    error_outcome,
)
from app.bot.faq.engine import FaqMatch
from app.bot.llm.models import AiResponse
from tests.conftest import make_entry

ENTRY = make_entry("Is my data secure and private?", ("privacy", "data"), answer="Yes, your data is encrypted.")
CONFIDENT_REPLY = "All of your conversations are encrypted and only visible to you."


def test_high_scoring_faq_wins_over_unsure_ai():
    outcome = decide(FaqMatch(entry=ENTRY, score=0.96), AiResponse(reply=CONFIDENT_REPLY, confidence=0.65))

    assert outcome.source == ReplySource.faq
    assert outcome.reply == ENTRY.answer
    assert outcome.confidence == 0.96
    assert outcome.escalation_offered is False
    assert outcome.escalation_reason is None


def test_faq_override_suppresses_escalation_even_when_ai_admits_uncertainty():
    outcome = decide(FaqMatch(entry=ENTRY, score=1.0), AiResponse(reply="I don't know, sorry.", confidence=0.4))

    assert outcome.source == ReplySource.faq
    assert outcome.escalation_offered is False


def test_missing_faq_and_uncertain_ai_offers_escalation():
    ai = AiResponse(reply="I'm not sure about that", confidence=0.9)

    outcome = decide(None, ai)

    assert outcome.source == ReplySource.ai_with_escalation
    assert outcome.escalation_offered is True
    assert outcome.reply.startswith(ai.reply)
    assert outcome.reply.endswith(ESCALATION_OFFER)
    assert outcome.confidence == 0.9
    assert outcome.escalation_reason == "no_faq_match"


def test_low_ai_confidence_escalates_when_faq_is_not_strong_enough():
    outcome = decide(FaqMatch(entry=ENTRY, score=0.9), AiResponse(reply=CONFIDENT_REPLY, confidence=0.3))

    assert outcome.source == ReplySource.ai_with_escalation
    assert outcome.escalation_offered is True
    assert outcome.confidence == 0.3
    assert outcome.escalation_reason == "low_ai_confidence"


def test_confident_ai_with_supporting_faq_is_served_plainly():
    ai = AiResponse(reply=CONFIDENT_REPLY, confidence=0.8)

    outcome = decide(FaqMatch(entry=ENTRY, score=0.9), ai)

    assert outcome.source == ReplySource.ai
    assert outcome.reply == ai.reply
    assert outcome.escalation_offered is False
    assert outcome.escalation_reason is None


def test_strong_faq_loses_to_confident_ai():
    outcome = decide(FaqMatch(entry=ENTRY, score=0.99), AiResponse(reply=CONFIDENT_REPLY, confidence=0.75))

    assert outcome.source == ReplySource.ai
    assert outcome.reply == CONFIDENT_REPLY


@pytest.mark.parametrize("score", [0.95, 0.9])
def test_faq_override_requires_score_strictly_above_threshold(score):
    outcome = decide(FaqMatch(entry=ENTRY, score=score), AiResponse(reply=CONFIDENT_REPLY, confidence=0.65))

    assert outcome.source == ReplySource.ai


def test_ai_confidence_at_override_bound_does_not_pick_faq():
    outcome = decide(FaqMatch(entry=ENTRY, score=1.0), AiResponse(reply=CONFIDENT_REPLY, confidence=0.7))

    assert outcome.source == ReplySource.ai


def test_match_without_entry_is_treated_as_absent():
    outcome = decide(FaqMatch(entry=None, score=0.0), AiResponse(reply=CONFIDENT_REPLY, confidence=0.65))

    assert outcome.source == ReplySource.ai_with_escalation
    assert outcome.escalation_reason == "no_faq_match"


def test_decide_is_deterministic():
    faq = FaqMatch(entry=ENTRY, score=0.7)
    ai = AiResponse(reply=CONFIDENT_REPLY, confidence=0.62)

    assert decide(faq, ai) == decide(faq, ai)


def test_error_outcome_is_apologetic_and_escalates():
    outcome = error_outcome()

    assert outcome.reply == APOLOGY_REPLY
    assert outcome.confidence == 0
    assert outcome.source == ReplySource.error
    assert outcome.escalation_offered is True
    assert outcome.escalation_reason == "ai_backend_unavailable"
