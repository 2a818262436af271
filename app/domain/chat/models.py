from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_camel(string: str) -> str:
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


class ChatBaseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")


class HistoryMessage(ChatBaseModel):
    role: Literal["user", "assistant", "bot", "model", "system"]
    content: str = Field(max_length=4000)


class ChatRequest(ChatBaseModel):
    message: str
    conversation_id: Optional[str] = Field(None, max_length=100)
    history: List[HistoryMessage] = Field(default_factory=list, max_length=50)

    @field_validator("message")
    @classmethod
    def validate_message(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Message is required and must be a non-empty string")
        return stripped


class ChatResponse(ChatBaseModel):
    response: str
    conversation_id: str
    confidence: float
    source: Literal["faq", "ai", "ai_with_escalation", "error"]
    escalation_offered: bool


class QuickAction(ChatBaseModel):
    label: str
    message: str


class ChatFeatures(ChatBaseModel):
    ai_powered: bool = True
    escalation_available: bool = True
    faq_enabled: bool = True


class ChatConfigResponse(ChatBaseModel):
    quick_actions: List[QuickAction]
    features: ChatFeatures


QUICK_ACTIONS: List[QuickAction] = [
    QuickAction(label="Account Help", message="I need help with my account"),
    QuickAction(label="Technical Issue", message="I'm experiencing a technical problem"),
    QuickAction(label="Privacy Questions", message="I have questions about privacy and data"),
    QuickAction(label="Find Consultants", message="How do I find and connect with consultants?"),
    QuickAction(label="Billing Support", message="I need help with billing or payments"),
    QuickAction(label="Chat Features", message="How do I use the chat features?"),
]
