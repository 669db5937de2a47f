"""Pydantic models for the chat API."""

from typing import Literal

from pydantic import BaseModel, Field

from shared.models.support import EMAIL_PATTERN

MAX_MESSAGE_CHARS = 2000
MAX_CONVERSATION_MESSAGES = 50


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(min_length=1, max_length=MAX_MESSAGE_CHARS)


class ChatRequest(BaseModel):
    """Incoming conversation from the chat widget. The last message is the one to answer."""

    messages: list[ChatMessage] = Field(min_length=1, max_length=MAX_CONVERSATION_MESSAGES)
    language: Literal["fr", "en", "nl"] = "fr"
    # lets a turn flagged for staff follow-up open a ticket
    contact_email: str | None = Field(default=None, pattern=EMAIL_PATTERN, max_length=254)

    def get_last_user_message(self) -> str:
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return self.messages[-1].content


class ActionButton(BaseModel):
    text: str
    url: str
    type: Literal["order", "directions", "menu", "call"]


class RequestSummary(BaseModel):
    """Structured state of the current assistant turn.

    Produced at most once per turn and replaces the previous one.
    """

    intent: Literal[
        "menu_info",
        "order_help",
        "restaurant_info",
        "complaint",
        "compliment",
        "reservation",
        "game_info",
        "other",
    ] = "other"
    restaurant: Literal["seraing", "angleur", "saint-gilles", "wandre"] | None = None
    delivery_platform: Literal["uber_eats", "deliveroo", "takeaway"] | None = None
    language: Literal["fr", "en", "nl"] = "fr"
    urgency: Literal["normal", "high"] = "normal"
    needs_followup_by_staff: bool = False
    action_button: ActionButton | None = None


class ChatResponse(BaseModel):
    message: str
    summary: RequestSummary | None = None
    sources: list[str] = []
    tools_used: list[str] = []
    ticket_id: str | None = None
