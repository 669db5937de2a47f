"""Pydantic models for support tickets handed over to staff."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

TicketCategory = Literal["general", "complaint", "refund", "missing_item", "wrong_order", "escalation"]
TicketPriority = Literal["low", "normal", "high", "urgent"]
TicketStatus = Literal["open", "answered", "closed", "timeout"]


class SupportTicketCreate(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=254)
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: TicketCategory = "general"
    priority: TicketPriority = "normal"
    order_id: str | None = None


class SupportTicket(BaseModel):
    id: str
    email: str
    subject: str
    description: str = ""
    category: str = "general"
    priority: str = "normal"
    status: TicketStatus = "open"
    order_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    assigned_agent: str | None = None
