"""Support ticket tools: open a ticket for staff and look one up."""

from typing import Any

from pydantic import ValidationError

from services.tools.ToolRegistry import ToolRegistry
from shared.clients.support.SupportClientInterface import SupportClientInterface
from shared.models.support import SupportTicketCreate
from shared.models.tools import ToolDefinition


def register_ticket_tools(registry: ToolRegistry, support_client: SupportClientInterface) -> None:
    async def create_support_ticket(tool_input: dict[str, Any]) -> dict[str, Any]:
        try:
            ticket = SupportTicketCreate.model_validate(tool_input)
        except ValidationError as e:
            raise ValueError(f"Invalid ticket: {e.errors(include_url=False)}") from e
        created = await support_client.do_create_ticket(ticket)
        return {"ticket_id": created.id, "status": created.status, "created_at": created.created_at}

    async def get_ticket_status(tool_input: dict[str, Any]) -> dict[str, Any]:
        ticket_id = str(tool_input.get("ticket_id", "")).strip()
        ticket = await support_client.do_get_ticket(ticket_id) if ticket_id else None
        if ticket is None:
            raise ValueError(f"Ticket not found: {ticket_id}")
        return ticket.model_dump(include={"id", "status", "subject", "category", "priority", "created_at", "updated_at", "assigned_agent"})

    registry.register(
        ToolDefinition(
            name="create_support_ticket",
            description="Open a support ticket so a staff member follows up by email.",
            input_schema={
                "type": "object",
                "properties": {
                    "email": {"type": "string", "description": "Customer email"},
                    "subject": {"type": "string", "description": "Issue subject"},
                    "description": {"type": "string", "description": "Detailed description"},
                    "category": {"type": "string", "description": "general, complaint, refund, missing_item or wrong_order"},
                    "priority": {"type": "string", "description": "low, normal, high or urgent"},
                    "order_id": {"type": "string", "description": "Related order id, if any"},
                },
                "required": ["email", "subject", "description"],
            },
        ),
        create_support_ticket,
    )
    registry.register(
        ToolDefinition(
            name="get_ticket_status",
            description="Get the status of an existing support ticket.",
            input_schema={
                "type": "object",
                "properties": {"ticket_id": {"type": "string", "description": "Ticket id"}},
                "required": ["ticket_id"],
            },
        ),
        get_ticket_status,
    )
