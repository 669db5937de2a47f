"""Hands a conversation over to staff when the assistant flags it for follow-up."""

from shared.clients.support.SupportClientInterface import SupportClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatRequest, RequestSummary
from shared.models.support import SupportTicket, SupportTicketCreate

TRANSCRIPT_MESSAGES = 10

# widget hint shown when a follow-up is needed but no email is known
CONTACT_HINTS = {
    "fr": "Laissez-nous votre adresse e-mail pour qu'un membre de l'équipe vous recontacte.",
    "en": "Leave us your email address so a team member can get back to you.",
    "nl": "Laat uw e-mailadres achter zodat een medewerker contact met u opneemt.",
}

_CATEGORY_BY_INTENT = {"complaint": "complaint", "order_help": "wrong_order"}


class EscalationService:
    def __init__(self, helper_config: HelperConfig, support_client: SupportClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._support_client = support_client

    def needs_escalation(self, summary: RequestSummary | None) -> bool:
        return summary is not None and summary.needs_followup_by_staff

    def build_ticket(self, request: ChatRequest, summary: RequestSummary) -> SupportTicketCreate:
        """Ticket carrying the end of the conversation for the staff member.

        Raises:
            ValueError: If the request has no contact email.
        """
        if not request.contact_email:
            raise ValueError("A ticket needs the customer's contact email.")
        transcript = "\n".join(f"{m.role}: {m.content}" for m in request.messages[-TRANSCRIPT_MESSAGES:])
        return SupportTicketCreate(
            email=request.contact_email,
            subject=f"[{summary.intent}] {summary.restaurant or 'sans agence'}",
            description=f"[ESCALATION] Conversation transmise par l'assistant.\n\n{transcript}",
            category=_CATEGORY_BY_INTENT.get(summary.intent, "escalation"),
            priority="high" if summary.urgency == "high" else "normal",
        )

    async def do_escalate(self, request: ChatRequest, summary: RequestSummary | None) -> SupportTicket | None:
        """Open a ticket if the turn was flagged for staff follow-up.

        A failing ticket store does not fail the chat turn: the error is
        logged and no ticket is returned.

        Returns:
            SupportTicket | None: The opened ticket, or None if none was needed,
                no contact email is known or the store failed.
        """
        if not self.needs_escalation(summary):
            return None
        if not request.contact_email:
            self.logging.info("Turn flagged for staff follow-up but no contact email was given.")
            return None
        try:
            return await self._support_client.do_create_ticket(self.build_ticket(request, summary))
        except Exception as e:
            self.logging.error("Could not open a support ticket: %s", e)
            return None

    def get_contact_hint(self, language: str) -> str:
        return CONTACT_HINTS.get(language, CONTACT_HINTS["fr"])
