from abc import abstractmethod
from typing import Any

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.support import SupportTicket, SupportTicketCreate


class SupportClientInterface(ClientInterface):
    """Ticket store used to hand a conversation over to staff."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "support"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_tickets(self) -> str:
        """Endpoint path of the ticket collection (e.g. "/rest/v1/support_tickets")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_create_ticket_payload(self, ticket: SupportTicketCreate) -> dict:
        pass

    @abstractmethod
    def get_create_ticket_headers(self) -> dict:
        """Extra headers asking the backend to return the created row."""
        pass

    @abstractmethod
    def get_ticket_filter_params(self, ticket_id: str) -> dict:
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_tickets(self, raw_response: Any) -> list[SupportTicket]:
        """
        Raises:
            ValueError: If the response has an unexpected shape.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_create_ticket(self, ticket: SupportTicketCreate) -> SupportTicket:
        """Open a new ticket.

        Raises:
            Exception: If the store rejects the insert.
            ValueError: If the store does not return the created ticket.
        """
        resp = await self.do_request(
            method="POST",
            json=self.get_create_ticket_payload(ticket),
            endpoint=self._get_endpoint_tickets(),
            additional_headers=self.get_create_ticket_headers(),
            raise_on_error=True,
        )
        created = self.extract_tickets(resp.json())
        if not created:
            raise ValueError("Ticket store did not return the created ticket.")
        self.logging.info("Support ticket %s opened for %s.", created[0].id, ticket.email)
        return created[0]

    async def do_get_ticket(self, ticket_id: str) -> SupportTicket | None:
        resp = await self.do_request(
            method="GET",
            params=self.get_ticket_filter_params(ticket_id),
            endpoint=self._get_endpoint_tickets(),
            raise_on_error=True,
        )
        tickets = self.extract_tickets(resp.json())
        return tickets[0] if tickets else None
