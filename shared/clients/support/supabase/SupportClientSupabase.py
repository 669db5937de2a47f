from typing import Any

from shared.clients.support.SupportClientInterface import SupportClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.support import SupportTicket, SupportTicketCreate


class SupportClientSupabase(SupportClientInterface):
    """Tickets stored in a Supabase table through PostgREST."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._table = self.get_config_val("TABLE", default="support_tickets", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Supabase"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
            EnvConfig(env_key="TABLE", val_type="string", default="support_tickets"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"apikey": self._api_key, "Authorization": f"Bearer {self._api_key}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/rest/v1/"

    def _get_endpoint_tickets(self) -> str:
        return f"/rest/v1/{self._table}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_create_ticket_payload(self, ticket: SupportTicketCreate) -> dict:
        # created_at and updated_at are filled by the table defaults
        return {**ticket.model_dump(), "status": "open"}

    def get_create_ticket_headers(self) -> dict:
        return {"Prefer": "return=representation"}

    def get_ticket_filter_params(self, ticket_id: str) -> dict:
        return {"select": "*", "id": f"eq.{ticket_id}"}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_tickets(self, raw_response: Any) -> list[SupportTicket]:
        if not isinstance(raw_response, list):
            raise ValueError(f"Supabase returned an unexpected payload of type {type(raw_response).__name__}.")
        return [SupportTicket.model_validate({**row, "id": str(row["id"])}) for row in raw_response]
