from shared.clients.ClientManager import ClientManager
from shared.clients.support.SupportClientInterface import SupportClientInterface


class SupportClientManager(ClientManager):
    """Selects the ticket store backend from SUPPORT_ENGINE (supabase)."""

    client_type = "support"
    class_prefix = "SupportClient"
    default_engine = "supabase"
    label = "Support"

    def get_client(self) -> SupportClientInterface:
        return self.client
