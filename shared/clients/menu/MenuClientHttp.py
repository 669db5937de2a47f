from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.menu import MenuItem


class MenuClientHttp(ClientInterface):
    """Reads one branch's delivery-platform menu from an HTTP feed.

    The feed answers ``GET <endpoint>?branch=<name>`` with a JSON list of menu items.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._endpoint = self.get_config_val("ENDPOINT", default="/menu", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "menu"

    def _get_engine_name(self) -> str:
        return "Http"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="ENDPOINT", val_type="string", default="/menu"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return self._endpoint

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_branch_menu(self, branch: str) -> list[MenuItem]:
        """Fetch the menu items offered by one branch.

        Args:
            branch (str): Branch name (e.g. "seraing").

        Returns:
            list[MenuItem]: The branch's items with their platform prices.

        Raises:
            Exception: If the feed answers with a non-2xx status.
            ValueError: If the feed does not return a list.
        """
        response = await self.do_request(
            method="GET",
            endpoint=self._endpoint,
            params={"branch": branch},
            raise_on_error=True,
        )
        data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"Menu feed for branch '{branch}' did not return a list.")
        return [MenuItem.model_validate(item) for item in data]
