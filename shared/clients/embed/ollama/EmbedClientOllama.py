from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientOllama(EmbedClientInterface):
    """Self-hosted embeddings through Ollama's /api/embed.

    The model must already be pulled on the server. Inputs longer than the
    model context are truncated by Ollama instead of failing the request.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._keep_alive = self.get_config_val("KEEP_ALIVE", default="5m", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [EnvConfig(env_key="BASE_URL", val_type="string", default=None)]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        # local server, no auth
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/api/tags"

    def get_endpoint_embedding(self) -> str:
        return "/api/embed"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        return {"model": self.embed_model, "input": texts, "truncate": True, "keep_alive": self._keep_alive}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Read the "embeddings" list of an /api/embed answer, already in input order.

        Raises:
            ValueError: If the answer carries no vectors.
        """
        embeddings = response_data.get("embeddings")
        if not isinstance(embeddings, list) or not embeddings or not embeddings[0]:
            raise ValueError(f"Ollama returned no embeddings for model '{self.embed_model}'. Keys: {sorted(response_data)}")
        return embeddings
