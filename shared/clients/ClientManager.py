from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """Instantiates the engine selected by ``<CLIENT_TYPE>_ENGINE``.

    Engines are looked up by convention as
    ``shared.clients.<client_type>.<engine>.<class_prefix><Engine>``, for example
    ``RAG_ENGINE=supabase`` resolves to ``shared.clients.rag.supabase.RAGClientSupabase``.
    Subclasses only set the class attributes below.
    """

    client_type: str = ""
    class_prefix: str = ""
    default_engine: str = ""
    label: str = ""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """Read the engine name from ENV configuration.

        Returns:
            str: The capitalised engine name (e.g. "Supabase").

        Raises:
            ValueError: If the engine variable is blank.
        """
        env_key = f"{self.client_type.upper()}_ENGINE"
        engine = self.helper_config.get_string_val(env_key, default=self.default_engine)
        if not engine.strip():
            raise ValueError(f"No {self.label} engine specified in configuration ({env_key}).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> ClientInterface:
        """Import and instantiate the client class of the configured engine.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"{self.class_prefix}{engine}"
        try:
            module = __import__(
                f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.label} engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.label, engine)
        return client

    def get_client(self) -> ClientInterface:
        return self.client
