from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

import httpx
from httpx._types import QueryParamTypes, RequestContent

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """Base class of every outbound HTTP client (embeddings, vector store, LLM, menu feed).

    A client is identified by a type ("rag") and an engine ("supabase"); its
    settings live under ``<TYPE>_<ENGINE>_<KEY>`` and are validated on
    construction. The httpx.AsyncClient only exists between boot() and close().
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Read every required setting once so a missing one fails at startup.

        Raises:
            ValueError: If a required setting is missing or malformed.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """Client family, e.g. "rag". Prefix of the settings keys."""
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """Backend name, e.g. "Supabase". Second part of the settings keys."""
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Settings checked by validate_full_configuration()."""
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read one engine setting, e.g. ``get_config_val("API_KEY")`` reads RAG_SUPABASE_API_KEY.

        Args:
            raw_key (str): Key without the type/engine prefix.
            default (Any): Value used when unset. None makes the setting required.
            val_type (str): "string", "number", "bool" or "list".
        """
        key = self._get_config_key_name(raw_key)
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in readers:
            raise ValueError(f"Unsupported config value type '{val_type}' for '{key}'.")
        return readers[val_type](key, default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers authenticating against the backend. Empty for open backends."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """Cheap GET endpoint answering 2xx when the backend is usable."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        """GET the healthcheck endpoint.

        Raises:
            Exception: If the backend does not answer with 2xx.
        """
        response = await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), raise_on_error=True)
        self.logging.info("%s client '%s' is reachable.", self.get_client_type().upper(), self.get_engine_name())
        return response

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Create the HTTP client. Tests pass an httpx.MockTransport."""
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if not self.is_booted():
            raise Exception(f"{self.get_client_type().upper()} HTTP client not initialised. Call boot() before making requests.")
        return self._client

    def _build_url(self, endpoint: str) -> str:
        endpoint = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""
        return f"{self._get_base_url().rstrip('/')}{endpoint}"

    def _build_headers(self, additional_headers: dict | None = None) -> dict:
        # httpx sets Content-Type itself for json bodies
        return {**self._get_auth_header(), **(additional_headers or {})}

    def _raise_for_status(self, url: str, status_code: int, body: str, streaming: bool = False) -> None:
        kind = "Streaming request" if streaming else "Request"
        self.logging.error("%s to %s failed with status %d: %s", kind, url, status_code, body[:500])
        raise Exception(f"{kind} to {url} failed with status {status_code}")

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        json: dict | list | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to the backend.

        ``content`` wins over ``json`` when both are given. With raise_on_error
        any status >= 300 is logged with the start of the body and raised.

        Raises:
            Exception: If boot() was not called, or on an error status with raise_on_error.
            httpx.HTTPError: On transport failures.
        """
        client = self._require_client()
        url = self._build_url(endpoint)
        body: dict = {"content": content} if content is not None else {"json": json} if json is not None else {}

        response = await client.request(
            method,
            url,
            headers=self._build_headers(additional_headers),
            params=params,
            timeout=self.timeout,
            **body,
        )
        if raise_on_error and response.status_code >= 300:
            self._raise_for_status(url, response.status_code, response.text)
        return response

    async def do_stream_lines(
        self,
        method: str = "POST",
        json: dict | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
    ) -> AsyncIterator[str]:
        """Send a request and yield the non-empty lines of the body as they arrive.

        Used for SSE and NDJSON token streams. Closing the generator closes the
        underlying connection.

        Raises:
            Exception: If boot() was not called or the backend answers with status >= 300.
        """
        client = self._require_client()
        url = self._build_url(endpoint)
        async with client.stream(
            method,
            url,
            headers=self._build_headers(additional_headers),
            json=json,
            timeout=self.timeout,
        ) as response:
            if response.status_code >= 300:
                body = await response.aread()
                self._raise_for_status(url, response.status_code, body.decode("utf-8", errors="replace"), streaming=True)
            async for line in response.aiter_lines():
                if line:
                    yield line
