"""Environment-backed configuration for the support bridge."""

import logging
import os
from typing import Any, Callable

_TRUE_VALUES = ("true", "1", "yes", "on")


class HelperConfig:
    """Typed access to environment variables.

    Keys are case-insensitive and an empty variable counts as unset. Every
    getter raises ValueError when the variable is unset and no default is given.
    The application logger travels with the config so clients and services
    can pick it up from one place.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _read(self, key: str, default: Any, parse: Callable[[str, str], Any]) -> Any:
        key = key.upper()
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            if default is None:
                raise ValueError(f"Environment variable '{key}' is not set.")
            return default
        return parse(key, raw.strip())

    def get_string_val(self, key: str, default: str | None = None) -> str:
        return self._read(key, default, lambda _, raw: raw)

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int, or a float when the value contains a dot.

        Raises:
            ValueError: If the variable is unset without default, or not a number.
        """

        def parse(key: str, raw: str) -> float | int:
            try:
                return float(raw) if "." in raw else int(raw)
            except ValueError:
                raise ValueError(f"Environment variable '{key}' is not a valid number: '{raw}'.")

        return self._read(key, default, parse)

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """true/1/yes/on (any case) are True, everything else is False."""
        return self._read(key, default, lambda _, raw: raw.lower() in _TRUE_VALUES)

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a list written as ``[elem1,elem2,...]``, e.g. ``MENU_BRANCHES=[seraing,angleur]``.

        Args:
            key (str): Environment variable name.
            default (list | None): Value used when the variable is unset.
            separator (str): Element delimiter.
            element_type (type): Cast applied to every element.

        Raises:
            ValueError: If the variable is unset without default, lacks the
                brackets, or holds an element element_type cannot parse.
        """

        def parse(key: str, raw: str) -> list:
            if not (raw.startswith("[") and raw.endswith("]")):
                raise ValueError(f"Environment variable '{key}' must be in the format '[elem1{separator}elem2{separator}...]'. Got: '{raw}'")
            try:
                return [element_type(v.strip()) for v in raw[1:-1].split(separator) if v.strip()]
            except ValueError as e:
                raise ValueError(f"Environment variable '{key}' contains invalid {element_type.__name__} elements: {e}")

        return self._read(key, default, parse)

    def get_logger(self) -> logging.Logger:
        return self._logger
