import json
import os
import re
import time
import unicodedata
from typing import Callable

from pydantic import ValidationError

from shared.clients.menu.MenuClientHttp import MenuClientHttp
from shared.helper.HelperConfig import HelperConfig
from shared.models.menu import MenuCacheFile, MenuItem

HOUR_MS = 60 * 60 * 1000


def _normalize_name(name: str) -> str:
    decomposed = unicodedata.normalize("NFKD", name.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]", "", stripped)


def _average_price(item: MenuItem) -> float:
    if not item.platforms:
        return 0.0
    return sum(p.price for p in item.platforms) / len(item.platforms)


def merge_menu_items(items: list[MenuItem]) -> list[MenuItem]:
    """Fold items that are the same dish on different platforms into one entry.

    Two items match when their accent-free names and categories are equal and
    their average prices differ by less than one euro. The first occurrence
    keeps its position and collects the platform offers of later matches.
    """
    merged: list[MenuItem] = []
    for item in items:
        name = _normalize_name(item.name)
        match = next(
            (
                m for m in merged
                if _normalize_name(m.name) == name
                and m.category.lower() == item.category.lower()
                and abs(_average_price(m) - _average_price(item)) < 1
            ),
            None,
        )
        if match:
            match.platforms.extend(item.platforms)
        else:
            merged.append(item.model_copy(deep=True))
    return merged


class MenuCache:
    """File-backed cache of the aggregated delivery-platform menu.

    The cache file holds ``{items, timestamp, errors?}`` with timestamp in epoch
    milliseconds. It is stale once ``now - timestamp >= ttl``. There is no
    protection against concurrent writers.
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        menu_client: MenuClientHttp,
        clock: Callable[[], float] = time.time,
    ):
        self.logging = helper_config.get_logger()
        self.menu_client = menu_client
        self.cache_path = helper_config.get_string_val(
            "MENU_CACHE_PATH",
            default=os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "data", "menu-cache.json"),
        )
        self.ttl_ms = int(helper_config.get_number_val("MENU_CACHE_TTL_HOURS", default=12) * HOUR_MS)
        self.branches = helper_config.get_list_val(
            "MENU_BRANCHES", default=["seraing", "angleur", "saint-gilles", "wandre"]
        )
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def is_stale(self, cache: MenuCacheFile) -> bool:
        return self._now_ms() - cache.timestamp >= self.ttl_ms

    def read_cache(self) -> MenuCacheFile | None:
        """Load the cache file.

        Returns:
            MenuCacheFile | None: The parsed file, or None if it is missing or unreadable.
        """
        if not os.path.exists(self.cache_path):
            return None
        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                return MenuCacheFile.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            self.logging.warning("Menu cache read error, fetching fresh data: %s", e)
            return None

    def write_cache(self, cache: MenuCacheFile) -> None:
        os.makedirs(os.path.dirname(self.cache_path) or ".", exist_ok=True)
        with open(self.cache_path, "w", encoding="utf-8") as f:
            f.write(cache.model_dump_json(indent=2, exclude_none=True))

    async def do_refresh(self) -> MenuCacheFile:
        """Fetch every branch, merge the results and rewrite the cache file.

        A failing branch is recorded in ``errors`` and skipped.

        Returns:
            MenuCacheFile: The freshly written cache.
        """
        items: list[MenuItem] = []
        errors: list[str] = []
        for branch in self.branches:
            try:
                branch_items = await self.menu_client.do_fetch_branch_menu(branch)
            except Exception as e:
                self.logging.error("Failed to fetch menu for branch '%s': %s", branch, e)
                errors.append(f"Failed to fetch {branch}: {e}")
                continue
            for new_item in branch_items:
                existing = next((item for item in items if item.id == new_item.id), None)
                if existing:
                    existing.platforms.extend(new_item.platforms)
                else:
                    items.append(new_item)

        cache = MenuCacheFile(items=merge_menu_items(items), timestamp=self._now_ms(), errors=errors or None)
        self.write_cache(cache)
        self.logging.info("Cached %d menu items", len(cache.items), color="green")
        if errors:
            self.logging.warning("Errors during menu refresh: %s", errors)
        return cache

    async def do_get_menu(self, force_refresh: bool = False) -> MenuCacheFile:
        """Return the cached menu, refreshing it when missing, unreadable or stale.

        Args:
            force_refresh (bool): Skip the cache and fetch fresh data.

        Returns:
            MenuCacheFile: The cached or freshly fetched menu.
        """
        if not force_refresh:
            cache = self.read_cache()
            if cache is not None and not self.is_stale(cache):
                age_minutes = round((self._now_ms() - cache.timestamp) / 60000)
                self.logging.debug("Using cached menu (age: %d minutes)", age_minutes)
                return cache
        return await self.do_refresh()
