"""
Test suite for the menu feed client and the file-backed menu cache.
"""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from services.menu.MenuCache import HOUR_MS, MenuCache, merge_menu_items
from shared.clients.menu.MenuClientHttp import MenuClientHttp
from shared.helper.HelperConfig import HelperConfig
from shared.models.menu import MenuCacheFile, MenuItem, PlatformPriceInfo

NOW = 1_700_000_000.0
NOW_MS = int(NOW * 1000)


def _item(item_id: str, name: str, price: float, platform: str = "ubereats", branch: str = "seraing", category: str = "Burgers") -> MenuItem:
    return MenuItem(
        id=item_id,
        name=name,
        category=category,
        platforms=[PlatformPriceInfo(platform=platform, branch=branch, url=f"https://{platform}.test/{item_id}", price=price)],
    )


def _cache(helper_config: HelperConfig, menu_client, now: float = NOW) -> MenuCache:
    return MenuCache(helper_config=helper_config, menu_client=menu_client, clock=lambda: now)


def _write_cache_file(cache: MenuCache, age_hours: float) -> None:
    cache.write_cache(MenuCacheFile(items=[_item("old", "Old Burger", 8.0)], timestamp=NOW_MS - int(age_hours * HOUR_MS)))


class TestMergeMenuItems:
    def test_merge_should_fold_same_dish_across_platforms(self) -> None:
        # Arrange
        items = [
            _item("u1", "Crème Brûlée", 4.5, platform="ubereats", category="Desserts"),
            _item("d1", "creme brulee", 4.9, platform="deliveroo", category="desserts"),
        ]

        # Act
        merged = merge_menu_items(items)

        # Assert
        assert len(merged) == 1
        assert merged[0].id == "u1"
        assert [p.platform for p in merged[0].platforms] == ["ubereats", "deliveroo"]

    def test_merge_should_keep_items_with_distant_prices_apart(self) -> None:
        merged = merge_menu_items([_item("a", "Tacos", 7.0), _item("b", "Tacos", 9.5, platform="takeaway")])

        assert [m.id for m in merged] == ["a", "b"]

    def test_merge_should_keep_items_from_other_categories_apart(self) -> None:
        merged = merge_menu_items([_item("a", "Classic", 7.0), _item("b", "Classic", 7.0, category="Tacos")])

        assert len(merged) == 2

    def test_merge_should_not_mutate_input_items(self) -> None:
        first = _item("a", "Frites", 3.0)

        merge_menu_items([first, _item("b", "Frites", 3.2, platform="deliveroo")])

        assert len(first.platforms) == 1


class TestMenuCache:
    async def test_get_menu_should_use_fresh_cache(self, helper_config: HelperConfig) -> None:
        # Arrange
        menu_client = AsyncMock()
        cache = _cache(helper_config, menu_client)
        _write_cache_file(cache, age_hours=1)

        # Act
        result = await cache.do_get_menu()

        # Assert
        assert [i.id for i in result.items] == ["old"]
        menu_client.do_fetch_branch_menu.assert_not_awaited()

    async def test_get_menu_should_refresh_stale_cache(self, helper_config: HelperConfig) -> None:
        # Arrange
        menu_client = AsyncMock()
        menu_client.do_fetch_branch_menu.return_value = [_item("new", "New Burger", 9.0)]
        cache = _cache(helper_config, menu_client)
        _write_cache_file(cache, age_hours=13)

        # Act
        result = await cache.do_get_menu()

        # Assert
        assert [i.id for i in result.items] == ["new"]
        assert result.timestamp == NOW_MS
        assert menu_client.do_fetch_branch_menu.await_count == 2

    def test_cache_should_be_stale_exactly_at_ttl(self, helper_config: HelperConfig) -> None:
        cache = _cache(helper_config, AsyncMock())

        assert cache.is_stale(MenuCacheFile(items=[], timestamp=NOW_MS - 12 * HOUR_MS)) is True
        assert cache.is_stale(MenuCacheFile(items=[], timestamp=NOW_MS - 12 * HOUR_MS + 1)) is False

    async def test_get_menu_should_refresh_when_file_is_corrupt(self, helper_config: HelperConfig) -> None:
        menu_client = AsyncMock()
        menu_client.do_fetch_branch_menu.return_value = []
        cache = _cache(helper_config, menu_client)
        _write_cache_file(cache, age_hours=1)
        with open(cache.cache_path, "w", encoding="utf-8") as f:
            f.write("{not json")

        result = await cache.do_get_menu()

        assert result.items == []
        menu_client.do_fetch_branch_menu.assert_awaited()

    async def test_force_refresh_should_skip_fresh_cache(self, helper_config: HelperConfig) -> None:
        menu_client = AsyncMock()
        menu_client.do_fetch_branch_menu.return_value = []
        cache = _cache(helper_config, menu_client)
        _write_cache_file(cache, age_hours=1)

        await cache.do_get_menu(force_refresh=True)

        assert menu_client.do_fetch_branch_menu.await_count == 2

    async def test_refresh_should_record_failing_branch_and_continue(self, helper_config: HelperConfig) -> None:
        # Arrange
        async def fetch(branch: str) -> list[MenuItem]:
            if branch == "angleur":
                raise Exception("feed down")
            return [_item("s1", "Classic", 7.0)]

        menu_client = AsyncMock()
        menu_client.do_fetch_branch_menu.side_effect = fetch
        cache = _cache(helper_config, menu_client)

        # Act
        result = await cache.do_refresh()

        # Assert
        assert [i.id for i in result.items] == ["s1"]
        assert result.errors == ["Failed to fetch angleur: feed down"]
        with open(cache.cache_path, "r", encoding="utf-8") as f:
            on_disk = json.load(f)
        assert on_disk["timestamp"] == NOW_MS
        assert on_disk["errors"] == ["Failed to fetch angleur: feed down"]

    async def test_refresh_should_combine_same_item_id_across_branches(self, helper_config: HelperConfig) -> None:
        async def fetch(branch: str) -> list[MenuItem]:
            return [_item("classic", "Classic", 7.0, branch=branch)]

        menu_client = AsyncMock()
        menu_client.do_fetch_branch_menu.side_effect = fetch
        cache = _cache(helper_config, menu_client)

        result = await cache.do_refresh()

        assert len(result.items) == 1
        assert [p.branch for p in result.items[0].platforms] == ["seraing", "angleur"]
        assert result.errors is None

    def test_cache_should_read_branches_and_ttl_from_config(self, helper_config: HelperConfig) -> None:
        cache = _cache(helper_config, AsyncMock())

        assert cache.branches == ["seraing", "angleur"]
        assert cache.ttl_ms == 12 * HOUR_MS


class TestMenuClientHttp:
    async def test_fetch_should_query_branch(self, helper_config: HelperConfig, make_transport, recorded_requests) -> None:
        # Arrange
        client = MenuClientHttp(helper_config=helper_config)
        await client.boot(transport=make_transport(
            lambda request: httpx.Response(200, json=[_item("s1", "Classic", 7.0).model_dump()])
        ))

        # Act
        items = await client.do_fetch_branch_menu("seraing")
        await client.close()

        # Assert
        assert items[0].name == "Classic"
        assert recorded_requests[0].url.path == "/menu"
        assert recorded_requests[0].url.params["branch"] == "seraing"

    async def test_fetch_should_reject_non_list(self, helper_config: HelperConfig, make_transport) -> None:
        client = MenuClientHttp(helper_config=helper_config)
        await client.boot(transport=make_transport(lambda request: httpx.Response(200, json={"items": []})))

        with pytest.raises(ValueError):
            await client.do_fetch_branch_menu("seraing")
        await client.close()
