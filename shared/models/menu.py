"""Pydantic models for the aggregated delivery-platform menu and its cache file."""

from typing import Literal

from pydantic import BaseModel


class PlatformPriceInfo(BaseModel):
    platform: Literal["ubereats", "deliveroo", "takeaway"]
    branch: str
    url: str
    price: float
    currency: str = "EUR"
    delivery_fee: float | None = None
    min_order: float | None = None


class MenuItem(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str
    tags: list[str] = []
    image_url: str | None = None
    platforms: list[PlatformPriceInfo] = []


class MenuCacheFile(BaseModel):
    """On-disk cache of the menu. timestamp is epoch milliseconds of the fetch."""

    items: list[MenuItem]
    timestamp: int
    errors: list[str] | None = None
