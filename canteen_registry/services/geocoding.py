"""Address geocoding via Kartverket's address search (Geonorge).

Best effort only: coordinates are used for the map, never for identity, so
every failure degrades to None.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import aiohttp

from canteen_registry.core.cache import TTLCache
from canteen_registry.core.config import settings
from canteen_registry.schemas.canteen import Coordinates

logger = logging.getLogger(__name__)


def parse_coordinates(payload: dict[str, Any]) -> Optional[Coordinates]:
    addresses = payload.get("adresser") or []
    if not addresses:
        return None
    point = addresses[0].get("representasjonspunkt") or {}
    if point.get("lat") is None or point.get("lon") is None:
        return None
    return Coordinates(lat=point["lat"], lon=point["lon"])


class Geocoder:
    def __init__(
        self,
        session: aiohttp.ClientSession,
        cache: TTLCache,
        base_url: str | None = None,
    ) -> None:
        self._session = session
        self._cache = cache
        self._base_url = base_url or settings.geocoder_url

    async def _fetch_json(self, query: str) -> Optional[dict[str, Any]]:
        async with self._session.get(
            self._base_url,
            params={"sok": query, "fuzzy": "true", "treffPerSide": 1},
            timeout=aiohttp.ClientTimeout(total=settings.geocoder_timeout_seconds),
        ) as response:
            if response.status != 200:
                return None
            return await response.json()

    async def geocode(self, street: str | None, postal_code: str | None, city: str | None) -> Optional[Coordinates]:
        if not street:
            return None
        query = " ".join(part for part in (street, postal_code, city) if part)
        cache_key = f"geo:{query.lower()}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            payload = await self._fetch_json(query)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Geocoding failed for %r: %s", query, exc)
            return None
        if payload is None:
            return None

        coordinates = parse_coordinates(payload)
        if coordinates is not None:
            self._cache.set(cache_key, coordinates)
        return coordinates
