"""Client for the business register (Brønnøysundregistrene, Enhetsregisteret)."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Optional

import aiohttp

from canteen_registry.core.cache import TTLCache
from canteen_registry.core.config import settings
from canteen_registry.core.exceptions import UpstreamLookupFailure
from canteen_registry.schemas.company import Company, CompanyAddress, CompanySearchHit

logger = logging.getLogger(__name__)

_CARE_OF_LINE = re.compile(r"^c/o\s", re.IGNORECASE)


def _address_block(entity: dict[str, Any]) -> Optional[dict[str, Any]]:
    # Business address first, location address as fallback
    return entity.get("forretningsadresse") or entity.get("beliggenhetsadresse")


def parse_search_hits(payload: dict[str, Any]) -> list[CompanySearchHit]:
    """Search response -> hits; entities without any address are skipped."""
    entities = (payload.get("_embedded") or {}).get("enheter") or []
    hits = []
    for entity in entities:
        addr = _address_block(entity)
        if not addr:
            continue
        street = ", ".join(addr.get("adresse") or [])
        place = f"{addr.get('postnummer') or ''} {addr.get('poststed') or ''}"
        address_text = f"{street}, {place}" if street else place
        hits.append(
            CompanySearchHit(
                org_id=entity["organisasjonsnummer"],
                name=entity.get("navn") or "",
                address_text=address_text.strip(),
            )
        )
    return hits


def parse_company(entity: dict[str, Any]) -> Company:
    """Entity response -> Company; ``address`` is None when the register has none."""
    addr = _address_block(entity)
    if not addr:
        return Company(org_id=entity["organisasjonsnummer"], name=entity.get("navn") or "")

    lines = addr.get("adresse") or []
    street = next((line for line in lines if not _CARE_OF_LINE.match(line)), lines[0] if lines else "")
    return Company(
        org_id=entity["organisasjonsnummer"],
        name=entity.get("navn") or "",
        address=CompanyAddress(
            street=street,
            postal_code=addr.get("postnummer") or "",
            city=addr.get("poststed") or "",
            municipality=addr.get("kommune") or "",
            municipality_number=addr.get("kommunenummer") or "",
        ),
    )


class CompanyDirectory:
    """Company lookups with a per-instance TTL cache.

    Network and service errors surface as ``UpstreamLookupFailure``.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        cache: TTLCache,
        base_url: str | None = None,
    ) -> None:
        self._session = session
        self._cache = cache
        self._base_url = (base_url or settings.company_directory_url).rstrip("/")

    async def _fetch_json(self, path: str, params: dict[str, Any] | None = None) -> Optional[dict[str, Any]]:
        """GET a JSON document; None on 404."""
        url = f"{self._base_url}{path}"
        try:
            async with self._session.get(
                url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=settings.http_timeout_seconds),
            ) as response:
                if response.status == 404:
                    return None
                if response.status != 200:
                    raise UpstreamLookupFailure(f"Company directory returned {response.status}")
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Company directory request failed: %s", exc)
            raise UpstreamLookupFailure("Company directory unavailable") from exc

    async def search_by_name(self, query: str) -> list[CompanySearchHit]:
        cache_key = f"search:{query.lower()}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        payload = await self._fetch_json(
            "/enheter",
            params={
                "navn": query,
                "fraAntallAnsatte": settings.company_directory_min_employees,
                "size": settings.company_directory_page_size,
            },
        )
        hits = parse_search_hits(payload or {})
        self._cache.set(cache_key, hits)
        return hits

    async def get_by_id(self, org_id: str) -> Optional[Company]:
        cache_key = f"company:{org_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        entity = await self._fetch_json(f"/enheter/{org_id}")
        if entity is None:
            return None
        company = parse_company(entity)
        # Records without an address are not cached so a later fix shows up
        if company.address is not None:
            self._cache.set(cache_key, company)
        return company
