"""Address key derivation.

"Forusbeen 50", "4035", "STAVANGER" -> "forusbeen-50_4035_stavanger"
"""

from __future__ import annotations

import re

from canteen_registry.core.exceptions import CompanyMissingAddress, InvalidAddress
from canteen_registry.schemas.company import Company

_CARE_OF = re.compile(r"^c/o\s+", re.IGNORECASE)
# Underscore separates key parts, so it is stripped along with punctuation
_DISALLOWED = re.compile(r"[^\w\s-]|_")
_WHITESPACE = re.compile(r"\s+")


def _slug(value: str) -> str:
    cleaned = _DISALLOWED.sub("", value.strip().lower())
    return _WHITESPACE.sub("-", cleaned.strip())


def canonicalize(street: str | None, postal_code: str | None, city: str | None) -> str:
    """Turn an address triple into a stable key."""
    street = (street or "").strip()
    postal_code = (postal_code or "").strip()
    city = (city or "").strip()
    if not street or not postal_code or not city:
        raise InvalidAddress("Missing address components")

    street_slug = _slug(_CARE_OF.sub("", street))
    city_slug = _slug(city)
    if not street_slug or not city_slug:
        raise InvalidAddress(f"Address has no usable characters: {street!r}, {city!r}")

    return f"{street_slug}_{postal_code}_{city_slug}"


def canonicalize_company_address(company: Company) -> str:
    """Base address key for a directory record."""
    if company.address is None:
        raise CompanyMissingAddress(company.org_id)
    addr = company.address
    try:
        return canonicalize(addr.street, addr.postal_code, addr.city)
    except InvalidAddress as exc:
        raise CompanyMissingAddress(company.org_id) from exc
