"""
Tests for the upstream lookup clients and their cache.

HTTP is replaced by overriding the clients' ``_fetch_json``.
"""

import pytest

from canteen_registry.core.cache import TTLCache
from canteen_registry.core.exceptions import UpstreamLookupFailure
from canteen_registry.schemas.canteen import Coordinates
from canteen_registry.services.company_directory import CompanyDirectory, parse_company, parse_search_hits
from canteen_registry.services.geocoding import Geocoder, parse_coordinates

ENTITY = {
    "organisasjonsnummer": "923609016",
    "navn": "EQUINOR ASA",
    "forretningsadresse": {
        "adresse": ["c/o Resepsjonen", "Forusbeen 50"],
        "postnummer": "4035",
        "poststed": "STAVANGER",
        "kommune": "STAVANGER",
        "kommunenummer": "1103",
    },
}


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_cache_expires_entries():
    clock = FakeClock()
    cache = TTLCache(maxsize=10, ttl=60, clock=clock)
    cache.set("a", 1)
    clock.now = 59
    assert cache.get("a") == 1
    clock.now = 60
    assert cache.get("a") is None
    assert "a" not in cache


def test_cache_evicts_oldest_when_full():
    cache = TTLCache(maxsize=2, ttl=60)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("c") == 3


def test_cache_rejects_zero_size():
    with pytest.raises(ValueError):
        TTLCache(maxsize=0, ttl=1)


def test_parse_company_skips_care_of_line():
    company = parse_company(ENTITY)
    assert company.org_id == "923609016"
    assert company.address.street == "Forusbeen 50"
    assert company.address.postal_code == "4035"
    assert company.address.municipality_number == "1103"


def test_parse_company_falls_back_to_location_address():
    entity = {
        "organisasjonsnummer": "1",
        "navn": "X",
        "beliggenhetsadresse": {"adresse": ["Storgata 1"], "postnummer": "0155", "poststed": "OSLO"},
    }
    assert parse_company(entity).address.city == "OSLO"


def test_parse_company_without_address():
    assert parse_company({"organisasjonsnummer": "1", "navn": "X"}).address is None


def test_parse_search_hits():
    payload = {
        "_embedded": {
            "enheter": [
                ENTITY,
                {"organisasjonsnummer": "2", "navn": "NO ADDRESS AS"},
                {
                    "organisasjonsnummer": "3",
                    "navn": "POSTBOX AS",
                    "forretningsadresse": {"adresse": [], "postnummer": "0101", "poststed": "OSLO"},
                },
            ]
        }
    }
    hits = parse_search_hits(payload)
    assert [h.org_id for h in hits] == ["923609016", "3"]
    assert hits[0].address_text == "c/o Resepsjonen, Forusbeen 50, 4035 STAVANGER"
    assert hits[1].address_text == "0101 OSLO"
    assert parse_search_hits({}) == []


class StubDirectory(CompanyDirectory):
    def __init__(self, responses):
        super().__init__(session=None, cache=TTLCache(maxsize=10, ttl=300))
        self.responses = responses
        self.requests = []

    async def _fetch_json(self, path, params=None):
        self.requests.append(path)
        response = self.responses[path]
        if isinstance(response, Exception):
            raise response
        return response


async def test_get_by_id_cached():
    directory = StubDirectory({"/enheter/923609016": ENTITY})
    first = await directory.get_by_id("923609016")
    second = await directory.get_by_id("923609016")
    assert first == second
    assert directory.requests == ["/enheter/923609016"]


async def test_get_by_id_not_found():
    directory = StubDirectory({"/enheter/1": None})
    assert await directory.get_by_id("1") is None


async def test_search_cached_case_insensitively():
    directory = StubDirectory({"/enheter": {"_embedded": {"enheter": [ENTITY]}}})
    await directory.search_by_name("Equinor")
    hits = await directory.search_by_name("EQUINOR")
    assert [h.name for h in hits] == ["EQUINOR ASA"]
    assert directory.requests == ["/enheter"]


async def test_directory_failure_surfaces():
    directory = StubDirectory({"/enheter": UpstreamLookupFailure("down")})
    with pytest.raises(UpstreamLookupFailure):
        await directory.search_by_name("Equinor")


def test_parse_coordinates():
    payload = {"adresser": [{"representasjonspunkt": {"lat": 58.89, "lon": 5.71}}]}
    assert parse_coordinates(payload) == Coordinates(lat=58.89, lon=5.71)
    assert parse_coordinates({"adresser": []}) is None
    assert parse_coordinates({"adresser": [{"representasjonspunkt": {"lat": 1}}]}) is None


class StubGeocoder(Geocoder):
    def __init__(self, response):
        super().__init__(session=None, cache=TTLCache(maxsize=10, ttl=3600))
        self.response = response
        self.queries = []

    async def _fetch_json(self, query):
        self.queries.append(query)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


async def test_geocode_cached():
    geocoder = StubGeocoder({"adresser": [{"representasjonspunkt": {"lat": 58.89, "lon": 5.71}}]})
    first = await geocoder.geocode("Forusbeen 50", "4035", "Stavanger")
    await geocoder.geocode("Forusbeen 50", "4035", "STAVANGER")
    assert first == Coordinates(lat=58.89, lon=5.71)
    assert geocoder.queries == ["Forusbeen 50 4035 Stavanger"]


async def test_geocode_failure_degrades_to_none():
    geocoder = StubGeocoder(ConnectionError("timeout"))
    assert await geocoder.geocode("Forusbeen 50", "4035", "Stavanger") is None


async def test_geocode_without_street():
    geocoder = StubGeocoder(None)
    assert await geocoder.geocode("", "4035", "Stavanger") is None
    assert geocoder.queries == []
