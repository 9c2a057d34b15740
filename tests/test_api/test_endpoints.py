"""
End-to-end tests through the HTTP surface.

The lifespan is not run: the database dependency and upstream clients are
replaced with the test database and in-process fakes.
"""

import httpx
import pytest

from canteen_registry.core.exceptions import UpstreamLookupFailure
from canteen_registry.db.session import get_db
from canteen_registry.main import app
from canteen_registry.schemas.canteen import Coordinates
from canteen_registry.schemas.company import CompanySearchHit

PREFIX = "/api/v1"
KEY = "storgata-1_0155_oslo"


class FakeDirectory:
    def __init__(self, companies):
        self.companies = companies
        self.fail = False

    async def search_by_name(self, query):
        if self.fail:
            raise UpstreamLookupFailure("down")
        return [
            CompanySearchHit(org_id=c.org_id, name=c.name, address_text=c.address.street)
            for c in self.companies.values()
            if query.lower() in c.name.lower()
        ]

    async def get_by_id(self, org_id):
        return self.companies.get(org_id)


class FakeGeocoder:
    async def geocode(self, street, postal_code, city):
        return Coordinates(lat=59.91, lon=10.75)


@pytest.fixture
async def client(session_factory, make_company):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    directory = FakeDirectory({
        "111": make_company("111", name="Alpha AS"),
        "222": make_company("222", name="Beta AS"),
    })
    app.dependency_overrides[get_db] = override_get_db
    app.state.company_directory = directory
    app.state.geocoder = FakeGeocoder()
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            http.directory = directory
            yield http
    finally:
        app.dependency_overrides.clear()
        del app.state.company_directory
        del app.state.geocoder


async def test_health(client):
    assert (await client.get(f"{PREFIX}/health")).json() == {"status": "ok"}


async def test_company_search(client):
    assert (await client.get(f"{PREFIX}/companies", params={"query": "a"})).json() == []
    hits = (await client.get(f"{PREFIX}/companies", params={"query": "beta"})).json()
    assert [h["org_id"] for h in hits] == ["222"]


async def test_company_search_upstream_failure(client):
    client.directory.fail = True
    response = await client.get(f"{PREFIX}/companies", params={"query": "beta"})
    assert response.status_code == 502
    assert response.json()["error"] == "upstream_lookup_failure"


async def test_select_flow(client):
    first = (await client.post(f"{PREFIX}/canteens/select", json={"org_id": "111"})).json()
    assert first["action"] == "create_first"
    assert first["canteen_key"] == KEY

    offered = (await client.post(f"{PREFIX}/canteens/select", json={"org_id": "222"})).json()
    assert offered["action"] == "choose"
    assert [c["address_key"] for c in offered["candidates"]] == [KEY]

    created = (
        await client.post(f"{PREFIX}/canteens/select", json={"org_id": "222", "choice": "new"})
    ).json()
    assert created == {
        "action": "create_additional",
        "base_address_key": KEY,
        "canteen_key": f"{KEY}_2",
        "candidates": [],
    }


async def test_select_unknown_company(client):
    response = await client.post(f"{PREFIX}/canteens/select", json={"org_id": "999"})
    assert response.status_code == 422
    assert response.json()["error"] == "company_missing_address"


async def test_review_lifecycle(client):
    await client.post(f"{PREFIX}/canteens/select", json={"org_id": "111"})

    submitted = await client.post(
        f"{PREFIX}/canteens/{KEY}/reviews",
        json={"client_id": "c1", "rating": 3, "comment": "ok", "serving_type": "buffet"},
    )
    assert submitted.json()["created"] is True
    review_id = submitted.json()["review_id"]

    duplicate = await client.post(f"{PREFIX}/canteens/{KEY}/reviews", json={"client_id": "c1", "rating": 1})
    assert duplicate.json()["duplicate"] is True

    mine = await client.get(f"{PREFIX}/canteens/{KEY}/reviews/mine", params={"client_id": "c1"})
    assert mine.json()["id"] == review_id
    none = await client.get(f"{PREFIX}/canteens/{KEY}/reviews/mine", params={"client_id": "c2"})
    assert none.status_code == 204

    edited = await client.put(
        f"{PREFIX}/canteens/{KEY}/reviews/{review_id}", json={"client_id": "c1", "rating": 5}
    )
    assert edited.json()["rating"] == 5

    stolen = await client.put(
        f"{PREFIX}/canteens/{KEY}/reviews/{review_id}", json={"client_id": "c2", "rating": 1}
    )
    assert stolen.status_code == 403

    detail = (await client.get(f"{PREFIX}/canteens/{KEY}")).json()
    assert detail["canteen"]["average_rating"] == 5.0
    assert detail["canteen"]["total_reviews"] == 1
    assert detail["canteen"]["info"]["serving_type"]["votes"] == {"buffet": 0}
    assert [r["id"] for r in detail["reviews"]] == [review_id]
    assert detail["coordinates"] == {"lat": 59.91, "lon": 10.75}

    top = (await client.get(f"{PREFIX}/canteens/top")).json()
    assert [c["address_key"] for c in top] == [KEY]
    recent = (await client.get(f"{PREFIX}/reviews/recent")).json()
    assert recent[0]["address_key"] == KEY


async def test_invalid_rating_rejected(client):
    await client.post(f"{PREFIX}/canteens/select", json={"org_id": "111"})
    response = await client.post(f"{PREFIX}/canteens/{KEY}/reviews", json={"client_id": "c1", "rating": 9})
    assert response.status_code == 422


async def test_missing_canteen(client):
    assert (await client.get(f"{PREFIX}/canteens/nope")).status_code == 404
    response = await client.post(f"{PREFIX}/canteens/nope/reviews", json={"client_id": "c1", "rating": 3})
    assert response.status_code == 404


async def test_feedback(client):
    assert (await client.post(f"{PREFIX}/feedback", json={"message": "Nice"})).status_code == 201
    assert (await client.post(f"{PREFIX}/feedback", json={"message": " "})).status_code == 400


@pytest.mark.parametrize("path", ["/canteens/top", "/reviews/recent"])
@pytest.mark.parametrize("limit", [0, -1, 51])
async def test_list_limit_out_of_range_rejected(client, path, limit):
    response = await client.get(f"{PREFIX}{path}", params={"limit": limit})
    assert response.status_code == 422


async def test_list_limit_caps_results(client):
    await client.post(f"{PREFIX}/canteens/select", json={"org_id": "111"})
    await client.post(f"{PREFIX}/canteens/select", json={"org_id": "222", "choice": "new"})
    top = (await client.get(f"{PREFIX}/canteens/top", params={"limit": 1})).json()
    assert len(top) == 1


def test_app_left_clean_after_client_tests():
    # Runs last in this module; earlier tests used the client fixture
    assert get_db not in app.dependency_overrides
    assert not hasattr(app.state, "company_directory")
    assert not hasattr(app.state, "geocoder")
