import pytest
from fastapi.testclient import TestClient

from catalog.executor import InMemoryExecutor
from catalog.main import app, get_executor

ROWS = [
    {"id": 1, "type": "apartment", "sale_or_rent": "sale", "subtype": "Двустаен", "price": 95000,
     "created_at": "2025-02-01T00:00:00Z"},
    {"id": 2, "type": "apartment", "sale_or_rent": "rent", "subtype": "one-bedroom", "price": 600,
     "created_at": "2025-03-01T00:00:00Z"},
    {"id": 3, "type": "house", "sale_or_rent": "sale", "created_at": "2025-04-01T00:00:00Z"},
]

@pytest.fixture
def client():
    app.dependency_overrides[get_executor] = lambda: InMemoryExecutor(ROWS)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"]

def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"

def test_plan_endpoint(client):
    r = client.post("/search/apartments/plan", params={"baseRoute": "/sale/search"},
                    json={"apartmentSubtypes": ["one-bedroom"], "pricePerSqmFrom": 0})
    assert r.status_code == 200
    body = r.json()
    assert body["group"] == "apartments"
    assert body["sale_or_rent"] == "sale"
    assert body["predicates"][0] == {
        "kind": "in", "field": "type", "value": None, "values": ["apartment"],
        "lower": None, "upper": None, "clauses": [],
    }
    assert body["predicates"][2]["values"] == ["one-bedroom", "Двустаен"]

def test_plan_for_unknown_group_still_compiles(client):
    r = client.post("/search/castles/plan", json={"priceTo": 1000})
    assert r.status_code == 200
    assert [p["field"] for p in r.json()["predicates"]] == ["price"]

def test_non_object_payload_is_rejected(client):
    r = client.post("/search/apartments/plan", json=["studio"])
    assert r.status_code == 400
    assert r.json()["error"] == "FILTER_PAYLOAD_ERROR"

def test_malformed_json_is_rejected(client):
    r = client.post("/search/apartments/plan", content=b"{not json",
                    headers={"Content-Type": "application/json"})
    assert r.status_code == 422
    assert r.json()["error"] == "VALIDATION_ERROR"

def test_search_runs_plan(client):
    r = client.post("/search/apartments", params={"baseRoute": "/sale/search"},
                    json={"apartmentSubtypes": ["one-bedroom"]})
    assert r.status_code == 200
    page = r.json()["page"]
    assert [row["id"] for row in page["items"]] == [1]
    assert page["limit"] == 20

def test_search_page_size_is_capped(client):
    r = client.post("/search/apartments", params={"limit": 1000}, json={})
    assert r.status_code == 200
    assert r.json()["page"]["limit"] == 100
    assert r.json()["page"]["total"] == 2

def test_taxonomy_endpoints(client):
    groups = client.get("/taxonomy/groups").json()
    assert [g["group"] for g in groups][:2] == ["apartments", "houses-villas"]
    field = client.get("/taxonomy/fields/hotel_category").json()
    assert field["column"] == "hotel_category"
    assert field["options"][0] == {"id": "uncategorized", "legacy_labels": ["Не е категоризиран"]}
    r = client.get("/taxonomy/fields/colour")
    assert r.status_code == 404
    assert r.json()["error"] == "UNKNOWN_FIELD"

def test_oversized_number_is_ignored(client):
    r = client.post("/search/apartments/plan", content=b'{"priceTo": 1' + b"0" * 400 + b"}",
                    headers={"Content-Type": "application/json"})
    assert r.status_code == 200
    assert [p["field"] for p in r.json()["predicates"]] == ["type"]
