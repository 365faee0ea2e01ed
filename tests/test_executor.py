import json

import pytest

from catalog.compiler import compile_filters
from catalog.errors import AppError
from catalog.executor import InMemoryExecutor

ROWS = [
    {"id": 1, "type": "hotel", "sale_or_rent": "rent", "hotel_category": None, "bed_base": None,
     "features": ["pool", "spa"], "created_at": "2025-03-01T10:00:00Z"},
    {"id": 2, "type": "hotel", "sale_or_rent": "sale", "hotel_category": "three-stars", "bed_base": 30,
     "features": ["pool"], "price_per_sqm": 900, "created_at": "2025-05-01T10:00:00Z"},
    {"id": 3, "type": "hotel", "sale_or_rent": "sale", "hotel_category": "five-stars", "bed_base": 120,
     "features": [], "price_per_sqm": 1500, "created_at": "2025-04-01T10:00:00Z"},
    {"id": 4, "type": "apartment", "sale_or_rent": "sale", "subtype": "Едностаен", "area_sqm": 38,
     "price": 70000, "features": ["elevator", "parking"], "created_at": "2025-06-01T10:00:00Z"},
    {"id": 5, "type": "apartment", "sale_or_rent": "sale", "subtype": "studio", "area_sqm": 42,
     "price": 82000, "features": ["elevator"], "created_at": "2025-01-15T10:00:00Z"},
    {"id": 6, "type": "villa", "sale_or_rent": "sale", "created_at": None},
]

@pytest.fixture
def executor():
    return InMemoryExecutor(ROWS)

def ids(page):
    return [r["id"] for r in page.items]

def test_orders_most_recent_first(executor):
    page = executor.execute(compile_filters("hotels-motels", {}), limit=10)
    assert ids(page) == [2, 3, 1]
    assert page.total == 3

def test_legacy_and_english_subtypes_both_match(executor):
    plan = compile_filters("apartments", {"apartmentSubtypes": ["studio"]})
    assert ids(executor.execute(plan, limit=10)) == [4, 5]

def test_category_or_null(executor):
    plan = compile_filters("hotels-motels", {"selectedCategories": ["three-stars", "uncategorized"]})
    assert ids(executor.execute(plan, limit=10)) == [2, 1]

def test_features_must_all_be_present(executor):
    plan = compile_filters("apartments", {"selectedFeatures": ["elevator", "parking"]})
    assert ids(executor.execute(plan, limit=10)) == [4]

def test_rent_hotels_are_not_excluded_by_price_per_sqm(executor):
    plan = compile_filters("hotels-motels", {"baseRoute": "/rent/search", "pricePerSqmFrom": 50})
    assert ids(executor.execute(plan, limit=10)) == [1]

def test_ranges_are_inclusive_and_skip_missing_values(executor):
    plan = compile_filters("hotels-motels", {"bedBaseFrom": 30, "bedBaseTo": 120})
    assert ids(executor.execute(plan, limit=10)) == [2, 3]
    plan = compile_filters("hotels-motels", {"isBedBaseNotProvided": True, "bedBaseFrom": 30})
    assert ids(executor.execute(plan, limit=10)) == [1]

def test_pagination(executor):
    plan = compile_filters("hotels-motels", {})
    page = executor.execute(plan, limit=2, offset=1)
    assert ids(page) == [3, 1]
    assert (page.total, page.limit, page.offset) == (3, 2, 1)

def test_rows_without_created_at_sort_last():
    ex = InMemoryExecutor([{"id": "a", "created_at": None}, {"id": "b", "created_at": "2024-01-01"}])
    assert ids(ex.execute(compile_filters("castles", {}), limit=5)) == ["b", "a"]

def test_from_json_file(tmp_path):
    path = tmp_path / "listings.json"
    path.write_text(json.dumps(ROWS), encoding="utf-8")
    ex = InMemoryExecutor.from_json_file(path)
    assert len(ex.rows) == len(ROWS)

def test_from_json_file_rejects_non_array(tmp_path):
    path = tmp_path / "listings.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(AppError):
        InMemoryExecutor.from_json_file(path)

def test_features_stored_as_scalar_never_match():
    ex = InMemoryExecutor([
        {"id": "s", "features": "pool", "created_at": "2025-01-02"},
        {"id": "n", "features": 3, "created_at": "2025-01-01"},
        {"id": "l", "features": ["pool"], "created_at": "2024-12-31"},
    ])
    plan = compile_filters("castles", {"selectedFeatures": ["p"]})
    assert ids(ex.execute(plan, limit=5)) == []
    plan = compile_filters("castles", {"selectedFeatures": ["pool"]})
    assert ids(ex.execute(plan, limit=5)) == ["l"]
