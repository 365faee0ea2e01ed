import pytest

from catalog.normalizer import expand_for_storage_match, expand_many, normalize, normalize_many
from catalog.taxonomy import CATEGORICAL_FIELDS

def test_ids_are_self_normalizing():
    for name, f in CATEGORICAL_FIELDS.items():
        for c in f.ids:
            assert normalize(name, c) == c

def test_expansion_normalizes_back_to_id():
    for name, f in CATEGORICAL_FIELDS.items():
        for c in f.ids:
            expanded = expand_for_storage_match(name, c)
            assert expanded[0] == c
            assert all(normalize(name, v) == c for v in expanded)

def test_normalize_is_idempotent():
    for token in ["Двустаен", "studio", "ТАВАН", "  Мезонет ", "penthouse"]:
        first = normalize("apartment_subtype", token)
        if first is not None:
            assert normalize("apartment_subtype", first) == first

@pytest.mark.parametrize("token,expected", [
    ("Едностаен", "studio"),
    ("едностаен", "studio"),
    ("ателие/студио", "atelier"),
    ("one-bedroom", "one-bedroom"),
    ("penthouse", None),
    ("all", None),
    ("", None),
    (None, None),
])
def test_normalize_apartment_subtypes(token, expected):
    assert normalize("apartment_subtype", token) == expected

def test_normalize_is_per_field():
    assert normalize("hotel_type", "Хотел") == "hotel"
    assert normalize("apartment_subtype", "Хотел") is None
    assert normalize("no_such_field", "studio") is None

def test_normalize_many_keeps_order_and_reports_dropped():
    ids, dropped = normalize_many("apartment_subtype", ["Двустаен", "studio", "one-bedroom", "loft"])
    assert ids == ["one-bedroom", "studio"]
    assert dropped == ["loft"]

def test_expand_many_unions_without_duplicates():
    assert expand_many("apartment_subtype", ["studio", "one-bedroom", "studio"]) == [
        "studio", "Едностаен", "one-bedroom", "Двустаен",
    ]
    assert expand_for_storage_match("apartment_subtype", "loft") == ["loft"]
