import pytest

from catalog.errors import UnknownFieldError, UnknownGroupError
from catalog.taxonomy import (
    CATEGORICAL_FIELDS, GROUP_PROFILES, PropertyTypeGroup,
    field_options_for, get_field, group_profile, list_groups, stored_types_for_group,
)

def test_every_group_has_stored_types_and_profile():
    for g in PropertyTypeGroup:
        assert stored_types_for_group(g)
        assert g in GROUP_PROFILES
    assert [p.group for p in list_groups()] == list(PropertyTypeGroup)

def test_group_to_stored_types():
    assert stored_types_for_group("houses-villas") == {"house", "villa"}
    assert stored_types_for_group("stores-offices") == {"office", "shop"}
    assert stored_types_for_group("apartments") == {"apartment"}
    assert stored_types_for_group(" Hotels-Motels ") == {"hotel"}

@pytest.mark.parametrize("group", ["flats", "", None, 42, ["apartments"]])
def test_unknown_group_raises(group):
    with pytest.raises(UnknownGroupError):
        stored_types_for_group(group)
    with pytest.raises(UnknownGroupError):
        group_profile(group)

def test_field_options_scoped_by_stored_type():
    ids = [o.id for o in field_options_for("apartment", "subtype")]
    assert ids[:2] == ["studio", "one-bedroom"]
    assert "all" not in ids
    assert [o.id for o in field_options_for("hotel", "subtype")][0] == "hotel"
    assert field_options_for("apartment", "hotel_category") == ()
    assert field_options_for("garage", "construction_type")[0].id == "open"

def test_option_ids_unique_and_sentinels_registered():
    for f in CATEGORICAL_FIELDS.values():
        assert len(f.ids) == len(set(f.ids)), f.name
        assert f.null_sentinels <= set(f.ids)
    assert get_field("hotel_category").null_sentinels == {"uncategorized", "unspecified"}
    assert get_field("agricultural_category").null_sentinels == {"unspecified"}

def test_get_field_unknown():
    with pytest.raises(UnknownFieldError):
        get_field("colour")
