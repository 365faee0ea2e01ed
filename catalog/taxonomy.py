# Static taxonomy of the catalog: property-type groups, stored types and the
# categorical vocabularies each stored type carries.
#
# Tables follow the `{canonical_id: [legacy labels]}` shape. Legacy labels are
# the Bulgarian strings that older admin forms wrote straight into the store.

from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict

from .errors import TaxonomyError, UnknownFieldError, UnknownGroupError

class PropertyTypeGroup(str, Enum):
    APARTMENTS = "apartments"
    HOUSES_VILLAS = "houses-villas"
    STORES_OFFICES = "stores-offices"
    BUILDING_PLOTS = "building-plots"
    AGRICULTURAL_LAND = "agricultural-land"
    WAREHOUSES_INDUSTRIAL = "warehouses-industrial"
    GARAGES_PARKING = "garages-parking"
    HOTELS_MOTELS = "hotels-motels"
    RESTAURANTS = "restaurants"
    REPLACE_REAL_ESTATES = "replace-real-estates"
    BUY_REAL_ESTATES = "buy-real-estates"
    OTHER_REAL_ESTATES = "other-real-estates"

STORED_TYPES_BY_GROUP: dict[PropertyTypeGroup, tuple[str, ...]] = {
    PropertyTypeGroup.APARTMENTS: ("apartment",),
    PropertyTypeGroup.HOUSES_VILLAS: ("house", "villa"),
    PropertyTypeGroup.STORES_OFFICES: ("office", "shop"),
    PropertyTypeGroup.BUILDING_PLOTS: ("land",),
    PropertyTypeGroup.AGRICULTURAL_LAND: ("agricultural",),
    PropertyTypeGroup.WAREHOUSES_INDUSTRIAL: ("warehouse",),
    PropertyTypeGroup.GARAGES_PARKING: ("garage",),
    PropertyTypeGroup.HOTELS_MOTELS: ("hotel",),
    PropertyTypeGroup.RESTAURANTS: ("restaurant",),
    PropertyTypeGroup.REPLACE_REAL_ESTATES: ("replace-real-estates",),
    PropertyTypeGroup.BUY_REAL_ESTATES: ("buy-real-estates",),
    PropertyTypeGroup.OTHER_REAL_ESTATES: ("other-real-estates",),
}

STORED_TYPES: frozenset[str] = frozenset(t for types in STORED_TYPES_BY_GROUP.values() for t in types)

RESIDENTIAL = ("apartment", "house", "villa")
COMMERCIAL = ("office", "shop")

# ========== VOCABULARIES ==========
UNSPECIFIED_LABEL = "Не е посочено"

APARTMENT_SUBTYPES = {
    "studio": ["Едностаен"],
    "one-bedroom": ["Двустаен"],
    "two-bedroom": ["Тристаен"],
    "multi-bedroom": ["Многостаен"],
    "maisonette": ["Мезонет"],
    "atelier": ["Ателие/Студио"],
    "attic": ["Таван"],
}

HOUSE_TYPES = {
    "one-floor": ["Едноетажна къща"],
    "two-floor": ["Двуетажна къща"],
    "three-floor": ["Триетажна къща"],
    "house-floor": ["Етаж от къща"],
    "four-plus-floor": ["Четириетажна+"],
    "not-specified": [UNSPECIFIED_LABEL],
}

COMMERCIAL_TYPES = {
    "store": ["Магазин"],
    "office": ["Офис"],
    "cabinet": ["Кабинет"],
    "beauty-salon": ["Салон за красота"],
    "sport": ["Спорт"],
    "other": ["Друго"],
}

WAREHOUSE_TYPES = {
    "warehouse": ["Склад"],
    "industrial-premise": ["Промишлено помещение"],
    "farm": ["Ферма"],
    "factory": ["Фабрика"],
    "service": ["Сервиз"],
    "car-wash": ["Автомивка"],
    "gas-station": ["Бензиностанция"],
    "hall": ["Зала"],
    "other": ["Друго"],
}

GARAGE_TYPES = {
    "garage-standalone": ["Гараж (самостоятелен)"],
    "parking-space": ["Паркомясто"],
    "whole-parking": ["Цял паркинг"],
}

HOTEL_TYPES = {
    "hotel": ["Хотел"],
    "family-hotel": ["Семеен хотел"],
    "resort": ["Почивна станция"],
    "hostel-pension": ["Хостел/Пансион"],
    "motel": ["Мотели", "Мотел"],
    "lodge": ["Хижа"],
    "unspecified": [UNSPECIFIED_LABEL],
}

AGRICULTURAL_TYPES = {
    "forest": ["Гора"],
    "agricultural-land": ["Земеделска земя"],
    "vineyard": ["Лозе"],
    "fruit-garden": ["Овощна градина"],
    "pasture": ["Пасище"],
    "unspecified": [UNSPECIFIED_LABEL],
}

RESTAURANT_LOCATION_TYPES = {
    "residential-building": ["В жилищна сграда"],
    "business-building": ["В бизнес сграда"],
    "standalone-building": ["Самостоятелна сграда"],
    "unspecified": [UNSPECIFIED_LABEL],
}

CONSTRUCTION_TYPES = {
    "brick": ["Тухла"],
    "epk": ["ЕПК/ПК"],
    "panel": ["Панел"],
    "wood": ["Гредоред"],
    "unspecified": [UNSPECIFIED_LABEL],
}

GARAGE_CONSTRUCTION_TYPES = {
    "open": ["На открито/Няма"],
    "brick": ["Тухла"],
    "concrete-panel": ["Бетон/Панел"],
    "metal": ["Метален"],
    "unspecified": [UNSPECIFIED_LABEL],
}

HOTEL_CONSTRUCTION_TYPES = {
    "brick": ["Тухла"],
    "epk": ["ЕПК/ПК"],
    "other": ["Друго"],
    "unspecified": [UNSPECIFIED_LABEL],
}

ESTABLISHMENT_CONSTRUCTION_TYPES = {
    "brick": ["Тухла"],
    "epk": ["ЕПК/ПК"],
    "panel": ["Панел"],
    "frame": ["Гредоред"],
    "metal": ["Метална конструкция"],
    "massive": ["Масивна конструкция"],
    "unspecified": [UNSPECIFIED_LABEL],
}

COMPLETION_DEGREES = {
    "completed": ["Завършен"],
    "under-construction": ["В строеж"],
    "project": ["В проект"],
    "unspecified": [UNSPECIFIED_LABEL],
}

BUILDING_TYPES = {
    "business-building": ["В бизнес сграда"],
    "residential-building": ["В жилищна сграда"],
    "standalone-building": ["В самостоятелна сграда"],
    "unspecified": [UNSPECIFIED_LABEL],
}

HOTEL_CATEGORIES = {
    "uncategorized": ["Не е категоризиран"],
    "one-star": ["1 звезда"],
    "two-stars": ["2 звезди"],
    "three-stars": ["3 звезди"],
    "four-stars": ["4 звезди"],
    "five-stars": ["5 звезди"],
    "unspecified": [UNSPECIFIED_LABEL],
}

AGRICULTURAL_CATEGORIES = {
    "unspecified": [UNSPECIFIED_LABEL],
    "first": ["Първа категория"],
    "second": ["Втора категория"],
    "third": ["Трета категория"],
    "fourth": ["Четвърта категория"],
    "fifth": ["Пета категория"],
    "sixth": ["Шеста категория"],
    "seventh": ["Седма категория"],
    "eighth": ["Осма категория"],
    "ninth": ["Девета категория"],
    "tenth": ["Десета категория"],
}

ELECTRICITY_OPTIONS = {
    "with-electricity": ["С ток"],
    "without-electricity": ["Без ток"],
    "unspecified": [UNSPECIFIED_LABEL],
}

WATER_OPTIONS = {
    "with-water": ["Водопровод"],
    "without-water": ["Без вода"],
    "unspecified": [UNSPECIFIED_LABEL],
}

FURNITURE_OPTIONS = {
    "full": ["Обзаведен"],
    "partial": ["Частично обзаведен"],
    "none": ["Необзаведен"],
}

# Category tokens that select rows with no value instead of a stored one
NULL_SENTINEL_TOKENS = frozenset({"uncategorized", "unspecified"})

# Filter tokens -> stored `furniture` values
FURNISHING_REMAP = {
    "furnished": "full",
    "partially-furnished": "partial",
    "unfurnished": "none",
}

# ========== MODELS ==========
class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    legacy_labels: tuple[str, ...] = ()

class CategoricalField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    column: str                           # stored column the values live in
    stored_types: frozenset[str]
    options: tuple[Option, ...]
    null_sentinels: frozenset[str] = frozenset()   # ids that mean "IS NULL", never stored

    @property
    def ids(self) -> list[str]:
        return [o.id for o in self.options]

def _field(name: str, column: str, stored_types: Iterable[str], table: dict[str, list[str]],
           null_sentinels: Iterable[str] = ()) -> CategoricalField:
    return CategoricalField(
        name=name,
        column=column,
        stored_types=frozenset(stored_types),
        options=tuple(Option(id=k, legacy_labels=tuple(v)) for k, v in table.items()),
        null_sentinels=frozenset(null_sentinels),
    )

CATEGORICAL_FIELDS: dict[str, CategoricalField] = {f.name: f for f in [
    _field("apartment_subtype", "subtype", ["apartment"], APARTMENT_SUBTYPES),
    _field("house_type", "subtype", ["house", "villa"], HOUSE_TYPES),
    _field("commercial_type", "subtype", COMMERCIAL, COMMERCIAL_TYPES),
    _field("warehouse_type", "subtype", ["warehouse"], WAREHOUSE_TYPES),
    _field("garage_type", "subtype", ["garage"], GARAGE_TYPES),
    _field("hotel_type", "subtype", ["hotel"], HOTEL_TYPES),
    _field("agricultural_type", "subtype", ["agricultural"], AGRICULTURAL_TYPES),
    _field("restaurant_location_type", "subtype", ["restaurant"], RESTAURANT_LOCATION_TYPES),
    _field("construction_type", "construction_type", RESIDENTIAL, CONSTRUCTION_TYPES),
    _field("garage_construction_type", "construction_type", ["garage"], GARAGE_CONSTRUCTION_TYPES),
    _field("hotel_construction_type", "construction_type", ["hotel"], HOTEL_CONSTRUCTION_TYPES),
    _field("establishment_construction_type", "construction_type", [*COMMERCIAL, "restaurant"],
           ESTABLISHMENT_CONSTRUCTION_TYPES),
    _field("completion_degree", "completion_degree", [*RESIDENTIAL, *COMMERCIAL, "hotel", "restaurant"],
           COMPLETION_DEGREES),
    _field("building_type", "building_type", COMMERCIAL, BUILDING_TYPES),
    _field("hotel_category", "hotel_category", ["hotel"], HOTEL_CATEGORIES,
           null_sentinels=["uncategorized", "unspecified"]),
    _field("agricultural_category", "agricultural_category", ["agricultural"], AGRICULTURAL_CATEGORIES,
           null_sentinels=["unspecified"]),
    _field("electricity", "electricity", ["land"], ELECTRICITY_OPTIONS),
    _field("water", "water", ["land"], WATER_OPTIONS),
    _field("furniture", "furniture", [*RESIDENTIAL, *COMMERCIAL, "restaurant"], FURNITURE_OPTIONS),
]}

# ========== GROUP PROFILES ==========
# Range filters: name -> (request attr "from", request attr "to", stored column)
RANGE_FILTERS: dict[str, tuple[str, str, str]] = {
    "area": ("area_from", "area_to", "area_sqm"),
    "house_area": ("house_area_from", "house_area_to", "area_sqm"),
    "yard_area": ("yard_area_from", "yard_area_to", "yard_area"),
    "price": ("price_from", "price_to", "price"),
    "price_per_sqm": ("price_per_sqm_from", "price_per_sqm_to", "price_per_sqm"),
    "floor": ("floor_from", "floor_to", "floor"),
    "year": ("year_from", "year_to", "build_year"),
    "bed_base": ("bed_base_from", "bed_base_to", "bed_base"),
}

class SetFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str        # FilterRequest attribute
    field: str      # CATEGORICAL_FIELDS key

class GroupProfile(BaseModel):
    """Closed filter vocabulary accepted for one property-type group."""
    model_config = ConfigDict(frozen=True)

    group: PropertyTypeGroup | None
    stored_types: tuple[str, ...] = ()
    set_filters: tuple[SetFilter, ...] = ()
    category_field: str | None = None      # uncategorized-aware `selectedCategories`
    ranges: tuple[str, ...] = ()
    furnishing: bool = False
    features: bool = True
    bed_base_sentinel: bool = False

def _sets(**pairs: str) -> tuple[SetFilter, ...]:
    return tuple(SetFilter(key=k, field=f) for k, f in pairs.items())

_LISTING_RANGES = ("area", "price", "price_per_sqm")

def _profile(group: PropertyTypeGroup, **kw) -> GroupProfile:
    return GroupProfile(group=group, stored_types=STORED_TYPES_BY_GROUP[group], **kw)

GROUP_PROFILES: dict[PropertyTypeGroup, GroupProfile] = {
    PropertyTypeGroup.APARTMENTS: _profile(
        PropertyTypeGroup.APARTMENTS,
        set_filters=_sets(
            apartment_subtypes="apartment_subtype",
            selected_construction_types="construction_type",
            selected_completion_statuses="completion_degree",
        ),
        ranges=(*_LISTING_RANGES, "floor", "year"),
        furnishing=True,
    ),
    PropertyTypeGroup.HOUSES_VILLAS: _profile(
        PropertyTypeGroup.HOUSES_VILLAS,
        set_filters=_sets(
            house_types="house_type",
            selected_construction_types="construction_type",
            selected_completion_statuses="completion_degree",
        ),
        ranges=(*_LISTING_RANGES, "house_area", "yard_area", "year"),
        furnishing=True,
    ),
    PropertyTypeGroup.STORES_OFFICES: _profile(
        PropertyTypeGroup.STORES_OFFICES,
        set_filters=_sets(
            property_types="commercial_type",
            selected_building_types="building_type",
            selected_construction_types="establishment_construction_type",
            selected_completion_statuses="completion_degree",
        ),
        ranges=(*_LISTING_RANGES, "floor"),
        furnishing=True,
    ),
    PropertyTypeGroup.BUILDING_PLOTS: _profile(
        PropertyTypeGroup.BUILDING_PLOTS,
        set_filters=_sets(
            selected_electricity_options="electricity",
            selected_water_options="water",
        ),
        ranges=_LISTING_RANGES,
    ),
    PropertyTypeGroup.AGRICULTURAL_LAND: _profile(
        PropertyTypeGroup.AGRICULTURAL_LAND,
        set_filters=_sets(property_types="agricultural_type"),
        category_field="agricultural_category",
        ranges=_LISTING_RANGES,
    ),
    PropertyTypeGroup.WAREHOUSES_INDUSTRIAL: _profile(
        PropertyTypeGroup.WAREHOUSES_INDUSTRIAL,
        set_filters=_sets(property_types="warehouse_type"),
        ranges=_LISTING_RANGES,
    ),
    PropertyTypeGroup.GARAGES_PARKING: _profile(
        PropertyTypeGroup.GARAGES_PARKING,
        set_filters=_sets(
            property_types="garage_type",
            selected_construction_types="garage_construction_type",
        ),
        ranges=_LISTING_RANGES,
    ),
    PropertyTypeGroup.HOTELS_MOTELS: _profile(
        PropertyTypeGroup.HOTELS_MOTELS,
        set_filters=_sets(
            property_types="hotel_type",
            selected_construction_types="hotel_construction_type",
            selected_completion_statuses="completion_degree",
        ),
        category_field="hotel_category",
        ranges=(*_LISTING_RANGES, "bed_base"),
        bed_base_sentinel=True,
    ),
    PropertyTypeGroup.RESTAURANTS: _profile(
        PropertyTypeGroup.RESTAURANTS,
        set_filters=_sets(
            location_types="restaurant_location_type",
            selected_construction_types="establishment_construction_type",
            selected_completion_statuses="completion_degree",
        ),
        ranges=(*_LISTING_RANGES, "floor"),
        furnishing=True,
    ),
    PropertyTypeGroup.REPLACE_REAL_ESTATES: _profile(
        PropertyTypeGroup.REPLACE_REAL_ESTATES, features=False,
    ),
    PropertyTypeGroup.BUY_REAL_ESTATES: _profile(
        PropertyTypeGroup.BUY_REAL_ESTATES, ranges=("price",), features=False,
    ),
    PropertyTypeGroup.OTHER_REAL_ESTATES: _profile(
        PropertyTypeGroup.OTHER_REAL_ESTATES, ranges=("price",), features=False,
    ),
}

# Used when the group is not registered: no type narrowing, and only the set
# filters whose request key names a single field (the compiler guards their type)
GENERIC_PROFILE = GroupProfile(
    group=None,
    set_filters=_sets(
        apartment_subtypes="apartment_subtype",
        house_types="house_type",
        location_types="restaurant_location_type",
    ),
    ranges=_LISTING_RANGES,
    furnishing=True,
)

# ========== ACCESSORS ==========
def parse_group(group: object) -> PropertyTypeGroup | None:
    if isinstance(group, PropertyTypeGroup):
        return group
    if not isinstance(group, str):
        return None
    try:
        return PropertyTypeGroup(group.strip().lower())
    except ValueError:
        return None

def stored_types_for_group(group: object) -> frozenset[str]:
    g = parse_group(group)
    if g is None:
        raise UnknownGroupError(group)
    return frozenset(STORED_TYPES_BY_GROUP[g])

def group_profile(group: object) -> GroupProfile:
    g = parse_group(group)
    if g is None:
        raise UnknownGroupError(group)
    return GROUP_PROFILES[g]

def get_field(name: str) -> CategoricalField:
    try:
        return CATEGORICAL_FIELDS[name]
    except KeyError:
        raise UnknownFieldError(name) from None

def field_for(stored_type: str, column: str) -> CategoricalField | None:
    for f in CATEGORICAL_FIELDS.values():
        if f.column == column and stored_type in f.stored_types:
            return f
    return None

def field_options_for(stored_type: str, column: str) -> tuple[Option, ...]:
    # Empty when the column does not apply to that stored type
    f = field_for(stored_type, column)
    return f.options if f else ()

def list_groups() -> list[GroupProfile]:
    return [GROUP_PROFILES[g] for g in PropertyTypeGroup]

# ========== INTEGRITY ==========
def _check_registry() -> None:
    missing = [g.value for g in PropertyTypeGroup if g not in GROUP_PROFILES or g not in STORED_TYPES_BY_GROUP]
    if missing:
        raise TaxonomyError(f"Groups without a profile: {missing}")

    seen: dict[tuple[str, str], str] = {}
    for f in CATEGORICAL_FIELDS.values():
        ids = f.ids
        if len(ids) != len(set(ids)):
            raise TaxonomyError(f"Duplicate option ids in {f.name}")
        if "all" in ids:
            raise TaxonomyError(f"'all' is not a storable option ({f.name})")
        if not f.null_sentinels <= set(ids):
            raise TaxonomyError(f"Null sentinels of {f.name} must be registered options")
        unknown = f.stored_types - STORED_TYPES
        if unknown:
            raise TaxonomyError(f"{f.name} scoped to unknown stored types {sorted(unknown)}")
        for t in f.stored_types:
            key = (t, f.column)
            if key in seen:
                raise TaxonomyError(f"{f.name} and {seen[key]} both claim {t}.{f.column}")
            seen[key] = f.name

    for profile in (*GROUP_PROFILES.values(), GENERIC_PROFILE):
        for sf in profile.set_filters:
            if sf.field not in CATEGORICAL_FIELDS:
                raise TaxonomyError(f"{profile.group} references unknown field {sf.field}")
            if profile.group and not CATEGORICAL_FIELDS[sf.field].stored_types & set(profile.stored_types):
                raise TaxonomyError(f"{sf.field} does not apply to any stored type of {profile.group}")
        if profile.category_field and profile.category_field not in CATEGORICAL_FIELDS:
            raise TaxonomyError(f"{profile.group} references unknown field {profile.category_field}")
        for r in profile.ranges:
            if r not in RANGE_FILTERS:
                raise TaxonomyError(f"{profile.group} references unknown range {r}")

_check_registry()
