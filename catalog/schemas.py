import math
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

SaleOrRent = Literal["sale", "rent"]

_NUMERIC_FIELDS = (
    "area_from", "area_to",
    "house_area_from", "house_area_to",
    "yard_area_from", "yard_area_to",
    "price_from", "price_to",
    "price_per_sqm_from", "price_per_sqm_to",
    "floor_from", "floor_to",
    "year_from", "year_to",
    "bed_base_from", "bed_base_to",
)

_LIST_FIELDS = (
    "neighborhoods",
    "apartment_subtypes", "house_types", "property_types", "location_types",
    "selected_construction_types", "selected_completion_statuses", "selected_building_types",
    "selected_electricity_options", "selected_water_options",
    "selected_categories", "selected_features", "selected_furnishing",
)

_TRUE_STRINGS = {"true", "1", "yes", "on"}

class FilterRequest(BaseModel):
    """Raw filter object as posted by the search pages.

    Coercion is deliberately forgiving: a value that cannot be read becomes
    "unset" instead of failing validation.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    property_type_group: Optional[str] = None
    sale_or_rent: Optional[str] = None
    base_route: Optional[str] = None           # "/sale/search" | "/rent/search"

    city: Optional[str] = None
    neighborhoods: list[str] = Field(default_factory=list)

    area_from: Optional[float] = None
    area_to: Optional[float] = None
    house_area_from: Optional[float] = None
    house_area_to: Optional[float] = None
    yard_area_from: Optional[float] = None
    yard_area_to: Optional[float] = None
    price_from: Optional[float] = None
    price_to: Optional[float] = None
    price_per_sqm_from: Optional[float] = None
    price_per_sqm_to: Optional[float] = None
    floor_from: Optional[float] = None
    floor_to: Optional[float] = None
    year_from: Optional[float] = None
    year_to: Optional[float] = None
    bed_base_from: Optional[float] = None
    bed_base_to: Optional[float] = None
    is_bed_base_not_provided: bool = False

    apartment_subtypes: list[str] = Field(default_factory=list)
    house_types: list[str] = Field(default_factory=list)
    property_types: list[str] = Field(default_factory=list)      # garages, hotels, offices, ...
    location_types: list[str] = Field(default_factory=list)      # restaurants
    selected_construction_types: list[str] = Field(default_factory=list)
    selected_completion_statuses: list[str] = Field(default_factory=list)
    selected_building_types: list[str] = Field(default_factory=list)
    selected_electricity_options: list[str] = Field(default_factory=list)
    selected_water_options: list[str] = Field(default_factory=list)
    selected_categories: list[str] = Field(default_factory=list)
    selected_features: list[str] = Field(default_factory=list)
    selected_furnishing: list[str] = Field(default_factory=list)

    @field_validator(*_NUMERIC_FIELDS, mode="before")
    @classmethod
    def _lenient_number(cls, v: Any) -> float | None:
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, str):
            try:
                v = float(v.strip())
            except ValueError:
                return None
        if not isinstance(v, (int, float)):
            return None
        try:
            v = float(v)
        except OverflowError:
            return None
        return v if math.isfinite(v) else None

    @field_validator(*_LIST_FIELDS, mode="before")
    @classmethod
    def _lenient_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple, set)):
            return []
        return [str(x) for x in v if isinstance(x, (str, int, float)) and not isinstance(x, bool)]

    @field_validator("property_type_group", "sale_or_rent", "base_route", "city", mode="before")
    @classmethod
    def _lenient_str(cls, v: Any) -> str | None:
        if isinstance(v, bool) or v is None:
            return None
        if isinstance(v, (int, float)):
            v = str(v)
        if not isinstance(v, str):
            return None
        return v.strip() or None

    @field_validator("is_bed_base_not_provided", mode="before")
    @classmethod
    def _lenient_bool(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, (int, float)):
            return v != 0
        if isinstance(v, str):
            return v.strip().lower() in _TRUE_STRINGS
        return False

# ========== QUERY PLAN ==========
class PredicateKind(str, Enum):
    EQUALS = "equals"
    IN = "in"
    RANGE = "range"
    ARRAY_CONTAINS = "array_contains"
    IS_NULL = "is_null"
    OR = "or"

class Predicate(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: PredicateKind
    field: str
    value: Optional[str] = None                  # EQUALS
    values: tuple[str, ...] = ()                 # IN, ARRAY_CONTAINS
    lower: Optional[float] = None                # RANGE, inclusive
    upper: Optional[float] = None                # RANGE, inclusive
    clauses: tuple["Predicate", ...] = ()        # OR

def equals(field: str, value: str) -> Predicate:
    return Predicate(kind=PredicateKind.EQUALS, field=field, value=value)

def in_(field: str, values) -> Predicate:
    return Predicate(kind=PredicateKind.IN, field=field, values=tuple(values))

def range_(field: str, lower: float | None = None, upper: float | None = None) -> Predicate:
    return Predicate(kind=PredicateKind.RANGE, field=field, lower=lower, upper=upper)

def array_contains(field: str, values) -> Predicate:
    return Predicate(kind=PredicateKind.ARRAY_CONTAINS, field=field, values=tuple(values))

def is_null(field: str) -> Predicate:
    return Predicate(kind=PredicateKind.IS_NULL, field=field)

def or_(*clauses: Predicate) -> Predicate:
    fields = {c.field for c in clauses}
    return Predicate(kind=PredicateKind.OR, field=fields.pop() if len(fields) == 1 else "*", clauses=clauses)

DiagnosticStatus = Literal["applied", "skipped"]

class FilterDiagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    filter: str
    field: Optional[str] = None
    status: DiagnosticStatus
    reason: Optional[str] = None
    dropped_tokens: tuple[str, ...] = ()

class QueryPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    group: Optional[str] = None
    sale_or_rent: Optional[SaleOrRent] = None
    predicates: tuple[Predicate, ...] = ()
    order_by: str = "created_at"
    descending: bool = True
    diagnostics: tuple[FilterDiagnostic, ...] = ()

    def predicates_on(self, field: str) -> list[Predicate]:
        return [p for p in self.predicates if p.field == field]

    @property
    def applied(self) -> list[str]:
        return [d.filter for d in self.diagnostics if d.status == "applied"]

    @property
    def skipped(self) -> dict[str, str | None]:
        return {d.filter: d.reason for d in self.diagnostics if d.status == "skipped"}

# ========== EXECUTION ==========
class Page(BaseModel):
    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int = 0

class SearchResponse(BaseModel):
    plan: QueryPlan
    page: Page
