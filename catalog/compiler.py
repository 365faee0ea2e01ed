import logging
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from .errors import UnknownGroupError
from .normalizer import expand_many, is_null_sentinel, normalize, normalize_many
from .schemas import (
    FilterDiagnostic, FilterRequest, Predicate, QueryPlan, SaleOrRent,
    array_contains, equals, in_, is_null, or_, range_,
)
from .taxonomy import (
    CATEGORICAL_FIELDS, FURNISHING_REMAP, GENERIC_PROFILE, GROUP_PROFILES, NULL_SENTINEL_TOKENS,
    RANGE_FILTERS, CategoricalField, GroupProfile, group_profile,
)
from .utils import clean_tokens, dedupe, positive_or_none

logger = logging.getLogger(__name__)

SALE_OR_RENT_ALIASES: dict[str, SaleOrRent] = {
    "sale": "sale",
    "for-sale": "sale",
    "sales": "sale",
    "rent": "rent",
    "for-rent": "rent",
}

SEARCH_ROUTES: dict[str, SaleOrRent] = {
    "/sale/search": "sale",
    "/rent/search": "rent",
}

# Every request attribute any group reads as a set filter
_SET_KEYS: tuple[str, ...] = tuple(dedupe(sf.key for p in GROUP_PROFILES.values() for sf in p.set_filters))

# Skip reasons
NOT_APPLICABLE = "not_applicable"
UNKNOWN_GROUP = "unknown_group"
UNRECOGNIZED = "unrecognized_tokens"
NO_SELECTION = "no_selection"
NON_POSITIVE = "non_positive_bounds"
RENT_SUPPRESSED = "suppressed_for_rent"
SENTINEL_WINS = "overridden_by_not_provided"
INVALID_PAYLOAD = "invalid_payload"

class _PlanBuilder:
    """Append-only accumulator, frozen into a QueryPlan by `build`."""

    def __init__(self) -> None:
        self._predicates: list[Predicate] = []
        self._diagnostics: list[FilterDiagnostic] = []

    def add(self, name: str, *predicates: Predicate) -> None:
        self._predicates.extend(predicates)
        self._diagnostics.append(FilterDiagnostic(filter=name, field=predicates[-1].field, status="applied"))

    def skip(self, name: str, field: Optional[str], reason: str, dropped: Iterable[str] = ()) -> None:
        dropped = tuple(dropped)
        self._diagnostics.append(
            FilterDiagnostic(filter=name, field=field, status="skipped", reason=reason, dropped_tokens=dropped)
        )
        logger.info("Filter %s skipped (%s)%s", name, reason, f" dropped={list(dropped)}" if dropped else "")

    def build(self, group: Optional[str], sale_or_rent: Optional[SaleOrRent]) -> QueryPlan:
        return QueryPlan(
            group=group,
            sale_or_rent=sale_or_rent,
            predicates=tuple(self._predicates),
            diagnostics=tuple(self._diagnostics),
        )

def _coerce_request(request: Any, b: _PlanBuilder) -> FilterRequest:
    if isinstance(request, FilterRequest):
        return request
    if request is None:
        return FilterRequest()
    if isinstance(request, Mapping):
        try:
            return FilterRequest.model_validate(dict(request))
        except ValidationError as ve:
            logger.warning("Filter payload could not be read: %s", ve.errors())
    b.skip("request", None, INVALID_PAYLOAD)
    return FilterRequest()

def resolve_sale_or_rent(request: FilterRequest) -> Optional[SaleOrRent]:
    if request.sale_or_rent:
        v = SALE_OR_RENT_ALIASES.get(request.sale_or_rent.lower())
        if v:
            return v
    route = (request.base_route or "").rstrip("/").lower()
    for prefix, v in SEARCH_ROUTES.items():
        if route == prefix or route.startswith(prefix + "/"):
            return v
    return None

def _type_guard(field: CategoricalField, pinned: Optional[tuple[str, ...]]) -> Optional[list[str]]:
    # None when step 1 already pinned exactly the types the field belongs to
    if pinned is None:
        return sorted(field.stored_types)
    scoped = [t for t in pinned if t in field.stored_types]
    if set(scoped) == set(pinned):
        return None
    return scoped

def _compile_ranges(req: FilterRequest, profile: GroupProfile, sale_or_rent, b: _PlanBuilder) -> None:
    sentinel_on = profile.bed_base_sentinel and req.is_bed_base_not_provided
    for name, (attr_from, attr_to, column) in RANGE_FILTERS.items():
        label = to_camel(name)
        raw_from, raw_to = getattr(req, attr_from), getattr(req, attr_to)
        supplied = raw_from is not None or raw_to is not None
        if name not in profile.ranges:
            if supplied:
                b.skip(label, column, NOT_APPLICABLE)
            continue
        # Rental rows of several subtypes carry no area, hence no price per sqm
        if name == "price_per_sqm" and sale_or_rent == "rent":
            b.skip(label, column, RENT_SUPPRESSED)
            continue
        if name == "bed_base" and sentinel_on:
            if supplied:
                b.skip(label, column, SENTINEL_WINS)
            continue
        lower, upper = positive_or_none(raw_from), positive_or_none(raw_to)
        if lower is None and upper is None:
            if supplied:
                b.skip(label, column, NON_POSITIVE)
            continue
        b.add(label, range_(column, lower, upper))

def _compile_furnishing(req: FilterRequest, profile: GroupProfile, b: _PlanBuilder) -> None:
    tokens = clean_tokens(req.selected_furnishing)
    if not tokens:
        return
    if not profile.furnishing:
        b.skip("selectedFurnishing", "furniture", NOT_APPLICABLE)
        return
    mapped = dedupe(FURNISHING_REMAP[t.lower()] for t in tokens if t.lower() in FURNISHING_REMAP)
    dropped = [t for t in tokens if t.lower() not in FURNISHING_REMAP]
    if not mapped:
        b.skip("selectedFurnishing", "furniture", UNRECOGNIZED, dropped)
        return
    if dropped:
        logger.info("Dropped unrecognized furnishing tokens: %s", dropped)
    b.add("selectedFurnishing", in_("furniture", mapped))

def _compile_set_filters(req: FilterRequest, profile: GroupProfile, pinned, b: _PlanBuilder) -> None:
    consumed = set()
    for sf in profile.set_filters:
        consumed.add(sf.key)
        label = to_camel(sf.key)
        field = CATEGORICAL_FIELDS[sf.field]
        raw = getattr(req, sf.key)
        tokens = clean_tokens(raw)
        if not tokens:
            if raw:
                b.skip(label, field.column, NO_SELECTION)
            continue
        ids, dropped = normalize_many(field.name, tokens)
        if not ids:
            b.skip(label, field.column, UNRECOGNIZED, dropped)
            continue
        predicates = []
        guard = _type_guard(field, pinned)
        if guard:
            predicates.append(in_("type", guard))
        predicates.append(in_(field.column, expand_many(field.name, ids)))
        b.add(label, *predicates)

    for key in _SET_KEYS:
        if key not in consumed and clean_tokens(getattr(req, key)):
            b.skip(to_camel(key), None, NOT_APPLICABLE)

def _compile_categories(req: FilterRequest, profile: GroupProfile, b: _PlanBuilder) -> None:
    tokens = clean_tokens(req.selected_categories)
    if not tokens:
        return
    if not profile.category_field:
        b.skip("selectedCategories", None, NOT_APPLICABLE)
        return
    field = CATEGORICAL_FIELDS[profile.category_field]
    real: list[str] = []
    wants_null = False
    for t in tokens:
        if t.lower() in NULL_SENTINEL_TOKENS or is_null_sentinel(field.name, normalize(field.name, t)):
            wants_null = True
        else:
            real.append(t)
    # A single disjunction; two ANDed clauses would match nothing
    if real and wants_null:
        b.add("selectedCategories", or_(in_(field.column, real), is_null(field.column)))
    elif real:
        b.add("selectedCategories", in_(field.column, real))
    else:
        b.add("selectedCategories", is_null(field.column))

def compile_filters(group: Any = None, request: Any = None) -> QueryPlan:
    """Compile a raw filter object for one property-type group into a QueryPlan.

    Never raises on bad input: unknown groups, unrecognized tokens and empty
    selections drop the affected predicate and are reported in
    `QueryPlan.diagnostics`. Dropping a predicate broadens the result set,
    which is preferred over silently returning nothing.
    """
    b = _PlanBuilder()
    req = _coerce_request(request, b)
    raw_group = group if group is not None else req.property_type_group

    # 1) Type narrowing
    pinned: Optional[tuple[str, ...]]
    try:
        profile = group_profile(raw_group)
        pinned = profile.stored_types
        b.add("propertyTypeGroup", in_("type", pinned))
    except UnknownGroupError:
        profile, pinned = GENERIC_PROFILE, None
        b.skip("propertyTypeGroup", "type", UNKNOWN_GROUP)

    sale_or_rent = resolve_sale_or_rent(req)
    if sale_or_rent:
        b.add("saleOrRent", equals("sale_or_rent", sale_or_rent))
    elif req.sale_or_rent or req.base_route:
        b.skip("saleOrRent", "sale_or_rent", UNRECOGNIZED, [req.sale_or_rent or req.base_route])

    # 2) Location passthroughs
    if req.city:
        b.add("city", equals("city", req.city))
    neighborhoods = clean_tokens(req.neighborhoods)
    if neighborhoods:
        b.add("neighborhoods", in_("neighborhood", neighborhoods))

    # 3) Numeric ranges
    _compile_ranges(req, profile, sale_or_rent, b)

    # 4) Furnishing
    _compile_furnishing(req, profile, b)

    # 5) Subtype / categorical sets
    _compile_set_filters(req, profile, pinned, b)

    # 6) Categories with "uncategorized" support
    _compile_categories(req, profile, b)

    # 7) Bed base not provided
    if req.is_bed_base_not_provided:
        if profile.bed_base_sentinel:
            b.add("isBedBaseNotProvided", is_null("bed_base"))
        else:
            b.skip("isBedBaseNotProvided", "bed_base", NOT_APPLICABLE)

    # 8) Features: row must contain every selected feature
    features = clean_tokens(req.selected_features)
    if features:
        if profile.features:
            b.add("selectedFeatures", array_contains("features", features))
        else:
            b.skip("selectedFeatures", "features", NOT_APPLICABLE)

    group_value = profile.group.value if profile.group else None
    plan = b.build(group_value, sale_or_rent)
    logger.debug(
        "Compiled plan group=%s sale_or_rent=%s predicates=%d applied=%s skipped=%s",
        group_value or raw_group, sale_or_rent, len(plan.predicates), plan.applied, plan.skipped,
    )
    return plan
