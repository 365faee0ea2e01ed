import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from .errors import AppError
from .schemas import Page, Predicate, PredicateKind, QueryPlan

logger = logging.getLogger(__name__)

class QueryPlanExecutor(Protocol):
    def execute(self, plan: QueryPlan, *, limit: int, offset: int = 0) -> Page: ...

def matches(row: Mapping[str, Any], p: Predicate) -> bool:
    v = row.get(p.field)
    if p.kind is PredicateKind.EQUALS:
        return v == p.value
    if p.kind is PredicateKind.IN:
        return v in p.values
    if p.kind is PredicateKind.RANGE:
        if v is None or isinstance(v, bool):
            return False
        try:
            n = float(v)
        except (TypeError, ValueError):
            return False
        if p.lower is not None and n < p.lower:
            return False
        if p.upper is not None and n > p.upper:
            return False
        return True
    if p.kind is PredicateKind.ARRAY_CONTAINS:
        if not isinstance(v, (list, tuple, set)):
            return False
        return set(p.values).issubset(v)
    if p.kind is PredicateKind.IS_NULL:
        return v is None
    if p.kind is PredicateKind.OR:
        return any(matches(row, c) for c in p.clauses)
    raise ValueError(f"Unsupported predicate kind: {p.kind}")

class InMemoryExecutor:
    """Reference executor over plain dict rows, mirroring the store's semantics."""

    def __init__(self, rows: Iterable[Mapping[str, Any]] = ()):
        self.rows: list[dict[str, Any]] = [dict(r) for r in rows]

    @classmethod
    def from_json_file(cls, path: str | Path) -> "InMemoryExecutor":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise AppError(f"Could not load listings from {path}: {e}", code="LISTINGS_LOAD_ERROR",
                           status_code=500) from e
        if not isinstance(data, list):
            raise AppError(f"Listings file {path} must hold a JSON array", code="LISTINGS_LOAD_ERROR",
                           status_code=500)
        logger.info("Loaded %d listings from %s", len(data), path)
        return cls(r for r in data if isinstance(r, dict))

    def execute(self, plan: QueryPlan, *, limit: int, offset: int = 0) -> Page:
        hits = [r for r in self.rows if all(matches(r, p) for p in plan.predicates)]
        # Rows without the ordering key sort last
        with_key = [r for r in hits if r.get(plan.order_by) is not None]
        without_key = [r for r in hits if r.get(plan.order_by) is None]
        with_key.sort(key=lambda r: r[plan.order_by], reverse=plan.descending)
        ordered = with_key + without_key
        return Page(items=ordered[offset:offset + limit], total=len(ordered), limit=limit, offset=offset)
