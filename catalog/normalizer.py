import logging
from typing import Iterable

from .errors import TaxonomyError
from .taxonomy import CATEGORICAL_FIELDS, CategoricalField
from .utils import ALL_SENTINEL, dedupe, fold

logger = logging.getLogger(__name__)

class _FieldIndex:
    __slots__ = ("ids", "labels", "expansions")

    def __init__(self, field: CategoricalField):
        self.ids: frozenset[str] = frozenset(field.ids)
        self.labels: dict[str, str] = {}
        self.expansions: dict[str, tuple[str, ...]] = {}
        for opt in field.options:
            self.expansions[opt.id] = (opt.id, *opt.legacy_labels)
            for label in opt.legacy_labels:
                if label in self.ids and label != opt.id:
                    raise TaxonomyError(f"{field.name}: label {label!r} collides with option id")
                key = fold(label)
                owner = self.labels.setdefault(key, opt.id)
                if owner != opt.id:
                    raise TaxonomyError(f"{field.name}: label {label!r} maps to {owner} and {opt.id}")

_INDEX: dict[str, _FieldIndex] = {name: _FieldIndex(f) for name, f in CATEGORICAL_FIELDS.items()}

def normalize(field: str, token: str | None) -> str | None:
    """Resolve an English id or a legacy label of `field` to its canonical id.

    Exact id match wins, then a case-insensitive legacy label match. Anything
    else, including the "all" sentinel and unknown fields, yields None.
    """
    idx = _INDEX.get(field)
    if idx is None or not isinstance(token, str):
        return None
    t = token.strip()
    if not t or t.lower() == ALL_SENTINEL:
        return None
    if t in idx.ids:
        return t
    return idx.labels.get(fold(t))

def normalize_many(field: str, tokens: Iterable[str] | None) -> tuple[list[str], list[str]]:
    # -> (canonical ids in first-seen order, tokens that matched nothing)
    ids: list[str] = []
    dropped: list[str] = []
    for tok in tokens or []:
        c = normalize(field, tok)
        if c is None:
            dropped.append(tok)
        elif c not in ids:
            ids.append(c)
    if dropped:
        logger.info("Dropped unrecognized %s tokens: %s", field, dropped)
    return ids, dropped

def expand_for_storage_match(field: str, canonical_id: str) -> list[str]:
    # Rows were written either with the English id or with the legacy label
    idx = _INDEX.get(field)
    if idx is None:
        return [canonical_id]
    return list(idx.expansions.get(canonical_id, (canonical_id,)))

def expand_many(field: str, canonical_ids: Iterable[str]) -> list[str]:
    return dedupe(v for c in canonical_ids for v in expand_for_storage_match(field, c))

def is_null_sentinel(field: str, canonical_id: str | None) -> bool:
    f = CATEGORICAL_FIELDS.get(field)
    return bool(f and canonical_id in f.null_sentinels)
