import unicodedata
from typing import Any, Iterable

ALL_SENTINEL = "all"

def fold(value: str) -> str:
    """Case- and composition-insensitive key used for legacy label lookups."""
    return unicodedata.normalize("NFC", value).strip().casefold()

def clean_tokens(values: Iterable[Any] | None) -> list[str]:
    # Drops empties and the "all" sentinel, keeps first occurrence order
    out: list[str] = []
    for v in values or []:
        if v is None:
            continue
        t = str(v).strip()
        if not t or t.lower() == ALL_SENTINEL:
            continue
        if t not in out:
            out.append(t)
    return out

def positive_or_none(value: float | None) -> float | None:
    if value is None or value <= 0:
        return None
    return value

def dedupe(values: Iterable[str]) -> list[str]:
    out: list[str] = []
    for v in values:
        if v not in out:
            out.append(v)
    return out
