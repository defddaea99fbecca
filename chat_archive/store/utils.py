from __future__ import annotations

import datetime as dt

EPOCH_ISO = "1970-01-01T00:00:00+00:00"


def now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def parse_iso8601(value: str | None) -> dt.datetime | None:
    if not value or not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = dt.datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


def split_terms(query: str) -> list[str]:
    """Lower-case and split a query on whitespace, dropping one-character terms."""

    return [term for term in query.lower().strip().split() if len(term) > 1]


def contains_all(text: str, terms: list[str]) -> bool:
    lowered = text.lower()
    return all(term in lowered for term in terms)
