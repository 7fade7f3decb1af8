"""Parsing of ``#inst`` literals."""

from datetime import datetime, timezone

from datomic_builder.exceptions import EDNParseError

# Tried in order once fromisoformat gives up
_FALLBACK_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_datetime(value: str, pos: int | None = None) -> datetime:
    """Parse the body of an ``#inst`` literal.

    Accepts full RFC 3339 timestamps (``Z``, ``-00:00`` and numeric offsets)
    as well as the date-only form ``YYYY-MM-DD`` written by transactions.
    Values without an offset are taken to be UTC.

    Raises:
        EDNParseError: If the value is not a recognised timestamp.
    """
    normalized = value
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    elif normalized.endswith("-00:00"):
        normalized = normalized[:-6] + "+00:00"

    try:
        return _as_utc(datetime.fromisoformat(normalized))
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return _as_utc(datetime.strptime(value, fmt))
        except ValueError:
            continue

    pos_info = f" at position {pos}" if pos is not None else ""
    raise EDNParseError(f"Invalid datetime format: {value}{pos_info}")
