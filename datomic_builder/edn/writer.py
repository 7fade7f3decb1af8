"""EDN writer/serializer implementation."""

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from datomic_builder.edn.types import (
    NAMED_CHARS,
    BigInt,
    Char,
    EdnList,
    Keyword,
    Symbol,
    Tag,
    Tagged,
)
from datomic_builder.exceptions import EDNParseError

_CHAR_NAMES = {char: name for name, char in NAMED_CHARS.items()}


def dumps(obj: Any) -> str:
    """Serialize a Python object to an EDN string.

    Keywords and symbols are written bare, plain strings are always quoted.

    Raises:
        EDNParseError: If the object cannot be serialized to EDN.

    Examples:
        >>> dumps({Keyword(":name"): "Alice", Keyword(":age"): 30})
        '{:name "Alice" :age 30}'
        >>> dumps([1, 2, 3])
        '[1 2 3]'
    """
    return _serialize(obj)


def _serialize(obj: Any) -> str:
    if obj is None:
        return "nil"

    if isinstance(obj, bool):
        return "true" if obj else "false"

    if isinstance(obj, BigInt):
        return f"{int(obj)}N"

    if isinstance(obj, float):
        return _serialize_float(obj)

    if isinstance(obj, int):
        return str(obj)

    if isinstance(obj, Decimal):
        return f"{obj}M"

    # Keyword, Symbol and Char are str subclasses, check them first
    if isinstance(obj, (Keyword, Symbol)):
        return str.__str__(obj)

    if isinstance(obj, Char):
        return "\\" + _CHAR_NAMES.get(str(obj), str(obj))

    if isinstance(obj, str):
        return _serialize_string(obj)

    if isinstance(obj, Tagged):
        return f"{obj.tag} {_serialize(obj.value)}"

    if isinstance(obj, Tag):
        return str(obj)

    if isinstance(obj, datetime):
        return _serialize_datetime(obj)

    if isinstance(obj, date):
        return f'#inst "{obj.isoformat()}"'

    if isinstance(obj, UUID):
        return f'#uuid "{obj}"'

    if isinstance(obj, EdnList):
        return "(" + " ".join(_serialize(item) for item in obj) + ")"

    if isinstance(obj, (list, tuple)):
        return _serialize_vector(obj)

    if isinstance(obj, (set, frozenset)):
        return _serialize_set(obj)

    if isinstance(obj, dict):
        return _serialize_map(obj)

    raise EDNParseError(f"Cannot serialize type {type(obj).__name__} to EDN")


def _serialize_float(f: float) -> str:
    if math.isnan(f):
        return "##NaN"
    if math.isinf(f):
        return "##Inf" if f > 0 else "##-Inf"
    return str(f)


def _serialize_string(s: str) -> str:
    """Serialize a string with proper escaping."""
    escaped = s.replace("\\", "\\\\")
    escaped = escaped.replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n")
    escaped = escaped.replace("\r", "\\r")
    escaped = escaped.replace("\t", "\\t")
    return f'"{escaped}"'


def _serialize_datetime(dt: datetime) -> str:
    """Serialize a datetime to EDN #inst format."""
    if dt.tzinfo is not None:
        iso_str = dt.isoformat()
    else:
        # No timezone, assume UTC and append Z
        if dt.microsecond:
            iso_str = dt.strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"
        else:
            iso_str = dt.strftime("%Y-%m-%dT%H:%M:%S") + "Z"
    return f'#inst "{iso_str}"'


def _serialize_vector(items: list | tuple) -> str:
    elements = " ".join(_serialize(item) for item in items)
    return f"[{elements}]"


def _serialize_set(items: set | frozenset) -> str:
    elements = " ".join(_serialize(item) for item in items)
    return f"#{{{elements}}}"


def _serialize_map(mapping: dict) -> str:
    pairs = []
    for key, value in mapping.items():
        pairs.append(f"{_serialize(key)} {_serialize(value)}")
    return "{" + " ".join(pairs) + "}"
