"""EDN (Extensible Data Notation) parser and serializer.

This is the value codec used by the builders and the REST clients: it turns
wire text into Python containers and back.

Example usage:
    >>> from datomic_builder.edn import loads, dumps
    >>> data = loads('{:name "Alice" :age 30}')
    >>> data
    {Keyword(':name'): 'Alice', Keyword(':age'): 30}
    >>> dumps(data)
    '{:name "Alice" :age 30}'
"""

from datomic_builder.edn.datetime_utils import parse_datetime
from datomic_builder.edn.reader import EdnReader
from datomic_builder.edn.tags import TagRegistry, default_registry
from datomic_builder.edn.types import (
    NAMED_CHARS,
    SKIP,
    BigInt,
    Char,
    EDNValue,
    EdnList,
    Keyword,
    Symbol,
    Tag,
    Tagged,
)
from datomic_builder.edn.writer import dumps
from datomic_builder.exceptions import EDNParseError


def _decode(s: str | bytes) -> str:
    if isinstance(s, bytes):
        try:
            return s.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EDNParseError(f"Invalid UTF-8 encoding: {e}") from e
    return s


def loads(
    s: str | bytes,
    max_depth: int = 100,
    tag_registry: TagRegistry | None = None,
) -> EDNValue | None:
    """Load an EDN string and return the first parsed Python object.

    Returns None for both empty input and EDN nil.

    Raises:
        EDNParseError: If the input is invalid EDN or contains invalid UTF-8.

    Examples:
        >>> loads('[1 2 3]')
        (1, 2, 3)
        >>> loads('#inst "2023-01-15T10:30:00Z"')
        datetime.datetime(2023, 1, 15, 10, 30, tzinfo=datetime.timezone.utc)
    """
    reader = EdnReader(_decode(s), max_depth=max_depth, tag_registry=tag_registry)
    while True:
        value = reader.read_value()
        if value is not SKIP:
            return value


def loads_all(
    s: str | bytes,
    max_depth: int = 100,
    tag_registry: TagRegistry | None = None,
) -> list[EDNValue]:
    """Parse every top-level value in ``s``.

    Examples:
        >>> loads_all("[:a] {:b 1}")
        [(Keyword(':a'),), {Keyword(':b'): 1}]
    """
    reader = EdnReader(_decode(s), max_depth=max_depth, tag_registry=tag_registry)
    values: list[EDNValue] = []
    while not reader.at_end():
        value = reader.read_value()
        if value is not SKIP:
            values.append(value)
    return values


__all__ = [
    "loads",
    "loads_all",
    "dumps",
    "EdnReader",
    "EDNParseError",
    "EDNValue",
    "EdnList",
    "Keyword",
    "Symbol",
    "Tag",
    "Tagged",
    "BigInt",
    "Char",
    "SKIP",
    "NAMED_CHARS",
    "TagRegistry",
    "default_registry",
    "parse_datetime",
]
