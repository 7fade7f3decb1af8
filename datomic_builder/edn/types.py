"""EDN type definitions and sentinels."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union
from uuid import UUID


class _Skip:
    """Sentinel for values that should be skipped (unknown tags)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SKIP"


SKIP = _Skip()

# Named characters mapping
NAMED_CHARS: dict[str, str] = {
    "newline": "\n",
    "space": " ",
    "tab": "\t",
    "return": "\r",
}


class Keyword(str):
    """An EDN keyword, stored with its leading colon (``:db/id``)."""

    __slots__ = ()

    def __new__(cls, name: str) -> Keyword:
        if not name.startswith(":"):
            name = ":" + name
        return super().__new__(cls, name)

    @property
    def name(self) -> str:
        """The keyword without its leading colon."""
        return self[1:]

    def __repr__(self) -> str:
        return f"Keyword({str.__repr__(self)})"


class Symbol(str):
    """An EDN symbol such as ``?e``, ``$`` or ``taywils/testing``."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


class BigInt(int):
    """An arbitrary precision integer written with the ``N`` suffix (``100N``)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"BigInt({int.__repr__(self)})"


class Char(str):
    """A character literal such as ``\\a`` or ``\\newline``."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Char({str.__repr__(self)})"


class EdnList(tuple):
    """An EDN list ``( ... )``; compares equal to a tuple of the same items."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"EdnList({tuple.__repr__(self)})"


@dataclass(frozen=True)
class Tag:
    """The name part of a tagged literal, e.g. ``db/id`` or ``inst``."""

    name: str

    def __str__(self) -> str:
        return "#" + self.name


@dataclass(frozen=True)
class Tagged:
    """A tagged literal such as ``#db/id [:db.part/user -1]``."""

    tag: Tag
    value: Any


# EDN value type - represents all possible EDN values
EDNValue = Union[
    None,
    bool,
    int,
    BigInt,
    float,
    Decimal,
    str,
    Char,
    Keyword,
    Symbol,
    Tagged,
    datetime,
    date,
    UUID,
    tuple["EDNValue", ...],
    frozenset["EDNValue"],
    dict["EDNValue", "EDNValue"],
]
