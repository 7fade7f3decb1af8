"""Datalog query builder.

Supports both hand-written raw queries and queries assembled clause by
clause::

    q = Query().find("e").in_("fname lname")
    q.where({"e": "user/firstName", 0: "fname"})
    q.where({"e": "user/lastName", 0: "lname"})
    q.get_query()
    # '[:find ?e :in $ ?fname ?lname :where [?e :user/firstName ?fname] [?e :user/lastName ?lname]]'

In ``where`` and ``arg`` mappings, integer keys mark positional entries and
string keys mark ``attribute -> value`` pairs. A list or tuple is treated
as all positional.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from datomic_builder.codec import EdnCodec, default_codec, normalize
from datomic_builder.exceptions import SequenceError, ValidationError

_IN_SEPARATOR = re.compile(r"[\s,]+")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _items(method: str, clause: Any) -> list[tuple[Any, Any]]:
    if isinstance(clause, Mapping):
        return list(clause.items())
    if isinstance(clause, Sequence) and not isinstance(clause, (str, bytes)):
        return list(enumerate(clause))
    raise ValidationError(f"Query.{method} expects a mapping or sequence as an argument")


class Query:
    """Accumulates ``find``/``in``/``where`` clauses and argument rows."""

    def __init__(self, codec: EdnCodec | None = None):
        self._codec = codec or default_codec
        self._raw_query: str | None = None
        self._raw_query_args: str | None = None
        self._limit = 0
        self._offset = 0
        self._find: list[str] = []
        self._in: list[str | tuple[str, ...]] = []
        self._where: list[list[tuple[Any, Any]]] = []
        self._args: list[list[tuple[Any, Any]]] = []

    # --- raw queries ---

    def new_raw_query(self, datalog: str | None = None) -> Query:
        """Use hand-written Datalog, normalized through the codec.

        Raises:
            EDNParseError: If ``datalog`` is not valid EDN.
        """
        if not isinstance(datalog, str) or not datalog:
            raise ValidationError("Query.new_raw_query expects a non-empty string input")
        self._raw_query = normalize(self._codec, datalog)
        return self

    def add_raw_query_args(self, datalog: str | None = None) -> Query:
        if not self._raw_query:
            raise SequenceError(
                "Query.add_raw_query_args create a new_raw_query "
                "before adding raw query arguments"
            )
        if not isinstance(datalog, str) or not datalog:
            raise ValidationError("Query.add_raw_query_args expects a non-empty string argument")
        self._raw_query_args = normalize(self._codec, datalog)
        return self

    def get_raw_query(self) -> str | None:
        return self._raw_query

    def get_raw_query_args(self) -> str | None:
        return self._raw_query_args

    # --- clauses ---

    def find(self, *names: str) -> Query:
        """Add variables to the ``:find`` clause; ``find("e")`` becomes ``?e``."""
        if not names:
            raise ValidationError('Query.find expects at least one "string" as an argument')
        if not all(isinstance(name, str) for name in names):
            raise ValidationError("Query.find encountered a non string argument")
        self._find.extend(name.strip() for name in names)
        return self

    def in_(self, names: str | None = None, binding: Sequence[str] | None = None) -> Query:
        """Add ``:in`` inputs.

        ``names`` may hold several comma or space separated variables.
        ``binding`` adds one collection binding rendered as ``[[?a ?b]]``.
        """
        if not isinstance(names, str):
            raise ValidationError("Query.in_ first argument was not a string")
        if binding is not None:
            if not isinstance(binding, (list, tuple)):
                raise ValidationError("Query.in_ second argument was not a list")
            if not all(isinstance(name, str) for name in binding):
                raise ValidationError("Query.in_ expects a list containing only string elements")

        self._in.extend(part for part in _IN_SEPARATOR.split(names) if part)
        if binding is not None:
            self._in.append(tuple(binding))
        return self

    def where(self, clause: Mapping | Sequence | None = None) -> Query:
        """Append one ``[...]`` pattern to the ``:where`` clause.

        ``{"e": "age", 0: 42}`` renders ``[?e :age 42]``; positional strings
        are variables (``?name``) while positional integers stay literal.
        """
        self._where.append(_items("where", clause))
        return self

    def arg(self, row: Mapping | Sequence | None = None) -> Query:
        """Append one row of query arguments.

        Positional entries render as keywords, keyed entries as ``:key "value"``.
        """
        self._args.append(_items("arg", row))
        return self

    def limit(self, limit: int) -> Query:
        self._limit = self._positive("limit", limit)
        return self

    def offset(self, offset: int) -> Query:
        self._offset = self._positive("offset", offset)
        return self

    @staticmethod
    def _positive(method: str, value: Any) -> int:
        if not _is_int(value) or value < 1:
            raise ValidationError(f"Query.{method} expects a positive integer as an argument")
        return value

    def get_limit(self) -> int:
        return self._limit

    def get_offset(self) -> int:
        return self._offset

    def get_find(self) -> list[str]:
        """Variables of the ``:find`` clause, without the ``?`` prefix."""
        return list(self._find)

    # --- rendering ---

    def get_query(self) -> str:
        if not (self._find or self._in or self._where):
            return "[]"
        return normalize(self._codec, self._find_edn() + self._in_edn() + self._where_edn())

    def get_query_args(self) -> str:
        return "[" + "".join(self._arg_edn(row) for row in self._args) + "]"

    def _find_edn(self) -> str:
        return "[:find " + "".join(f"?{name} " for name in self._find)

    def _in_edn(self) -> str:
        out = ":in $ "
        for entry in self._in:
            if isinstance(entry, str):
                out += f"?{entry} "
            else:
                out += "[[" + " ".join(f"?{name}" for name in entry) + "]] "
        return out

    def _where_edn(self) -> str:
        out = ":where "
        for clause in self._where:
            out += "["
            for key, value in clause:
                if _is_int(key):
                    out += f"{value} " if _is_int(value) else f"?{value} "
                else:
                    out += f"?{key} :{value} "
            out += "]"
        return out + "]"

    def _arg_edn(self, row: list[tuple[Any, Any]]) -> str:
        parts = []
        for key, value in row:
            if _is_int(key):
                parts.append(f":{value}")
            else:
                parts.append(f":{key} {self._codec.encode(str(value))}")
        return "[" + " ".join(parts) + "]"

    def clear(self) -> Query:
        """Forget every clause, argument row, limit and offset.

        The raw query set with :meth:`new_raw_query` is kept.
        """
        self._find = []
        self._in = []
        self._where = []
        self._args = []
        self._limit = 0
        self._offset = 0
        return self

    def __str__(self) -> str:
        return self.get_query()

    def __repr__(self) -> str:
        return f"Query({self.get_query()!r}, args={self.get_query_args()!r})"
