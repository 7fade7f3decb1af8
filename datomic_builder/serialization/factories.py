"""Row factories for shaping query results.

A row factory receives one result row as a tuple together with the column
names taken from the query's ``:find`` clause (``?`` already stripped).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import fields as dataclass_fields, is_dataclass
from typing import Any, Generic, NamedTuple, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class RowFactory(Protocol[T_co]):
    """Callable turning a result row into the caller's type."""

    def __call__(self, row: tuple[Any, ...], columns: Sequence[str]) -> T_co: ...


def _field_name(column: str) -> str:
    return column.lstrip("?:").replace("/", "_").replace("-", "_")


def tuple_row(row: tuple[Any, ...], columns: Sequence[str]) -> tuple[Any, ...]:
    return row


def dict_row(row: tuple[Any, ...], columns: Sequence[str]) -> dict[str, Any]:
    """Pair each :find variable with its value, e.g. ``{"e": 17592186045418}``.

    Raises:
        ValueError: If the row and the :find clause differ in length.
    """
    return dict(zip(columns, row, strict=True))


class NamedTupleRowFactory(Generic[T]):
    """Produces namedtuples, reusing the generated class while the columns stay the same."""

    __slots__ = ("_nt_class", "_columns", "_name")

    def __init__(self, name: str = "Row") -> None:
        self._nt_class: type | None = None
        self._columns: tuple[str, ...] | None = None
        self._name = name

    def __call__(self, row: tuple[Any, ...], columns: Sequence[str]) -> Any:
        columns = tuple(columns)
        if self._nt_class is None or self._columns != columns:
            self._nt_class = NamedTuple(  # type: ignore[misc]
                self._name, [(_field_name(c), Any) for c in columns]
            )
            self._columns = columns
        return self._nt_class(*row)


def namedtuple_row(name: str = "Row") -> NamedTupleRowFactory[Any]:
    """
    Create a namedtuple row factory.

    Example:
        q = Query().find("name", "age").where({"e": "person/name", 0: "name"})
        for person in conn.commit_regular_query(q, row_factory=namedtuple_row("Person")):
            print(person.name, person.age)
    """
    return NamedTupleRowFactory(name)


class DataclassRowFactory(Generic[T]):
    """Builds a dataclass per row; columns without a matching field are ignored."""

    __slots__ = ("_cls", "_field_mapping", "_dc_fields")

    def __init__(self, cls: type[T], field_mapping: dict[str, str] | None = None) -> None:
        if not is_dataclass(cls):
            raise TypeError(f"{cls.__name__} is not a dataclass")
        self._cls = cls
        self._field_mapping = field_mapping or {}
        self._dc_fields = {f.name for f in dataclass_fields(cls)}

    def __call__(self, row: tuple[Any, ...], columns: Sequence[str]) -> T:
        kwargs: dict[str, Any] = {}
        for column, value in zip(columns, row, strict=True):
            name = _field_name(self._field_mapping.get(column, column))
            if name in self._dc_fields:
                kwargs[name] = value
        return self._cls(**kwargs)


def dataclass_row(
    cls: type[T], field_mapping: dict[str, str] | None = None
) -> DataclassRowFactory[T]:
    """
    Create a dataclass row factory.

    Args:
        cls: The dataclass type to instantiate.
        field_mapping: Optional mapping from :find variables to field names.

    Example:
        @dataclass
        class Community:
            community_name: str

        q = Query().find("n").where({"c": "community/name", 0: "n"})
        conn.commit_regular_query(q, row_factory=dataclass_row(Community, {"n": "community_name"}))
    """
    return DataclassRowFactory(cls, field_mapping)
