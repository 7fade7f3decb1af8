"""Attribute definition builder.

An :class:`Entity` describes one schema attribute as an ordered EDN map::

    >>> str(Entity().ident("community", "name").cardinality("one"))
    '{:db/id #db/id [:db.part/db] :db/ident :community/name :db/cardinality :db.cardinality/one}'

Fields render in the order they were first set. Setting a field again
replaces its value without moving it.

See http://docs.datomic.com/schema.html
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from datomic_builder.codec import EdnCodec, default_codec
from datomic_builder.edn.types import Keyword, Tag, Tagged
from datomic_builder.exceptions import ValidationError
from datomic_builder.schema import (
    CARDINALITIES,
    DEFAULT_PARTITION,
    INSTALL_TYPES,
    PARTITIONS,
    UNIQUENESS,
    VALUE_TYPES,
)

DB_ID = Keyword(":db/id")


def temp_id(partition: str, num: int | None = None) -> Tagged:
    """Build ``#db/id [:db.part/<partition> <num>]``."""
    part: list[Any] = [Keyword(f":db.part/{partition}")]
    if num is not None:
        part.append(num)
    return Tagged(Tag("db/id"), part)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


class Entity:
    """A single schema attribute definition."""

    def __init__(self, partition: str | None = None, codec: EdnCodec | None = None):
        if not isinstance(partition, str) or partition not in PARTITIONS:
            partition = DEFAULT_PARTITION
        self.partition = partition
        self._codec = codec or default_codec
        self._fields: dict[Keyword, Any] = {DB_ID: temp_id(partition)}

    def __str__(self) -> str:
        return self._codec.encode(self._fields)

    def __repr__(self) -> str:
        return f"Entity({self})"

    @property
    def fields(self) -> Mapping[Keyword, Any]:
        """Read-only view of the fields in render order."""
        return MappingProxyType(self._fields)

    def _set(self, name: str, value: Any) -> Entity:
        self._fields[Keyword(name)] = value
        return self

    def _choice(self, method: str, value: Any, choices: tuple[str, ...], message: str) -> str:
        if not _is_text(value):
            raise ValidationError(f"Entity.{method} expects a non-empty string argument")
        value = value.lower()
        if value not in choices:
            raise ValidationError(f"Entity.{method} {message}")
        return value

    def ident(
        self,
        name: str | None = None,
        identity: str | None = None,
        namespace: str | None = None,
    ) -> Entity:
        """Set ``:db/ident`` to ``:<namespace.>name/identity``."""
        if not _is_text(name):
            raise ValidationError("Entity.ident name argument should be a non-empty string")
        if not _is_text(identity):
            raise ValidationError("Entity.ident identity argument should be a non-empty string")

        if _is_text(namespace):
            ident = f"{namespace}.{name}/{identity}"
        else:
            ident = f"{name}/{identity}"
        return self._set(":db/ident", Keyword(ident))

    def cardinality(self, cardinal: str | None = None) -> Entity:
        if not _is_text(cardinal):
            raise ValidationError("Entity.cardinality argument must be a non-empty string")
        cardinal = cardinal.lower()
        if cardinal not in CARDINALITIES:
            raise ValidationError('Entity.cardinality must be "one" or "many"')
        return self._set(":db/cardinality", Keyword(f":db.cardinality/{cardinal}"))

    def value_type(self, value_type: str | None = None) -> Entity:
        value_type = self._choice(
            "value_type",
            value_type,
            VALUE_TYPES,
            "invalid value type, try one of the following instead\n["
            + ", ".join(VALUE_TYPES)
            + "]",
        )
        return self._set(":db/valueType", Keyword(f":db.type/{value_type}"))

    def doc(self, doc: str | None = None) -> Entity:
        """Set the free-text ``:db/doc`` string."""
        if not isinstance(doc, str):
            raise ValidationError("Entity.doc argument must be a string")
        return self._set(":db/doc", doc)

    def unique(self, unique: str | None = None) -> Entity:
        unique = self._choice(
            "unique",
            unique,
            UNIQUENESS,
            "string argument must be one of the following [" + ", ".join(UNIQUENESS) + "]",
        )
        return self._set(":db/unique", Keyword(f":db.unique/{unique}"))

    # Anything other than a real bool is stored as false.
    def index(self, index: Any = False) -> Entity:
        return self._set(":db/index", index if isinstance(index, bool) else False)

    def full_text(self, full_text: Any = False) -> Entity:
        return self._set(":db/fulltext", full_text if isinstance(full_text, bool) else False)

    def is_component(self, component: Any = False) -> Entity:
        return self._set(":db/isComponent", component if isinstance(component, bool) else False)

    def no_history(self, history: Any = False) -> Entity:
        return self._set(":db/noHistory", history if isinstance(history, bool) else False)

    def install(self, install_type: str | None = None) -> Entity:
        """Add the reverse reference ``:db.install/_<type> :db.part/db``."""
        if not _is_text(install_type):
            raise ValidationError("Entity.install install_type must be a non-empty string")
        install_type = install_type.lower()
        if install_type not in INSTALL_TYPES:
            raise ValidationError(
                "Entity.install install_type must be one of the following ["
                + ", ".join(INSTALL_TYPES)
                + "]"
            )
        return self._set(f":db.install/_{install_type}", Keyword(":db.part/db"))

    def pretty_print(self) -> str:
        """Render one field per line, in the layout used by the Datomic docs.

        Example::

            {:db/id #db/id[:db.part/db]
             :db/ident :community/name
             :db/valueType :db.type/string}
        """
        lines = [f"{key} {self._pretty_value(value)}" for key, value in self._fields.items()]
        return "{" + "\n ".join(lines) + "}"

    def _pretty_value(self, value: Any) -> str:
        if isinstance(value, Tagged) and isinstance(value.tag, Tag):
            inner = value.value
            if isinstance(inner, (list, tuple)):
                return f"{value.tag}[" + " ".join(self._codec.encode(v) for v in inner) + "]"
        return self._codec.encode(value)
