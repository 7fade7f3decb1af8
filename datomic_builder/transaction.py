"""Transaction builder.

A :class:`Transaction` is either built programmatically from attribute
definitions and add/retract operations, or loaded verbatim from an ``.edn``
file. The first mutating call on a loaded transaction discards the file
contents and starts a fresh programmatic body.

See http://docs.datomic.com/transactions.html
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from datomic_builder.codec import EdnCodec, default_codec
from datomic_builder.edn.types import Keyword, Tag, Tagged
from datomic_builder.entity import DB_ID, Entity, temp_id
from datomic_builder.exceptions import ResourceError, SequenceError, ValidationError

logger = logging.getLogger(__name__)

EDN_EXTENSION = ".edn"
INST_DATE_FORMAT = "%Y-%m-%d"


@dataclass
class Built:
    """Body assembled from builder calls."""

    elements: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class Loaded:
    """Body read verbatim from an ``.edn`` file."""

    path: str
    lines: tuple[str, ...]

    @property
    def text(self) -> str:
        return "".join(self.lines)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def inst(value: Any) -> Any:
    """Wrap dates as ``#inst "YYYY-MM-DD"``; other values pass through."""
    if isinstance(value, date):
        return Tagged(Tag("inst"), value.strftime(INST_DATE_FORMAT))
    return value


class Transaction:
    """An ordered list of operations sent to the transactor in one request."""

    def __init__(self, codec: EdnCodec | None = None):
        self._codec = codec or default_codec
        self._body: Built | Loaded = Built()

    @property
    def body(self) -> Built | Loaded:
        return self._body

    @property
    def loaded_from_file(self) -> bool:
        return isinstance(self._body, Loaded)

    def _elements(self) -> list[Any]:
        # A loaded body is replaced by an empty one on the first mutation.
        if isinstance(self._body, Loaded):
            logger.debug("Discarding transaction loaded from %s", self._body.path)
            self._body = Built()
        return self._body.elements

    def append(self, entity: Entity, key: int | None = None) -> Transaction:
        """Add an attribute definition, at the end or at position ``key``."""
        if not isinstance(entity, Entity):
            raise SequenceError("Transaction.append argument must be a valid Entity object")

        size = 0 if isinstance(self._body, Loaded) else len(self._body.elements)
        if key is not None and (not _is_int(key) or not 0 <= key <= size):
            raise ValidationError(
                f"Transaction.append key must be an integer between 0 and {size}"
            )

        elements = self._elements()
        if key is None or key == size:
            elements.append(entity)
        else:
            elements[key] = entity
        return self

    def add(
        self,
        entity: str | None = None,
        attribute: str | None = None,
        value: Any = None,
        temp_id_num: int | None = None,
    ) -> Transaction:
        """Assert a single fact.

        Renders as ``[:db/add #db/id [:db.part/user <temp_id>] :entity/attribute value]``.
        """
        return self._add_or_retract("add", entity, attribute, value, temp_id_num)

    def retract(
        self,
        entity: str | None = None,
        attribute: str | None = None,
        value: Any = None,
        temp_id_num: int | None = None,
    ) -> Transaction:
        """Retract a single fact."""
        return self._add_or_retract("retract", entity, attribute, value, temp_id_num)

    def _add_or_retract(
        self,
        operation: str,
        entity: Any,
        attribute: Any,
        value: Any,
        temp_id_num: Any,
    ) -> Transaction:
        if not _is_text(entity):
            raise ValidationError(f"Transaction.{operation} entity must be a non-empty string")
        if not _is_text(attribute):
            raise ValidationError(f"Transaction.{operation} attribute must be a non-empty string")
        if value is None:
            raise ValidationError(f"Transaction.{operation} value argument cannot be None")
        if temp_id_num is not None and not _is_int(temp_id_num):
            raise ValidationError(f"Transaction.{operation} temp_id argument must be an integer")

        self._elements().append(
            [
                Keyword(f":db/{operation}"),
                temp_id("user", temp_id_num),
                Keyword(f":{entity}/{attribute}"),
                inst(value),
            ]
        )
        return self

    def add_many(self, temp_id_num: int | None = None, *field_groups: Mapping) -> Transaction:
        """Assert several attributes of one new entity.

        Each field group maps an entity name to an attribute name and carries
        the value as its second entry::

            tx.add_many(-100, {"post": "title", 0: "This mad world"},
                              {"post": "author", 0: "Taywils"})

        renders ``{:db/id #db/id [:db.part/user -100] :post/title "This mad world"
        :post/author "Taywils"}``.
        """
        if not field_groups:
            raise ValidationError("Transaction.add_many expects at minimum two arguments")
        if temp_id_num is not None and not _is_int(temp_id_num):
            raise ValidationError("Transaction.add_many temp_id argument must be an integer")

        datom: dict[Keyword, Any] = {DB_ID: temp_id("user", temp_id_num)}
        for group in field_groups:
            if not isinstance(group, Mapping) or not group:
                raise ValidationError(
                    "Transaction.add_many was given an empty or non-mapping argument"
                )
            items = list(group.items())
            if len(items) < 2:
                raise ValidationError(
                    "Transaction.add_many field groups need an entity/attribute pair and a value"
                )
            (entity, attribute), (_, value) = items[0], items[1]
            if not _is_text(entity) or not _is_text(attribute):
                raise ValidationError(
                    "Transaction.add_many entity and attribute must be non-empty strings"
                )
            datom[Keyword(f":{entity}/{attribute}")] = inst(value)

        self._elements().append(datom)
        return self

    def clear_data(self) -> Transaction:
        """Drop every element, leaving an empty programmatic body."""
        self._body = Built()
        return self

    def load_from_file(self, path: str | os.PathLike[str]) -> Transaction:
        """Replace the body with the raw lines of an ``.edn`` file.

        Raises:
            ResourceError: If the path is empty, lacks the ``.edn`` extension
                or cannot be read.
        """
        if isinstance(path, os.PathLike):
            path = os.fspath(path)
        if not isinstance(path, str) or not path.strip():
            raise ResourceError(
                "Transaction.load_from_file path argument must be a non-empty string"
            )
        if not path.endswith(EDN_EXTENSION):
            raise ResourceError(
                f"Transaction.load_from_file {path} does not have the extension {EDN_EXTENSION}"
            )
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            raise ResourceError(
                f"Transaction.load_from_file {path} was not found or cannot be read"
            )

        try:
            with open(path, encoding="utf-8") as f:
                lines = tuple(f.readlines())
        except OSError as e:
            raise ResourceError(
                f"Transaction.load_from_file {path} was not found or cannot be read"
            ) from e

        self._body = Loaded(path, lines)
        logger.info("Loaded transaction from %s (%d lines)", path, len(lines))
        return self

    def _render(self, element: Any) -> str:
        if isinstance(element, Entity):
            return str(element)
        return self._codec.encode(element)

    def __str__(self) -> str:
        if isinstance(self._body, Loaded):
            return self._body.text
        return "[" + "".join(self._render(e) for e in self._body.elements) + "]"

    def __repr__(self) -> str:
        return f"Transaction({self})"

    def pretty_print(self) -> str:
        """Render the transaction in the multi-line layout of the Datomic docs."""
        if isinstance(self._body, Loaded):
            return self._body.text
        out = "[\n\n"
        for element in self._body.elements:
            if isinstance(element, Entity):
                out += element.pretty_print()
            else:
                out += self._codec.encode(element)
            out += "\n\n"
        return out + "]\n"
