"""The narrow codec interface the builders are given."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from datomic_builder import edn


@runtime_checkable
class EdnCodec(Protocol):
    """Two-way conversion between wire text and EDN values."""

    def encode(self, value: Any) -> str:
        """Render a single EDN value as text."""
        ...

    def parse(self, text: str) -> list[Any]:
        """Parse every top-level value found in ``text``."""
        ...


class DefaultCodec:
    """EdnCodec backed by :mod:`datomic_builder.edn`."""

    __slots__ = ("max_depth",)

    def __init__(self, max_depth: int = 100) -> None:
        self.max_depth = max_depth

    def encode(self, value: Any) -> str:
        return edn.dumps(value)

    def parse(self, text: str) -> list[Any]:
        return edn.loads_all(text, max_depth=self.max_depth)


default_codec = DefaultCodec()


def normalize(codec: EdnCodec, text: str) -> str:
    """Parse ``text`` and write every value back out, concatenated."""
    return "".join(codec.encode(value) for value in codec.parse(text))
