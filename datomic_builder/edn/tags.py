"""EDN tag handlers and registry."""

from datetime import date
from typing import Any, Callable
from uuid import UUID

from datomic_builder.edn.datetime_utils import parse_datetime
from datomic_builder.edn.types import Tag, Tagged


# Type for tag handler functions
TagHandler = Callable[[Any, int | None], Any]


def _handle_inst(value: Any, pos: int | None = None) -> Any:
    """Handle #inst tag for datetime values."""
    if isinstance(value, str):
        # A bare date stays a date so it is written back without a time
        if len(value) == 10:
            try:
                return date.fromisoformat(value)
            except ValueError:
                pass
        return parse_datetime(value, pos)
    return value


def _handle_uuid(value: Any, pos: int | None = None) -> Any:
    """Handle #uuid tag for UUID values."""
    if isinstance(value, str):
        return UUID(value)
    return value


def _handle_db_id(value: Any, pos: int | None = None) -> Any:
    """Handle #db/id tag - kept tagged so it can be written back out."""
    return Tagged(Tag("db/id"), value)


def _handle_db_fn(value: Any, pos: int | None = None) -> Any:
    """Handle #db/fn tag - kept tagged so the function body is written back out."""
    return Tagged(Tag("db/fn"), value)


class TagRegistry:
    """Registry for EDN tag handlers.

    This allows extensibility by registering custom tag handlers.
    """

    def __init__(self):
        self._handlers: dict[str, TagHandler] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self.register("inst", _handle_inst)
        self.register("uuid", _handle_uuid)
        self.register("db/id", _handle_db_id)
        self.register("db/fn", _handle_db_fn)

    def register(self, tag: str, handler: TagHandler) -> None:
        """Register a tag handler.

        Args:
            tag: The tag name (without #).
            handler: A callable that takes (value, position) and returns the processed value.
        """
        self._handlers[tag] = handler

    def unregister(self, tag: str) -> None:
        self._handlers.pop(tag, None)

    def get_handler(self, tag: str) -> TagHandler | None:
        return self._handlers.get(tag)

    def is_known(self, tag: str) -> bool:
        return tag in self._handlers

    @property
    def known_tags(self) -> set[str]:
        """Get the set of all registered tag names."""
        return set(self._handlers.keys())


# Default tag registry instance
default_registry = TagRegistry()
