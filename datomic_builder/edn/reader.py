"""EDN reader/parser implementation."""

from decimal import Decimal, InvalidOperation
from typing import Callable

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
from datomic_builder.exceptions import EDNParseError

_DELIMITERS = " \t\n\r,()[]{}\"\\;"
_STRING_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}
_SYMBOLIC_VALUES = {"Inf": float("inf"), "-Inf": float("-inf"), "NaN": float("nan")}


class EdnReader:
    """EDN reader/parser class.

    Parses EDN (Extensible Data Notation) strings into Python objects.
    Keywords come back as :class:`Keyword`, symbols as :class:`Symbol`,
    lists as :class:`EdnList` and vectors as plain tuples.

    Attributes:
        s: The EDN string being parsed.
        pos: Current position in the string.
        length: Length of the input string.
        max_depth: Maximum nesting depth allowed.
    """

    def __init__(
        self,
        s: str,
        max_depth: int = 100,
        tag_registry: TagRegistry | None = None,
    ):
        self.s = s
        self.pos = 0
        self.length = len(s)
        self.max_depth = max_depth
        self._current_depth = 0
        self._tag_registry = tag_registry or default_registry

        # Dispatch table for character-based readers
        self._readers: dict[str, Callable[[], EDNValue]] = {
            '"': self._read_string,
            "[": self._read_vector,
            "(": self._read_list,
            "{": self._read_map,
            "#": self._read_dispatch,
            "\\": self._read_char,
            ":": self._read_keyword,
        }

    def peek(self) -> str | None:
        if self.pos >= self.length:
            return None
        return self.s[self.pos]

    def read(self) -> str | None:
        if self.pos >= self.length:
            return None
        c = self.s[self.pos]
        self.pos += 1
        return c

    def at_end(self) -> bool:
        """True once only whitespace and comments remain."""
        self.skip_whitespace_and_comments()
        return self.pos >= self.length

    def skip_whitespace_and_comments(self) -> None:
        """Skip whitespace, commas, and comments."""
        while self.pos < self.length:
            c = self.s[self.pos]
            if c in " \t\n\r,":
                self.pos += 1
            elif c == ";":
                while self.pos < self.length and self.s[self.pos] != "\n":
                    self.pos += 1
            else:
                break

    def _read_string(self) -> str:
        start_pos = self.pos - 1
        chars = []
        while True:
            c = self.read()
            if c is None:
                raise EDNParseError(f"Unterminated string at position {start_pos}")
            if c == '"':
                break
            if c == "\\":
                escape = self.read()
                if escape is None:
                    raise EDNParseError(f"Unterminated string at position {start_pos}")
                chars.append(_STRING_ESCAPES.get(escape, escape))
            else:
                chars.append(c)
        return "".join(chars)

    def read_token(self, first_char: str) -> str:
        """Read the raw text of a symbol or keyword."""
        chars = [first_char]
        while self.pos < self.length:
            c = self.s[self.pos]
            if c in _DELIMITERS:
                break
            chars.append(c)
            self.pos += 1
        return "".join(chars)

    def read_number(self, first_char: str) -> int | float | Decimal:
        start_pos = self.pos - 1
        chars = [first_char]
        has_decimal = first_char == "."
        while self.pos < self.length:
            c = self.s[self.pos]
            if c == ".":
                if has_decimal:
                    raise EDNParseError(
                        f"Invalid number: multiple decimal points at position {start_pos}"
                    )
                has_decimal = True
                chars.append(c)
                self.pos += 1
            elif c.isdigit() or c in "-+eE":
                chars.append(c)
                self.pos += 1
            else:
                break
        num_str = "".join(chars)
        # 100N is a bigint, 1.5M a bigdec
        suffix = self.peek()
        if suffix in ("M", "N"):
            self.pos += 1
        try:
            if suffix == "M":
                return Decimal(num_str)
            if suffix == "N":
                return BigInt(num_str)
            if "." in num_str or "e" in num_str.lower():
                return float(num_str)
            return int(num_str)
        except (ValueError, InvalidOperation) as e:
            raise EDNParseError(f"Invalid number {num_str!r} at position {start_pos}") from e

    def _read_char(self) -> Char:
        start_pos = self.pos - 1
        if self.pos >= self.length:
            raise EDNParseError(
                f"Unexpected end of input reading character at position {start_pos}"
            )

        remaining = self.s[self.pos:]
        for name, char_value in NAMED_CHARS.items():
            if remaining.startswith(name):
                end_pos = self.pos + len(name)
                if end_pos >= self.length or self.s[end_pos] in _DELIMITERS:
                    self.pos = end_pos
                    return Char(char_value)

        return Char(self.read())

    def _enter(self, start_pos: int) -> None:
        self._current_depth += 1
        if self._current_depth > self.max_depth:
            raise EDNParseError(
                f"Maximum nesting depth ({self.max_depth}) exceeded at position {start_pos}"
            )

    def _read_collection(self, end_char: str) -> list:
        start_pos = self.pos - 1
        self._enter(start_pos)
        try:
            items = []
            while True:
                self.skip_whitespace_and_comments()
                c = self.peek()
                if c is None:
                    raise EDNParseError(
                        f"Unterminated collection, expected {end_char} at position {start_pos}"
                    )
                if c == end_char:
                    self.read()
                    break
                value = self.read_value()
                if value is not SKIP:
                    items.append(value)
            return items
        finally:
            self._current_depth -= 1

    def _read_vector(self) -> tuple:
        return tuple(self._read_collection("]"))

    def _read_list(self) -> EdnList:
        return EdnList(self._read_collection(")"))

    def _read_map(self) -> dict:
        start_pos = self.pos - 1
        self._enter(start_pos)
        try:
            result = {}
            while True:
                self.skip_whitespace_and_comments()
                c = self.peek()
                if c is None:
                    raise EDNParseError(f"Unterminated map at position {start_pos}")
                if c == "}":
                    self.read()
                    break
                key = self.read_value()
                self.skip_whitespace_and_comments()
                if self.peek() in ("}", None):
                    raise EDNParseError(
                        f"Map literal with odd number of forms at position {start_pos}"
                    )
                value = self.read_value()
                # Entries touched by an unknown tag are dropped
                if key is SKIP or value is SKIP:
                    continue
                try:
                    result[key] = value
                except TypeError as e:
                    raise EDNParseError(f"Unhashable map key at position {start_pos}") from e
            return result
        finally:
            self._current_depth -= 1

    def _read_dispatch(self) -> EDNValue:
        dispatch_pos = self.pos - 1
        next_c = self.peek()
        if next_c == "{":
            self.read()
            items = self._read_collection("}")
            try:
                return frozenset(items)
            except TypeError:
                return tuple(items)
        if next_c == "_":
            self.read()
            self.read_value()
            self.skip_whitespace_and_comments()
            if self.peek() in (None, "]", ")", "}"):
                return SKIP
            return self.read_value()
        if next_c == "#":
            self.read()
            name = self.read_token("")
            if name not in _SYMBOLIC_VALUES:
                raise EDNParseError(
                    f"Unknown symbolic value ##{name} at position {dispatch_pos}"
                )
            return _SYMBOLIC_VALUES[name]
        tag = self.read_token("")
        if not tag:
            raise EDNParseError(f"Empty tag at position {dispatch_pos}")
        return self._read_tagged(tag, dispatch_pos)

    def _read_tagged(self, tag: str, tag_pos: int) -> EDNValue:
        self.skip_whitespace_and_comments()
        value = self.read_value()

        handler = self._tag_registry.get_handler(tag)
        if handler is not None:
            return handler(value, tag_pos)

        # Unknown tags are kept so the value can be written back out
        return Tagged(Tag(tag), value)

    def _read_keyword(self) -> Keyword:
        return Keyword(self.read_token(":"))

    def read_value(self) -> EDNValue | None:
        """Read a single EDN value.

        Returns:
            The parsed EDN value, or None for empty input.
            EDN nil also returns None; use loads_all() to tell them apart.
        """
        self.skip_whitespace_and_comments()

        c = self.peek()
        if c is None:
            return None

        if c in self._readers:
            self.read()
            return self._readers[c]()

        if c.isdigit() or (
            c in "-+"
            and self.pos + 1 < self.length
            and (self.s[self.pos + 1].isdigit() or self.s[self.pos + 1] == ".")
        ):
            return self.read_number(self.read())

        if c == ".":
            return self.read_number(self.read())

        # @ is not a valid symbol start in EDN
        if c not in "()[]{}\"\\;,@":
            word = self.read_token(self.read())
            if word == "true":
                return True
            if word == "false":
                return False
            if word == "nil":
                return None
            return Symbol(word)

        raise EDNParseError(f"Unexpected character: {c} at position {self.pos}")
