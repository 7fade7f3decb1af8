"""Custom exceptions for datomic-builder."""


class DatomicBuilderError(Exception):
    """Base exception for datomic-builder."""


class ValidationError(DatomicBuilderError):
    """A builder argument was missing, of the wrong type or outside its enumeration."""


class SequenceError(ValidationError):
    """A builder call was made out of order."""


class ResourceError(ValidationError):
    """A file given to a builder is missing, unreadable or has the wrong extension."""


class EDNParseError(DatomicBuilderError):
    """EDN parsing and serialization errors."""


class DatomicClientError(DatomicBuilderError):
    """HTTP client errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DatomicConnectionError(DatomicClientError):
    """Connection/network errors."""
