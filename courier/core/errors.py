"""Error hierarchy for matching-list parsing."""

from __future__ import annotations

from typing import Any, Optional


class ConfigError(ValueError):
    """Raised when configuration data is invalid or missing."""


_UNSET = object()


class MatchingListError(ConfigError):
    """A matching list could not be parsed.

    ``index`` is the position of the offending list element, ``field`` the
    flat-cased key being parsed and ``raw`` the raw value that was rejected.
    Context is filled in as the error travels up from the filter parser to
    the list parser.
    """

    def __init__(
        self,
        message: str,
        *,
        raw: Any = _UNSET,
        field: Optional[str] = None,
        index: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.raw = None if raw is _UNSET else raw
        self.has_raw = raw is not _UNSET
        self.field = field
        self.index = index

    def __str__(self) -> str:
        context = []
        if self.index is not None:
            context.append(f"element {self.index}")
        if self.field is not None:
            context.append(f"field {self.field}")
        if self.has_raw:
            context.append(f"value {self.raw!r}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ValueOutOfRange(MatchingListError):
    """A domain literal does not fit in an unsigned 32-bit integer."""


class MalformedScalar(MatchingListError):
    """A literal cannot be parsed as the field's scalar type."""


class InvalidAddressEncoding(MatchingListError):
    """An address string is neither hex nor base58, or has the wrong length."""


class UnexpectedShape(MatchingListError):
    """The input is not a JSON array, a string wrapping one, or a list of objects."""


__all__ = [
    "ConfigError",
    "InvalidAddressEncoding",
    "MalformedScalar",
    "MatchingListError",
    "UnexpectedShape",
    "ValueOutOfRange",
]
