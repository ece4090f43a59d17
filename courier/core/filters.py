"""Per-field filters: a wildcard or an enumerated set of accepted values."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Tuple, TypeVar, Union

from courier.core.addresses import Address
from courier.core.errors import MalformedScalar, ValueOutOfRange

T = TypeVar("T")

WILDCARD_TOKEN = "*"
MAX_DOMAIN_ID = 2**32 - 1

_HEX_LITERAL = re.compile(r"0[xX][0-9a-fA-F]+")
_DECIMAL_LITERAL = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class Wildcard:
    """Matches every value."""

    def matches(self, value: Any) -> bool:
        return True

    def render(self) -> str:
        return WILDCARD_TOKEN

    def __str__(self) -> str:
        return self.render()


WILDCARD = Wildcard()


@dataclass(frozen=True)
class Enumerated(Generic[T]):
    """Matches values that are members of ``values``.

    Input order and duplicates are preserved; an empty set matches nothing.
    """

    values: Tuple[T, ...]

    def matches(self, value: T) -> bool:
        return value in self.values

    def render(self) -> str:
        if len(self.values) == 1:
            return str(self.values[0])
        return "[" + "".join(f"{value}," for value in self.values) + "]"

    def __str__(self) -> str:
        return self.render()


Filter = Union[Wildcard, Enumerated]


class Shape(Enum):
    WILDCARD = "wildcard"
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    OTHER = "other"


def classify(raw: Any) -> Shape:
    """Classify the shape of a raw filter value."""
    if raw == WILDCARD_TOKEN:
        return Shape.WILDCARD
    if isinstance(raw, (list, tuple)):
        return Shape.SEQUENCE
    if isinstance(raw, (str, int)) and not isinstance(raw, bool):
        return Shape.SCALAR
    return Shape.OTHER


def parse_domain(raw: Any) -> int:
    """Convert a decimal/hex string or integer into a domain id."""
    if isinstance(raw, bool) or not isinstance(raw, (int, str)):
        raise MalformedScalar("Domain id must be an integer or a decimal/hex string", raw=raw)

    if isinstance(raw, int):
        value = raw
    else:
        text = raw.strip()
        if _HEX_LITERAL.fullmatch(text):
            value = int(text[2:], 16)
        elif _DECIMAL_LITERAL.fullmatch(text):
            value = int(text, 10)
        else:
            raise MalformedScalar("Domain id is not a decimal or hex number", raw=raw)

    if value < 0 or value > MAX_DOMAIN_ID:
        raise ValueOutOfRange("Domain id must fit within an unsigned 32-bit value", raw=raw)
    return value


def parse_address(raw: Any) -> Address:
    """Convert a hex or base58 string into a canonical address."""
    if not isinstance(raw, str):
        raise MalformedScalar("Address must be a hex or base58 string", raw=raw)
    return Address.parse(raw)


def parse_filter(raw: Any, convert: Callable[[Any], T]) -> Filter:
    """Map a raw value onto :class:`Wildcard` or :class:`Enumerated`."""
    shape = classify(raw)
    if shape is Shape.WILDCARD:
        return WILDCARD
    if shape is Shape.SCALAR:
        return Enumerated((convert(raw),))
    if shape is Shape.SEQUENCE:
        return Enumerated(tuple(convert(item) for item in raw))
    raise MalformedScalar(
        'Expected a wildcard "*", a single value, or a list of values', raw=raw
    )


def parse_domain_filter(raw: Any) -> Filter:
    return parse_filter(raw, parse_domain)


def parse_address_filter(raw: Any) -> Filter:
    return parse_filter(raw, parse_address)


__all__ = [
    "Enumerated",
    "Filter",
    "MAX_DOMAIN_ID",
    "Shape",
    "WILDCARD",
    "Wildcard",
    "classify",
    "parse_address",
    "parse_address_filter",
    "parse_domain",
    "parse_domain_filter",
    "parse_filter",
]
