"""Matching lists: OR-combined rules deciding whether a message is acted upon.

A matching list is an optional sequence of elements. Each element holds four
field filters (origin domain, sender, destination domain, recipient) that
must all match. An absent list and an explicitly empty list both match every
message.

Accepted input::

    [{"origindomain": 1, "senderaddress": "*", "destinationdomain": ["2", "0x3"],
      "recipientaddress": "0x6AD4DEBA8A147d000C09de6465267a9047d1c217"}]

or the same array wrapped in a JSON string.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

from courier.core.addresses import Address
from courier.core.errors import MatchingListError, UnexpectedShape
from courier.core.filters import WILDCARD, Filter, parse_address_filter, parse_domain, parse_domain_filter
from courier.core.utils import get_logger

LOGGER = get_logger("courier.matching_list")

ORIGIN_DOMAIN = "origindomain"
SENDER_ADDRESS = "senderaddress"
DESTINATION_DOMAIN = "destinationdomain"
RECIPIENT_ADDRESS = "recipientaddress"

_FIELD_PARSERS: Dict[str, Tuple[str, Callable[[Any], Filter]]] = {
    ORIGIN_DOMAIN: ("origin_domain", parse_domain_filter),
    SENDER_ADDRESS: ("sender_address", parse_address_filter),
    DESTINATION_DOMAIN: ("destination_domain", parse_domain_filter),
    RECIPIENT_ADDRESS: ("recipient_address", parse_address_filter),
}


def flat_case(key: str) -> str:
    """Lower-case ``key`` and drop separators, e.g. ``origin_Domain`` -> ``origindomain``."""
    return "".join(ch for ch in key.lower() if ch not in "_- ")


@dataclass(frozen=True)
class MessageCandidate:
    """The routing identity of a cross-chain message."""

    origin: int
    sender: Address
    destination: int
    recipient: Address

    @classmethod
    def parse(
        cls,
        *,
        origin: Union[int, str],
        sender: Union[Address, str],
        destination: Union[int, str],
        recipient: Union[Address, str],
    ) -> "MessageCandidate":
        """Build a candidate from textual domain ids and addresses."""
        return cls(
            origin=parse_domain(origin),
            sender=sender if isinstance(sender, Address) else Address.parse(sender),
            destination=parse_domain(destination),
            recipient=recipient if isinstance(recipient, Address) else Address.parse(recipient),
        )


@dataclass(frozen=True)
class ListElement:
    """Four field filters combined with AND semantics."""

    origin_domain: Filter = WILDCARD
    sender_address: Filter = WILDCARD
    destination_domain: Filter = WILDCARD
    recipient_address: Filter = WILDCARD

    @classmethod
    def parse(cls, raw: Any) -> "ListElement":
        if not isinstance(raw, Mapping):
            raise UnexpectedShape("Matching list entries must be JSON objects", raw=raw)

        fields: Dict[str, Filter] = {}
        for key, value in raw.items():
            flat = flat_case(str(key))
            if flat not in _FIELD_PARSERS:
                LOGGER.warning("Ignoring unknown matching list key %r", key)
                continue
            attribute, parser = _FIELD_PARSERS[flat]
            try:
                fields[attribute] = parser(value)
            except MatchingListError as exc:
                exc.field = flat
                if not exc.has_raw:
                    exc.raw, exc.has_raw = value, True
                raise
        return cls(**fields)

    def matches(self, candidate: MessageCandidate) -> bool:
        return (
            self.origin_domain.matches(candidate.origin)
            and self.sender_address.matches(candidate.sender)
            and self.destination_domain.matches(candidate.destination)
            and self.recipient_address.matches(candidate.recipient)
        )

    def __str__(self) -> str:
        return (
            f"{{originDomain: {self.origin_domain}, senderAddress: {self.sender_address}, "
            f"destinationDomain: {self.destination_domain}, recipientAddress: {self.recipient_address}}}"
        )


@dataclass(frozen=True)
class MatchingList:
    """OR-combined list elements; ``elements is None`` matches everything."""

    elements: Optional[Tuple[ListElement, ...]] = None

    @classmethod
    def parse(cls, raw: Any) -> "MatchingList":
        """Parse a JSON array, or a string holding one, into a matching list."""
        if raw is None:
            return cls()
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise UnexpectedShape(f"Matching list is not valid JSON: {exc.msg}") from exc
        if not isinstance(raw, (list, tuple)):
            raise UnexpectedShape("Expected a JSON array or a string containing one", raw=raw)

        elements = []
        for index, item in enumerate(raw):
            try:
                elements.append(ListElement.parse(item))
            except MatchingListError as exc:
                exc.index = index
                raise
        if not elements:
            return cls()
        return cls(tuple(elements))

    @property
    def is_unrestricted(self) -> bool:
        return self.elements is None

    def matches(self, candidate: MessageCandidate) -> bool:
        if self.elements is None:
            return True
        return any(element.matches(candidate) for element in self.elements)

    def __iter__(self) -> Iterator[ListElement]:
        return iter(self.elements or ())

    def __str__(self) -> str:
        if self.elements is None:
            return "null"
        return "[" + "".join(f"{element}," for element in self.elements) + "]"


__all__ = [
    "DESTINATION_DOMAIN",
    "ListElement",
    "MatchingList",
    "MessageCandidate",
    "ORIGIN_DOMAIN",
    "RECIPIENT_ADDRESS",
    "SENDER_ADDRESS",
    "flat_case",
]
