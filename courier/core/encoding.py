"""Canonical encoding of matching lists into query variables.

The explorer database stores addresses in their 20-byte form as ``bytea``,
so addresses are emitted as ``\\x`` followed by the trailing 40 hex digits of
the canonical 32-byte value. Wildcard fields are left out of a payload; the
query treats a missing variable as unconstrained.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List

from courier.core.addresses import Address
from courier.core.filters import Enumerated, Filter
from courier.core.matching_list import (
    DESTINATION_DOMAIN,
    ORIGIN_DOMAIN,
    RECIPIENT_ADDRESS,
    SENDER_ADDRESS,
    ListElement,
    MatchingList,
)

BYTEA_PREFIX = "\\x"
BYTEA_HEX_WIDTH = 40


class UnconstrainedPolicy(str, Enum):
    """What a match-everything list turns into."""

    SKIP = "skip"
    SINGLE = "single"


def encode_address(address: Address) -> str:
    encoded = address.hex()
    if len(encoded) > BYTEA_HEX_WIDTH:
        encoded = encoded[-BYTEA_HEX_WIDTH:]
    return f"{BYTEA_PREFIX}{encoded}"


def _enumerated(filter_: Filter):
    return filter_.values if isinstance(filter_, Enumerated) else None


def element_variables(element: ListElement) -> Dict[str, List[Any]]:
    """Encode the enumerated fields of ``element``; wildcard fields are omitted."""
    payload: Dict[str, List[Any]] = {}

    for key, filter_ in ((ORIGIN_DOMAIN, element.origin_domain), (DESTINATION_DOMAIN, element.destination_domain)):
        values = _enumerated(filter_)
        if values is not None:
            payload[key] = [int(value) for value in values]

    for key, filter_ in ((SENDER_ADDRESS, element.sender_address), (RECIPIENT_ADDRESS, element.recipient_address)):
        values = _enumerated(filter_)
        if values is not None:
            payload[key] = [encode_address(value) for value in values]

    return payload


def build_query_variables(
    matching_list: MatchingList,
    *,
    unconstrained: UnconstrainedPolicy = UnconstrainedPolicy.SINGLE,
) -> List[Dict[str, List[Any]]]:
    """Return one independent payload per list element.

    A match-everything list yields no payloads under ``SKIP`` and a single
    empty payload under ``SINGLE``.
    """
    if matching_list.is_unrestricted:
        if UnconstrainedPolicy(unconstrained) is UnconstrainedPolicy.SKIP:
            return []
        return [{}]
    return [element_variables(element) for element in matching_list]


__all__ = [
    "BYTEA_PREFIX",
    "UnconstrainedPolicy",
    "build_query_variables",
    "element_variables",
    "encode_address",
]
