"""Core domain logic for courier."""

from .addresses import Address
from .encoding import UnconstrainedPolicy, build_query_variables, element_variables, encode_address
from .errors import (
    ConfigError,
    InvalidAddressEncoding,
    MalformedScalar,
    MatchingListError,
    UnexpectedShape,
    ValueOutOfRange,
)
from .filters import WILDCARD, Enumerated, Wildcard
from .matching_list import ListElement, MatchingList, MessageCandidate

__all__ = [
    "Address",
    "ConfigError",
    "Enumerated",
    "InvalidAddressEncoding",
    "ListElement",
    "MalformedScalar",
    "MatchingList",
    "MatchingListError",
    "MessageCandidate",
    "UnconstrainedPolicy",
    "UnexpectedShape",
    "ValueOutOfRange",
    "WILDCARD",
    "Wildcard",
    "build_query_variables",
    "element_variables",
    "encode_address",
]
