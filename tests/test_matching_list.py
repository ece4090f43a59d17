from __future__ import annotations

import json

import pytest

from courier.core.addresses import Address
from courier.core.errors import (
    ConfigError,
    InvalidAddressEncoding,
    MalformedScalar,
    MatchingListError,
    UnexpectedShape,
    ValueOutOfRange,
)
from courier.core.filters import WILDCARD, Enumerated
from courier.core.matching_list import ListElement, MatchingList, MessageCandidate, flat_case

BASE58_ELEMENT = (
    '[{"origindomain":1399811151,"senderaddress":"DdTMkk9nuqH5LnD56HLkPiKMV3yB3BNEYSQfgmJHa5i7",'
    '"destinationdomain":11155111,"recipientaddress":"0x6AD4DEBA8A147d000C09de6465267a9047d1c217"}]'
)


def _candidate(origin: int = 1, destination: int = 2, sender: str = "0x01", recipient: str = "0x02") -> MessageCandidate:
    return MessageCandidate.parse(origin=origin, sender=sender, destination=destination, recipient=recipient)


def test_config_with_multiple_domains() -> None:
    matching_list = MatchingList.parse('[{"destinationdomain": ["13372", "13373"]}]')
    assert matching_list.elements is not None
    assert len(matching_list.elements) == 1
    element = matching_list.elements[0]
    assert element.destination_domain == Enumerated((13372, 13373))
    assert element.recipient_address == WILDCARD
    assert element.origin_domain == WILDCARD
    assert element.sender_address == WILDCARD


@pytest.mark.parametrize("raw", [None, [], "[]"])
def test_absent_and_empty_lists_match_everything(raw) -> None:
    matching_list = MatchingList.parse(raw)
    assert matching_list.elements is None
    assert matching_list.is_unrestricted
    assert matching_list.matches(_candidate())
    assert str(matching_list) == "null"


def test_supports_base58(solana_sender: Address, evm_recipient: Address) -> None:
    matching_list = MatchingList.parse(BASE58_ELEMENT)
    element = matching_list.elements[0]
    assert element.sender_address == Enumerated((solana_sender,))
    assert element.recipient_address == Enumerated((evm_recipient,))
    assert matching_list.matches(
        MessageCandidate(origin=1399811151, sender=solana_sender, destination=11155111, recipient=evm_recipient)
    )


def test_accepts_native_list_and_string_wrapped_list() -> None:
    raw = [{"origindomain": "5", "destinationdomain": "*"}]
    assert MatchingList.parse(raw) == MatchingList.parse(json.dumps(raw))


def test_keys_are_flat_cased() -> None:
    matching_list = MatchingList.parse([{"originDomain": 5, "recipient_address": "0x02", "Destination-Domain": [1]}])
    element = matching_list.elements[0]
    assert element.origin_domain == Enumerated((5,))
    assert element.recipient_address == Enumerated((Address.parse("0x02"),))
    assert element.destination_domain == Enumerated((1,))
    assert flat_case("Sender_Address") == "senderaddress"


def test_unknown_keys_are_ignored() -> None:
    matching_list = MatchingList.parse([{"origindomain": 5, "comment": "ignored"}])
    assert matching_list.elements[0] == ListElement(origin_domain=Enumerated((5,)))


def test_destination_wildcard_matches_any_message() -> None:
    matching_list = MatchingList.parse('[{"destinationdomain":"*"}]')
    assert matching_list.matches(_candidate())
    assert matching_list.matches(_candidate(origin=99, destination=4294967295, sender="0xff", recipient="0xee"))


def test_element_fields_are_anded() -> None:
    matching_list = MatchingList.parse([{"origindomain": 1, "destinationdomain": 2, "senderaddress": "0x01"}])
    assert matching_list.matches(_candidate())
    assert not matching_list.matches(_candidate(origin=3))
    assert not matching_list.matches(_candidate(destination=3))
    assert not matching_list.matches(_candidate(sender="0x03"))


def test_elements_are_ored() -> None:
    matching_list = MatchingList.parse([{"origindomain": 1}, {"destinationdomain": 9}])
    assert matching_list.matches(_candidate(origin=1, destination=5))
    assert matching_list.matches(_candidate(origin=7, destination=9))
    assert not matching_list.matches(_candidate(origin=7, destination=5))


def test_empty_enumerated_field_never_matches() -> None:
    matching_list = MatchingList.parse([{"origindomain": []}])
    assert matching_list.elements is not None
    assert not matching_list.matches(_candidate())


def test_invalid_address_rejects_whole_list() -> None:
    with pytest.raises(InvalidAddressEncoding) as excinfo:
        MatchingList.parse('[{"origindomain":1,"senderaddress":"not-a-valid-address"}]')
    error = excinfo.value
    assert error.index == 0
    assert error.field == "senderaddress"
    assert error.raw == "not-a-valid-address"
    assert isinstance(error, ConfigError)
    assert "element 0" in str(error)


def test_oversized_hex_address_keeps_input_text() -> None:
    text = "0x" + "11" * 33
    with pytest.raises(InvalidAddressEncoding) as excinfo:
        MatchingList.parse([{"senderaddress": text}])
    assert excinfo.value.raw == text
    assert excinfo.value.field == "senderaddress"
    assert excinfo.value.index == 0


def test_error_reports_offending_element_index() -> None:
    with pytest.raises(ValueOutOfRange) as excinfo:
        MatchingList.parse([{"origindomain": 1}, {"destinationdomain": [1, 4294967296]}])
    assert excinfo.value.index == 1
    assert excinfo.value.field == "destinationdomain"
    assert excinfo.value.raw == 4294967296


def test_malformed_domain() -> None:
    with pytest.raises(MalformedScalar):
        MatchingList.parse([{"origindomain": "one"}])


@pytest.mark.parametrize("raw", ['{"origindomain": 1}', "not json", 5, {"origindomain": 1}, '"[]"', [1]])
def test_unexpected_shape(raw) -> None:
    with pytest.raises(UnexpectedShape):
        MatchingList.parse(raw)


def test_all_errors_share_base_class() -> None:
    for error_type in (ValueOutOfRange, MalformedScalar, InvalidAddressEncoding, UnexpectedShape):
        assert issubclass(error_type, MatchingListError)


def test_render() -> None:
    matching_list = MatchingList.parse([{"origindomain": 1, "destinationdomain": [2, 3]}, {}])
    assert str(matching_list) == (
        "[{originDomain: 1, senderAddress: *, destinationDomain: [2,3,], recipientAddress: *},"
        "{originDomain: *, senderAddress: *, destinationDomain: *, recipientAddress: *},]"
    )
