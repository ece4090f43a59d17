from __future__ import annotations

import pytest

from courier.core.addresses import Address
from courier.core.errors import InvalidAddressEncoding, MalformedScalar, ValueOutOfRange
from courier.core.filters import (
    MAX_DOMAIN_ID,
    WILDCARD,
    Enumerated,
    Shape,
    Wildcard,
    classify,
    parse_address_filter,
    parse_domain,
    parse_domain_filter,
)


def test_classify_shapes() -> None:
    assert classify("*") is Shape.WILDCARD
    assert classify(5) is Shape.SCALAR
    assert classify("0x5") is Shape.SCALAR
    assert classify(["1", 2]) is Shape.SEQUENCE
    assert classify(True) is Shape.OTHER
    assert classify({"a": 1}) is Shape.OTHER
    assert classify(None) is Shape.OTHER


@pytest.mark.parametrize("value", [0, 1, 13372, MAX_DOMAIN_ID, 2**31])
def test_wildcard_matches_everything(value: int) -> None:
    assert Wildcard().matches(value) is True
    assert WILDCARD.matches(value) is True


def test_enumerated_matches_by_membership() -> None:
    filter_ = Enumerated((13372, 13373, 13372))
    assert filter_.matches(13372)
    assert filter_.matches(13373)
    assert not filter_.matches(1)


def test_empty_enumerated_matches_nothing() -> None:
    filter_ = parse_domain_filter([])
    assert filter_ == Enumerated(())
    assert not filter_.matches(0)


def test_parse_domain_filter_shapes() -> None:
    assert parse_domain_filter("*") is WILDCARD
    assert parse_domain_filter(7) == Enumerated((7,))
    assert parse_domain_filter("7") == Enumerated((7,))
    assert parse_domain_filter("0x10") == Enumerated((16,))
    assert parse_domain_filter(["13372", 13373, "0x3"]) == Enumerated((13372, 13373, 3))


def test_parse_domain_preserves_order_and_duplicates() -> None:
    assert parse_domain_filter([3, 1, 3]).values == (3, 1, 3)


@pytest.mark.parametrize("value", [MAX_DOMAIN_ID + 1, "4294967296", "0x100000000", -1])
def test_domain_out_of_range(value) -> None:
    with pytest.raises(ValueOutOfRange):
        parse_domain_filter(value)


@pytest.mark.parametrize(
    "value",
    ["abc", "1.5", 1.5, True, None, {"a": 1}, ["*"], [None], "0x", "-3", "0x-1", "0x1_0", "0x 1f", "1_000", "+7", "\u0661\u0662"],
)
def test_domain_malformed(value) -> None:
    with pytest.raises(MalformedScalar):
        parse_domain_filter(value)


def test_parse_domain_upper_bound() -> None:
    assert parse_domain(str(MAX_DOMAIN_ID)) == MAX_DOMAIN_ID


def test_parse_address_filter_shapes(evm_recipient: Address, solana_sender: Address) -> None:
    assert parse_address_filter("*") is WILDCARD
    assert parse_address_filter("0x6AD4DEBA8A147d000C09de6465267a9047d1c217") == Enumerated((evm_recipient,))
    both = parse_address_filter(
        ["0x6ad4deba8a147d000c09de6465267a9047d1c217", "DdTMkk9nuqH5LnD56HLkPiKMV3yB3BNEYSQfgmJHa5i7"]
    )
    assert both == Enumerated((evm_recipient, solana_sender))
    assert both.matches(solana_sender)


def test_address_filter_rejects_non_strings() -> None:
    with pytest.raises(MalformedScalar):
        parse_address_filter(12)
    with pytest.raises(MalformedScalar):
        parse_address_filter([12])


def test_address_filter_rejects_bad_encoding() -> None:
    with pytest.raises(InvalidAddressEncoding):
        parse_address_filter("not-a-valid-address")


def test_render() -> None:
    assert str(WILDCARD) == "*"
    assert str(Enumerated((5,))) == "5"
    assert str(Enumerated((5, 6))) == "[5,6,]"
    assert str(Enumerated(())) == "[]"
    assert str(Enumerated((Address.parse("0x01"),))) == "0x" + "00" * 31 + "01"
