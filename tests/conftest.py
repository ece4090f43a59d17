from __future__ import annotations

import pytest

from courier.core.addresses import Address

EVM_RECIPIENT = "0x6AD4DEBA8A147d000C09de6465267a9047d1c217"
SOLANA_SENDER = "DdTMkk9nuqH5LnD56HLkPiKMV3yB3BNEYSQfgmJHa5i7"


@pytest.fixture
def evm_recipient() -> Address:
    return Address.parse(EVM_RECIPIENT)


@pytest.fixture
def solana_sender() -> Address:
    return Address.parse(SOLANA_SENDER)
