"""Dispatching messages through a Mailbox contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from eth_account import Account
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ContractLogicError

from courier.config import CourierConfig, load_config
from courier.contracts import load_contract_abi
from courier.core.addresses import Address
from courier.core.filters import parse_domain
from courier.core.utils import ensure_web3_connected, get_logger, hex_to_bytes

LOGGER = get_logger("courier.dispatch")


@dataclass(frozen=True)
class DispatchRequest:
    """Arguments handed unchanged to ``Mailbox.dispatch``."""

    destination_domain: int
    recipient: bytes
    body: bytes


@dataclass(frozen=True)
class GasParameters:
    """EIP-1559 gas parameters."""

    gas: int
    gas_price: int
    max_priority_fee: int
    max_fee: int
    estimated_cost: int


def prepare_dispatch(
    destination_domain: Union[int, str],
    recipient: Union[Address, str],
    message: Union[bytes, str],
) -> DispatchRequest:
    """Convert textual CLI arguments into a :class:`DispatchRequest`."""
    if not isinstance(recipient, Address):
        recipient = Address.parse(recipient)
    if isinstance(message, str):
        try:
            message = hex_to_bytes(message)
        except ValueError as exc:
            raise ValueError(f"Message body must be hex encoded: {exc}") from exc
    return DispatchRequest(
        destination_domain=parse_domain(destination_domain),
        recipient=recipient.raw,
        body=bytes(message),
    )


class MailboxSender:
    """Signs and broadcasts ``dispatch`` calls against a Mailbox contract."""

    def __init__(
        self,
        *,
        rpc_url: Optional[str],
        private_key: str,
        mailbox_address: Optional[str] = None,
        config: Optional[CourierConfig] = None,
        web3_factory: Callable[[str], Web3] = lambda url: Web3(Web3.HTTPProvider(url)),
    ) -> None:
        self.config = config or load_config()

        resolved_rpc = rpc_url or self.config.mailbox.ensure_rpc_url()
        self.web3 = web3_factory(resolved_rpc)
        ensure_web3_connected(self.web3, expected_chain_id=self.config.mailbox.chain_id)

        self.account = Account.from_key(private_key)
        self.address = self.account.address
        self.chain_id = self.web3.eth.chain_id
        LOGGER.info("Connected to chain %s as %s", self.chain_id, self.address)

        mailbox = mailbox_address or self.config.mailbox.ensure_address()
        self.contract: Contract = self.web3.eth.contract(
            address=Web3.to_checksum_address(mailbox),
            abi=load_contract_abi("mailbox.json"),
        )

    def _dispatch_fn(self, request: DispatchRequest):
        return self.contract.functions.dispatch(
            request.destination_domain,
            request.recipient,
            request.body,
        )

    def quote_fee(self, request: DispatchRequest) -> int:
        """Return the protocol fee required by the mailbox, or 0 if it cannot be quoted."""
        try:
            return int(
                self.contract.functions.quoteDispatch(
                    request.destination_domain,
                    request.recipient,
                    request.body,
                ).call()
            )
        except ContractLogicError as exc:
            LOGGER.warning("quoteDispatch reverted, assuming zero fee: %s", exc)
            return 0

    def estimate_gas(self, request: DispatchRequest, *, value: int = 0) -> GasParameters:
        """Estimate gas usage for ``request``."""
        try:
            gas_estimate = self._dispatch_fn(request).estimate_gas({"from": self.address, "value": value})
        except ContractLogicError as exc:
            raise ValueError(f"Contract would revert: {exc}") from exc
        return self._gas_parameters(gas_estimate)

    def build_transaction(self, request: DispatchRequest, gas: GasParameters, *, value: int = 0) -> Dict[str, Any]:
        """Build the 1559 transaction payload."""
        nonce = self.web3.eth.get_transaction_count(self.address)
        return self._dispatch_fn(request).build_transaction(
            {
                "from": self.address,
                "gas": int(gas.gas * 1.1),  # add a 10% buffer
                "maxFeePerGas": gas.max_fee,
                "maxPriorityFeePerGas": gas.max_priority_fee,
                "nonce": nonce,
                "chainId": self.chain_id,
                "value": value,
            }
        )

    def execute_dry_run(self, request: DispatchRequest) -> GasParameters:
        """Simulate the dispatch without broadcasting."""
        self._log_request(request)
        fee = self.quote_fee(request)
        gas = self.estimate_gas(request, value=fee)
        self._log_gas(gas)
        return gas

    def execute_send(self, request: DispatchRequest) -> str:
        """Sign and broadcast the dispatch, returning the transaction hash."""
        self._log_request(request)
        fee = self.quote_fee(request)

        try:
            gas = self.estimate_gas(request, value=fee)
            self._log_gas(gas)
        except Exception as exc:
            LOGGER.warning("Gas estimation failed: %s", exc)
            gas = self._gas_parameters(self.config.defaults.fallback_gas)
            self._log_gas(gas, label="Fallback")

        tx = self.build_transaction(request, gas, value=fee)
        LOGGER.info("Signing transaction")
        signed = self.account.sign_transaction(tx)

        LOGGER.info("Broadcasting transaction to mailbox %s", self.contract.address)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        tx_hex = tx_hash.hex()
        LOGGER.info("Transaction hash: %s", tx_hex)

        LOGGER.info("Awaiting confirmation")
        receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash)
        if receipt["status"] == 1:
            LOGGER.info("Transaction confirmed in block %s (gasUsed=%s)", receipt["blockNumber"], receipt["gasUsed"])
        else:
            LOGGER.error("Transaction failed! status=%s", receipt["status"])

        return tx_hex

    def _gas_parameters(self, gas: int) -> GasParameters:
        gas_price = self.web3.eth.gas_price
        max_priority_fee = getattr(self.web3.eth, "max_priority_fee", gas_price)
        return GasParameters(
            gas=gas,
            gas_price=gas_price,
            max_priority_fee=max_priority_fee,
            max_fee=gas_price + max_priority_fee,
            estimated_cost=gas * gas_price,
        )

    @staticmethod
    def _log_request(request: DispatchRequest) -> None:
        LOGGER.info(
            "Dispatch destination=%s recipient=0x%s body=%s bytes",
            request.destination_domain,
            request.recipient.hex(),
            len(request.body),
        )

    @staticmethod
    def _log_gas(gas: GasParameters, *, label: str = "Estimate") -> None:
        LOGGER.info(
            "%s gas=%s maxFee=%.2f gwei priority=%.2f gwei estimatedCost=%.6f ETH",
            label,
            gas.gas,
            gas.max_fee / 10**9,
            gas.max_priority_fee / 10**9,
            gas.estimated_cost / 10**18,
        )


__all__ = ["DispatchRequest", "GasParameters", "MailboxSender", "prepare_dispatch"]
