"""Canonical 32-byte addresses."""

from __future__ import annotations

from dataclasses import dataclass

import base58
from web3 import Web3

from courier.core.errors import InvalidAddressEncoding

ADDRESS_LENGTH = 32


@dataclass(frozen=True)
class Address:
    """A fixed-width 32-byte account or contract address.

    Shorter values (20-byte EVM addresses) are left-padded with zero bytes,
    so every address compares byte-exactly regardless of its source encoding.
    """

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != ADDRESS_LENGTH:
            raise InvalidAddressEncoding(
                f"Address must be exactly {ADDRESS_LENGTH} bytes, got {len(self.raw)}"
            )

    @classmethod
    def from_bytes(cls, value: bytes) -> "Address":
        """Left-pad up to 32 raw bytes into an address."""
        if not value or len(value) > ADDRESS_LENGTH:
            raise InvalidAddressEncoding(
                f"Address must be 1 to {ADDRESS_LENGTH} bytes, got {len(value)}", raw=value
            )
        return cls(bytes(value).rjust(ADDRESS_LENGTH, b"\x00"))

    @classmethod
    def parse(cls, text: str) -> "Address":
        """Parse a ``0x`` hex string or a base58 string."""
        if not isinstance(text, str):
            raise InvalidAddressEncoding("Address must be a string", raw=text)
        if text[:2] in ("0x", "0X"):
            try:
                decoded = Web3.to_bytes(hexstr=text)
            except ValueError as exc:
                raise InvalidAddressEncoding(f"Invalid hex address: {exc}", raw=text) from exc
            if not decoded or len(decoded) > ADDRESS_LENGTH:
                raise InvalidAddressEncoding(
                    f"Hex address must decode to 1 to {ADDRESS_LENGTH} bytes, got {len(decoded)}", raw=text
                )
            return cls.from_bytes(decoded)

        try:
            decoded = base58.b58decode(text)
        except ValueError as exc:
            raise InvalidAddressEncoding("Address is neither hex nor base58", raw=text) from exc
        if len(decoded) != ADDRESS_LENGTH:
            raise InvalidAddressEncoding(
                f"Base58 address must decode to {ADDRESS_LENGTH} bytes, got {len(decoded)}",
                raw=text,
            )
        return cls(decoded)

    def hex(self) -> str:
        return self.raw.hex()

    def to_base58(self) -> str:
        return base58.b58encode(self.raw).decode("ascii")

    def __str__(self) -> str:
        return f"0x{self.raw.hex()}"


__all__ = ["ADDRESS_LENGTH", "Address"]
