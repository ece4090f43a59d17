"""Utility helpers shared across courier core modules."""

from __future__ import annotations

import logging
from typing import Optional

from web3 import Web3


def get_logger(name: str = "courier") -> logging.Logger:
    """Return a configured logger that prints to stderr."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def ensure_web3_connected(web3: Web3, *, expected_chain_id: Optional[int] = None) -> None:
    """Validate that ``web3`` is connected and optionally matches the expected chain id."""
    if not web3.is_connected():
        raise ConnectionError("Failed to connect to the configured RPC endpoint")
    if expected_chain_id is not None and web3.eth.chain_id != expected_chain_id:
        raise ValueError(f"RPC chain ID mismatch: expected {expected_chain_id}, got {web3.eth.chain_id}")


def hex_to_bytes(data: str) -> bytes:
    """Convert a hex string (with or without ``0x``) to bytes."""
    data = data[2:] if data.startswith(("0x", "0X")) else data
    return bytes.fromhex(data)


__all__ = [
    "ensure_web3_connected",
    "get_logger",
    "hex_to_bytes",
]
