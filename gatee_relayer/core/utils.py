"""Utility helpers shared across relayer core modules."""

from __future__ import annotations

import logging
import re
from typing import Optional

from web3 import Web3

TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def get_logger(name: str = "gatee_relayer") -> logging.Logger:
    """Return a configured logger that prints to stdout."""
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
    data = data[2:] if data.startswith("0x") else data
    return bytes.fromhex(data)


def is_tx_hash(value: object) -> bool:
    """Return True for a ``0x``-prefixed 32-byte hex transaction hash."""
    return isinstance(value, str) and bool(TX_HASH_PATTERN.match(value))


def normalize_address(value: str) -> str:
    """Lower-case an address, accepting 32-byte left-padded identifiers."""
    text = value.lower()
    if text.startswith("0x") and len(text) == 66:
        text = "0x" + text[-40:]
    return text


def hex_prefix(data: bytes, length: int = 32) -> str:
    """Short hex rendering of ``data`` for error messages."""
    rendered = bytes(data[:length]).hex()
    suffix = "…" if len(data) > length else ""
    return f"0x{rendered}{suffix}"


__all__ = [
    "TX_HASH_PATTERN",
    "ensure_web3_connected",
    "get_logger",
    "hex_prefix",
    "hex_to_bytes",
    "is_tx_hash",
    "normalize_address",
]
