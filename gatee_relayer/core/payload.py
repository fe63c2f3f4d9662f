"""Codec for the hook payload ``(address buyer, uint256 itemId, uint256 qty, string memo)``."""

from __future__ import annotations

from eth_abi import decode, encode
from web3 import Web3

from gatee_relayer.core.models import FulfillmentRequest
from gatee_relayer.core.utils import hex_prefix
from gatee_relayer.errors import DecodeError

PAYLOAD_TYPES = ["address", "uint256", "uint256", "string"]
MAX_MEMO_LENGTH = 256


def encode_fulfillment_request(request: FulfillmentRequest) -> bytes:
    """ABI-encode ``request`` the way the checkout page builds hook data."""
    return encode(
        PAYLOAD_TYPES,
        [Web3.to_checksum_address(request.buyer), request.item_id, request.quantity, request.memo],
    )


def decode_fulfillment_request(payload: bytes) -> FulfillmentRequest:
    """Decode attested hook data into a :class:`FulfillmentRequest`.

    The payload must be the exact canonical encoding of the four fields:
    trailing bytes, non-canonical padding, a zero quantity or an oversized
    memo are all rejected.
    """
    payload = bytes(payload)
    try:
        buyer, item_id, quantity, memo = decode(PAYLOAD_TYPES, payload)
    except Exception as exc:  # eth_abi raises several DecodingError subclasses and ValueError
        raise DecodeError(f"Bad hookData decode ({hex_prefix(payload)}): {exc}") from exc

    request = FulfillmentRequest(buyer=buyer, item_id=item_id, quantity=quantity, memo=memo)
    if encode_fulfillment_request(request) != payload:
        raise DecodeError(f"Bad hookData decode ({hex_prefix(payload)}): payload is not a canonical 4-field encoding")
    if quantity <= 0:
        raise DecodeError(f"Bad hookData decode ({hex_prefix(payload)}): quantity must be positive")
    if len(memo) > MAX_MEMO_LENGTH:
        raise DecodeError(f"Bad hookData decode ({hex_prefix(payload)}): memo exceeds {MAX_MEMO_LENGTH} characters")
    return request


__all__ = ["MAX_MEMO_LENGTH", "PAYLOAD_TYPES", "decode_fulfillment_request", "encode_fulfillment_request"]
