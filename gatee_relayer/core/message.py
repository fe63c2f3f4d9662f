"""Fixed-offset codec for CCTP v2 burn messages.

The attested ``message`` bytes are laid out as a 148-byte header followed by
the burn message body::

    header: version(4) sourceDomain(4) destinationDomain(4) nonce(32)
            sender(32) recipient(32) destinationCaller(32)
            minFinalityThreshold(4) finalityThresholdExecuted(4)
    body:   version(4) burnToken(32) mintRecipient(32) amount(32)
            messageSender(32) maxFee(32) feeExecuted(32)
            expirationBlock(32) hookData(rest)

Reading fields straight from these bytes ties them to the attestation, unlike
the decoded JSON the attestation service returns next to them.
"""

from __future__ import annotations

from dataclasses import dataclass

HEADER_LENGTH = 148
BODY_FIXED_LENGTH = 228
ZERO_BYTES32 = b"\x00" * 32


class MessageFormatError(ValueError):
    """Raised when raw message bytes are too short to be a burn message."""


def _uint(data: bytes, start: int, size: int) -> int:
    return int.from_bytes(data[start : start + size], "big")


def bytes32_to_address(value: bytes) -> str:
    """Return the lower-case address held in the last 20 bytes of ``value``."""
    return "0x" + bytes(value[-20:]).hex()


def address_to_bytes32(address: str) -> bytes:
    raw = bytes.fromhex(address[2:] if address.startswith("0x") else address)
    return raw.rjust(32, b"\x00")


@dataclass(frozen=True)
class BurnMessage:
    """Decoded CCTP v2 message carrying a burn body."""

    version: int
    source_domain: int
    destination_domain: int
    nonce: bytes
    sender: bytes
    recipient: bytes
    destination_caller: bytes
    min_finality_threshold: int
    finality_threshold_executed: int
    body_version: int
    burn_token: bytes
    mint_recipient: bytes
    amount: int
    message_sender: bytes
    max_fee: int
    fee_executed: int
    expiration_block: int
    hook_data: bytes

    @property
    def mint_recipient_address(self) -> str:
        return bytes32_to_address(self.mint_recipient)


def parse_burn_message(raw: bytes) -> BurnMessage:
    """Decode ``raw`` into a :class:`BurnMessage`."""
    raw = bytes(raw)
    if len(raw) < HEADER_LENGTH + BODY_FIXED_LENGTH:
        raise MessageFormatError(
            f"message is {len(raw)} bytes, need at least {HEADER_LENGTH + BODY_FIXED_LENGTH}"
        )

    body = raw[HEADER_LENGTH:]
    return BurnMessage(
        version=_uint(raw, 0, 4),
        source_domain=_uint(raw, 4, 4),
        destination_domain=_uint(raw, 8, 4),
        nonce=raw[12:44],
        sender=raw[44:76],
        recipient=raw[76:108],
        destination_caller=raw[108:140],
        min_finality_threshold=_uint(raw, 140, 4),
        finality_threshold_executed=_uint(raw, 144, 4),
        body_version=_uint(body, 0, 4),
        burn_token=body[4:36],
        mint_recipient=body[36:68],
        amount=_uint(body, 68, 32),
        message_sender=body[100:132],
        max_fee=_uint(body, 132, 32),
        fee_executed=_uint(body, 164, 32),
        expiration_block=_uint(body, 196, 32),
        hook_data=body[BODY_FIXED_LENGTH:],
    )


def build_burn_message(
    *,
    source_domain: int,
    destination_domain: int,
    mint_recipient: str,
    hook_data: bytes = b"",
    amount: int = 0,
    nonce: bytes = ZERO_BYTES32,
    burn_token: str = "0x" + "00" * 20,
    message_sender: str = "0x" + "00" * 20,
    max_fee: int = 0,
    fee_executed: int = 0,
    version: int = 1,
    min_finality_threshold: int = 1000,
    finality_threshold_executed: int = 1000,
) -> bytes:
    """Assemble burn message bytes in the layout read by :func:`parse_burn_message`."""
    recipient = address_to_bytes32(mint_recipient)
    header = b"".join(
        [
            version.to_bytes(4, "big"),
            source_domain.to_bytes(4, "big"),
            destination_domain.to_bytes(4, "big"),
            bytes(nonce).rjust(32, b"\x00"),
            ZERO_BYTES32,
            recipient,
            ZERO_BYTES32,
            min_finality_threshold.to_bytes(4, "big"),
            finality_threshold_executed.to_bytes(4, "big"),
        ]
    )
    body = b"".join(
        [
            version.to_bytes(4, "big"),
            address_to_bytes32(burn_token),
            recipient,
            amount.to_bytes(32, "big"),
            address_to_bytes32(message_sender),
            max_fee.to_bytes(32, "big"),
            fee_executed.to_bytes(32, "big"),
            (0).to_bytes(32, "big"),
            bytes(hook_data),
        ]
    )
    return header + body


__all__ = [
    "BurnMessage",
    "MessageFormatError",
    "address_to_bytes32",
    "build_burn_message",
    "bytes32_to_address",
    "parse_burn_message",
]
