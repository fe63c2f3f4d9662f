"""Validation helpers for caller input and attested messages."""

from __future__ import annotations

from typing import Any

from gatee_relayer.core.models import AttestedMessage
from gatee_relayer.core.utils import get_logger, is_tx_hash, normalize_address
from gatee_relayer.errors import InputError, ValidationError

LOGGER = get_logger("gatee_relayer.validation")


def validate_domain(value: Any, field: str = "sourceDomain") -> int:
    """Return ``value`` as a domain id or raise :class:`InputError` naming ``field``."""
    if isinstance(value, bool):
        raise InputError(f"Bad {field}")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 0:
        raise InputError(f"Bad {field}")
    return value


def validate_source_domain(value: Any) -> int:
    return validate_domain(value, "sourceDomain")


def validate_tx_hash(value: Any) -> str:
    if not is_tx_hash(value):
        raise InputError("Bad txHash")
    return value


def validate_message(
    message: AttestedMessage,
    *,
    expected_destination_domain: int,
    expected_recipient: str,
) -> None:
    """Check that ``message`` targets this deployment.

    Checks run in order: destination domain, mint recipient, payload. The
    first failure raises a :class:`ValidationError` naming the field.
    """
    if message.destination_domain != expected_destination_domain:
        raise ValidationError("destinationDomain", message.destination_domain, expected_destination_domain)

    expected = normalize_address(expected_recipient)
    observed = normalize_address(message.recipient) if message.recipient else None
    if observed != expected:
        raise ValidationError("mintRecipient", observed, expected)

    if not message.payload:
        raise ValidationError("hookData", "<empty>", "non-empty payload")

    LOGGER.info(
        "Message validated (destinationDomain=%s recipient=%s payload=%s bytes)",
        message.destination_domain,
        observed,
        len(message.payload),
    )


__all__ = ["validate_domain", "validate_message", "validate_source_domain", "validate_tx_hash"]
