"""Submit attested messages to MessageTransmitterV2."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from web3.contract import Contract

from gatee_relayer.core.transactions import TransactionSender
from gatee_relayer.core.utils import get_logger
from gatee_relayer.errors import RelaySubmissionError

LOGGER = get_logger("gatee_relayer.relay")


@dataclass(frozen=True)
class RelayResult:
    """Whether this call relayed the message, and the confirmed tx if it did."""

    relayed: bool
    reference: Optional[str] = None


def is_nonce_consumed_error(exc: BaseException) -> bool:
    """Return True when ``exc`` reports that the message nonce was already used."""
    text = str(exc).lower()
    return "nonce has already been used" in text or ("nonce" in text and "used" in text)


class RelaySubmitter:
    """Calls ``receiveMessage(message, attestation)`` exactly once per nonce."""

    def __init__(self, transmitter: Contract, sender: TransactionSender) -> None:
        self.transmitter = transmitter
        self.sender = sender

    def submit(self, raw_message: bytes, attestation: bytes) -> RelayResult:
        call = self.transmitter.functions.receiveMessage(bytes(raw_message), bytes(attestation))
        try:
            reference = self.sender.send(call, label="receiveMessage")
        except Exception as exc:
            if is_nonce_consumed_error(exc):
                LOGGER.info("receiveMessage skipped: message nonce already consumed")
                return RelayResult(relayed=False)
            raise RelaySubmissionError(f"receiveMessage failed: {exc}") from exc
        return RelayResult(relayed=True, reference=reference)


__all__ = ["RelayResult", "RelaySubmitter", "is_nonce_consumed_error"]
