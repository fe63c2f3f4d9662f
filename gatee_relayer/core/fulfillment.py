"""Invoke the hook's ``processAfterMint`` with the attested order."""

from __future__ import annotations

from dataclasses import dataclass

from web3 import Web3
from web3.contract import Contract

from gatee_relayer.core.models import FulfillmentRequest
from gatee_relayer.core.transactions import TransactionSender
from gatee_relayer.core.utils import get_logger
from gatee_relayer.errors import FulfillmentError

LOGGER = get_logger("gatee_relayer.fulfillment")


@dataclass(frozen=True)
class FulfillmentResult:
    reference: str


class FulfillmentInvoker:
    """Mints the purchased ticket through the hook contract."""

    def __init__(self, hook: Contract, sender: TransactionSender) -> None:
        self.hook = hook
        self.sender = sender

    def fulfill(self, request: FulfillmentRequest) -> FulfillmentResult:
        call = self.hook.functions.processAfterMint(
            Web3.to_checksum_address(request.buyer),
            request.item_id,
            request.quantity,
            request.memo,
        )
        try:
            reference = self.sender.send(call, label="processAfterMint")
        except Exception as exc:
            raise FulfillmentError(f"processAfterMint failed: {exc}") from exc
        LOGGER.info(
            "Fulfilled item %s x%s for %s in %s",
            request.item_id,
            request.quantity,
            request.buyer,
            reference,
        )
        return FulfillmentResult(reference=reference)


__all__ = ["FulfillmentInvoker", "FulfillmentResult"]
