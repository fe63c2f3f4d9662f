"""End-to-end relay pipeline for a single ticket purchase."""

from __future__ import annotations

import enum
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from eth_account import Account
from web3 import Web3

from gatee_relayer.config import RelayerConfig
from gatee_relayer.contracts import GATEE_HOOK_ABI, MESSAGE_TRANSMITTER_ABI, load_contract_abi
from gatee_relayer.core.attestation import AttestationClient, await_attestation
from gatee_relayer.core.fulfillment import FulfillmentInvoker
from gatee_relayer.core.ledger import FulfillmentLedger, LedgerError, NullLedger
from gatee_relayer.core.models import FulfillmentRequest
from gatee_relayer.core.payload import decode_fulfillment_request
from gatee_relayer.core.relay import RelaySubmitter
from gatee_relayer.core.transactions import TransactionSender
from gatee_relayer.core.utils import ensure_web3_connected, get_logger
from gatee_relayer.core.validation import validate_message
from gatee_relayer.errors import ConfigurationError, FulfillmentError, RelayError

LOGGER = get_logger("gatee_relayer.pipeline")


class PipelineState(str, enum.Enum):
    AWAITING_ATTESTATION = "awaiting-attestation"
    VALIDATING = "validating"
    RELAYING = "relaying"
    SETTLING_DELAY = "settling-delay"
    DECODING_PAYLOAD = "decoding-payload"
    FULFILLING = "fulfilling"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RelayOutcome:
    """Terminal result of a successful pipeline run."""

    relayed: bool
    fulfillment_params: FulfillmentRequest
    relay_reference: Optional[str] = None
    fulfill_reference: Optional[str] = None
    already_fulfilled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "ok": True,
            "relayed": self.relayed,
            "fulfillmentParams": self.fulfillment_params.to_dict(),
            "alreadyFulfilled": self.already_fulfilled,
        }
        if self.relay_reference:
            result["relayReference"] = self.relay_reference
        if self.fulfill_reference:
            result["fulfillReference"] = self.fulfill_reference
        return result


Ledger = Union[FulfillmentLedger, NullLedger]


class RelayPipeline:
    """Poll, validate, relay, decode and fulfill one attested burn.

    Stages are never retried here. A failure raises the stage's
    :class:`RelayError` with ``stage`` set to the state it failed in; callers
    retry the whole run with the same source transaction.
    """

    def __init__(
        self,
        *,
        attestation_client: AttestationClient,
        relay_submitter: RelaySubmitter,
        fulfillment_invoker: FulfillmentInvoker,
        expected_destination_domain: int,
        expected_recipient: str,
        poll_timeout: float = 600.0,
        poll_interval: float = 1.0,
        settle_delay: float = 2.5,
        ledger: Optional[Ledger] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.attestation_client = attestation_client
        self.relay_submitter = relay_submitter
        self.fulfillment_invoker = fulfillment_invoker
        self.expected_destination_domain = expected_destination_domain
        self.expected_recipient = expected_recipient
        self.poll_timeout = poll_timeout
        self.poll_interval = poll_interval
        self.settle_delay = settle_delay
        self.ledger = ledger if ledger is not None else NullLedger()
        self.sleep = sleep
        self.clock = clock

    @classmethod
    def from_config(
        cls,
        config: RelayerConfig,
        *,
        web3_factory: Callable[[str], Web3] = lambda url: Web3(Web3.HTTPProvider(url)),
    ) -> "RelayPipeline":
        """Wire a pipeline against the configured destination chain."""
        destination = config.destination
        web3 = web3_factory(destination.ensure_rpc_url())
        try:
            ensure_web3_connected(web3, expected_chain_id=destination.chain_id)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        try:
            account = Account.from_key(config.relayer_private_key)
        except ValueError as exc:
            raise ConfigurationError("Relayer private key could not be parsed") from exc
        LOGGER.info("Connected to chain %s as %s", web3.eth.chain_id, account.address)

        sender = TransactionSender(
            web3,
            account,
            chain_id=destination.chain_id,
            confirmation_timeout=destination.confirmation_timeout,
        )
        transmitter = web3.eth.contract(
            address=destination.message_transmitter_address,
            abi=load_contract_abi(MESSAGE_TRANSMITTER_ABI),
        )
        hook = web3.eth.contract(address=destination.hook_address, abi=load_contract_abi(GATEE_HOOK_ABI))
        ledger_path = config.pipeline.fulfillment_ledger_path

        return cls(
            attestation_client=AttestationClient(
                config.attestation.base_url, timeout=config.attestation.request_timeout
            ),
            relay_submitter=RelaySubmitter(transmitter, sender),
            fulfillment_invoker=FulfillmentInvoker(hook, sender),
            expected_destination_domain=destination.domain,
            expected_recipient=destination.hook_address,
            poll_timeout=config.attestation.poll_timeout,
            poll_interval=config.attestation.poll_interval,
            settle_delay=config.pipeline.settle_delay,
            ledger=FulfillmentLedger(ledger_path) if ledger_path else NullLedger(),
        )

    @staticmethod
    def _enter(tx_hash: Any, state: PipelineState) -> PipelineState:
        LOGGER.info("[%s] %s", tx_hash, state.value)
        return state

    def run(
        self,
        source_domain: int,
        tx_hash: str,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> RelayOutcome:
        state = self._enter(tx_hash, PipelineState.AWAITING_ATTESTATION)
        try:
            message = await_attestation(
                self.attestation_client,
                source_domain,
                tx_hash,
                self.poll_timeout,
                interval=self.poll_interval,
                cancel_event=cancel_event,
                clock=self.clock,
                sleep=self.sleep,
            )

            state = self._enter(tx_hash, PipelineState.VALIDATING)
            validate_message(
                message,
                expected_destination_domain=self.expected_destination_domain,
                expected_recipient=self.expected_recipient,
            )

            state = self._enter(tx_hash, PipelineState.RELAYING)
            relay = self.relay_submitter.submit(message.raw_message, message.attestation)

            if relay.relayed and self.settle_delay > 0:
                state = self._enter(tx_hash, PipelineState.SETTLING_DELAY)
                self.sleep(self.settle_delay)

            state = self._enter(tx_hash, PipelineState.DECODING_PAYLOAD)
            request = decode_fulfillment_request(message.payload)

            state = self._enter(tx_hash, PipelineState.FULFILLING)
            try:
                previous = self.ledger.get(message.source_domain, tx_hash)
            except LedgerError as exc:
                raise FulfillmentError(f"Fulfillment ledger unavailable: {exc}") from exc
            if previous is not None:
                LOGGER.warning("[%s] already fulfilled in %s; skipping", tx_hash, previous.get("fulfill_reference"))
                self._enter(tx_hash, PipelineState.DONE)
                return RelayOutcome(
                    relayed=relay.relayed,
                    fulfillment_params=request,
                    relay_reference=relay.reference,
                    fulfill_reference=previous.get("fulfill_reference"),
                    already_fulfilled=True,
                )

            fulfillment = self.fulfillment_invoker.fulfill(request)
            try:
                self.ledger.record(
                    message.source_domain,
                    tx_hash,
                    fulfill_reference=fulfillment.reference,
                    relay_reference=relay.reference,
                )
            except LedgerError:
                LOGGER.exception("[%s] fulfilled in %s but the ledger write failed", tx_hash, fulfillment.reference)
        except RelayError as exc:
            if exc.stage is None:
                exc.stage = state.value
            LOGGER.error("[%s] %s failed at %s: %s", tx_hash, exc.kind, exc.stage, exc.message)
            self._enter(tx_hash, PipelineState.FAILED)
            raise

        self._enter(tx_hash, PipelineState.DONE)
        return RelayOutcome(
            relayed=relay.relayed,
            fulfillment_params=request,
            relay_reference=relay.reference,
            fulfill_reference=fulfillment.reference,
        )


__all__ = ["PipelineState", "RelayOutcome", "RelayPipeline"]
