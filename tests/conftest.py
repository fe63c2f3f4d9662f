from types import SimpleNamespace
from typing import Any, List

import pytest
import requests
from web3 import Web3
from web3.exceptions import ContractLogicError

from gatee_relayer.core.attestation import AttestationClient
from gatee_relayer.core.fulfillment import FulfillmentInvoker
from gatee_relayer.core.models import FulfillmentRequest
from gatee_relayer.core.payload import encode_fulfillment_request
from gatee_relayer.core.pipeline import RelayPipeline
from gatee_relayer.core.relay import RelaySubmitter

TX_HASH = "0x" + "aa" * 32
HOOK_ADDRESS = Web3.to_checksum_address("0x" + "ab" * 20)
TRANSMITTER_ADDRESS = Web3.to_checksum_address("0x" + "cd" * 20)
BUYER = Web3.to_checksum_address("0x" + "11" * 20)
ATTESTATION_HEX = "0x" + "5a" * 65

_NO_JSON = object()


def gatee_payload(item_id: int = 1, quantity: int = 1, memo: str = "gatee", buyer: str = BUYER) -> bytes:
    return encode_fulfillment_request(FulfillmentRequest(buyer=buyer, item_id=item_id, quantity=quantity, memo=memo))


def make_record(
    *,
    status: str = "complete",
    destination_domain: Any = 6,
    recipient: str = HOOK_ADDRESS,
    hook_data: bytes = None,
    message: str = "0x" + "de" * 8,
    attestation: str = ATTESTATION_HEX,
) -> dict:
    hook_data = gatee_payload() if hook_data is None else hook_data
    return {
        "status": status,
        "message": message,
        "attestation": attestation,
        "eventNonce": "0x" + "01" * 32,
        "decodedMessage": {
            "sourceDomain": "0",
            "destinationDomain": str(destination_domain),
            "decodedMessageBody": {
                "mintRecipient": "0x" + "00" * 12 + recipient[2:].lower(),
                "hookData": "0x" + hook_data.hex(),
            },
        },
    }


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is _NO_JSON:
            raise ValueError("Expecting value")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


def json_response(payload: Any, status_code: int = 200) -> FakeResponse:
    return FakeResponse(status_code=status_code, payload=payload)


def text_response(text: str, status_code: int = 200) -> FakeResponse:
    return FakeResponse(status_code=status_code, payload=_NO_JSON, text=text)


class FakeSession:
    """Replays canned responses; the last one repeats forever."""

    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeContract:
    """Stands in for a web3 contract; calls are recorded as ``(name, args)`` tuples."""

    def __init__(self) -> None:
        self.functions = SimpleNamespace(
            receiveMessage=lambda *args: ("receiveMessage", args),
            processAfterMint=lambda *args: ("processAfterMint", args),
        )


class FakeChain:
    """Transaction sender enforcing one receiveMessage per message."""

    def __init__(self, fail_fulfillment: Exception = None, fail_relay: Exception = None) -> None:
        self.consumed = set()
        self.sent = []
        self.fail_fulfillment = fail_fulfillment
        self.fail_relay = fail_relay

    def send(self, call, *, label):
        name, args = call
        if name == "receiveMessage":
            if self.fail_relay is not None:
                raise self.fail_relay
            if args[0] in self.consumed:
                raise ContractLogicError("execution reverted: Nonce already used")
            self.consumed.add(args[0])
        if name == "processAfterMint" and self.fail_fulfillment is not None:
            raise self.fail_fulfillment
        self.sent.append((name, args))
        return "0x" + f"{len(self.sent):064x}"

    def calls(self, name):
        return [args for sent_name, args in self.sent if sent_name == name]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def chain():
    return FakeChain()


@pytest.fixture()
def make_pipeline(clock):
    def _make(responses, chain, **kwargs):
        session = FakeSession(responses)
        pipeline = RelayPipeline(
            attestation_client=AttestationClient("https://iris.test/v2", session=session),
            relay_submitter=RelaySubmitter(FakeContract(), chain),
            fulfillment_invoker=FulfillmentInvoker(FakeContract(), chain),
            expected_destination_domain=6,
            expected_recipient=HOOK_ADDRESS,
            poll_timeout=kwargs.pop("poll_timeout", 30.0),
            settle_delay=kwargs.pop("settle_delay", 2.5),
            sleep=clock.sleep,
            clock=clock,
            **kwargs,
        )
        pipeline.session = session
        return pipeline

    return _make
