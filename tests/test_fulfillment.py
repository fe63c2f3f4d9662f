import pytest

from conftest import BUYER, FakeChain, FakeContract
from gatee_relayer.core.fulfillment import FulfillmentInvoker
from gatee_relayer.core.models import FulfillmentRequest
from gatee_relayer.errors import FulfillmentError


def test_calls_process_after_mint_with_decoded_fields(chain):
    invoker = FulfillmentInvoker(FakeContract(), chain)

    result = invoker.fulfill(FulfillmentRequest(buyer=BUYER.lower(), item_id=1, quantity=2, memo="gatee"))

    assert result.reference.startswith("0x")
    assert chain.calls("processAfterMint") == [(BUYER, 1, 2, "gatee")]


def test_failure_is_surfaced_as_fulfillment_error():
    invoker = FulfillmentInvoker(FakeContract(), FakeChain(fail_fulfillment=RuntimeError("out of gas")))

    with pytest.raises(FulfillmentError, match="out of gas"):
        invoker.fulfill(FulfillmentRequest(buyer=BUYER, item_id=1, quantity=1, memo=""))
