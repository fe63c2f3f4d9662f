from unittest.mock import MagicMock

import pytest
from web3.exceptions import ContractLogicError

from gatee_relayer.core.transactions import FALLBACK_GAS_LIMIT, TransactionFailed, TransactionSender


def _sender(receipt_status=1):
    web3 = MagicMock()
    web3.eth.gas_price = 100
    web3.eth.max_priority_fee = 2
    web3.eth.get_transaction_count.return_value = 7
    web3.eth.send_raw_transaction.return_value = b"\x12" * 32
    web3.eth.wait_for_transaction_receipt.return_value = {"status": receipt_status, "blockNumber": 10, "gasUsed": 21000}
    account = MagicMock()
    account.address = "0x" + "11" * 20
    return TransactionSender(web3, account, chain_id=84532, confirmation_timeout=30), web3, account


def test_send_signs_broadcasts_and_waits():
    sender, web3, account = _sender()
    call = MagicMock()
    call.estimate_gas.return_value = 100_000
    call.build_transaction.side_effect = lambda params: dict(params)

    tx_hash = sender.send(call, label="receiveMessage")

    assert tx_hash == "0x" + "12" * 32
    params = account.sign_transaction.call_args.args[0]
    assert params["gas"] == 110_000
    assert params["maxFeePerGas"] == 102
    assert params["maxPriorityFeePerGas"] == 2
    assert params["nonce"] == 7
    assert params["chainId"] == 84532
    web3.eth.wait_for_transaction_receipt.assert_called_once_with(b"\x12" * 32, timeout=30)


def test_reverted_receipt_raises():
    sender, _, _ = _sender(receipt_status=0)
    call = MagicMock()
    call.estimate_gas.return_value = 50_000

    with pytest.raises(TransactionFailed, match="reverted"):
        sender.send(call, label="processAfterMint")


def test_contract_revert_during_estimation_propagates():
    sender, web3, _ = _sender()
    call = MagicMock()
    call.estimate_gas.side_effect = ContractLogicError("execution reverted: Nonce already used")

    with pytest.raises(ContractLogicError):
        sender.send(call, label="receiveMessage")

    web3.eth.send_raw_transaction.assert_not_called()


def test_estimation_failure_falls_back_to_fixed_gas():
    sender, _, _ = _sender()
    call = MagicMock()
    call.estimate_gas.side_effect = ValueError("rpc hiccup")

    gas = sender.estimate_gas(call, label="processAfterMint")

    assert gas.gas == int(FALLBACK_GAS_LIMIT * 1.1)
