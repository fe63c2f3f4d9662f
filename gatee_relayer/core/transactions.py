"""Signing and confirming contract calls on the destination chain."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import ContractLogicError

from gatee_relayer.core.utils import get_logger

LOGGER = get_logger("gatee_relayer.transactions")

FALLBACK_GAS_LIMIT = 1_000_000
GAS_BUFFER = 1.1


class TransactionFailed(RuntimeError):
    """Raised when a broadcast transaction does not confirm successfully."""


@dataclass(frozen=True)
class GasParameters:
    """EIP-1559 gas parameters."""

    gas: int
    max_priority_fee: int
    max_fee: int


class TransactionSender:
    """Estimate, sign, broadcast and confirm contract calls for one account."""

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        *,
        chain_id: Optional[int] = None,
        confirmation_timeout: int = 180,
    ) -> None:
        self.web3 = web3
        self.account = account
        self.address = account.address
        self.chain_id = chain_id
        self.confirmation_timeout = confirmation_timeout

    def estimate_gas(self, call: Any, *, label: str) -> GasParameters:
        """Estimate gas; contract reverts propagate so callers can read the reason."""
        try:
            gas = call.estimate_gas({"from": self.address})
        except ContractLogicError:
            raise
        except Exception as exc:
            LOGGER.warning("Gas estimation for %s failed: %s", label, exc)
            gas = FALLBACK_GAS_LIMIT

        gas_price = self.web3.eth.gas_price
        max_priority_fee = getattr(self.web3.eth, "max_priority_fee", gas_price)
        return GasParameters(
            gas=int(gas * GAS_BUFFER),
            max_priority_fee=max_priority_fee,
            max_fee=gas_price + max_priority_fee,
        )

    def build_transaction(self, call: Any, gas: GasParameters) -> Dict[str, Any]:
        """Build the 1559 transaction payload."""
        return call.build_transaction(
            {
                "from": self.address,
                "gas": gas.gas,
                "maxFeePerGas": gas.max_fee,
                "maxPriorityFeePerGas": gas.max_priority_fee,
                "nonce": self.web3.eth.get_transaction_count(self.address, "pending"),
                "chainId": self.chain_id if self.chain_id is not None else self.web3.eth.chain_id,
            }
        )

    def send(self, call: Any, *, label: str) -> str:
        """Broadcast ``call`` and return its hash once the receipt confirms."""
        gas = self.estimate_gas(call, label=label)
        tx = self.build_transaction(call, gas)

        signed = self.account.sign_transaction(tx)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        tx_hex = Web3.to_hex(tx_hash)
        LOGGER.info("%s broadcast: %s, awaiting confirmation", label, tx_hex)

        receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.confirmation_timeout)
        if receipt["status"] != 1:
            raise TransactionFailed(f"{label} transaction {tx_hex} reverted (status={receipt['status']})")

        LOGGER.info("%s confirmed in block %s (gasUsed=%s)", label, receipt["blockNumber"], receipt["gasUsed"])
        return tx_hex


__all__ = ["GasParameters", "TransactionFailed", "TransactionSender"]
