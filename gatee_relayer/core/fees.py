"""Burn fee quotes and gross-amount arithmetic."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Any, Iterable

from gatee_relayer.core.attestation import AttestationClient
from gatee_relayer.core.utils import get_logger
from gatee_relayer.errors import AttestationServiceError

LOGGER = get_logger("gatee_relayer.fees")

BPS_DENOMINATOR = 10_000
USDC_DECIMALS = 6


@dataclass(frozen=True)
class FeeQuote:
    """Amount to burn so that ``net`` arrives after the protocol fee."""

    fee_bps: int
    net: int
    gross: int

    @property
    def max_fee_cap(self) -> int:
        return self.gross - self.net


def _fee_rows(payload: Any) -> Iterable[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    return []


def max_fee_bps(payload: Any) -> int:
    """Return the largest ``minimumFee`` across fee rows (0 when none)."""
    result = 0
    for row in _fee_rows(payload):
        if not isinstance(row, dict):
            continue
        try:
            bps = Decimal(str(row.get("minimumFee", 0)))
        except InvalidOperation:
            continue
        if bps.is_finite() and bps > result:
            result = int(bps.to_integral_value(rounding=ROUND_CEILING))
    return result


def fetch_max_fee_bps(
    client: AttestationClient,
    source_domain: int,
    destination_domain: int,
    *,
    asset: str = "USDC",
) -> int:
    payload = client.get_burn_fees(asset, source_domain, destination_domain)
    if not isinstance(payload, (list, dict)):
        raise AttestationServiceError(f"Unexpected fee response type: {type(payload).__name__}")
    fee_bps = max_fee_bps(payload)
    LOGGER.info("Fee for %s %s->%s: %s bps", asset, source_domain, destination_domain, fee_bps)
    return fee_bps


def gross_amount(net: int, fee_bps: int) -> int:
    """``ceil(net * 10000 / (10000 - fee_bps))`` in integer base units."""
    if net < 0:
        raise ValueError("net amount must not be negative")
    if fee_bps < 0 or fee_bps >= BPS_DENOMINATOR:
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOMINATOR}), got {fee_bps}")
    denominator = BPS_DENOMINATOR - fee_bps
    return -(-net * BPS_DENOMINATOR // denominator)


def quote(net: int, fee_bps: int) -> FeeQuote:
    return FeeQuote(fee_bps=fee_bps, net=net, gross=gross_amount(net, fee_bps))


def to_base_units(amount: Any, decimals: int = USDC_DECIMALS) -> int:
    """Convert a human amount such as ``"100.5"`` into integer base units."""
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount!r}") from exc
    scaled = value * (Decimal(10) ** decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{amount!r} has more than {decimals} decimals")
    return int(scaled)


__all__ = [
    "BPS_DENOMINATOR",
    "FeeQuote",
    "fetch_max_fee_bps",
    "gross_amount",
    "max_fee_bps",
    "quote",
    "to_base_units",
]
