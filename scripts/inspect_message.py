#!/usr/bin/env python3
"""Decode an attested burn message (hex) and print its header and ticket order."""

from pathlib import Path
import sys

SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from gatee_relayer.core.message import parse_burn_message
from gatee_relayer.core.payload import decode_fulfillment_request
from gatee_relayer.core.utils import hex_to_bytes
from gatee_relayer.errors import DecodeError


def inspect_message(message_hex: str) -> None:
    """Print the burn message fields and the decoded hook payload."""
    message = parse_burn_message(hex_to_bytes(message_hex))

    print(f"sourceDomain: {message.source_domain}")
    print(f"destinationDomain: {message.destination_domain}")
    print(f"nonce: 0x{message.nonce.hex()}")
    print(f"mintRecipient: {message.mint_recipient_address}")
    print(f"amount: {message.amount} (feeExecuted={message.fee_executed}, maxFee={message.max_fee})")

    try:
        request = decode_fulfillment_request(message.hook_data)
    except DecodeError as exc:
        print(f"hookData: {exc}")
        return
    for name, value in request.to_dict().items():
        print(f"{name}: {value}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: inspect_message.py <message-hex>")
        sys.exit(2)
    inspect_message(sys.argv[1])
