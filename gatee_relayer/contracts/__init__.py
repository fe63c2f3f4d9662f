"""Contract ABIs shipped with the relayer."""

from importlib import resources
from typing import Any, Dict, List
import json

MESSAGE_TRANSMITTER_ABI = "message_transmitter_v2_abi.json"
GATEE_HOOK_ABI = "gatee_hook_abi.json"


def load_contract_abi(filename: str) -> List[Dict[str, Any]]:
    """Load an ABI JSON file from the contracts package."""
    with resources.files(__package__).joinpath(filename).open("r", encoding="utf-8") as fh:
        return json.load(fh)


__all__ = ["GATEE_HOOK_ABI", "MESSAGE_TRANSMITTER_ABI", "load_contract_abi"]
