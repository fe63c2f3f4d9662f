"""Value objects passed between pipeline stages."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class AttestationStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, value: Any) -> "AttestationStatus":
        return cls.COMPLETE if str(value or "").lower() == cls.COMPLETE.value else cls.PENDING


@dataclass(frozen=True)
class AttestedMessage:
    """A burn message together with the attestation that proves it."""

    raw_message: bytes
    attestation: bytes
    status: AttestationStatus
    source_domain: int
    destination_domain: Optional[int]
    recipient: Optional[str]
    payload: bytes
    nonce: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.status is AttestationStatus.COMPLETE and bool(self.raw_message) and bool(self.attestation)


@dataclass(frozen=True)
class FulfillmentRequest:
    """Ticket order carried in the attested hook payload."""

    buyer: str
    item_id: int
    quantity: int
    memo: str

    def to_dict(self) -> Dict[str, Any]:
        return {"buyer": self.buyer, "itemId": self.item_id, "quantity": self.quantity, "memo": self.memo}


__all__ = ["AttestationStatus", "AttestedMessage", "FulfillmentRequest"]
