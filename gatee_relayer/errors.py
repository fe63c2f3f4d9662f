"""Error taxonomy for the relay pipeline."""

from __future__ import annotations

from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base class for every failure the pipeline reports to its caller."""

    status_code = 500
    retryable = False

    def __init__(self, message: str, *, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.message, "kind": self.kind, "stage": self.stage}


class InputError(RelayError, ValueError):
    """Caller input is malformed; nothing external was contacted."""

    status_code = 400


class ConfigurationError(RelayError, ValueError):
    """Raised when configuration data is invalid or missing."""


class AttestationTimeout(RelayError):
    """No complete attestation appeared before the deadline."""

    retryable = True


class AttestationCancelled(AttestationTimeout):
    """Polling was stopped by the caller before an attestation appeared."""


class AttestationServiceError(RelayError):
    """The attestation service answered with something we cannot parse."""

    retryable = True


class ValidationError(RelayError):
    """The attested message does not belong to this deployment."""

    status_code = 400

    def __init__(self, field: str, observed: Any, expected: Any, *, stage: Optional[str] = None) -> None:
        super().__init__(f"{field} mismatch: {observed} != {expected}", stage=stage)
        self.field = field
        self.observed = observed
        self.expected = expected


class RelaySubmissionError(RelayError):
    """receiveMessage was rejected for a reason other than a consumed nonce."""


class DecodeError(RelayError):
    """The attested hook payload does not decode to a fulfillment request."""

    status_code = 400


class FulfillmentError(RelayError):
    """processAfterMint failed after the relay step completed."""


__all__ = [
    "AttestationCancelled",
    "AttestationServiceError",
    "AttestationTimeout",
    "ConfigurationError",
    "DecodeError",
    "FulfillmentError",
    "InputError",
    "RelayError",
    "RelaySubmissionError",
    "ValidationError",
]
