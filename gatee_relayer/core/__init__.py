"""Core relay pipeline logic."""

from .attestation import AttestationClient, await_attestation
from .fees import fetch_max_fee_bps, gross_amount
from .fulfillment import FulfillmentInvoker
from .models import AttestationStatus, AttestedMessage, FulfillmentRequest
from .payload import decode_fulfillment_request, encode_fulfillment_request
from .pipeline import PipelineState, RelayOutcome, RelayPipeline
from .relay import RelaySubmitter
from .validation import validate_message

__all__ = [
    "AttestationClient",
    "AttestationStatus",
    "AttestedMessage",
    "FulfillmentInvoker",
    "FulfillmentRequest",
    "PipelineState",
    "RelayOutcome",
    "RelayPipeline",
    "RelaySubmitter",
    "await_attestation",
    "decode_fulfillment_request",
    "encode_fulfillment_request",
    "fetch_max_fee_bps",
    "gross_amount",
    "validate_message",
]
