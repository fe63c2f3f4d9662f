"""Attestation service client and poller."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, List, Mapping, Optional

import requests

from gatee_relayer.core.message import MessageFormatError, parse_burn_message
from gatee_relayer.core.models import AttestationStatus, AttestedMessage
from gatee_relayer.core.utils import get_logger, hex_to_bytes, normalize_address
from gatee_relayer.core.validation import validate_source_domain, validate_tx_hash
from gatee_relayer.errors import AttestationCancelled, AttestationServiceError, AttestationTimeout

LOGGER = get_logger("gatee_relayer.attestation")


class AttestationClient:
    """Thin wrapper over the attestation service REST API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_json(self, url: str, *, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        response = self.session.get(url, params=params, timeout=self.timeout)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise AttestationServiceError(f"Attestation service returned non-JSON: {response.text[:120]}") from exc

    def get_messages(self, source_domain: int, tx_hash: str) -> List[Mapping[str, Any]]:
        """Return the message records for a burn transaction (empty while unknown)."""
        payload = self._get_json(
            f"{self.base_url}/messages/{source_domain}",
            params={"transactionHash": tx_hash},
        )
        if payload is None:
            return []
        return _extract_records(payload)

    def get_burn_fees(self, asset: str, source_domain: int, destination_domain: int) -> Any:
        """Return the raw fee rows for a burn route."""
        payload = self._get_json(f"{self.base_url}/burn/{asset}/fees/{source_domain}/{destination_domain}")
        return [] if payload is None else payload


def _extract_records(payload: Any) -> List[Mapping[str, Any]]:
    if not isinstance(payload, Mapping):
        raise AttestationServiceError(f"Unexpected attestation response type: {type(payload).__name__}")
    data = payload.get("data")
    container = data if isinstance(data, Mapping) else payload
    messages = container.get("messages")
    if messages is None:
        return []
    if not isinstance(messages, list) or not all(isinstance(item, Mapping) for item in messages):
        raise AttestationServiceError("Attestation response 'messages' is not a list of objects")
    return messages


def _is_usable(record: Mapping[str, Any]) -> bool:
    attestation = record.get("attestation")
    return (
        AttestationStatus.parse(record.get("status")) is AttestationStatus.COMPLETE
        and bool(record.get("message"))
        and bool(attestation)
        and str(attestation).lower() != "pending"
    )


def _hex_field(record: Mapping[str, Any], key: str) -> bytes:
    value = record.get(key)
    if not isinstance(value, str):
        raise AttestationServiceError(f"Attestation record field {key!r} is not a hex string")
    try:
        return hex_to_bytes(value)
    except ValueError as exc:
        raise AttestationServiceError(f"Attestation record field {key!r} is not valid hex") from exc


def _optional_int(value: Any, field_name: str) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise AttestationServiceError(f"Attestation record field {field_name!r} is not an integer: {value!r}") from exc


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def normalize_message(record: Mapping[str, Any], *, source_domain: int) -> AttestedMessage:
    """Map any observed record shape onto :class:`AttestedMessage`."""
    raw_message = _hex_field(record, "message")
    attestation = _hex_field(record, "attestation")

    decoded = _mapping(record.get("decodedMessage"))
    body = _mapping(record.get("decodedMessageBody")) or _mapping(decoded.get("decodedMessageBody"))

    destination_domain = _optional_int(decoded.get("destinationDomain"), "destinationDomain")
    reported_source = _optional_int(decoded.get("sourceDomain"), "sourceDomain")
    recipient = normalize_address(body["mintRecipient"]) if body.get("mintRecipient") else None
    hook_data = body.get("hookData")
    payload = b""
    if isinstance(hook_data, str) and hook_data.startswith("0x"):
        try:
            payload = hex_to_bytes(hook_data)
        except ValueError as exc:
            raise AttestationServiceError("decodedMessageBody.hookData is not valid hex") from exc

    try:
        parsed = parse_burn_message(raw_message)
    except MessageFormatError:
        parsed = None

    if parsed is not None:
        from_raw = {
            "destinationDomain": parsed.destination_domain,
            "mintRecipient": parsed.mint_recipient_address,
            "hookData": parsed.hook_data,
        }
        reported = {"destinationDomain": destination_domain, "mintRecipient": recipient, "hookData": payload}
        for key, value in reported.items():
            if value not in (None, b"") and value != from_raw[key]:
                LOGGER.warning("Decoded %s disagrees with attested message bytes; using the attested value", key)
        destination_domain = parsed.destination_domain
        recipient = parsed.mint_recipient_address
        payload = parsed.hook_data
        reported_source = parsed.source_domain

    return AttestedMessage(
        raw_message=raw_message,
        attestation=attestation,
        status=AttestationStatus.parse(record.get("status")),
        source_domain=source_domain if reported_source is None else reported_source,
        destination_domain=destination_domain,
        recipient=recipient,
        payload=payload,
        nonce=str(record.get("eventNonce") or decoded.get("nonce") or "") or None,
    )


def await_attestation(
    client: AttestationClient,
    source_domain: int,
    tx_hash: str,
    timeout: float = 600.0,
    *,
    interval: float = 1.0,
    cancel_event: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> AttestedMessage:
    """Poll until the burn in ``tx_hash`` is attested or ``timeout`` seconds pass."""
    source_domain = validate_source_domain(source_domain)
    tx_hash = validate_tx_hash(tx_hash)

    deadline = clock() + timeout
    attempt = 0
    while True:
        attempt += 1
        try:
            records = client.get_messages(source_domain, tx_hash)
        except requests.RequestException as exc:
            LOGGER.warning("Attestation request failed on attempt %s: %s", attempt, exc)
            records = []

        for record in records:
            if _is_usable(record):
                message = normalize_message(record, source_domain=source_domain)
                LOGGER.info("Attestation complete for %s on attempt %s", tx_hash, attempt)
                return message

        remaining = deadline - clock()
        if remaining <= 0:
            raise AttestationTimeout(f"Attestation not ready within {timeout:g}s for {tx_hash}")

        LOGGER.debug("Attestation pending for %s (attempt %s)", tx_hash, attempt)
        wait = min(interval, remaining)
        if cancel_event is not None:
            if cancel_event.wait(wait):
                raise AttestationCancelled(f"Attestation polling cancelled for {tx_hash}")
        else:
            sleep(wait)


__all__ = ["AttestationClient", "await_attestation", "normalize_message"]
