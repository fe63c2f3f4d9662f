"""Config loader for the ticket relayer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, MutableMapping, Optional, Tuple

from web3 import Web3

from gatee_relayer.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path("config.json")
DEFAULT_IRIS_BASE_URL = "https://iris-api-sandbox.circle.com/v2"
DEFAULT_BASE_RPC = "https://sepolia.base.org"
DEFAULT_DEST_DOMAIN = 6

# Environment variable -> (section, key). The first variable found wins.
ENV_OVERRIDES: Tuple[Tuple[Tuple[str, ...], str, str], ...] = (
    (("IRIS_BASE_URL", "NEXT_PUBLIC_IRIS_BASE"), "attestation", "base_url"),
    (("ATTESTATION_POLL_TIMEOUT",), "attestation", "poll_timeout"),
    (("BASE_RPC",), "destination", "rpc_url"),
    (("BASE_CHAIN_ID",), "destination", "chain_id"),
    (("DEST_DOMAIN",), "destination", "domain"),
    (("BASE_MT_PROXY",), "destination", "message_transmitter_address"),
    (("BASE_HOOK_ADDR", "BASE_GATEE_HOOK"), "destination", "hook_address"),
    (("RECEIVE_TO_AFTERMINT_DELAY_MS",), "pipeline", "settle_delay_ms"),
    (("FULFILLMENT_LEDGER_PATH",), "pipeline", "fulfillment_ledger_path"),
)
PRIVATE_KEY_ENV = ("BASE_RELAYER_PRIVATE_KEY", "RELAYER_PRIVATE_KEY")


def _require_keys(data: Mapping[str, Any], keys: Iterable[str], context: str) -> None:
    missing = [key for key in keys if data.get(key) in (None, "")]
    if missing:
        raise ConfigurationError(f"{context} missing required keys: {', '.join(missing)}")


def _to_checksum(value: str, *, field_name: str) -> str:
    try:
        return Web3.to_checksum_address(value)
    except Exception as exc:  # web3 raises ValueError for malformed inputs
        raise ConfigurationError(f"Invalid address for {field_name}: {value}") from exc


def _to_number(value: Any, kind: type, *, field_name: str):
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{field_name} must be a number, got {value!r}") from exc


@dataclass(frozen=True)
class AttestationConfig:
    """Where and how patiently to poll the attestation service."""

    base_url: str
    poll_timeout: float = 600.0
    poll_interval: float = 1.0
    request_timeout: float = 30.0
    fee_asset: str = "USDC"


@dataclass(frozen=True)
class DestinationConfig:
    """Destination network and the entry points the relayer calls there."""

    domain: int
    rpc_url: str
    message_transmitter_address: str
    hook_address: str
    chain_id: Optional[int] = None
    confirmation_timeout: int = 180

    def ensure_rpc_url(self) -> str:
        """Return the RPC URL or raise if it is missing."""
        if not self.rpc_url:
            raise ConfigurationError("RPC URL required but not configured")
        return self.rpc_url


@dataclass(frozen=True)
class PipelineConfig:
    """Operational knobs for a pipeline run."""

    settle_delay_ms: int = 2500
    fulfillment_ledger_path: Optional[Path] = None

    @property
    def settle_delay(self) -> float:
        return self.settle_delay_ms / 1000


@dataclass(frozen=True)
class RelayerConfig:
    """Typed wrapper around the relayer configuration."""

    attestation: AttestationConfig
    destination: DestinationConfig
    pipeline: PipelineConfig
    relayer_private_key: str = field(repr=False)
    raw: Mapping[str, Any] = field(repr=False, default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return the merged configuration mapping (without the private key)."""
        return dict(self.raw)


def _load_json(path: Path) -> MutableMapping[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Config file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Config file contains invalid JSON: {path}") from exc


def _apply_env(data: MutableMapping[str, Any], environ: Mapping[str, str]) -> None:
    for names, section, key in ENV_OVERRIDES:
        for name in names:
            value = (environ.get(name) or "").strip()
            if value:
                data.setdefault(section, {})[key] = value
                break


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RelayerConfig:
    """Load and validate relayer configuration data.

    Values come from an optional JSON file (``config.json`` in the working
    directory when no path is given) overlaid with environment variables.
    """
    environ = os.environ if environ is None else environ

    if config_path is not None:
        data = _load_json(Path(config_path))
    elif DEFAULT_CONFIG_PATH.exists():
        data = _load_json(DEFAULT_CONFIG_PATH)
    else:
        data = {}

    for section in ("attestation", "destination", "pipeline"):
        section_data = data.get(section, {})
        if not isinstance(section_data, Mapping):
            raise ConfigurationError(f"{section} must be a JSON object")
        data[section] = dict(section_data)
    _apply_env(data, environ)

    attestation_data = data["attestation"]
    attestation_data.setdefault("base_url", DEFAULT_IRIS_BASE_URL)
    attestation = AttestationConfig(
        base_url=str(attestation_data["base_url"]).rstrip("/"),
        poll_timeout=_to_number(attestation_data.get("poll_timeout", 600), float, field_name="attestation.poll_timeout"),
        poll_interval=_to_number(attestation_data.get("poll_interval", 1.0), float, field_name="attestation.poll_interval"),
        request_timeout=_to_number(
            attestation_data.get("request_timeout", 30), float, field_name="attestation.request_timeout"
        ),
        fee_asset=str(attestation_data.get("fee_asset", "USDC")),
    )
    if attestation.poll_timeout <= 0:
        raise ConfigurationError("attestation.poll_timeout must be positive")
    if attestation.poll_interval <= 0:
        raise ConfigurationError("attestation.poll_interval must be positive")

    destination_data = data["destination"]
    destination_data.setdefault("rpc_url", DEFAULT_BASE_RPC)
    destination_data.setdefault("domain", DEFAULT_DEST_DOMAIN)
    _require_keys(destination_data, ["message_transmitter_address", "hook_address"], "destination")
    chain_id = destination_data.get("chain_id")
    destination = DestinationConfig(
        domain=_to_number(destination_data["domain"], int, field_name="destination.domain"),
        rpc_url=str(destination_data["rpc_url"]),
        message_transmitter_address=_to_checksum(
            destination_data["message_transmitter_address"], field_name="message_transmitter_address"
        ),
        hook_address=_to_checksum(destination_data["hook_address"], field_name="hook_address"),
        chain_id=_to_number(chain_id, int, field_name="destination.chain_id") if chain_id not in (None, "") else None,
        confirmation_timeout=_to_number(
            destination_data.get("confirmation_timeout", 180), int, field_name="destination.confirmation_timeout"
        ),
    )
    if destination.domain < 0:
        raise ConfigurationError("destination.domain must be non-negative")

    pipeline_data = data["pipeline"]
    ledger_path = pipeline_data.get("fulfillment_ledger_path")
    pipeline = PipelineConfig(
        settle_delay_ms=_to_number(pipeline_data.get("settle_delay_ms", 2500), int, field_name="pipeline.settle_delay_ms"),
        fulfillment_ledger_path=Path(ledger_path) if ledger_path else None,
    )
    if pipeline.settle_delay_ms < 0:
        raise ConfigurationError("pipeline.settle_delay_ms must not be negative")

    private_key = ""
    for name in PRIVATE_KEY_ENV:
        private_key = (environ.get(name) or "").strip()
        if private_key:
            break
    if not private_key:
        raise ConfigurationError(f"Missing relayer credential ({' / '.join(PRIVATE_KEY_ENV)})")

    return RelayerConfig(
        attestation=attestation,
        destination=destination,
        pipeline=pipeline,
        relayer_private_key=private_key,
        raw=data,
    )


__all__ = [
    "AttestationConfig",
    "ConfigurationError",
    "DestinationConfig",
    "PipelineConfig",
    "RelayerConfig",
    "load_config",
]
