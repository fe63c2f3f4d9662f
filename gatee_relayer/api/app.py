"""FastAPI application exposing the relay pipeline over HTTP.

Usage:
    uvicorn gatee_relayer.api.app:create_app --factory --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gatee_relayer.config import RelayerConfig, load_config
from gatee_relayer.core.attestation import AttestationClient
from gatee_relayer.core.fees import fetch_max_fee_bps, quote, to_base_units
from gatee_relayer.core.pipeline import RelayPipeline
from gatee_relayer.core.utils import get_logger
from gatee_relayer.core.validation import validate_domain, validate_source_domain, validate_tx_hash
from gatee_relayer.errors import InputError, RelayError

LOGGER = get_logger("gatee_relayer.api")


def _error(status_code: int, body: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body)


class _Components:
    """Builds the config and pipeline on first use and reuses them afterwards."""

    def __init__(
        self,
        config: Optional[RelayerConfig],
        pipeline: Optional[RelayPipeline],
        attestation_client: Optional[AttestationClient],
        config_loader: Callable[[], RelayerConfig],
    ) -> None:
        self._config = config
        self._pipeline = pipeline
        self._attestation_client = attestation_client
        self._config_loader = config_loader
        self._lock = threading.RLock()

    @property
    def config(self) -> RelayerConfig:
        with self._lock:
            if self._config is None:
                self._config = self._config_loader()
            return self._config

    @property
    def pipeline(self) -> RelayPipeline:
        with self._lock:
            if self._pipeline is None:
                self._pipeline = RelayPipeline.from_config(self.config)
            return self._pipeline

    @property
    def attestation_client(self) -> AttestationClient:
        with self._lock:
            if self._attestation_client is None:
                if self._pipeline is not None:
                    self._attestation_client = self._pipeline.attestation_client
                else:
                    attestation = self.config.attestation
                    self._attestation_client = AttestationClient(
                        attestation.base_url, timeout=attestation.request_timeout
                    )
            return self._attestation_client

    @property
    def fee_asset(self) -> str:
        return self._config.attestation.fee_asset if self._config is not None else "USDC"


def create_app(
    config: Optional[RelayerConfig] = None,
    pipeline: Optional[RelayPipeline] = None,
    *,
    attestation_client: Optional[AttestationClient] = None,
    config_loader: Callable[[], RelayerConfig] = load_config,
) -> FastAPI:
    """Build the HTTP app; missing collaborators are created lazily from config."""
    components = _Components(config, pipeline, attestation_client, config_loader)
    app = FastAPI(title="Gatee Relayer", description="Attested burn relay and ticket fulfillment")
    app.state.components = components

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        return _error(exc.status_code, exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, InputError("Malformed request body").to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error on %s", request.url.path)
        return _error(500, {"ok": False, "error": str(exc) or type(exc).__name__, "kind": type(exc).__name__})

    @app.post("/api/relay-and-process")
    def relay_and_process(body: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        source_domain = validate_source_domain(body.get("sourceDomain"))
        tx_hash = validate_tx_hash(body.get("txHash"))
        outcome = components.pipeline.run(source_domain, tx_hash)
        return outcome.to_dict()

    @app.get("/api/fees/{source_domain}/{destination_domain}")
    def fees(source_domain: int, destination_domain: int, net: Optional[str] = None) -> Dict[str, Any]:
        validate_source_domain(source_domain)
        validate_domain(destination_domain, "destinationDomain")
        fee_bps = fetch_max_fee_bps(
            components.attestation_client,
            source_domain,
            destination_domain,
            asset=components.fee_asset,
        )
        result: Dict[str, Any] = {"ok": True, "feeBps": fee_bps}
        if net is not None:
            try:
                fee_quote = quote(to_base_units(net), fee_bps)
            except ValueError as exc:
                raise InputError(f"Bad net amount: {exc}") from exc
            result.update(net=fee_quote.net, gross=fee_quote.gross, maxFeeCap=fee_quote.max_fee_cap)
        return result

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    return app


__all__ = ["create_app"]
