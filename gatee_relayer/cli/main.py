"""CLI entrypoint for relaying attested burns and quoting fees."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from gatee_relayer.config import load_config
from gatee_relayer.core.attestation import AttestationClient
from gatee_relayer.core.fees import fetch_max_fee_bps, quote, to_base_units
from gatee_relayer.core.pipeline import RelayPipeline
from gatee_relayer.core.utils import get_logger
from gatee_relayer.errors import RelayError

LOGGER = get_logger("gatee_relayer.cli")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Relay attested burns and fulfill ticket purchases")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    subparsers = parser.add_subparsers(dest="command", required=True)

    relay = subparsers.add_parser("relay", help="Relay one burn transaction and fulfill its ticket order")
    relay.add_argument("--source-domain", type=int, required=True, help="Source domain of the burn")
    relay.add_argument("--tx-hash", required=True, help="Burn transaction hash on the source chain")

    fees = subparsers.add_parser("fees", help="Show the burn fee and gross amount for a route")
    fees.add_argument("--source-domain", type=int, required=True)
    fees.add_argument("--dest-domain", type=int, default=None, help="Defaults to the configured destination")
    fees.add_argument("--net", default=None, help="Net amount the hook must receive, e.g. 100.5")

    serve = subparsers.add_parser("serve", help="Run the HTTP entry point")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def _run_relay(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    pipeline = RelayPipeline.from_config(config)
    outcome = pipeline.run(args.source_domain, args.tx_hash)
    print(json.dumps(outcome.to_dict(), indent=2))


def _run_fees(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    client = AttestationClient(config.attestation.base_url, timeout=config.attestation.request_timeout)
    dest_domain = config.destination.domain if args.dest_domain is None else args.dest_domain
    fee_bps = fetch_max_fee_bps(client, args.source_domain, dest_domain, asset=config.attestation.fee_asset)
    result = {"feeBps": fee_bps}
    if args.net is not None:
        fee_quote = quote(to_base_units(args.net), fee_bps)
        result.update(net=fee_quote.net, gross=fee_quote.gross, maxFeeCap=fee_quote.max_fee_cap)
    print(json.dumps(result, indent=2))


def _run_serve(args: argparse.Namespace) -> None:
    import uvicorn

    from gatee_relayer.api import create_app

    config = load_config(args.config)
    uvicorn.run(create_app(config), host=args.host, port=args.port)


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = _parse_args(argv)

    handlers = {"relay": _run_relay, "fees": _run_fees, "serve": _run_serve}
    try:
        handlers[args.command](args)
    except RelayError as exc:
        stage = f" at {exc.stage}" if exc.stage else ""
        print(f"\n❌ {exc.kind}{stage}: {exc.message}")
        sys.exit(1)
    except Exception as exc:
        print(f"\n❌ Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
