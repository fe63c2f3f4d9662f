"""Durable record of fulfilled purchases, keyed by source burn transaction."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from gatee_relayer.core.utils import get_logger

LOGGER = get_logger("gatee_relayer.ledger")


def ledger_key(source_domain: int, tx_hash: str) -> str:
    return f"{source_domain}:{tx_hash.lower()}"


class LedgerError(RuntimeError):
    """The ledger file could not be read or written."""


class NullLedger:
    """Ledger used when no path is configured; remembers nothing."""

    def get(self, source_domain: int, tx_hash: str) -> Optional[Dict[str, Any]]:
        return None

    def record(self, source_domain: int, tx_hash: str, **fields: Any) -> None:
        return None


class FulfillmentLedger:
    """JSON file mapping ``domain:txHash`` to the fulfillment that settled it."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Dict[str, Any]]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                entries = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            raise LedgerError(f"Cannot read fulfillment ledger {self.path}: {exc}") from exc
        if not isinstance(entries, dict):
            raise LedgerError(f"Fulfillment ledger {self.path} is not a JSON object")
        return entries

    def get(self, source_domain: int, tx_hash: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._read().get(ledger_key(source_domain, tx_hash))

    def record(self, source_domain: int, tx_hash: str, **fields: Any) -> None:
        key = ledger_key(source_domain, tx_hash)
        entry = dict(fields, recorded_at=datetime.now(timezone.utc).isoformat())
        with self._lock:
            entries = self._read()
            entries[key] = entry
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with tmp_path.open("w", encoding="utf-8") as fh:
                    json.dump(entries, fh, indent=2, sort_keys=True)
                tmp_path.replace(self.path)
            except (OSError, ValueError) as exc:
                raise LedgerError(f"Cannot write fulfillment ledger {self.path}: {exc}") from exc
        LOGGER.info("Recorded fulfillment for %s", key)


__all__ = ["FulfillmentLedger", "LedgerError", "NullLedger", "ledger_key"]
