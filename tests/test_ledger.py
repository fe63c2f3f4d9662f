from pathlib import Path

import pytest

from gatee_relayer.core.ledger import FulfillmentLedger, LedgerError, NullLedger

TX = "0x" + "AB" * 32


def test_records_and_reads_back(tmp_path):
    ledger = FulfillmentLedger(tmp_path / "state" / "fulfillments.json")

    assert ledger.get(0, TX) is None
    ledger.record(0, TX, fulfill_reference="0xf00d", relay_reference=None)

    entry = FulfillmentLedger(tmp_path / "state" / "fulfillments.json").get(0, TX.lower())
    assert entry["fulfill_reference"] == "0xf00d"
    assert "recorded_at" in entry
    assert ledger.get(1, TX) is None


def test_null_ledger_remembers_nothing():
    ledger = NullLedger()
    ledger.record(0, TX, fulfill_reference="0xf00d")

    assert ledger.get(0, TX) is None


def test_corrupt_file_raises_ledger_error(tmp_path):
    path = tmp_path / "fulfillments.json"
    path.write_text("{not json")
    ledger = FulfillmentLedger(path)

    with pytest.raises(LedgerError, match="Cannot read"):
        ledger.get(0, TX)
    with pytest.raises(LedgerError):
        ledger.record(0, TX, fulfill_reference="0xf00d")

    assert path.read_text() == "{not json"


def test_failed_write_raises_ledger_error(tmp_path, monkeypatch):
    ledger = FulfillmentLedger(tmp_path / "fulfillments.json")

    def refuse(self, target):
        raise OSError("read-only filesystem")

    monkeypatch.setattr(Path, "replace", refuse)

    with pytest.raises(LedgerError, match="Cannot write"):
        ledger.record(0, TX, fulfill_reference="0xf00d")


def test_non_object_file_raises_ledger_error(tmp_path):
    path = tmp_path / "fulfillments.json"
    path.write_text("[]")

    with pytest.raises(LedgerError, match="not a JSON object"):
        FulfillmentLedger(path).get(0, TX)


def test_unusable_location_raises_ledger_error(tmp_path):
    blocker = tmp_path / "state"
    blocker.write_text("")

    with pytest.raises(LedgerError):
        FulfillmentLedger(blocker / "fulfillments.json").record(0, TX, fulfill_reference="0xf00d")
