import json
from unittest.mock import MagicMock, patch

import pytest

from conftest import TX_HASH
from gatee_relayer.cli import main as cli
from gatee_relayer.errors import ConfigurationError, ValidationError


@pytest.fixture(autouse=True)
def _no_dotenv(monkeypatch):
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)


def test_relay_prints_outcome(capsys):
    outcome = MagicMock()
    outcome.to_dict.return_value = {"ok": True, "relayed": True}
    pipeline = MagicMock()
    pipeline.run.return_value = outcome

    with patch.object(cli, "load_config"), patch.object(cli.RelayPipeline, "from_config", return_value=pipeline):
        cli.main(["relay", "--source-domain", "0", "--tx-hash", TX_HASH])

    pipeline.run.assert_called_once_with(0, TX_HASH)
    assert json.loads(capsys.readouterr().out) == {"ok": True, "relayed": True}


def test_relay_failure_exits_with_stage(capsys):
    pipeline = MagicMock()
    pipeline.run.side_effect = ValidationError("destinationDomain", 5, 6, stage="validating")

    with patch.object(cli, "load_config"), patch.object(cli.RelayPipeline, "from_config", return_value=pipeline):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["relay", "--source-domain", "0", "--tx-hash", TX_HASH])

    assert excinfo.value.code == 1
    assert "ValidationError at validating: destinationDomain mismatch: 5 != 6" in capsys.readouterr().out


def test_missing_config_exits(capsys):
    with patch.object(cli, "load_config", side_effect=ConfigurationError("Missing relayer credential")):
        with pytest.raises(SystemExit):
            cli.main(["fees", "--source-domain", "0"])

    assert "ConfigurationError" in capsys.readouterr().out


def test_fees_prints_gross_amount(capsys):
    config = MagicMock()
    config.destination.domain = 6
    config.attestation.fee_asset = "USDC"

    with patch.object(cli, "load_config", return_value=config), patch.object(
        cli, "fetch_max_fee_bps", return_value=50
    ) as fetch:
        cli.main(["fees", "--source-domain", "0", "--net", "100"])

    assert fetch.call_args.args[1:] == (0, 6)
    assert json.loads(capsys.readouterr().out) == {
        "feeBps": 50,
        "net": 100_000_000,
        "gross": 100_502_513,
        "maxFeeCap": 502_513,
    }
