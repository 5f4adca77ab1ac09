import importlib
import json
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from cli import cli
from conftest import SENDER, make_mined
from explorer.models.account import AccountOverview
from explorer.models.labeled_transaction import LabeledTransaction
from explorer.models.transaction import TransactionNotFound

# The package re-exports the commands under their module names
resolve_transaction_module = importlib.import_module("cli.resolve_transaction")
resolve_account_module = importlib.import_module("cli.resolve_account")


@pytest.fixture
def mock_explorer():
    explorer = MagicMock()
    explorer.__aenter__ = AsyncMock(return_value=explorer)
    explorer.__aexit__ = AsyncMock(return_value=None)
    with patch.object(resolve_transaction_module, "Explorer", return_value=explorer), \
            patch.object(resolve_account_module, "Explorer", return_value=explorer), \
            patch.object(resolve_transaction_module, "configure_logging"), \
            patch.object(resolve_account_module, "configure_logging"):
        yield explorer


def test_resolve_transaction_prints_record(mock_explorer):
    record = make_mined(pending=False, status=1, gas_cost=Decimal("0.00063"), miner_tip=Decimal("0.02"))
    mock_explorer.resolve_transaction = AsyncMock(return_value=record)

    result = CliRunner().invoke(cli, ["resolve_transaction", "0xdef", "-p", "http://node"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["lifecycle_state"] == "Mined"
    assert data["display_status"] == "success"
    assert data["miner_reward"] == "0.02063"
    mock_explorer.resolve_transaction.assert_awaited_once_with("0xdef")


def test_resolve_transaction_not_found_exits_non_zero(mock_explorer):
    mock_explorer.resolve_transaction = AsyncMock(return_value=TransactionNotFound(hash="0x404"))

    result = CliRunner().invoke(cli, ["resolve_transaction", "0x404"])

    assert result.exit_code == 1
    assert json.loads(result.stdout) == {"lifecycle_state": "NotFound", "hash": "0x404"}


def test_resolve_transaction_failure_is_raised(mock_explorer):
    mock_explorer.resolve_transaction = AsyncMock(side_effect=RuntimeError("node down"))

    result = CliRunner().invoke(cli, ["resolve_transaction", "0xdef"])

    assert result.exit_code != 0
    assert isinstance(result.exception, RuntimeError)


def test_resolve_account_prints_overview(mock_explorer):
    account = AccountOverview(address=SENDER, sender_stake=Decimal(250), tx_count=3, transactions=[make_mined(pending=False)])
    mock_explorer.resolve_account = AsyncMock(return_value=account)

    result = CliRunner().invoke(cli, ["resolve_account", SENDER, "--page-size", "10", "--page", "2"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["tx_count"] == 3
    assert data["transactions"][0]["hash"] == "0xdef"
    assert data["transactions"][0]["submission_channel"] == "unknown"
    mock_explorer.resolve_account.assert_awaited_once_with(SENDER, 10, 2)


def test_resolve_account_prints_sorted_labeled_rows(mock_explorer):
    record = make_mined(pending=False, index=0, bundle_index=1)
    mock_explorer.resolve_account = AsyncMock(return_value=AccountOverview(address=SENDER, transactions=[record]))
    mock_explorer.label_transactions = MagicMock(return_value=[
        LabeledTransaction(position=0, hash="0xdef", from_address=SENDER, to_address=SENDER, nonce=5, type="fb-bundle", bundle_index=1),
    ])

    result = CliRunner().invoke(cli, ["resolve_account", SENDER, "--order-by", "priority", "--descending"])

    assert result.exit_code == 0, result.output
    row = json.loads(result.stdout)["labeled_transactions"][0]
    assert row["category"] == "bundle-1"
    assert row["row_color"] == "orange"
    assert row["label"] == "Bundle"
    mock_explorer.label_transactions.assert_called_once_with([record], "priority", True)


def test_resolve_account_rejects_unknown_sort_column(mock_explorer):
    result = CliRunner().invoke(cli, ["resolve_account", SENDER, "--order-by", "gas"])

    assert result.exit_code == 2
