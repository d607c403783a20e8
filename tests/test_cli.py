"""
Statement Recon - CLI Tests
"""

import json

import pytest
from click.testing import CliRunner

from statement_recon.cli import main

BANK_CSV = """ID,Date,Description,Amount
bank_001,2024-01-15,PAYMENT FROM ACME CORP,2500.00
bank_002,2024-01-14,OFFICE SUPPLIES,-125.50
bank_003,2024-01-11,ELECTRIC COMPANY BILL,-245.75
"""

LEDGER_CSV = """ID,Date,Description,Amount,Account
rec_001,2024-01-15,Invoice Payment - ACME Corporation,2500.00,Accounts Receivable
rec_002,2024-01-14,Purchase of Office Supplies,-125.50,Office Expenses
rec_003,2024-03-01,Unrelated Deposit,900.00,Sales
"""


@pytest.fixture
def csv_files(tmp_path):
    bank_path = tmp_path / "bank.csv"
    ledger_path = tmp_path / "ledger.csv"
    bank_path.write_text(BANK_CSV)
    ledger_path.write_text(LEDGER_CSV)
    return bank_path, ledger_path


class TestReconcileCommand:
    """Test cases for the reconcile command."""

    def test_writes_report_and_decisions(self, csv_files, tmp_path):
        bank_path, ledger_path = csv_files
        report = tmp_path / "out" / "report.xlsx"
        decisions = tmp_path / "out" / "decisions.json"

        result = CliRunner().invoke(
            main,
            [
                "reconcile",
                str(bank_path),
                str(ledger_path),
                "-o",
                str(report),
                "--decisions-out",
                str(decisions),
                "--auto-accept",
                "0.9",
            ],
        )

        assert result.exit_code == 0, result.output
        assert report.exists()
        payload = json.loads(decisions.read_text())
        pairs = {
            (d["bank_transaction_id"], d["recorded_transaction_id"]) for d in payload["decisions"]
        }
        assert pairs == {("bank_001", "rec_001"), ("bank_002", "rec_002")}
        assert all(d["status"] == "accepted" for d in payload["decisions"])

    def test_dry_run_writes_nothing(self, csv_files, tmp_path):
        bank_path, ledger_path = csv_files
        report = tmp_path / "report.xlsx"

        result = CliRunner().invoke(
            main, ["reconcile", str(bank_path), str(ledger_path), "-o", str(report), "--dry-run"]
        )

        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        assert not report.exists()

    def test_invalid_confidence_exits_nonzero(self, csv_files):
        bank_path, ledger_path = csv_files

        result = CliRunner().invoke(
            main,
            ["reconcile", str(bank_path), str(ledger_path), "--min-confidence", "2", "--dry-run"],
        )

        assert result.exit_code == 1
        assert "Error" in result.output


class TestOtherCommands:
    """Test cases for candidates, show-transactions, and init-config."""

    def test_candidates_lists_pairs(self, csv_files):
        bank_path, ledger_path = csv_files

        result = CliRunner().invoke(main, ["candidates", str(bank_path), str(ledger_path)])

        assert result.exit_code == 0, result.output
        assert "Total candidates: 2" in result.output

    def test_show_transactions(self, csv_files):
        _, ledger_path = csv_files

        result = CliRunner().invoke(
            main, ["show-transactions", str(ledger_path), "--side", "recorded"]
        )

        assert result.exit_code == 0, result.output
        assert "Total transactions: 3" in result.output

    def test_init_config(self, tmp_path):
        output = tmp_path / "config.yaml"

        result = CliRunner().invoke(main, ["init-config", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.exists()
