"""
Statement Recon - Test Configuration

Pytest fixtures shared across the test suite.
"""

from datetime import date
from decimal import Decimal

import pytest

from statement_recon.config import ReconConfig
from statement_recon.matching.scoring import ScoreBreakdown
from statement_recon.matching.session import ReconciliationSession
from statement_recon.models.transaction import MatchReason, Transaction, TransactionSource
from statement_recon.store.memory import InMemoryTransactionStore


def bank_txn(txn_id, txn_date, amount, description="", reference=None):
    return Transaction(
        id=txn_id,
        date=txn_date,
        amount=amount,
        description=description,
        reference=reference,
        source=TransactionSource.BANK,
    )


def recorded_txn(txn_id, txn_date, amount, description="", reference=None, account=None):
    return Transaction(
        id=txn_id,
        date=txn_date,
        amount=amount,
        description=description,
        reference=reference,
        account=account,
        source=TransactionSource.RECORDED,
    )


class TableScorer:
    """Scorer returning fixed confidences per (bank_id, recorded_id) pair."""

    def __init__(self, table):
        self.table = table

    def score(self, bank, recorded):
        return self.evaluate(bank, recorded).confidence

    def evaluate(self, bank, recorded):
        confidence = self.table.get((bank.id, recorded.id), 0.0)
        return ScoreBreakdown(
            confidence=confidence,
            amount_score=0.0,
            date_score=0.0,
            description_score=0.0,
            description_similarity=0.0,
            date_distance_days=abs((bank.date - recorded.date).days),
            amount_difference=Decimal("0.00"),
            reason=MatchReason.EXACT_AMOUNT_DATE,
        )


@pytest.fixture
def config() -> ReconConfig:
    """Default configuration."""
    return ReconConfig()


@pytest.fixture
def bank_transactions():
    """Bank statement lines for a January 2024 batch."""
    return [
        bank_txn("bank_001", "2024-01-15", "2500.00", "PAYMENT FROM ACME CORP", "TXN123456"),
        bank_txn("bank_002", "2024-01-14", "-125.50", "OFFICE SUPPLIES - STAPLES", "TXN123455"),
        bank_txn("bank_003", "2024-01-13", "-3200.00", "SALARY PAYMENT - J.SMITH", "TXN123454"),
        bank_txn("bank_004", "2024-01-12", "1800.00", "CLIENT PAYMENT - TECH SOLUTIONS", "TXN123453"),
        bank_txn("bank_005", "2024-01-11", "-245.75", "ELECTRIC COMPANY BILL", "TXN123452"),
    ]


@pytest.fixture
def recorded_transactions():
    """Ledger entries matching the bank batch, with a few imperfections."""
    return [
        recorded_txn(
            "rec_001", "2024-01-15", "2500.00", "Invoice Payment - ACME Corporation",
            "INV-2024-001", "Accounts Receivable",
        ),
        recorded_txn(
            "rec_002", "2024-01-14", "-125.50", "Purchase of Office Supplies",
            "EXP-2024-015", "Office Expenses",
        ),
        recorded_txn(
            "rec_003", "2024-01-13", "-3200.00", "Salary Payment - John Smith",
            "PAY-2024-003", "Payroll Expenses",
        ),
        recorded_txn(
            "rec_004", "2024-01-11", "1798.00", "Service Revenue - Tech Solutions Ltd",
            "INV-2024-002", "Service Revenue",
        ),
        recorded_txn(
            "rec_005", "2024-01-11", "-245.75", "Electric Company Bill",
            "UTIL-2024-001", "Utilities",
        ),
    ]


@pytest.fixture
def store(bank_transactions, recorded_transactions):
    return InMemoryTransactionStore(bank_transactions, recorded_transactions)


@pytest.fixture
def session(store, config) -> ReconciliationSession:
    """Open session over the January batch."""
    return ReconciliationSession(store, config)


@pytest.fixture
def jan14() -> date:
    return date(2024, 1, 14)
