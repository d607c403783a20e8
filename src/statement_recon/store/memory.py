"""In-memory transaction store."""

from collections.abc import Iterable

from ..models.transaction import Transaction
from .base import StatementBatch, TransactionStore


class InMemoryTransactionStore(TransactionStore):
    """Store backed by transaction lists handed in by the caller."""

    def __init__(
        self,
        bank_transactions: Iterable[Transaction] = (),
        recorded_transactions: Iterable[Transaction] = (),
    ):
        self._batch = StatementBatch(
            bank_transactions=tuple(bank_transactions),
            recorded_transactions=tuple(recorded_transactions),
        )

    def fetch(self) -> StatementBatch:
        return self._batch
