"""Transaction stores feeding the reconciliation session."""

from .base import StatementBatch, TransactionStore
from .memory import InMemoryTransactionStore
from .csv_store import CsvTransactionStore, parse_transaction_file

__all__ = [
    "StatementBatch",
    "TransactionStore",
    "InMemoryTransactionStore",
    "CsvTransactionStore",
    "parse_transaction_file",
]
