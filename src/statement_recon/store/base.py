"""Transaction store contract consumed by the reconciliation session."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..models.transaction import Transaction
from ..utils.exceptions import InvalidArgumentError


@dataclass(frozen=True)
class StatementBatch:
    """The bank and recorded transactions for one statement period."""

    bank_transactions: tuple[Transaction, ...] = field(default_factory=tuple)
    recorded_transactions: tuple[Transaction, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bank_transactions", tuple(self.bank_transactions))
        object.__setattr__(self, "recorded_transactions", tuple(self.recorded_transactions))
        _ensure_unique_ids(self.bank_transactions, "bank")
        _ensure_unique_ids(self.recorded_transactions, "recorded")


def _ensure_unique_ids(transactions: Sequence[Transaction], side: str) -> None:
    seen: set[str] = set()
    for txn in transactions:
        if txn.id in seen:
            raise InvalidArgumentError(f"Duplicate {side} transaction id: {txn.id}")
        seen.add(txn.id)


class TransactionStore(ABC):
    """Abstract source of the transactions to reconcile."""

    @abstractmethod
    def fetch(self) -> StatementBatch:
        """
        Read the bank and recorded transactions for the active period.

        Returns:
            Statement batch with both collections
        """
        pass
