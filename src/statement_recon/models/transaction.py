"""Data models for reconciliation transactions, candidates, and decisions."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
import uuid

from ..utils.exceptions import InvalidArgumentError

CENT = Decimal("0.01")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransactionSource(Enum):
    """Which side of the reconciliation the transaction belongs to."""

    BANK = "bank"
    RECORDED = "recorded"


class TransactionType(Enum):
    """Direction of the money movement, derived from the amount sign."""

    CREDIT = "credit"  # Money in
    DEBIT = "debit"  # Money out


class MatchReason(Enum):
    """Why a candidate pair was proposed."""

    EXACT_AMOUNT_DATE = "exact-amount-date"
    AMOUNT_MATCH_FUZZY_DESCRIPTION = "amount-match-fuzzy-description"
    DESCRIPTION_MATCH_FUZZY_AMOUNT = "description-match-fuzzy-amount"


class DecisionStatus(Enum):
    """Lifecycle status of a match decision."""

    SUGGESTED = "suggested"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    MANUAL = "manual"

    @property
    def is_active(self) -> bool:
        """Accepted and manual decisions lock both transactions."""
        return self in (DecisionStatus.ACCEPTED, DecisionStatus.MANUAL)


class MatchState(Enum):
    """Per-transaction reconciliation state."""

    UNMATCHED = "unmatched"
    PENDING = "pending"
    MATCHED = "matched"


def parse_amount(value: Any) -> Decimal:
    """
    Convert a raw amount into a cent-quantized Decimal.

    Raises:
        InvalidArgumentError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Malformed amount: {value!r}")
    try:
        if isinstance(value, str):
            value = value.replace("$", "").replace(",", "").strip()
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidArgumentError(f"Malformed amount: {value!r}") from e

    if not amount.is_finite():
        raise InvalidArgumentError(f"Malformed amount: {value!r}")
    return amount.quantize(CENT)


def parse_date(value: Any) -> date:
    """
    Convert an ISO string or datetime into a date.

    Raises:
        InvalidArgumentError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise InvalidArgumentError(f"Malformed date: {value!r}") from e
    raise InvalidArgumentError(f"Malformed date: {value!r}")


@dataclass(frozen=True)
class Transaction:
    """
    A single bank statement line or recorded ledger entry.

    Transactions are immutable once imported. Whether a transaction is
    matched is tracked by the reconciliation session, never on the record.
    """

    id: str
    date: date
    amount: Decimal
    description: str = ""
    reference: Optional[str] = None
    account: Optional[str] = None
    source: TransactionSource = TransactionSource.BANK

    def __post_init__(self) -> None:
        if not self.id or not str(self.id).strip():
            raise InvalidArgumentError("Transaction id must be a non-empty string")
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "date", parse_date(self.date))
        object.__setattr__(self, "amount", parse_amount(self.amount))
        object.__setattr__(self, "description", self.description or "")

    @property
    def type(self) -> TransactionType:
        """Credit for zero or positive amounts, debit for negative."""
        return TransactionType.DEBIT if self.amount < 0 else TransactionType.CREDIT

    @property
    def absolute_amount(self) -> Decimal:
        return abs(self.amount)


@dataclass(frozen=True)
class MatchCandidate:
    """A proposed pairing produced by the candidate generator."""

    bank_transaction_id: str
    recorded_transaction_id: str
    confidence: float
    reason: MatchReason
    date_distance_days: int = 0

    @property
    def id(self) -> str:
        return candidate_id(self.bank_transaction_id, self.recorded_transaction_id)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.bank_transaction_id, self.recorded_transaction_id)


def candidate_id(bank_transaction_id: str, recorded_transaction_id: str) -> str:
    """Stable identifier for a bank/recorded pair."""
    return f"{bank_transaction_id}::{recorded_transaction_id}"


@dataclass
class MatchDecision:
    """A user (or bulk) decision about one bank/recorded pair."""

    bank_transaction_id: str
    recorded_transaction_id: str
    confidence: float
    status: DecisionStatus
    reason: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    decided_at: datetime = field(default_factory=_utc_now)

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @property
    def pair(self) -> tuple[str, str]:
        return (self.bank_transaction_id, self.recorded_transaction_id)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation for the storage layer."""
        return {
            "id": self.id,
            "bank_transaction_id": self.bank_transaction_id,
            "recorded_transaction_id": self.recorded_transaction_id,
            "confidence": self.confidence,
            "status": self.status.value,
            "reason": self.reason,
            "decided_at": self.decided_at.isoformat(),
        }


@dataclass(frozen=True)
class AuditEntry:
    """One line of the session's append-only audit log."""

    action: str
    decision_id: Optional[str] = None
    bank_transaction_id: Optional[str] = None
    recorded_transaction_id: Optional[str] = None
    detail: str = ""
    timestamp: datetime = field(default_factory=_utc_now)


@dataclass
class ReconciliationSummary:
    """Summary of a reconciliation session at a point in time."""

    session_id: str
    status: str

    # Transaction counts
    total_bank_transactions: int
    total_recorded_transactions: int

    # Decision counts
    matched_count: int
    manual_count: int
    rejected_count: int
    suggested_count: int
    bank_unmatched_count: int
    recorded_unmatched_count: int

    # Amount totals
    bank_total_credits: Decimal
    bank_total_debits: Decimal
    matched_total_credits: Decimal
    matched_total_debits: Decimal

    progress: float
    statement_period_start: Optional[date] = None
    statement_period_end: Optional[date] = None
    config_file_used: Optional[str] = None

    @property
    def match_rate_bank(self) -> float:
        """Percentage of bank transactions matched."""
        return self.progress * 100

    @property
    def unmatched_bank_net(self) -> Decimal:
        """Net bank amount still waiting for a counterpart."""
        return (self.bank_total_credits - self.bank_total_debits) - (
            self.matched_total_credits - self.matched_total_debits
        )
