"""Data models for reconciliation."""

from .transaction import (
    Transaction,
    TransactionSource,
    TransactionType,
    MatchReason,
    MatchCandidate,
    MatchDecision,
    DecisionStatus,
    MatchState,
    AuditEntry,
    ReconciliationSummary,
    candidate_id,
    parse_amount,
    parse_date,
)

__all__ = [
    "Transaction",
    "TransactionSource",
    "TransactionType",
    "MatchReason",
    "MatchCandidate",
    "MatchDecision",
    "DecisionStatus",
    "MatchState",
    "AuditEntry",
    "ReconciliationSummary",
    "candidate_id",
    "parse_amount",
    "parse_date",
]
