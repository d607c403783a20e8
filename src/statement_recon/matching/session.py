"""
Reconciliation session for one statement import batch.
Holds match decisions and enforces one-to-one pairing between the two sides.
"""

from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
import logging
import threading
import uuid

from ..config import ReconConfig
from ..models.transaction import (
    AuditEntry,
    DecisionStatus,
    MatchCandidate,
    MatchDecision,
    MatchState,
    ReconciliationSummary,
    Transaction,
    TransactionSource,
    TransactionType,
)
from ..store.base import TransactionStore
from ..utils.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    SessionClosedError,
)
from .candidates import CandidateGenerator, validate_confidence
from .scoring import SimilarityScorer

logger = logging.getLogger(__name__)

MANUAL_REASON = "manual"


class SessionStatus(Enum):
    """Lifecycle of a reconciliation session."""

    OPEN = "open"
    CLOSED = "closed"


class ReconciliationSession:
    """
    Tracks accept/reject/manual decisions for one statement batch.

    Any bank or recorded transaction id belongs to at most one accepted or
    manual decision at a time. Mutating operations are serialized by a
    single lock; every operation except bulk_accept is all-or-nothing.
    """

    def __init__(
        self,
        store: TransactionStore,
        config: Optional[ReconConfig] = None,
        scorer: Optional[SimilarityScorer] = None,
        session_id: Optional[str] = None,
    ):
        """
        Create a session and load the batch from the store.

        Args:
            store: Source of bank and recorded transactions
            config: Application configuration (defaults if omitted)
            scorer: Pair scorer (built from config.scoring if omitted)
            session_id: Explicit session id (random if omitted)
        """
        self.config = config or ReconConfig()
        self.id = session_id or uuid.uuid4().hex
        self.scorer = scorer or SimilarityScorer(self.config.scoring)
        self.generator = CandidateGenerator(self.scorer)
        self.status = SessionStatus.OPEN
        self.created_at = datetime.now(timezone.utc)
        self.closed_at: Optional[datetime] = None

        self._store = store
        batch = store.fetch()
        self._bank: dict[str, Transaction] = {t.id: t for t in batch.bank_transactions}
        self._recorded: dict[str, Transaction] = {
            t.id: t for t in batch.recorded_transactions
        }

        self._lock = threading.RLock()
        self._decisions: dict[str, MatchDecision] = {}
        self._bank_locks: dict[str, str] = {}
        self._recorded_locks: dict[str, str] = {}
        self._rejected: dict[tuple[str, str], str] = {}
        self._candidates: Optional[dict[str, MatchCandidate]] = None
        self._candidate_threshold = self.config.matching.min_confidence
        self._audit: list[AuditEntry] = []

        logger.info(
            f"Opened session {self.id}: {len(self._bank)} bank txns, "
            f"{len(self._recorded)} recorded txns"
        )

    @property
    def bank_transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._bank.values())

    @property
    def recorded_transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._recorded.values())

    @property
    def is_closed(self) -> bool:
        return self.status == SessionStatus.CLOSED

    # Candidates

    def list_candidates(self, min_confidence: Optional[float] = None) -> list[MatchCandidate]:
        """
        Generate the current candidate set.

        Args:
            min_confidence: Lowest confidence to include (config default if omitted)

        Returns:
            Ranked, one-to-one candidates excluding matched and rejected pairs
        """
        with self._lock:
            threshold = (
                self.config.matching.min_confidence
                if min_confidence is None
                else validate_confidence(min_confidence)
            )
            candidates = self._generate(threshold)
            self._candidates = {c.id: c for c in candidates}
            self._candidate_threshold = threshold
            return list(candidates)

    def current_candidates(self) -> list[MatchCandidate]:
        """The candidate set from the last listing, still undecided."""
        with self._lock:
            return self._live_candidates()

    def _generate(self, threshold: float, one_to_one: bool = True) -> list[MatchCandidate]:
        return self.generator.generate(
            self.bank_transactions,
            self.recorded_transactions,
            min_confidence=threshold,
            locked_bank_ids=self._bank_locks.keys(),
            locked_recorded_ids=self._recorded_locks.keys(),
            excluded_pairs=self._rejected.keys(),
            one_to_one=one_to_one,
        )

    def _candidate_map(self) -> dict[str, MatchCandidate]:
        if self._candidates is None:
            self._candidates = {c.id: c for c in self._generate(self._candidate_threshold)}
        return self._candidates

    def _live_candidates(self) -> list[MatchCandidate]:
        # Listed candidates whose transactions were since matched elsewhere are hidden
        return [
            c
            for c in self._candidate_map().values()
            if not self._is_locked(c.bank_transaction_id, c.recorded_transaction_id)
        ]

    def _lookup_candidate(self, candidate_id: str) -> MatchCandidate:
        candidate = self._candidate_map().get(candidate_id)
        if candidate is None:
            raise NotFoundError(f"Candidate not found or already decided: {candidate_id}")
        return candidate

    # Decisions

    def accept_candidate(self, candidate_id: str) -> MatchDecision:
        """
        Accept a candidate from the current candidate set.

        Raises:
            NotFoundError: If the candidate is unknown or already decided
            ConflictError: If either transaction is already matched
            SessionClosedError: If the session is closed
        """
        with self._lock:
            self._ensure_open()
            candidate = self._lookup_candidate(candidate_id)
            self._ensure_unmatched(candidate.bank_transaction_id, candidate.recorded_transaction_id)

            decision = self._record(
                candidate.bank_transaction_id,
                candidate.recorded_transaction_id,
                candidate.confidence,
                DecisionStatus.ACCEPTED,
                candidate.reason.value,
            )
            self._candidates.pop(candidate_id, None)
            self._log("accept", decision, f"confidence={candidate.confidence:.4f}")
            logger.info(
                f"Accepted {candidate.bank_transaction_id} <-> "
                f"{candidate.recorded_transaction_id} ({candidate.confidence:.2f})"
            )
            return decision

    def bulk_accept(self, min_confidence: Optional[float] = None) -> list[MatchDecision]:
        """
        Accept every candidate at or above a threshold, highest first.

        Candidates that would conflict with one accepted earlier in the
        same pass are skipped rather than failing the operation.

        Args:
            min_confidence: Threshold (config bulk_accept_threshold if omitted)

        Returns:
            Decisions created by this pass
        """
        with self._lock:
            self._ensure_open()
            threshold = (
                self.config.matching.bulk_accept_threshold
                if min_confidence is None
                else validate_confidence(min_confidence)
            )

            # Every ranked pair, not just the one-to-one set; conflicts are skipped below
            candidates = self._generate(threshold, one_to_one=False)
            accepted: list[MatchDecision] = []
            skipped = 0

            for candidate in candidates:
                if self._is_locked(candidate.bank_transaction_id, candidate.recorded_transaction_id):
                    skipped += 1
                    logger.debug(f"Bulk accept skipped conflicting candidate {candidate.id}")
                    continue

                decision = self._record(
                    candidate.bank_transaction_id,
                    candidate.recorded_transaction_id,
                    candidate.confidence,
                    DecisionStatus.ACCEPTED,
                    candidate.reason.value,
                )
                self._log("bulk_accept", decision, f"confidence={candidate.confidence:.4f}")
                accepted.append(decision)
                if self._candidates is not None:
                    self._candidates.pop(candidate.id, None)

            logger.info(
                f"Bulk accept at {threshold:.2f}: {len(accepted)} accepted, {skipped} skipped"
            )
            return accepted

    def manual_match(self, bank_transaction_id: str, recorded_transaction_id: str) -> MatchDecision:
        """
        Pair two transactions directly, bypassing the scorer.

        Raises:
            InvalidArgumentError: If either id is not in the batch
            ConflictError: If either transaction is already matched
            SessionClosedError: If the session is closed
        """
        with self._lock:
            self._ensure_open()
            if bank_transaction_id not in self._bank:
                raise InvalidArgumentError(f"Unknown bank transaction: {bank_transaction_id}")
            if recorded_transaction_id not in self._recorded:
                raise InvalidArgumentError(
                    f"Unknown recorded transaction: {recorded_transaction_id}"
                )
            self._ensure_unmatched(bank_transaction_id, recorded_transaction_id)

            pair = (bank_transaction_id, recorded_transaction_id)
            superseded = self._rejected.pop(pair, None)
            if superseded:
                del self._decisions[superseded]

            decision = self._record(
                bank_transaction_id,
                recorded_transaction_id,
                1.0,
                DecisionStatus.MANUAL,
                MANUAL_REASON,
            )
            self._log("manual_match", decision)
            logger.info(f"Manual match {bank_transaction_id} <-> {recorded_transaction_id}")
            return decision

    def reject(self, candidate_id: str) -> MatchDecision:
        """
        Reject a candidate so the pair is never proposed again in this session.

        Raises:
            NotFoundError: If the candidate is unknown or already decided
            SessionClosedError: If the session is closed
        """
        with self._lock:
            self._ensure_open()
            candidate = self._lookup_candidate(candidate_id)

            decision = self._record(
                candidate.bank_transaction_id,
                candidate.recorded_transaction_id,
                candidate.confidence,
                DecisionStatus.REJECTED,
                candidate.reason.value,
            )
            # Regenerate so freed transactions can surface their next-best counterpart
            self._candidates = None
            self._log("reject", decision)
            logger.info(f"Rejected candidate {candidate_id}")
            return decision

    def unmatch(self, decision_id: str) -> MatchDecision:
        """
        Delete an accepted or manual decision, freeing both transactions.

        Raises:
            NotFoundError: If no active decision has this id
            SessionClosedError: If the session is closed
        """
        with self._lock:
            self._ensure_open()
            decision = self._decisions.get(decision_id)
            if decision is None or not decision.is_active:
                raise NotFoundError(f"No active decision: {decision_id}")

            del self._decisions[decision_id]
            self._bank_locks.pop(decision.bank_transaction_id, None)
            self._recorded_locks.pop(decision.recorded_transaction_id, None)
            self._candidates = None
            self._log("unmatch", decision)
            logger.info(
                f"Unmatched {decision.bank_transaction_id} <-> {decision.recorded_transaction_id}"
            )
            return decision

    def _record(
        self,
        bank_transaction_id: str,
        recorded_transaction_id: str,
        confidence: float,
        status: DecisionStatus,
        reason: Optional[str],
    ) -> MatchDecision:
        decision = MatchDecision(
            bank_transaction_id=bank_transaction_id,
            recorded_transaction_id=recorded_transaction_id,
            confidence=confidence,
            status=status,
            reason=reason,
        )
        self._apply(decision)
        return decision

    def _apply(self, decision: MatchDecision) -> None:
        self._decisions[decision.id] = decision
        if decision.is_active:
            self._bank_locks[decision.bank_transaction_id] = decision.id
            self._recorded_locks[decision.recorded_transaction_id] = decision.id
        elif decision.status == DecisionStatus.REJECTED:
            self._rejected[decision.pair] = decision.id

    def _is_locked(self, bank_transaction_id: str, recorded_transaction_id: str) -> bool:
        return (
            bank_transaction_id in self._bank_locks
            or recorded_transaction_id in self._recorded_locks
        )

    def _ensure_unmatched(self, bank_transaction_id: str, recorded_transaction_id: str) -> None:
        if bank_transaction_id in self._bank_locks:
            raise ConflictError(f"Bank transaction already matched: {bank_transaction_id}")
        if recorded_transaction_id in self._recorded_locks:
            raise ConflictError(
                f"Recorded transaction already matched: {recorded_transaction_id}"
            )

    def _ensure_open(self) -> None:
        if self.is_closed:
            raise SessionClosedError(f"Session {self.id} is closed")

    def _log(self, action: str, decision: Optional[MatchDecision] = None, detail: str = "") -> None:
        self._audit.append(
            AuditEntry(
                action=action,
                decision_id=decision.id if decision else None,
                bank_transaction_id=decision.bank_transaction_id if decision else None,
                recorded_transaction_id=decision.recorded_transaction_id if decision else None,
                detail=detail,
            )
        )

    # Queries

    def progress(self) -> float:
        """Fraction of bank transactions with an accepted or manual decision."""
        with self._lock:
            if not self._bank:
                return 0.0
            return len(self._bank_locks) / len(self._bank)

    def transaction_state(
        self, transaction_id: str, source: Optional[TransactionSource] = None
    ) -> MatchState:
        """
        Reconciliation state of one transaction.

        Args:
            transaction_id: Bank or recorded transaction id
            source: Side to look on; required only when both sides share the id

        Raises:
            InvalidArgumentError: If the id is unknown or ambiguous
        """
        with self._lock:
            in_bank = transaction_id in self._bank
            in_recorded = transaction_id in self._recorded
            if source is None:
                if in_bank and in_recorded:
                    raise InvalidArgumentError(
                        f"Transaction id {transaction_id} exists on both sides; pass a source"
                    )
                source = TransactionSource.BANK if in_bank else TransactionSource.RECORDED

            if source == TransactionSource.BANK:
                if not in_bank:
                    raise InvalidArgumentError(f"Unknown bank transaction: {transaction_id}")
                if transaction_id in self._bank_locks:
                    return MatchState.MATCHED
                pending = any(
                    c.bank_transaction_id == transaction_id for c in self._live_candidates()
                )
            else:
                if not in_recorded:
                    raise InvalidArgumentError(f"Unknown recorded transaction: {transaction_id}")
                if transaction_id in self._recorded_locks:
                    return MatchState.MATCHED
                pending = any(
                    c.recorded_transaction_id == transaction_id
                    for c in self._live_candidates()
                )

            return MatchState.PENDING if pending else MatchState.UNMATCHED

    def active_decisions(self) -> list[MatchDecision]:
        with self._lock:
            return [d for d in self._decisions.values() if d.is_active]

    def export_decisions(self) -> list[MatchDecision]:
        """All decisions (accepted, manual, rejected) in creation order."""
        with self._lock:
            return list(self._decisions.values())

    def audit_log(self) -> list[AuditEntry]:
        with self._lock:
            return list(self._audit)

    def unmatched_bank_transactions(self) -> list[Transaction]:
        with self._lock:
            return [t for t in self._bank.values() if t.id not in self._bank_locks]

    def unmatched_recorded_transactions(self) -> list[Transaction]:
        with self._lock:
            return [t for t in self._recorded.values() if t.id not in self._recorded_locks]

    def summary(self) -> ReconciliationSummary:
        """Counts, totals, and progress for display and reporting."""
        with self._lock:
            active = self.active_decisions()
            bank_txns = list(self._bank.values())
            matched_bank = [self._bank[d.bank_transaction_id] for d in active]
            dates = [t.date for t in bank_txns]

            return ReconciliationSummary(
                session_id=self.id,
                status=self.status.value,
                total_bank_transactions=len(self._bank),
                total_recorded_transactions=len(self._recorded),
                matched_count=sum(1 for d in active if d.status == DecisionStatus.ACCEPTED),
                manual_count=sum(1 for d in active if d.status == DecisionStatus.MANUAL),
                rejected_count=len(self._rejected),
                suggested_count=len(self._live_candidates()),
                bank_unmatched_count=len(self._bank) - len(self._bank_locks),
                recorded_unmatched_count=len(self._recorded) - len(self._recorded_locks),
                bank_total_credits=_total(bank_txns, TransactionType.CREDIT),
                bank_total_debits=_total(bank_txns, TransactionType.DEBIT),
                matched_total_credits=_total(matched_bank, TransactionType.CREDIT),
                matched_total_debits=_total(matched_bank, TransactionType.DEBIT),
                progress=self.progress(),
                statement_period_start=min(dates) if dates else None,
                statement_period_end=max(dates) if dates else None,
                config_file_used=self.config.config_file_path,
            )

    # Lifecycle

    def close(self) -> None:
        """
        Finalize the session. Closing is terminal.

        Raises:
            SessionClosedError: If the session is already closed
        """
        with self._lock:
            self._ensure_open()
            self.status = SessionStatus.CLOSED
            self.closed_at = datetime.now(timezone.utc)
            self._log("close", detail=f"progress={self.progress():.4f}")
            logger.info(f"Closed session {self.id} at {self.progress():.1%} progress")

    def reopen(self) -> "ReconciliationSession":
        """
        Start a new open session seeded with this session's decisions.

        Decisions referring to transactions no longer in the store are dropped.

        Raises:
            ConflictError: If this session is still open
            SessionClosedError: If reopening is disabled in configuration
        """
        with self._lock:
            if not self.is_closed:
                raise ConflictError(f"Session {self.id} is still open")
            if not self.config.session.allow_reopen:
                raise SessionClosedError(f"Reopening closed sessions is disabled ({self.id})")

            successor = ReconciliationSession(self._store, self.config, self.scorer)
            carried = successor._restore(self._decisions.values())
            successor._log("reopen", detail=f"from={self.id} decisions={carried}")
            logger.info(f"Reopened session {self.id} as {successor.id} ({carried} decisions)")
            return successor

    def _restore(self, decisions: Iterable[MatchDecision]) -> int:
        carried = 0
        with self._lock:
            for decision in decisions:
                if (
                    decision.bank_transaction_id not in self._bank
                    or decision.recorded_transaction_id not in self._recorded
                ):
                    logger.warning(f"Dropping decision {decision.id}: transaction no longer in store")
                    continue
                if decision.is_active and self._is_locked(*decision.pair):
                    logger.warning(f"Dropping decision {decision.id}: conflicts with another")
                    continue
                self._apply(
                    MatchDecision(
                        bank_transaction_id=decision.bank_transaction_id,
                        recorded_transaction_id=decision.recorded_transaction_id,
                        confidence=decision.confidence,
                        status=decision.status,
                        reason=decision.reason,
                        id=decision.id,
                        decided_at=decision.decided_at,
                    )
                )
                carried += 1
        return carried


def _total(transactions: list[Transaction], txn_type: TransactionType) -> Decimal:
    return sum(
        (t.absolute_amount for t in transactions if t.type == txn_type), Decimal("0.00")
    )
