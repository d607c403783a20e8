"""
Candidate generation for reconciliation.
Scores every eligible pair and assigns them greedily one-to-one.
"""

from collections.abc import Collection, Iterable, Sequence
from typing import Optional
import logging

from ..models.transaction import MatchCandidate, Transaction
from ..utils.exceptions import InvalidArgumentError
from .scoring import SimilarityScorer

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 0.5


def validate_confidence(value: float, name: str = "min_confidence") -> float:
    """Reject confidence thresholds outside [0, 1]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"{name} must be a number, got {value!r}")
    if not 0.0 <= value <= 1.0:
        raise InvalidArgumentError(f"{name} must be between 0 and 1, got {value}")
    return float(value)


class CandidateGenerator:
    """
    Produces ranked, non-overlapping match candidates.

    Pairs are ordered by confidence (descending), then date distance,
    then bank id, then recorded id. A single pass hands each transaction
    to at most one candidate, so suggestions never compete for a line.
    """

    def __init__(self, scorer: Optional[SimilarityScorer] = None):
        """
        Initialize the generator.

        Args:
            scorer: Pair scorer (default weights if omitted)
        """
        self.scorer = scorer or SimilarityScorer()

    def generate(
        self,
        bank_transactions: Sequence[Transaction],
        recorded_transactions: Sequence[Transaction],
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        locked_bank_ids: Collection[str] = (),
        locked_recorded_ids: Collection[str] = (),
        excluded_pairs: Iterable[tuple[str, str]] = (),
        one_to_one: bool = True,
    ) -> list[MatchCandidate]:
        """
        Generate candidates between two transaction collections.

        Args:
            bank_transactions: Bank statement lines
            recorded_transactions: Ledger entries
            min_confidence: Lowest confidence to keep, in [0, 1]
            locked_bank_ids: Bank ids already held by an active decision
            locked_recorded_ids: Recorded ids already held by an active decision
            excluded_pairs: (bank_id, recorded_id) pairs never to propose
            one_to_one: Drop pairs whose transaction was consumed by a
                higher-ranked pair (disable to get every ranked pair)

        Returns:
            Ordered list of candidates

        Raises:
            InvalidArgumentError: If min_confidence is outside [0, 1]
        """
        min_confidence = validate_confidence(min_confidence)
        locked_bank = set(locked_bank_ids)
        locked_recorded = set(locked_recorded_ids)
        excluded = set(excluded_pairs)

        bank_pool = [t for t in bank_transactions if t.id not in locked_bank]
        recorded_pool = [t for t in recorded_transactions if t.id not in locked_recorded]

        scored: list[MatchCandidate] = []
        for bank_txn in bank_pool:
            for recorded_txn in recorded_pool:
                if (bank_txn.id, recorded_txn.id) in excluded:
                    continue

                breakdown = self.scorer.evaluate(bank_txn, recorded_txn)
                if breakdown.confidence <= 0.0 or breakdown.confidence < min_confidence:
                    continue

                scored.append(
                    MatchCandidate(
                        bank_transaction_id=bank_txn.id,
                        recorded_transaction_id=recorded_txn.id,
                        confidence=breakdown.confidence,
                        reason=breakdown.reason,
                        date_distance_days=breakdown.date_distance_days,
                    )
                )

        scored.sort(
            key=lambda c: (
                -c.confidence,
                c.date_distance_days,
                c.bank_transaction_id,
                c.recorded_transaction_id,
            )
        )

        candidates = assign_one_to_one(scored) if one_to_one else scored

        logger.debug(
            f"Generated {len(candidates)} candidates from {len(scored)} scored pairs "
            f"({len(bank_pool)} bank x {len(recorded_pool)} recorded, "
            f"min_confidence={min_confidence})"
        )
        return candidates


def assign_one_to_one(ranked: Iterable[MatchCandidate]) -> list[MatchCandidate]:
    """Greedily keep candidates whose bank and recorded sides are both unused."""
    used_bank: set[str] = set()
    used_recorded: set[str] = set()
    kept: list[MatchCandidate] = []

    for candidate in ranked:
        if (
            candidate.bank_transaction_id in used_bank
            or candidate.recorded_transaction_id in used_recorded
        ):
            continue
        used_bank.add(candidate.bank_transaction_id)
        used_recorded.add(candidate.recorded_transaction_id)
        kept.append(candidate)

    return kept
