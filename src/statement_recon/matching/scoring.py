"""
Similarity scoring between one bank transaction and one recorded transaction.
Combines weighted amount, date, and description components into a confidence.
"""

from dataclasses import dataclass
from decimal import Decimal
from difflib import SequenceMatcher
from typing import Optional
import re
import unicodedata

from ..config import ScoringConfig
from ..models.transaction import MatchReason, Transaction

SCORE_PRECISION = 4


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-component contributions to a confidence score."""

    confidence: float
    amount_score: float
    date_score: float
    description_score: float
    description_similarity: float
    date_distance_days: int
    amount_difference: Decimal
    reason: MatchReason
    sign_mismatch: bool = False


def normalize_description(description: str) -> str:
    """Lowercase, fold accents, drop punctuation, and collapse whitespace."""
    desc = unicodedata.normalize("NFKD", description)
    desc = desc.encode("ascii", "ignore").decode("ascii").lower()
    desc = re.sub(r"[^a-z0-9\s]", " ", desc)
    return " ".join(desc.split())


def description_similarity(left: str, right: str) -> float:
    """
    Similarity ratio between two descriptions in [0, 1].

    Takes the better of a character-level sequence ratio and a token
    overlap (Jaccard) ratio, so reordered words still score well.
    """
    a = normalize_description(left)
    b = normalize_description(right)

    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    sequence_ratio = SequenceMatcher(None, a, b).ratio()

    tokens_a = set(a.split())
    tokens_b = set(b.split())
    token_ratio = len(tokens_a & tokens_b) / len(tokens_a | tokens_b)

    return max(sequence_ratio, token_ratio)


class SimilarityScorer:
    """
    Deterministic scorer for bank/recorded transaction pairs.

    The score is a pure function of the two transactions and the
    configured weights and tolerances.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize the scorer.

        Args:
            config: Scoring weights and tolerances (defaults if omitted)
        """
        self.config = config or ScoringConfig()

    def score(self, bank_txn: Transaction, recorded_txn: Transaction) -> float:
        """Return the confidence in [0, 1] that the two represent one event."""
        return self.evaluate(bank_txn, recorded_txn).confidence

    def evaluate(self, bank_txn: Transaction, recorded_txn: Transaction) -> ScoreBreakdown:
        """
        Score a pair and report each component.

        Args:
            bank_txn: Transaction from the bank statement
            recorded_txn: Transaction from the books

        Returns:
            Score breakdown including the overall confidence and reason
        """
        amount_diff = abs(bank_txn.absolute_amount - recorded_txn.absolute_amount)
        date_diff = abs((bank_txn.date - recorded_txn.date).days)

        if bank_txn.type != recorded_txn.type:
            return ScoreBreakdown(
                confidence=0.0,
                amount_score=0.0,
                date_score=0.0,
                description_score=0.0,
                description_similarity=0.0,
                date_distance_days=date_diff,
                amount_difference=amount_diff,
                reason=MatchReason.DESCRIPTION_MATCH_FUZZY_AMOUNT,
                sign_mismatch=True,
            )

        amount_score = self._amount_score(amount_diff)
        date_score = self._date_score(date_diff)
        similarity = description_similarity(bank_txn.description, recorded_txn.description)
        description_score = self.config.description_weight * similarity

        total = amount_score + date_score + description_score
        confidence = round(min(1.0, max(0.0, total)), SCORE_PRECISION)

        return ScoreBreakdown(
            confidence=confidence,
            amount_score=amount_score,
            date_score=date_score,
            description_score=description_score,
            description_similarity=similarity,
            date_distance_days=date_diff,
            amount_difference=amount_diff,
            reason=self._reason(amount_diff, date_diff, similarity),
        )

    def _amount_score(self, amount_diff: Decimal) -> float:
        weight = self.config.amount_weight
        if amount_diff == 0:
            return weight

        tolerance = self.config.amount_tolerance
        if tolerance <= 0 or amount_diff > tolerance:
            return 0.0

        return weight * max(0.0, 1.0 - float(amount_diff / tolerance))

    def _date_score(self, date_diff: int) -> float:
        weight = self.config.date_weight
        if date_diff == 0:
            return weight

        window = self.config.date_window_days
        if date_diff > window:
            return 0.0

        # Day `window` still earns a sliver; the day after earns nothing
        return weight * (1.0 - date_diff / (window + 1))

    def _reason(self, amount_diff: Decimal, date_diff: int, similarity: float) -> MatchReason:
        if amount_diff != 0:
            return MatchReason.DESCRIPTION_MATCH_FUZZY_AMOUNT
        if date_diff == 0 and similarity >= self.config.description_match_threshold:
            return MatchReason.EXACT_AMOUNT_DATE
        return MatchReason.AMOUNT_MATCH_FUZZY_DESCRIPTION
