"""
Statement Recon - Similarity Scorer Tests
"""

from decimal import Decimal

import pytest

from statement_recon.config import ScoringConfig
from statement_recon.matching.scoring import (
    SimilarityScorer,
    description_similarity,
    normalize_description,
)
from statement_recon.models.transaction import MatchReason

from conftest import bank_txn, recorded_txn


class TestDescriptionSimilarity:
    """Test cases for description normalization and similarity."""

    def test_normalize_strips_punctuation_and_accents(self):
        """Accents fold to ASCII and punctuation becomes whitespace."""
        assert normalize_description("  MATERIAL DE ESCRITÓRIO - STAPLES ") == (
            "material de escritorio staples"
        )

    def test_identical_after_normalization(self):
        assert description_similarity("ELECTRIC CO.", "electric co") == 1.0

    def test_reordered_tokens_score_high(self):
        """Token overlap rescues descriptions with swapped word order."""
        assert description_similarity("smith john salary", "salary john smith") == 1.0

    def test_empty_descriptions(self):
        assert description_similarity("", "") == 1.0
        assert description_similarity("RENT", "") == 0.0

    def test_unrelated_descriptions_score_low(self):
        assert description_similarity("AIRLINE TICKETS", "Coffee beans") < 0.5


class TestSimilarityScorer:
    """Test cases for SimilarityScorer."""

    def test_perfect_pair_scores_one(self):
        """Equal amount, equal date, and identical description give 1.0."""
        scorer = SimilarityScorer()
        bank = bank_txn("b1", "2024-01-14", "-125.50", "OFFICE SUPPLIES")
        recorded = recorded_txn("r1", "2024-01-14", "-125.50", "OFFICE SUPPLIES")

        assert scorer.score(bank, recorded) == 1.0
        assert scorer.evaluate(bank, recorded).reason == MatchReason.EXACT_AMOUNT_DATE

    @pytest.mark.parametrize(
        "bank_amount,recorded_amount",
        [("-125.50", "125.50"), ("2500.00", "-2500.00")],
    )
    def test_sign_mismatch_scores_zero(self, bank_amount, recorded_amount):
        """Credit against debit is rejected regardless of other fields."""
        scorer = SimilarityScorer()
        bank = bank_txn("b1", "2024-01-14", bank_amount, "OFFICE SUPPLIES")
        recorded = recorded_txn("r1", "2024-01-14", recorded_amount, "OFFICE SUPPLIES")

        breakdown = scorer.evaluate(bank, recorded)

        assert breakdown.confidence == 0.0
        assert breakdown.sign_mismatch is True

    def test_office_supplies_scenario(self):
        """Exact amount and date with a fuzzy description."""
        scorer = SimilarityScorer()
        bank = bank_txn("b1", "2024-01-14", "-125.50", "OFFICE SUPPLIES")
        recorded = recorded_txn("r1", "2024-01-14", "-125.50", "Purchase of Office Supplies")

        breakdown = scorer.evaluate(bank, recorded)

        assert breakdown.confidence >= 0.85
        assert breakdown.confidence < 1.0
        assert breakdown.reason == MatchReason.AMOUNT_MATCH_FUZZY_DESCRIPTION

    def test_amount_within_tolerance_decays(self):
        """A $5 difference on a $10 tolerance earns half the amount weight."""
        scorer = SimilarityScorer()
        bank = bank_txn("b1", "2024-01-14", "100.00", "RENT")
        recorded = recorded_txn("r1", "2024-01-14", "105.00", "RENT")

        breakdown = scorer.evaluate(bank, recorded)

        assert breakdown.amount_score == pytest.approx(0.3)
        assert breakdown.amount_difference == Decimal("5.00")
        assert breakdown.confidence == pytest.approx(0.7)
        assert breakdown.reason == MatchReason.DESCRIPTION_MATCH_FUZZY_AMOUNT

    def test_amount_outside_tolerance_contributes_nothing(self):
        scorer = SimilarityScorer()
        bank = bank_txn("b1", "2024-01-14", "100.00", "RENT")
        recorded = recorded_txn("r1", "2024-01-14", "150.00", "RENT")

        breakdown = scorer.evaluate(bank, recorded)

        assert breakdown.amount_score == 0.0
        assert breakdown.confidence == pytest.approx(0.4)

    def test_date_decays_linearly_within_window(self):
        scorer = SimilarityScorer()
        bank = bank_txn("b1", "2024-01-10", "100.00", "RENT")

        scores = [
            scorer.evaluate(bank, recorded_txn("r1", f"2024-01-{10 + days:02d}", "100.00", "RENT"))
            .date_score
            for days in range(0, 7)
        ]

        assert scores[0] == pytest.approx(0.25)
        assert all(a > b for a, b in zip(scores[:6], scores[1:6]))
        assert scores[5] > 0.0
        assert scores[6] == 0.0

    def test_reason_when_date_differs(self):
        """Exact amount on a different day is not an exact-amount-date match."""
        scorer = SimilarityScorer()
        bank = bank_txn("b1", "2024-01-10", "100.00", "RENT")
        recorded = recorded_txn("r1", "2024-01-11", "100.00", "RENT")

        assert scorer.evaluate(bank, recorded).reason == MatchReason.AMOUNT_MATCH_FUZZY_DESCRIPTION

    def test_scoring_is_deterministic(self, bank_transactions, recorded_transactions):
        scorer = SimilarityScorer()

        first = [scorer.score(b, r) for b in bank_transactions for r in recorded_transactions]
        second = [scorer.score(b, r) for b in bank_transactions for r in recorded_transactions]

        assert first == second
        assert all(0.0 <= s <= 1.0 for s in first)

    def test_custom_weights(self):
        """Configured weights replace the defaults."""
        config = ScoringConfig(amount_weight=0.5, date_weight=0.5, description_weight=0.0)
        scorer = SimilarityScorer(config)
        bank = bank_txn("b1", "2024-01-10", "100.00", "RENT")
        recorded = recorded_txn("r1", "2024-01-10", "100.00", "Something else entirely")

        assert scorer.score(bank, recorded) == 1.0
