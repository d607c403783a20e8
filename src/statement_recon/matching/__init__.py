"""Scoring, candidate generation, and reconciliation sessions."""

from .scoring import SimilarityScorer, ScoreBreakdown, description_similarity
from .candidates import CandidateGenerator, assign_one_to_one
from .session import ReconciliationSession, SessionStatus

__all__ = [
    "SimilarityScorer",
    "ScoreBreakdown",
    "description_similarity",
    "CandidateGenerator",
    "assign_one_to_one",
    "ReconciliationSession",
    "SessionStatus",
]
