"""Scoring components for candidate ranking."""

from cinda.services.scorers.candidate_scorer import CandidateScorer, ScoringContext, serves_archetype
from cinda.services.scorers.profile_fit_scorer import ProfileFitScorer
from cinda.services.scorers.sentiment_scorer import SentimentScorer

__all__ = [
    "CandidateScorer",
    "ScoringContext",
    "serves_archetype",
    "ProfileFitScorer",
    "SentimentScorer",
]
