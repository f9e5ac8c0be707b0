"""Data models for the shoe rotation advisor."""

from cinda.models.shoe import ARCHETYPES, PRICE_TIERS, RATING_FIELDS, Shoe
from cinda.models.profile import (
    AnalyzeRequest,
    BodyWeight,
    Constraints,
    FeelPreference,
    FeelPreferences,
    HeelDropPreference,
    OwnedShoe,
    RunnerProfile,
    WeeklyVolume,
)
from cinda.models.analysis import (
    ContrastProfile,
    FeelGap,
    FeelGapInfo,
    Gap,
    HealthSummary,
    RecommendationSlot,
    RedundancyGroup,
    RotationAnalysis,
    RotationHealth,
    RotationSummaryItem,
    TierClassification,
)
from cinda.models.recommendations import (
    AnalysisResult,
    DiscoveryRequest,
    DiscoveryResult,
    ProseSummary,
    RecommendedShoe,
    RelaxationStep,
    ScoredCandidate,
)

__all__ = [
    "ARCHETYPES",
    "PRICE_TIERS",
    "RATING_FIELDS",
    "Shoe",
    "AnalyzeRequest",
    "BodyWeight",
    "Constraints",
    "FeelPreference",
    "FeelPreferences",
    "HeelDropPreference",
    "OwnedShoe",
    "RunnerProfile",
    "WeeklyVolume",
    "ContrastProfile",
    "FeelGap",
    "FeelGapInfo",
    "Gap",
    "HealthSummary",
    "RecommendationSlot",
    "RedundancyGroup",
    "RotationAnalysis",
    "RotationHealth",
    "RotationSummaryItem",
    "TierClassification",
    "AnalysisResult",
    "DiscoveryRequest",
    "DiscoveryResult",
    "ProseSummary",
    "RecommendedShoe",
    "RelaxationStep",
    "ScoredCandidate",
]
