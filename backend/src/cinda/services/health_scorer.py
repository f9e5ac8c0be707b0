"""Rotation health scoring: coverage, variety, load resilience, goal alignment."""

import logging

from cinda.models.analysis import RotationAnalysis, RotationHealth
from cinda.models.profile import OwnedShoe, RunnerProfile
from cinda.services.catalogue_service import CatalogueService
from cinda.services.rotation_analyzer import drop_values, rating_values, resolve_shoes

logger = logging.getLogger(__name__)


def _clamp(value: float) -> int:
    return int(round(max(0.0, min(100.0, value))))


class HealthScorer:
    """Converts a rotation analysis into four 0-100 health scores plus overall."""

    WEIGHTS = {
        "coverage": 0.40,
        "goal_alignment": 0.30,
        "load_resilience": 0.20,
        "variety": 0.10,
    }

    # (upper bound in km/week, ideal shoe count); above the last bound -> 4
    VOLUME_STEPS: list[tuple[float, int]] = [(30, 1), (50, 2), (80, 3)]
    MAX_IDEAL_SHOES = 4
    PENALTY_PER_MISSING_SHOE = 33

    # Full spread for each variety dimension (ratings span 1-5, drops 0-8mm+)
    VARIETY_SPANS = {
        "cushion": 4.0,
        "stability": 4.0,
        "bounce": 4.0,
        "rocker": 4.0,
        "drop": 8.0,
    }

    def __init__(self, catalogue: CatalogueService):
        self.catalogue = catalogue

    def score(
        self,
        analysis: RotationAnalysis,
        profile: RunnerProfile,
        owned_shoes: list[OwnedShoe],
    ) -> RotationHealth:
        """Compute rotation health.

        Returns:
            RotationHealth with each dimension clamped to [0, 100]
        """
        coverage = self.coverage(analysis)
        load = self.load_resilience(profile, len(owned_shoes))
        goal = self.goal_alignment(analysis, profile)
        variety = self.variety(owned_shoes)

        overall = (
            coverage * self.WEIGHTS["coverage"]
            + goal * self.WEIGHTS["goal_alignment"]
            + load * self.WEIGHTS["load_resilience"]
            + variety * self.WEIGHTS["variety"]
        )
        health = RotationHealth(
            coverage=coverage,
            variety=variety,
            load_resilience=load,
            goal_alignment=goal,
            overall=_clamp(overall),
        )
        logger.debug(f"Rotation health: {health}")
        return health

    def coverage(self, analysis: RotationAnalysis) -> int:
        expected = analysis.expected_archetypes
        if not expected:
            return 100
        satisfied = sum(1 for a in expected if analysis.covers(a))
        return _clamp(satisfied / len(expected) * 100)

    def ideal_shoe_count(self, weekly_km: float) -> int:
        for upper, count in self.VOLUME_STEPS:
            if weekly_km < upper:
                return count
        return self.MAX_IDEAL_SHOES

    def load_resilience(self, profile: RunnerProfile, shoe_count: int) -> int:
        ideal = self.ideal_shoe_count(profile.weekly_km)
        shortfall = max(0, ideal - shoe_count)
        return _clamp(100 - self.PENALTY_PER_MISSING_SHOE * shortfall)

    def goal_alignment(self, analysis: RotationAnalysis, profile: RunnerProfile) -> int:
        covers = analysis.covers
        goal = profile.primary_goal

        if goal == "race_training":
            has_workout, has_race = covers("workout_shoe"), covers("race_shoe")
            if has_workout and has_race:
                return 100
            if has_workout or has_race:
                return 60
            return 20

        if goal == "get_faster":
            if covers("workout_shoe"):
                return 100
            if covers("race_shoe"):
                return 70
            return 30

        if goal == "injury_comeback":
            if covers("recovery_shoe"):
                return 100
            if covers("daily_trainer"):
                return 60
            return 30

        return 100 if covers("daily_trainer") else 50

    def variety(self, owned_shoes: list[OwnedShoe]) -> int:
        """Mean normalized spread across cushion/stability/bounce/rocker/drop.

        Zero for rotations with fewer than two catalogued shoes.
        """
        shoes = resolve_shoes(self.catalogue, owned_shoes)
        if len(shoes) < 2:
            return 0

        spreads: list[float] = []
        for dimension, span in self.VARIETY_SPANS.items():
            values = drop_values(shoes) if dimension == "drop" else rating_values(shoes, dimension)
            if len(values) < 2:
                continue
            spreads.append(min((max(values) - min(values)) / span, 1.0))

        if not spreads:
            return 0
        return _clamp(sum(spreads) / len(spreads) * 100)
