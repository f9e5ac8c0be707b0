"""Weighted multi-term scoring of catalogue candidates.

Score = sum of independent, bounded terms, floored at 0:

- archetype: flat bonus, larger when the shoe serves 2+ requested archetypes
- feel: per-dimension curve chosen by preference mode, normalized to 60
- heel_drop: exact bucket +100, adjacent +25, further -50 (user_set only)
- stability / availability: preference and release-status bonuses
- gap_fit: performance or recovery traits for the slot being filled
- experience / goal / pattern / body_weight / trail: profile fit
- sentiment: carry-over from loved and disliked owned shoes
- feel_gap: distance from the feel-gap target replaces that dimension's feel score
- contrast: reward for differing from the rotation's average feel
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from cinda.models.analysis import ContrastProfile, FeelGapInfo
from cinda.models.profile import FeelPreferences, OwnedShoe, RunnerProfile
from cinda.models.recommendations import ScoredCandidate
from cinda.models.shoe import Shoe
from cinda.services.scorers.feel_curves import score_feel
from cinda.services.scorers.profile_fit_scorer import ProfileFitScorer
from cinda.services.scorers.sentiment_scorer import SentimentScorer
from cinda.utils.heel_drop import bucket_distance, drop_bucket_gap

logger = logging.getLogger(__name__)

# Archetypes a super trainer can stand in for
SUPER_TRAINER_ARCHETYPES = frozenset({"daily_trainer", "workout_shoe", "recovery_shoe"})
PERFORMANCE_ARCHETYPES = frozenset({"workout_shoe", "race_shoe"})


def serves_archetype(shoe: Shoe, archetype: str) -> bool:
    """True if the shoe can fill the archetype (super trainers never race or trail)."""
    if shoe.has_archetype(archetype):
        return True
    return shoe.is_super_trainer and archetype in SUPER_TRAINER_ARCHETYPES


@dataclass
class ScoringContext:
    """Everything the scorer needs about one recommendation slot."""

    archetypes: list[str]  # Requested archetypes, slot archetype first
    profile: RunnerProfile
    feel_preferences: FeelPreferences = field(default_factory=FeelPreferences)
    stability_preference: Optional[str] = None  # neutral / stability / stable_feel
    rotation: list[tuple[OwnedShoe, Optional[Shoe]]] = field(default_factory=list)
    feel_gap: Optional[FeelGapInfo] = None
    contrast_with: Optional[ContrastProfile] = None

    @property
    def slot_archetype(self) -> Optional[str]:
        return self.archetypes[0] if self.archetypes else None


class CandidateScorer:
    """Scores catalogue shoes for one recommendation slot."""

    ARCHETYPE_MATCH = 20
    MULTI_ARCHETYPE_BONUS = 10

    HEEL_DROP_POINTS = {0: 100, 1: 25}
    HEEL_DROP_FAR_PENALTY = -50

    AVAILABILITY_POINTS = {"available": 15, "coming_soon": 10, "regional": 5}

    FEEL_GAP_MAX = 30
    FEEL_GAP_STEP = 15
    FEEL_GAP_FLOOR = -30

    CONTRAST_STRONG = 8  # differs by >= 2
    CONTRAST_MILD = 4  # differs by >= 1

    def __init__(
        self,
        profile_fit: Optional[ProfileFitScorer] = None,
        sentiment: Optional[SentimentScorer] = None,
    ):
        self.profile_fit = profile_fit or ProfileFitScorer()
        self.sentiment = sentiment or SentimentScorer()

    def score(self, shoe: Shoe, ctx: ScoringContext) -> ScoredCandidate:
        """Score one candidate, returning its total and labeled breakdown."""
        skip = frozenset({ctx.feel_gap.dimension}) if ctx.feel_gap else frozenset()
        # A drop gap replaces the heel-drop bucket term
        drop_gap = ctx.feel_gap is not None and ctx.feel_gap.dimension == "drop"

        breakdown: dict[str, float] = {
            "archetype": self.archetype_match(shoe, ctx.archetypes),
            "feel": float(score_feel(shoe, ctx.feel_preferences, ctx.slot_archetype, skip)),
            "heel_drop": 0.0 if drop_gap else self.heel_drop(shoe, ctx.feel_preferences),
            "stability": self.stability_bonus(shoe, ctx.stability_preference),
            "availability": float(self.AVAILABILITY_POINTS.get(shoe.release_status, 0)),
            "gap_fit": self.gap_fit(shoe, ctx.slot_archetype),
        }
        breakdown.update(self.profile_fit.score(shoe, ctx.profile))
        breakdown["sentiment"] = self.sentiment.score(shoe, ctx.rotation)
        breakdown["feel_gap"] = self.feel_gap_override(shoe, ctx.feel_gap)
        breakdown["contrast"] = self.contrast_bonus(shoe, ctx.contrast_with)

        total = max(0.0, sum(breakdown.values()))
        return ScoredCandidate(shoe=shoe, score=total, breakdown=breakdown)

    def score_all(self, shoes: list[Shoe], ctx: ScoringContext) -> list[ScoredCandidate]:
        """Score and sort candidates: score descending, then shoe_id ascending."""
        scored = [self.score(shoe, ctx) for shoe in shoes]
        scored.sort(key=lambda c: (-c.score, c.shoe.shoe_id))
        if scored:
            top = scored[0]
            logger.debug(f"Scored {len(scored)} candidates, top {top.shoe.shoe_id}={top.score:.0f}")
        return scored

    def archetype_match(self, shoe: Shoe, archetypes: list[str]) -> float:
        served = sum(1 for a in archetypes if serves_archetype(shoe, a))
        if served == 0:
            return 0.0
        bonus = self.MULTI_ARCHETYPE_BONUS if served >= 2 else 0
        return float(self.ARCHETYPE_MATCH + bonus)

    def heel_drop(self, shoe: Shoe, preferences: FeelPreferences) -> float:
        """Bucket score; only applied when the runner set a heel-drop preference."""
        preference = preferences.heel_drop_preference
        if not preference.is_user_set:
            return 0.0
        distance = bucket_distance(shoe.heel_drop_mm, preference.values)
        if distance is None:
            return 0.0
        return float(self.HEEL_DROP_POINTS.get(distance, self.HEEL_DROP_FAR_PENALTY))

    @staticmethod
    def stability_bonus(shoe: Shoe, preference: Optional[str]) -> float:
        if preference == "stability":
            if shoe.support_type == "stability":
                return 15.0
            if shoe.support_type == "max_stability":
                return 12.0
        elif preference == "stable_feel" and (shoe.stability_1to5 or 0) >= 4:
            return 10.0
        return 0.0

    @staticmethod
    def gap_fit(shoe: Shoe, slot_archetype: Optional[str]) -> float:
        """Bonus for traits that make a shoe good at the slot it fills."""
        points = 0.0
        if slot_archetype in PERFORMANCE_ARCHETYPES:
            if shoe.has_plate:
                points += 15
            if shoe.weight_g is not None:
                if shoe.weight_g < 240:
                    points += 15
                elif shoe.weight_g < 260:
                    points += 10
            bounce = shoe.bounce_1to5 or 0
            if bounce >= 4:
                points += 10
            elif bounce >= 3:
                points += 5
        elif slot_archetype == "recovery_shoe":
            cushion = shoe.cushion_softness_1to5 or 0
            if cushion >= 5:
                points += 20
            elif cushion >= 4:
                points += 10
            if (shoe.stability_1to5 or 0) >= 4:
                points += 10
            if shoe.support_type in ("stable_neutral", "stability"):
                points += 10
        return points

    def feel_gap_override(self, shoe: Shoe, feel_gap: Optional[FeelGapInfo]) -> float:
        """Distance from the feel-gap target, replacing normal scoring for that dimension."""
        if feel_gap is None:
            return 0.0
        if feel_gap.dimension == "drop":
            if shoe.heel_drop_mm is None:
                return 0.0
            distance = drop_bucket_gap(shoe.heel_drop_mm, feel_gap.target_value)
        else:
            value = shoe.rating(feel_gap.dimension)
            if value is None:
                return 0.0
            distance = abs(value - feel_gap.target_value)
        return float(max(self.FEEL_GAP_FLOOR, self.FEEL_GAP_MAX - self.FEEL_GAP_STEP * distance))

    def contrast_bonus(self, shoe: Shoe, contrast: Optional[ContrastProfile]) -> float:
        """Reward candidates that feel different from the rotation average."""
        if contrast is None:
            return 0.0
        points = 0.0
        for dimension, average in contrast.as_dimensions().items():
            value = shoe.rating(dimension)
            if value is None:
                continue
            diff = abs(value - average)
            if diff >= 2:
                points += self.CONTRAST_STRONG
            elif diff >= 1:
                points += self.CONTRAST_MILD
        return points
