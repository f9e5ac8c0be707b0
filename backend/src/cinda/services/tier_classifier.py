"""Tier classification: genuine gap, improvement, or exploration.

Decision order, first match wins:

1. Tier 1 (genuine gap): coverage < 70, goal alignment < 50, load
   resilience < 70, or a profile-critical archetype is missing.
2. Complete rotation: coverage 100, load resilience >= 70 and nothing
   missing goes straight to Tier 3, skipping Tier 2.
3. Tier 2 (improvement): no plated shoe, low variety, volume spread,
   redundancy alongside a missing archetype.
4. Tier 3 (exploration): feel gaps plus a contrast profile.

Every ordered decision list is a sequence of (predicate, result) tuples.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from cinda.models.analysis import (
    RecommendationSlot,
    RotationAnalysis,
    RotationHealth,
    TierClassification,
)
from cinda.models.profile import OwnedShoe, RunnerProfile
from cinda.models.shoe import Shoe
from cinda.services.catalogue_service import CatalogueService
from cinda.services.feel_gaps import FeelGapDetector, daily_trainer_reason, to_feel_gap_info
from cinda.services.rotation_analyzer import rating_values, resolve_shoes

logger = logging.getLogger(__name__)

# Health thresholds
COVERAGE_THRESHOLD = 70
GOAL_ALIGNMENT_THRESHOLD = 50
LOAD_RESILIENCE_THRESHOLD = 70
HIGH_VOLUME_KM = 50
VOLUME_SPREAD_KM = 70
LOW_VARIETY_THRESHOLD = 30

TIER_1_REASONS: dict[str, str] = {
    "workout_shoe": "You're doing speed work but don't have a responsive shoe for workouts.",
    "race_shoe": "You're training for races but don't have a dedicated race day shoe.",
    "daily_trainer": "You need a versatile daily trainer to anchor your rotation.",
    "recovery_shoe": "Your training load needs a protective shoe for easy days.",
    "trail_shoe": "You're running trails but don't have trail-specific shoes.",
}

LOAD_SHARING_REASON = (
    "At your weekly volume, one shoe is taking too much punishment. Adding another daily "
    "trainer would spread the load and reduce injury risk."
)

TIER_2_REASONS: dict[str, str] = {
    "no_plates": "A plated shoe could help you get more from your speed sessions.",
    "low_variety": "Your shoes are similar in feel - adding variety could reduce injury risk.",
    "volume_spread": "At your volume, another rotation shoe would help spread the load.",
    "redundancy": "You have similar shoes - swapping one would add versatility.",
}

COMPLETE_ROTATION_PREFIX = "Tier 3: Complete rotation. "
COMPLETE_ROTATION_MESSAGE = (
    "Your rotation has great coverage and variety. If you ever want to experiment, a new "
    "daily trainer is always a safe way to try something different."
)
EXPLORATION_PREFIX = "Tier 3: "
EXPLORATION_MESSAGE = (
    "Your rotation is solid and varied. If you want to experiment, a new daily trainer is "
    "always a safe way to try something different."
)
FEEL_VARIETY_PREFIX = "Your rotation could use more feel variety. "

ProfileRule = tuple[Callable[[RunnerProfile], bool], tuple[str, ...]]

# Archetypes a profile cannot do without
CRITICAL_RULES: list[ProfileRule] = [
    (lambda p: True, ("daily_trainer",)),
    (lambda p: p.primary_goal == "race_training", ("workout_shoe", "race_shoe")),
    (lambda p: p.primary_goal == "get_faster", ("workout_shoe",)),
    (lambda p: p.primary_goal == "injury_comeback", ("recovery_shoe",)),
    (lambda p: p.trail_running == "most_or_all", ("trail_shoe",)),
]

# Order in which missing archetypes are filled in Tier 1
PRIORITY_RULES: list[ProfileRule] = [
    (lambda p: p.primary_goal in ("race_training", "get_faster"), ("workout_shoe",)),
    (lambda p: p.primary_goal == "race_training", ("race_shoe",)),
    (lambda p: True, ("daily_trainer",)),
    (
        lambda p: p.running_pattern == "structured_training" or p.primary_goal == "injury_comeback",
        ("recovery_shoe",),
    ),
    (lambda p: p.trail_running == "most_or_all", ("trail_shoe",)),
]

# Tier 1 fallback when nothing is missing
GOAL_DEFAULT_ARCHETYPES: dict[str, str] = {
    "race_training": "workout_shoe",
    "get_faster": "workout_shoe",
    "injury_comeback": "recovery_shoe",
}


def _apply_rules(rules: list[ProfileRule], profile: RunnerProfile) -> list[str]:
    result: list[str] = []
    for predicate, archetypes in rules:
        if predicate(profile):
            result.extend(a for a in archetypes if a not in result)
    return result


def critical_archetypes(profile: RunnerProfile) -> list[str]:
    return _apply_rules(CRITICAL_RULES, profile)


def priority_archetypes(profile: RunnerProfile) -> list[str]:
    return _apply_rules(PRIORITY_RULES, profile)


def does_workouts(profile: RunnerProfile) -> bool:
    return (
        profile.running_pattern in ("structured_training", "workout_focused")
        or profile.primary_goal in ("race_training", "get_faster")
    )


@dataclass(frozen=True)
class RotationContext:
    """Inputs shared by every tier rule."""

    health: RotationHealth
    analysis: RotationAnalysis
    profile: RunnerProfile
    owned_shoes: tuple[OwnedShoe, ...]
    shoes: tuple[Shoe, ...]

    @property
    def owned_count(self) -> int:
        return len(self.owned_shoes)


def _no_plates(ctx: RotationContext) -> Optional[str]:
    if ctx.profile.experience == "beginner" or not does_workouts(ctx.profile):
        return None
    if any(s.has_plate for s in ctx.shoes):
        return None
    return "workout_shoe"


def _low_variety(ctx: RotationContext) -> Optional[str]:
    if ctx.health.variety >= LOW_VARIETY_THRESHOLD or ctx.owned_count <= 1:
        return None
    cushions = rating_values(list(ctx.shoes), "cushion")
    rockers = rating_values(list(ctx.shoes), "rocker")
    if cushions and min(cushions) >= 3 and max(cushions) <= 4:
        return "workout_shoe"
    if cushions and min(cushions) <= 2 and max(cushions) <= 3:
        return "recovery_shoe"
    if rockers and max(rockers) < 3:
        return "daily_trainer"
    return None


def _volume_spread(ctx: RotationContext) -> Optional[str]:
    if ctx.profile.weekly_km >= VOLUME_SPREAD_KM and ctx.owned_count < 3:
        return "daily_trainer"
    return None


def _redundancy(ctx: RotationContext) -> Optional[str]:
    if ctx.analysis.redundancies and ctx.analysis.missing_archetypes:
        return ctx.analysis.missing_archetypes[0]
    return None


TIER_2_RULES: list[tuple[str, Callable[[RotationContext], Optional[str]]]] = [
    ("no_plates", _no_plates),
    ("low_variety", _low_variety),
    ("volume_spread", _volume_spread),
    ("redundancy", _redundancy),
]

TIER_1_TRIGGERS: list[tuple[str, Callable[[RotationContext], bool]]] = [
    ("coverage gap", lambda ctx: ctx.health.coverage < COVERAGE_THRESHOLD),
    ("goal misalignment", lambda ctx: ctx.health.goal_alignment < GOAL_ALIGNMENT_THRESHOLD),
    ("load resilience issue", lambda ctx: ctx.health.load_resilience < LOAD_RESILIENCE_THRESHOLD),
]


class TierClassifier:
    """Classifies a rotation into one of three tiers with recommendation slots."""

    def __init__(self, catalogue: CatalogueService, feel_gap_detector: Optional[FeelGapDetector] = None):
        self.catalogue = catalogue
        self.feel_gaps = feel_gap_detector or FeelGapDetector(catalogue)

    def classify(
        self,
        health: RotationHealth,
        analysis: RotationAnalysis,
        profile: RunnerProfile,
        owned_shoes: list[OwnedShoe],
    ) -> TierClassification:
        """Classify the rotation. Pure function of its inputs."""
        ctx = RotationContext(
            health=health,
            analysis=analysis,
            profile=profile,
            owned_shoes=tuple(owned_shoes),
            shoes=tuple(resolve_shoes(self.catalogue, owned_shoes)),
        )

        result = (
            self._classify_tier1(ctx)
            or self._classify_complete(ctx)
            or self._classify_tier2(ctx)
            or self.build_tier3(ctx, EXPLORATION_PREFIX, EXPLORATION_MESSAGE)
        )
        logger.info(
            f"Tier {result.tier} ({result.confidence}): primary={result.primary.archetype}, "
            f"secondary={result.secondary.archetype if result.secondary else None}"
        )
        return result

    def _classify_tier1(self, ctx: RotationContext) -> Optional[TierClassification]:
        triggers = [name for name, fired in TIER_1_TRIGGERS if fired(ctx)]
        missing = ctx.analysis.missing_archetypes
        missing_critical = [a for a in critical_archetypes(ctx.profile) if a in missing]
        if missing_critical:
            triggers.append(f"missing critical: {', '.join(missing_critical)}")
        if not triggers:
            return None

        covered = ctx.analysis.covered_archetypes
        priority = priority_archetypes(ctx.profile)
        high_volume_load = (
            ctx.health.load_resilience < LOAD_RESILIENCE_THRESHOLD
            and ctx.profile.weekly_km >= HIGH_VOLUME_KM
        )

        primary: Optional[RecommendationSlot] = None
        if high_volume_load and ctx.owned_count < 3:
            daily_count = sum(1 for s in ctx.shoes if s.is_daily_trainer)
            if "daily_trainer" not in covered:
                reason = TIER_1_REASONS["daily_trainer"]
            elif ctx.owned_count == 1:
                reason = LOAD_SHARING_REASON
            else:
                reason = (
                    "You're running high mileage on a small rotation. "
                    f"{daily_trainer_reason(daily_count, 'load_sharing')}"
                )
            primary = RecommendationSlot(archetype="daily_trainer", reason=reason)

        if primary is None:
            archetype = next((a for a in priority if a in missing), None)
            if archetype is None and missing:
                archetype = missing[0]
            if archetype is None:
                archetype = GOAL_DEFAULT_ARCHETYPES.get(ctx.profile.primary_goal, "daily_trainer")
            primary = RecommendationSlot(archetype=archetype, reason=TIER_1_REASONS[archetype])

        secondary: Optional[RecommendationSlot] = None
        if high_volume_load and primary.archetype == "daily_trainer":
            performance = self._load_sharing_secondary(ctx.profile, covered)
            if performance:
                secondary = RecommendationSlot(archetype=performance, reason=TIER_1_REASONS[performance])

        if secondary is None:
            archetype = next((a for a in priority if a in missing and a != primary.archetype), None)
            if archetype:
                secondary = RecommendationSlot(archetype=archetype, reason=TIER_1_REASONS[archetype])

        return TierClassification(
            tier=1,
            confidence="high",
            primary=primary,
            secondary=secondary,
            tier_reason=f"Tier 1: {', '.join(triggers)}",
        )

    @staticmethod
    def _load_sharing_secondary(profile: RunnerProfile, covered: list[str]) -> Optional[str]:
        """Goal-appropriate performance archetype to pair with a load-sharing daily."""
        if profile.primary_goal == "race_training":
            if "race_shoe" not in covered:
                return "race_shoe"
            if "workout_shoe" not in covered:
                return "workout_shoe"
        elif profile.primary_goal == "get_faster" and "workout_shoe" not in covered:
            return "workout_shoe"
        return None

    def _classify_complete(self, ctx: RotationContext) -> Optional[TierClassification]:
        is_complete = (
            ctx.health.coverage == 100
            and ctx.health.load_resilience >= LOAD_RESILIENCE_THRESHOLD
            and not ctx.analysis.missing_archetypes
        )
        if not is_complete:
            return None
        logger.debug("Complete rotation, skipping Tier 2")
        return self.build_tier3(ctx, COMPLETE_ROTATION_PREFIX, COMPLETE_ROTATION_MESSAGE)

    def _classify_tier2(self, ctx: RotationContext) -> Optional[TierClassification]:
        triggered = [(name, archetype) for name, check in TIER_2_RULES if (archetype := check(ctx))]
        if not triggered:
            return None

        first_name, first_archetype = triggered[0]
        primary = RecommendationSlot(archetype=first_archetype, reason=TIER_2_REASONS[first_name])
        secondary = next(
            (
                RecommendationSlot(archetype=archetype, reason=TIER_2_REASONS[name])
                for name, archetype in triggered[1:]
                if archetype != first_archetype
            ),
            None,
        )
        return TierClassification(
            tier=2,
            confidence="medium",
            primary=primary,
            secondary=secondary,
            tier_reason=f"Tier 2: {', '.join(name for name, _ in triggered)}",
        )

    def build_tier3(self, ctx: RotationContext, prefix: str, no_gap_message: str) -> TierClassification:
        """Shared Tier 3 builder for the complete-rotation and exploration paths."""
        gaps = self.feel_gaps.detect(list(ctx.owned_shoes), ctx.profile)
        contrast = self.feel_gaps.contrast_profile(list(ctx.owned_shoes))

        secondary: Optional[RecommendationSlot] = None
        if gaps:
            primary_gap = gaps[0]
            reason = primary_gap.reason
            if ctx.analysis.covers(primary_gap.recommended_archetype):
                reason = f"{FEEL_VARIETY_PREFIX}{primary_gap.reason}"
            primary = RecommendationSlot(
                archetype=primary_gap.recommended_archetype,
                reason=reason,
                feel_gap=to_feel_gap_info(primary_gap),
                contrast_with=contrast,
            )
            if len(gaps) > 1:
                secondary_gap = gaps[1]
                secondary = RecommendationSlot(
                    archetype=secondary_gap.recommended_archetype,
                    reason=secondary_gap.reason,
                    feel_gap=to_feel_gap_info(secondary_gap),
                    contrast_with=contrast,
                )
        else:
            primary = RecommendationSlot(archetype="daily_trainer", reason=no_gap_message, contrast_with=contrast)

        # Beginners get one practical recommendation
        if ctx.profile.experience == "beginner":
            secondary = None
            if primary.archetype == "recovery_shoe" and ctx.owned_count <= 1:
                daily_count = sum(1 for s in ctx.shoes if s.is_daily_trainer)
                primary = RecommendationSlot(
                    archetype="daily_trainer",
                    reason=daily_trainer_reason(daily_count, "variety"),
                    feel_gap=primary.feel_gap,
                    contrast_with=contrast,
                )

        gap_names = ", ".join(g.dimension for g in gaps) if gaps else "none"
        return TierClassification(
            tier=3,
            confidence="soft",
            primary=primary,
            secondary=secondary,
            tier_reason=f"{prefix}Feel gaps: {gap_names}",
            feel_gaps=gaps,
        )
