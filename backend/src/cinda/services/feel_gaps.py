"""Feel-gap detection and contrast profiles for exploration recommendations.

A feel gap is a sensory dimension (cushion, bounce, stability, drop) the
rotation never explores, or a rotation leaning on a single daily trainer.
Detection runs an ordered rule table chosen by runner segment:

    beginner / injury comeback: cushion, stability, daily_count, drop
    everyone else:              cushion, bounce, daily_count, drop, stability

Each rule is a (check, priority) pair; a check returns a FeelGap or None.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from cinda.models.analysis import ContrastProfile, FeelGap, FeelGapInfo
from cinda.models.profile import OwnedShoe, RunnerProfile
from cinda.models.shoe import Shoe
from cinda.services.catalogue_service import CatalogueService
from cinda.services.rotation_analyzer import drop_values, rating_values, resolve_shoes

logger = logging.getLogger(__name__)

LOW_DROP_VARIETY_MM = 4

CUSHION_REASON_SINGLE = "Your shoe is moderate cushion. A max-cushion option could protect your legs on easy days."
CUSHION_REASON_MULTI = "None of your shoes have max cushion. A plush recovery shoe could protect your legs on easy days."
BOUNCE_REASON = "A bouncy shoe adds versatility for faster efforts and tempo runs."
DAILY_COUNT_REASON = (
    "You rely on one daily trainer - rotating between different dailies reduces overuse and adds variety."
)
STABILITY_REASON_SINGLE = (
    "Your shoe is neutral. A more stable shoe could provide better support and reduce injury risk."
)
STABILITY_REASON_MULTI = (
    "Your rotation is all neutral. A more stable shoe could provide better support and reduce injury risk."
)
STABILITY_REASON_GENERIC = "A more stable shoe could provide better support and reduce injury risk."


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def daily_trainer_reason(daily_count: int, context: str = "variety") -> str:
    """Reason text for a daily-trainer recommendation, aware of how many the runner owns."""
    if context == "variety":
        if daily_count == 0:
            return "A daily trainer would anchor your rotation and handle your regular mileage."
        if daily_count == 1:
            return "A second daily trainer with a different feel could add variety and share the load."
        return "Another daily trainer with a different feel could add more variety to your rotation."

    if daily_count == 0:
        return "Adding a daily trainer would help spread your training load."
    if daily_count == 1:
        return "A second daily trainer would help spread the load and protect your legs."
    return "Another daily trainer would help spread the load across more shoes."


@dataclass(frozen=True)
class RotationFeel:
    """Feel facts about a rotation, computed once per detection."""

    profile: RunnerProfile
    owned_shoes: tuple[OwnedShoe, ...]
    shoes: tuple[Shoe, ...]

    @property
    def shoe_count(self) -> int:
        return len(self.shoes)

    def ratings(self, dimension: str) -> list[int]:
        return rating_values(list(self.shoes), dimension)

    @property
    def drops(self) -> list[float]:
        return drop_values(list(self.shoes))

    @property
    def daily_count(self) -> int:
        return sum(1 for s in self.shoes if s.is_daily_trainer)

    @property
    def disliked_unstable(self) -> bool:
        return any("unstable" in s.dislike_tags for s in self.owned_shoes)


def _cushion_gap(feel: RotationFeel, priority: int) -> Optional[FeelGap]:
    cushions = feel.ratings("cushion")
    if not cushions or max(cushions) >= 5:
        return None
    return FeelGap(
        dimension="cushion",
        priority=priority,
        direction="high",
        recommended_archetype="recovery_shoe",
        reason=CUSHION_REASON_SINGLE if feel.shoe_count == 1 else CUSHION_REASON_MULTI,
        current_range=(min(cushions), max(cushions)),
    )


def _bounce_gap(feel: RotationFeel, priority: int) -> Optional[FeelGap]:
    bounces = feel.ratings("bounce")
    if not bounces or max(bounces) >= 4:
        return None
    archetype = "workout_shoe" if feel.profile.running_pattern == "structured_training" else "daily_trainer"
    return FeelGap(
        dimension="bounce",
        priority=priority,
        direction="high",
        recommended_archetype=archetype,
        reason=BOUNCE_REASON,
        current_range=(min(bounces), max(bounces)),
    )


def _needs_stability(feel: RotationFeel) -> bool:
    return feel.profile.is_beginner_segment or feel.disliked_unstable


def _stability_gap(feel: RotationFeel, priority: int, generic_reason: bool = False) -> Optional[FeelGap]:
    stabilities = feel.ratings("stability")
    if not stabilities or max(stabilities) > 2 or not _needs_stability(feel):
        return None
    if generic_reason:
        reason = STABILITY_REASON_GENERIC
    else:
        reason = STABILITY_REASON_SINGLE if feel.shoe_count == 1 else STABILITY_REASON_MULTI
    return FeelGap(
        dimension="stability",
        priority=priority,
        direction="high",
        recommended_archetype="daily_trainer",
        reason=reason,
        current_range=(min(stabilities), max(stabilities)),
    )


def _daily_count_gap(feel: RotationFeel, priority: int) -> Optional[FeelGap]:
    if feel.daily_count != 1:
        return None
    return FeelGap(
        dimension="daily_count",
        priority=priority,
        direction="variety",
        recommended_archetype="daily_trainer",
        reason=DAILY_COUNT_REASON,
        current_range=(1, 1),
    )


def drop_variety_advice(drops: list[float]) -> tuple[str, str, str]:
    """(direction, suggestion, reason) for a rotation with little drop variety."""
    average = sum(drops) / len(drops)
    if average >= 8:
        return (
            "low",
            "Consider 4-6mm drop for variety",
            "All your shoes have high drops (8mm+) - a lower drop shoe adds variety "
            "and strengthens different muscles",
        )
    if average <= 4:
        return (
            "high",
            "Consider 8-10mm drop for variety",
            "All your shoes have low drops (4mm or less) - a higher drop shoe provides "
            "different feel and load distribution",
        )
    return (
        "low" if max(drops) >= 6 else "high",
        "Consider either 0-4mm or 8-10mm drop",
        "All your shoes have moderate drops (5-7mm) - exploring higher or lower adds useful variety",
    )


def _drop_gap(feel: RotationFeel, priority: int) -> Optional[FeelGap]:
    drops = feel.drops
    if not drops or max(drops) - min(drops) >= LOW_DROP_VARIETY_MM:
        return None
    direction, suggestion, reason = drop_variety_advice(drops)
    return FeelGap(
        dimension="drop",
        priority=priority,
        direction=direction,
        recommended_archetype="daily_trainer",
        reason=reason,
        current_range=(min(drops), max(drops)),
        drop_suggestion=suggestion,
    )


FeelRule = tuple[Callable[[RotationFeel, int], Optional[FeelGap]], int]

BEGINNER_RULES: list[FeelRule] = [
    (_cushion_gap, 1),
    (_stability_gap, 2),
    (_daily_count_gap, 3),
    (_drop_gap, 4),
]

ADVANCED_RULES: list[FeelRule] = [
    (_cushion_gap, 1),
    (_bounce_gap, 2),
    (_daily_count_gap, 3),
    (_drop_gap, 4),
    (lambda feel, priority: _stability_gap(feel, priority, generic_reason=True), 5),
]

# Scoring targets per dimension: (target when favoring high, target when favoring low)
FEEL_GAP_TARGETS: dict[str, tuple[float, float]] = {
    "cushion": (5, 1),
    "bounce": (5, 2),
    "rocker": (5, 2),
    "stability": (4, 1),
    "drop": (10, 4),  # mm
}


class FeelGapDetector:
    """Finds under-explored feel dimensions in a rotation."""

    def __init__(self, catalogue: CatalogueService):
        self.catalogue = catalogue

    def rules_for(self, profile: RunnerProfile) -> list[FeelRule]:
        return BEGINNER_RULES if profile.is_beginner_segment else ADVANCED_RULES

    def detect(self, owned_shoes: list[OwnedShoe], profile: RunnerProfile) -> list[FeelGap]:
        """Detect feel gaps sorted by priority (1 first)."""
        shoes = resolve_shoes(self.catalogue, owned_shoes)
        if not shoes:
            return []

        feel = RotationFeel(profile=profile, owned_shoes=tuple(owned_shoes), shoes=tuple(shoes))
        gaps = [gap for check, priority in self.rules_for(profile) if (gap := check(feel, priority))]
        gaps.sort(key=lambda g: g.priority)
        logger.debug(f"Feel gaps: {[f'{g.dimension} (p{g.priority})' for g in gaps]}")
        return gaps

    def contrast_profile(self, owned_shoes: list[OwnedShoe]) -> ContrastProfile:
        """Rounded average feel of the rotation."""
        shoes = resolve_shoes(self.catalogue, owned_shoes)
        averages: dict[str, Optional[int]] = {}
        for dimension in ("cushion", "stability", "bounce", "rocker", "ground_feel"):
            values = rating_values(shoes, dimension)
            averages[dimension] = round_half_up(sum(values) / len(values)) if values else None
        return ContrastProfile(**averages)


def to_feel_gap_info(gap: FeelGap) -> Optional[FeelGapInfo]:
    """Translate a FeelGap into a scoring target.

    daily_count has no single feel dimension, so it has no target.
    """
    if gap.dimension == "daily_count":
        return None

    direction = "high" if gap.direction == "variety" else gap.direction

    high_target, low_target = FEEL_GAP_TARGETS[gap.dimension]
    return FeelGapInfo(
        dimension=gap.dimension,
        direction=direction,
        target_value=high_target if direction == "high" else low_target,
    )
