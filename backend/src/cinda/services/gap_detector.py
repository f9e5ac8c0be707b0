"""Legacy single-gap detector.

Finds the one most important gap in a rotation:
misuse > coverage > performance > recovery > redundancy.

Runs independently of the TierClassifier and may disagree with it; both
results are returned to callers.
"""

import logging
from dataclasses import replace
from typing import Optional

from cinda.models.analysis import Gap, RotationAnalysis
from cinda.models.profile import OwnedShoe, RunnerProfile
from cinda.services.catalogue_service import CatalogueService
from cinda.utils.run_types import archetypes_for_run_type

logger = logging.getLogger(__name__)

COVERAGE_MESSAGES: dict[str, str] = {
    "all_runs": "You need a versatile daily trainer to handle your regular mileage.",
    "recovery": "A dedicated recovery shoe could help protect your legs on easy days.",
    "long_runs": "Your long runs would benefit from a cushioned daily trainer or recovery shoe.",
    "workouts": "You're doing speed work - a workout shoe would help you get more from those sessions.",
    "races": "A race shoe could give you an edge on race day.",
    "trail": "You need trail shoes for off-road running.",
}

# Lower number = more important
RUN_TYPE_PRIORITY: dict[str, int] = {
    "all_runs": 1,
    "workouts": 2,
    "races": 3,
    "long_runs": 4,
    "recovery": 5,
    "trail": 6,
}

EMPTY_ROTATION_REASONING = (
    "You'd benefit from a versatile daily trainer to start building your rotation. "
    "This will be your go-to shoe for most runs."
)
BALANCED_REASONING = (
    "Your rotation covers the basics well. Consider adding variety with a different shoe "
    "type or feel to expand your options."
)

SEVERITY_LABELS = {"high": "Critical", "medium": "Important", "low": "Nice-to-have"}
TYPE_LABELS = {
    "coverage": "Coverage Gap",
    "performance": "Performance Gap",
    "recovery": "Recovery Gap",
    "redundancy": "Redundancy Opportunity",
    "misuse": "Shoe Misuse",
}


class GapDetector:
    """Identifies the single most important gap in a rotation."""

    def __init__(self, catalogue: CatalogueService):
        self.catalogue = catalogue

    def detect(
        self,
        analysis: RotationAnalysis,
        profile: RunnerProfile,
        owned_shoes: list[OwnedShoe],
    ) -> Gap:
        """Identify the primary gap.

        Volume context (high mileage on too few shoes) never blocks a gap; it is
        appended to the chosen reasoning and can raise medium gaps to high.
        """
        if not owned_shoes:
            return Gap(
                type="coverage",
                severity="high",
                reasoning=EMPTY_ROTATION_REASONING,
                recommended_archetype="daily_trainer",
                run_type="all_runs",
            )

        volume_context, boost = self.volume_context(profile, len(owned_shoes))

        def with_context(gap: Gap, boostable: bool = False) -> Gap:
            if not volume_context:
                return gap
            severity = "high" if boostable and boost else gap.severity
            return replace(gap, reasoning=f"{gap.reasoning} {volume_context}", severity=severity)

        misuse = self.check_misuse(owned_shoes)
        coverage = self.check_coverage(profile, owned_shoes)
        performance = self.check_performance(profile, owned_shoes)

        if misuse:
            gap = with_context(misuse)
        elif coverage and coverage.severity == "high":
            gap = with_context(coverage)
        elif performance and performance.severity == "high":
            gap = with_context(performance)
        elif coverage:
            gap = with_context(coverage, boostable=True)
        elif recovery := self.check_recovery(profile, owned_shoes):
            gap = with_context(recovery, boostable=True)
        elif performance:
            gap = with_context(performance, boostable=True)
        elif redundancy := self.check_redundancy(analysis):
            gap = with_context(redundancy)
        else:
            gap = Gap(
                type="coverage",
                severity="high" if boost else "low",
                reasoning=(
                    f"Your rotation covers the basics well. {volume_context}"
                    if volume_context else BALANCED_REASONING
                ),
                recommended_archetype="daily_trainer",
            )

        logger.info(f"Primary gap: {gap.type} ({gap.severity}) -> {gap.recommended_archetype}")
        return gap

    @staticmethod
    def volume_context(profile: RunnerProfile, shoe_count: int) -> tuple[Optional[str], bool]:
        """(context sentence, severity boost) for high mileage on few shoes."""
        volume = profile.weekly_volume
        if volume is None:
            return None, False

        amount = f"{volume.value:g}{volume.unit}"
        if volume.km >= 50 and shoe_count < 2:
            return (
                f"At {amount}/week with just one shoe, adding this would also help spread "
                "the load and prevent injury.",
                True,
            )
        if volume.km >= 70 and shoe_count < 3:
            return f"With {amount}/week, a third shoe would help spread the load across your training.", False
        return None, False

    def _has_archetype(self, owned_shoes: list[OwnedShoe], archetype: str) -> bool:
        return any(shoe.has_archetype(archetype) for _, shoe in self.catalogue.resolve(owned_shoes))

    def check_misuse(self, owned_shoes: list[OwnedShoe]) -> Optional[Gap]:
        """Race-only shoes on easy days, or recovery-only shoes on fast days."""
        for owned, shoe in self.catalogue.resolve(owned_shoes):
            for run_type in owned.run_types:
                race_only = shoe.is_race_shoe and not shoe.is_daily_trainer
                if race_only and run_type in ("recovery", "all_runs"):
                    use = "all your runs" if run_type == "all_runs" else "easy runs"
                    return Gap(
                        type="misuse",
                        severity="high",
                        reasoning=(
                            f"Your {shoe.full_name} is a race weapon - using it for {use} "
                            "wears it out without benefit."
                        ),
                        recommended_archetype="daily_trainer",
                        run_type=run_type,
                    )

                recovery_only = shoe.is_recovery_shoe and not (shoe.is_workout_shoe or shoe.is_race_shoe)
                if recovery_only and run_type in ("workouts", "races"):
                    feel = "slow on race day" if run_type == "races" else "sluggish during speed work"
                    return Gap(
                        type="misuse",
                        severity="high",
                        reasoning=f"Your {shoe.full_name} is built for easy days. It'll feel {feel}.",
                        recommended_archetype="race_shoe" if run_type == "races" else "workout_shoe",
                        run_type=run_type,
                    )
        return None

    def check_coverage(self, profile: RunnerProfile, owned_shoes: list[OwnedShoe]) -> Optional[Gap]:
        """A declared run type with no suitable shoe in the rotation."""
        run_types = {rt for owned in owned_shoes for rt in owned.run_types}
        gaps: list[str] = []
        for run_type in run_types:
            suitable = archetypes_for_run_type(run_type)
            has_suitable = False
            for owned in owned_shoes:
                shoe = self.catalogue.get(owned.shoe_id)
                if shoe is None:
                    # Uncatalogued shoes are trusted for what the runner uses them for
                    has_suitable = has_suitable or run_type in owned.run_types
                elif any(shoe.has_archetype(a) for a in suitable):
                    has_suitable = True
            if not has_suitable:
                gaps.append(run_type)

        if not gaps:
            return None

        run_type = min(gaps, key=lambda rt: RUN_TYPE_PRIORITY.get(rt, 10))
        goal = profile.primary_goal
        high = (
            (run_type == "workouts" and goal in ("get_faster", "race_training"))
            or (run_type == "races" and goal == "race_training")
            or (run_type == "trail" and profile.trail_running == "most_or_all")
        )
        return Gap(
            type="coverage",
            severity="high" if high else "medium",
            reasoning=COVERAGE_MESSAGES[run_type],
            recommended_archetype=archetypes_for_run_type(run_type)[0],
            run_type=run_type,
        )

    def check_performance(self, profile: RunnerProfile, owned_shoes: list[OwnedShoe]) -> Optional[Gap]:
        """Speed-focused runner without responsive shoes."""
        focused = profile.primary_goal in ("get_faster", "race_training") or profile.experience == "competitive"
        if not focused:
            return None

        has_workout = self._has_archetype(owned_shoes, "workout_shoe")
        has_race = self._has_archetype(owned_shoes, "race_shoe")

        if not has_workout and not has_race:
            focus = "racing" if profile.primary_goal == "race_training" else "improving pace"
            return Gap(
                type="performance",
                severity="high",
                reasoning=(
                    f"You're focused on {focus} but your rotation lacks responsive shoes for "
                    "faster work. A workout shoe would unlock your speed training."
                ),
                recommended_archetype="workout_shoe",
            )

        if profile.primary_goal == "race_training" and not has_race:
            return Gap(
                type="performance",
                severity="medium",
                reasoning=(
                    "You have tempo coverage but could benefit from a carbon-plated race shoe "
                    "to maximize performance on race day."
                ),
                recommended_archetype="race_shoe",
            )
        return None

    def check_recovery(self, profile: RunnerProfile, owned_shoes: list[OwnedShoe]) -> Optional[Gap]:
        """Training pattern that calls for a protective shoe, with none owned."""
        needs_recovery = (
            profile.running_pattern in ("structured_training", "workout_focused", "mostly_easy")
            or profile.primary_goal == "injury_comeback"
        )
        if not needs_recovery or self._has_archetype(owned_shoes, "recovery_shoe"):
            return None

        if profile.running_pattern == "structured_training" or profile.primary_goal == "injury_comeback":
            return Gap(
                type="recovery",
                severity="high",
                reasoning=(
                    "Your training volume would benefit from a protective, cushioned shoe for easy "
                    "days and recovery runs. This will help you absorb the load and stay healthy."
                ),
                recommended_archetype="recovery_shoe",
            )
        return Gap(
            type="recovery",
            severity="medium",
            reasoning="Adding a cushioned recovery shoe would help your legs bounce back between harder efforts.",
            recommended_archetype="recovery_shoe",
        )

    @staticmethod
    def check_redundancy(analysis: RotationAnalysis) -> Optional[Gap]:
        """Similar shoes while an archetype is missing."""
        if not analysis.redundancies or not analysis.missing_archetypes:
            return None
        group = analysis.redundancies[0]
        missing = analysis.missing_archetypes[0]
        return Gap(
            type="redundancy",
            severity="low",
            reasoning=(
                f"You have {len(group.shoe_ids)} similar shoes but nothing for "
                f"{missing.replace('_', ' ', 1)}. Swapping one of the similar shoes would add "
                "versatility to your rotation."
            ),
            recommended_archetype=missing,
            redundant_shoe_ids=list(group.shoe_ids),
        )


def is_gap_critical(gap: Gap) -> bool:
    return gap.severity == "high"


def gap_summary(gap: Gap) -> str:
    """Short label such as "Critical Coverage Gap"."""
    return f"{SEVERITY_LABELS[gap.severity]} {TYPE_LABELS[gap.type]}"
