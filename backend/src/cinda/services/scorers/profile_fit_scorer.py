"""Profile fit bonuses: experience, goal, pattern, body weight, trail and brand preference."""

from cinda.models.profile import RunnerProfile
from cinda.models.shoe import Shoe

# Each fit term is bounded to +/- this many points
FIT_BOUND = 10

HEAVY_RUNNER_KG = 85
LIGHT_RUNNER_KG = 60

# Soft nudge only; brand_only constraints are a hard filter elsewhere
BRAND_PREFERENCE_POINTS = 5


def _bounded(points: float) -> float:
    return max(-FIT_BOUND, min(FIT_BOUND, points))


def _at_least(value, threshold) -> bool:
    return value is not None and value >= threshold


def _at_most(value, threshold) -> bool:
    return value is not None and value <= threshold


class ProfileFitScorer:
    """Scores how well a shoe suits who the runner is."""

    def score(self, shoe: Shoe, profile: RunnerProfile) -> dict[str, float]:
        """Get all fit components for a shoe.

        Returns:
            Dict with experience, goal, pattern, body_weight, trail and brand components
        """
        return {
            "experience": self.experience_fit(shoe, profile),
            "goal": self.goal_fit(shoe, profile),
            "pattern": self.pattern_fit(shoe, profile),
            "body_weight": self.body_weight_fit(shoe, profile),
            "trail": self.trail_fit(shoe, profile),
            "brand": self.brand_fit(shoe, profile),
        }

    def experience_fit(self, shoe: Shoe, profile: RunnerProfile) -> float:
        points = 0.0
        if profile.experience == "beginner":
            if _at_least(shoe.cushion_softness_1to5, 3) and _at_least(shoe.stability_1to5, 3):
                points += 5
            if shoe.is_race_shoe and not shoe.is_daily_trainer:
                points -= 10
            elif shoe.plate_material == "carbon":
                points -= 5
        elif profile.experience == "intermediate":
            if shoe.is_super_trainer:
                points += 5
        else:
            if shoe.has_plate or _at_least(shoe.bounce_1to5, 4):
                points += 5
            if profile.experience == "competitive" and shoe.is_race_shoe:
                points += 5
        return _bounded(points)

    def goal_fit(self, shoe: Shoe, profile: RunnerProfile) -> float:
        points = 0.0
        goal = profile.primary_goal
        if goal == "race_training":
            if shoe.has_plate:
                points += 5
            if shoe.is_race_shoe or shoe.is_workout_shoe:
                points += 5
        elif goal == "get_faster":
            if _at_least(shoe.bounce_1to5, 4):
                points += 5
            if shoe.weight_g is not None and shoe.weight_g < 250:
                points += 5
        elif goal == "injury_comeback":
            if _at_least(shoe.cushion_softness_1to5, 4):
                points += 5
            if _at_least(shoe.stability_1to5, 3):
                points += 5
            if _at_least(shoe.ground_feel_1to5, 4):
                points -= 10
        else:
            if shoe.is_daily_trainer:
                points += 5
            if shoe.retail_price_category == "Core":
                points += 5
        return _bounded(points)

    def pattern_fit(self, shoe: Shoe, profile: RunnerProfile) -> float:
        points = 0.0
        pattern = profile.running_pattern
        if pattern == "infrequent":
            if shoe.is_daily_trainer or shoe.is_super_trainer:
                points += 5
            if shoe.cushion_softness_1to5 in (3, 4):
                points += 5
        elif pattern == "mostly_easy":
            if _at_least(shoe.cushion_softness_1to5, 4):
                points += 5
            if _at_least(shoe.rocker_1to5, 3):
                points += 5
        elif pattern == "structured_training":
            if shoe.is_super_trainer:
                points += 5
            if _at_least(shoe.bounce_1to5, 3):
                points += 5
        elif pattern == "workout_focused":
            if _at_least(shoe.bounce_1to5, 4):
                points += 5
            if shoe.has_plate:
                points += 5
        return _bounded(points)

    def body_weight_fit(self, shoe: Shoe, profile: RunnerProfile) -> float:
        if profile.body_weight is None:
            return 0.0
        kg = profile.body_weight.kg
        points = 0.0
        if kg >= HEAVY_RUNNER_KG:
            if _at_least(shoe.cushion_softness_1to5, 4):
                points += 5
            if _at_least(shoe.stability_1to5, 3):
                points += 5
            if shoe.weight_g is not None and shoe.weight_g < 200:
                points -= 5
        elif kg <= LIGHT_RUNNER_KG:
            if shoe.weight_g is not None and shoe.weight_g < 250:
                points += 5
            if _at_most(shoe.weight_feel_1to5, 2):
                points += 5
        return _bounded(points)

    def trail_fit(self, shoe: Shoe, profile: RunnerProfile) -> float:
        frequency = profile.trail_running
        if shoe.is_trail:
            if frequency == "most_or_all":
                return 10.0
            if frequency in ("infrequently", "want_to_start"):
                return 5.0
            return 0.0
        if frequency in ("infrequently", "want_to_start") and shoe.wet_grip in ("good", "excellent"):
            return 5.0
        return 0.0

    @staticmethod
    def brand_fit(shoe: Shoe, profile: RunnerProfile) -> float:
        preferred = (profile.brand_preference or "").strip().lower()
        if preferred and shoe.brand.lower() == preferred:
            return float(BRAND_PREFERENCE_POINTS)
        return 0.0
