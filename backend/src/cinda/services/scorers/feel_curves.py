"""Feel-dimension matching with mode-dependent penalty curves.

Each feel preference mode selects one curve:

- user_set: strict. 10 at an exact match, then -15 per step (floored at -30)
- cinda_decides: soft. 10 at the archetype's default, -2 per step (floored at 0)
- wildcard: the dimension is not scored at all
"""

from typing import Callable, Optional

from cinda.models.profile import FeelPreferences
from cinda.models.shoe import Shoe

FEEL_DIMENSIONS: tuple[str, ...] = ("cushion", "stability", "bounce", "rocker", "ground_feel")

# Points for a perfect match on one dimension
MAX_DIMENSION_POINTS = 10
# Feel term is normalized onto this scale
FEEL_SCALE = 60
# Neutral feel score when nothing can be scored
NEUTRAL_FEEL_SCORE = 30


def user_set_curve(distance: float) -> float:
    return max(-30.0, MAX_DIMENSION_POINTS - 15.0 * distance)


def cinda_decides_curve(distance: float) -> float:
    return max(0.0, MAX_DIMENSION_POINTS - 2.0 * distance)


def wildcard_curve(distance: float) -> Optional[float]:
    return None


FEEL_CURVES: dict[str, Callable[[float], Optional[float]]] = {
    "user_set": user_set_curve,
    "cinda_decides": cinda_decides_curve,
    "wildcard": wildcard_curve,
}

# Target feel when the runner lets us decide, by archetype
ROLE_DEFAULTS: dict[str, dict[str, int]] = {
    "cushion": {"daily_trainer": 3, "recovery_shoe": 4, "workout_shoe": 2, "race_shoe": 2, "trail_shoe": 3},
    "stability": {"daily_trainer": 3, "recovery_shoe": 3, "workout_shoe": 2, "race_shoe": 2, "trail_shoe": 4},
    "bounce": {"daily_trainer": 3, "recovery_shoe": 2, "workout_shoe": 5, "race_shoe": 5, "trail_shoe": 2},
    "rocker": {"daily_trainer": 3, "recovery_shoe": 2, "workout_shoe": 4, "race_shoe": 5, "trail_shoe": 2},
    "ground_feel": {"daily_trainer": 3, "recovery_shoe": 2, "workout_shoe": 3, "race_shoe": 4, "trail_shoe": 4},
}


def role_default(dimension: str, archetype: Optional[str]) -> int:
    return ROLE_DEFAULTS[dimension].get(archetype or "daily_trainer", 3)


def score_dimension(mode: str, shoe_value: float, target: float) -> Optional[float]:
    """Score one dimension with the curve for its preference mode.

    Returns None when the dimension should not be scored.
    """
    curve = FEEL_CURVES.get(mode, cinda_decides_curve)
    return curve(abs(shoe_value - target))


def score_feel(
    shoe: Shoe,
    preferences: FeelPreferences,
    archetype: Optional[str] = None,
    skip: frozenset[str] = frozenset(),
) -> float:
    """Feel match normalized to the 0-60 scale (negative under strict misses).

    Args:
        shoe: Candidate shoe
        preferences: Runner's feel preferences
        archetype: Slot archetype, used for cinda_decides defaults
        skip: Dimensions scored elsewhere (e.g. by a feel-gap override)
    """
    total = 0.0
    scored = 0
    for dimension in FEEL_DIMENSIONS:
        if dimension in skip:
            continue
        shoe_value = shoe.rating(dimension)
        if shoe_value is None:
            continue

        preference = preferences.for_dimension(dimension)
        if preference.is_user_set:
            mode, target = "user_set", preference.value
        elif preference.mode == "wildcard":
            mode, target = "wildcard", 0
        else:
            mode, target = "cinda_decides", role_default(dimension, archetype)

        points = score_dimension(mode, shoe_value, target)
        if points is None:
            continue
        total += points
        scored += 1

    if scored == 0:
        return NEUTRAL_FEEL_SCORE
    return round(total / (scored * MAX_DIMENSION_POINTS) * FEEL_SCALE)
