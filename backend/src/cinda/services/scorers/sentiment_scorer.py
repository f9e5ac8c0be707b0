"""Carries the runner's feelings about owned shoes over to candidates."""

from typing import Callable, Optional

from cinda.models.profile import OwnedShoe
from cinda.models.shoe import Shoe

LOVE_POINTS = 6
DISLIKE_POINTS = -8
MAX_BONUS = 18
MAX_PENALTY = -24


def _rating(shoe: Shoe, dimension: str) -> int:
    return shoe.rating(dimension) or 0


def _same_line(candidate: Shoe, owned: Optional[Shoe]) -> bool:
    return owned is not None and candidate.brand == owned.brand and candidate.model == owned.model


# Tag -> does the candidate have the attribute? (candidate, the owned shoe's record)
TagCheck = Callable[[Shoe, Optional[Shoe]], bool]

LOVE_TAG_CHECKS: dict[str, TagCheck] = {
    "bouncy": lambda c, o: _rating(c, "bounce") >= 4,
    "soft_cushion": lambda c, o: _rating(c, "cushion") >= 4,
    "lightweight": lambda c, o: c.weight_g is not None and c.weight_g < 250,
    "stable": lambda c, o: _rating(c, "stability") >= 4,
    "smooth_rocker": lambda c, o: _rating(c, "rocker") >= 4,
    "long_run_comfort": lambda c, o: _rating(c, "cushion") >= 4 and _rating(c, "rocker") >= 3,
    "fast_feeling": lambda c, o: c.has_plate or _rating(c, "bounce") >= 4,
    "comfortable_fit": lambda c, o: o is not None and c.brand == o.brand,
    "good_grip": lambda c, o: c.wet_grip in ("good", "excellent"),
}

DISLIKE_TAG_CHECKS: dict[str, TagCheck] = {
    "too_heavy": lambda c, o: c.weight_g is not None and c.weight_g > 280,
    "too_soft": lambda c, o: _rating(c, "cushion") >= 5,
    "too_firm": lambda c, o: 0 < _rating(c, "cushion") <= 2,
    "unstable": lambda c, o: 0 < _rating(c, "stability") <= 2,
    "blisters": _same_line,
    "too_narrow": lambda c, o: c.fit_volume in ("snug", "narrow") or c.toe_box == "narrow",
    "too_wide": lambda c, o: c.fit_volume == "roomy" or c.toe_box in ("wide", "roomy"),
    "wears_fast": lambda c, o: any("durab" in i.lower() or "wear" in i.lower() for i in c.common_issues),
    "causes_pain": _same_line,
    "slow_at_speed": lambda c, o: 0 < _rating(c, "bounce") <= 2,
}


class SentimentScorer:
    """Rewards candidates sharing loved traits and penalizes disliked ones."""

    def score(self, candidate: Shoe, rotation: list[tuple[OwnedShoe, Optional[Shoe]]]) -> float:
        """Sentiment carry-over for one candidate.

        Args:
            candidate: Shoe being scored
            rotation: Owned shoes paired with their catalogue record (None if unknown)

        Returns:
            Bounded score in [MAX_PENALTY, MAX_BONUS]
        """
        bonus = 0
        penalty = 0
        for owned, owned_shoe in rotation:
            for tag in owned.love_tags:
                check = LOVE_TAG_CHECKS.get(tag)
                if check and check(candidate, owned_shoe):
                    bonus += LOVE_POINTS
            for tag in owned.dislike_tags:
                check = DISLIKE_TAG_CHECKS.get(tag)
                if check and check(candidate, owned_shoe):
                    penalty += DISLIKE_POINTS

        return float(min(bonus, MAX_BONUS) + max(penalty, MAX_PENALTY))
