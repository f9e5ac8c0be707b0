"""Picks a diverse three from ranked candidates and explains each pick."""

import logging
import re
from typing import Optional

from cinda.models.profile import HeelDropPreference
from cinda.models.recommendations import Badge, RecommendedShoe, ScoredCandidate
from cinda.models.shoe import Shoe
from cinda.services.candidate_retrieval import UnderConstrainedError
from cinda.utils.heel_drop import bucket_distance

logger = logging.getLogger(__name__)

# Display order: second pick left, best center, trade-off right
DISPLAY_ORDER: list[tuple[int, str]] = [(1, "left"), (0, "center"), (2, "right")]
SLOT_BADGES: list[Badge] = ["closest_match", "close_match", "trade_off"]

MAX_STRENGTHS = 3
MAX_TRADE_OFFS = 2

_VARIANT_SUFFIXES = [
    re.compile(r"\s+\d+(\.\d+)?$"),
    re.compile(r"\s+v\d+$", re.IGNORECASE),
    re.compile(r"\s+(x|plus|pro|max)$", re.IGNORECASE),
]


def _diff(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None or b is None:
        return None
    return abs(a - b)


def are_similar(first: Shoe, second: Shoe) -> bool:
    """Close in cushion, bounce and stability (1 step), weight (30 g), same plate."""
    for dimension in ("cushion", "bounce", "stability"):
        diff = _diff(first.rating(dimension), second.rating(dimension))
        if diff is None or diff > 1:
            return False
    weight_diff = _diff(first.weight_g, second.weight_g)
    if weight_diff is None or weight_diff > 30:
        return False
    return first.has_plate == second.has_plate


def are_different(first: Shoe, second: Shoe) -> bool:
    """At least two meaningful differences in feel or build."""
    differences = 0
    for dimension in ("cushion", "bounce", "stability", "rocker"):
        diff = _diff(first.rating(dimension), second.rating(dimension))
        if diff is not None and diff >= 2:
            differences += 1
    weight_diff = _diff(first.weight_g, second.weight_g)
    if weight_diff is not None and weight_diff >= 40:
        differences += 1
    if first.has_plate != second.has_plate:
        differences += 1
    return differences >= 2


def base_model(model: str) -> str:
    """Strip version numbers and variant suffixes from a model name.

    Examples:
        >>> base_model("Pegasus 41")
        'pegasus'
        >>> base_model("Novablast v4")
        'novablast'
    """
    name = model.lower().strip()
    for pattern in _VARIANT_SUFFIXES:
        name = pattern.sub("", name)
    return name.strip()


def is_model_variant(first: Shoe, second: Shoe) -> bool:
    if first.brand.lower() != second.brand.lower():
        return False
    a, b = base_model(first.model), base_model(second.model)
    return a == b or a in b or b in a


def archetype_label(archetype: Optional[str]) -> str:
    return archetype.replace("_", " ") if archetype else "your needs"


class RecommendationSelector:
    """Turns a ranked candidate list into displayable recommendations."""

    def select_three(
        self,
        candidates: list[ScoredCandidate],
        constraint: str = "archetype",
    ) -> list[ScoredCandidate]:
        """Select [best, similar alternative, different trade-off].

        Model variants of an already-selected shoe are never picked.

        Raises:
            UnderConstrainedError: If fewer than three distinct shoes can be picked
        """
        if not candidates:
            raise UnderConstrainedError(constraint=constraint, candidate_count=0)

        best = candidates[0]
        pool = [c for c in candidates[1:] if not is_model_variant(c.shoe, best.shoe)]
        second = next((c for c in pool if are_similar(c.shoe, best.shoe)), pool[0] if pool else None)
        if second is None:
            raise UnderConstrainedError(constraint=constraint, candidate_count=1)

        pool = [c for c in pool if c is not second and not is_model_variant(c.shoe, second.shoe)]
        third = next(
            (c for c in pool if are_different(c.shoe, best.shoe) and are_different(c.shoe, second.shoe)),
            pool[0] if pool else None,
        )
        if third is None:
            raise UnderConstrainedError(constraint=constraint, candidate_count=2)

        return [best, second, third]

    def select_discovery(self, candidates: list[ScoredCandidate], limit: int = 3) -> list[ScoredCandidate]:
        """Top candidates, skipping model variants of anything already chosen."""
        selected: list[ScoredCandidate] = []
        remaining = list(candidates)
        while remaining and len(selected) < limit:
            pick = remaining[0]
            selected.append(pick)
            remaining = [c for c in remaining[1:] if not is_model_variant(c.shoe, pick.shoe)]
        return selected

    def badge_for(self, shoe: Shoe, rank: int, heel_drop: Optional[HeelDropPreference]) -> Badge:
        """Badge by rank; a heel drop 2+ buckets from the request is always a trade-off."""
        if heel_drop is not None and heel_drop.is_user_set:
            distance = bucket_distance(shoe.heel_drop_mm, heel_drop.values)
            if distance is not None and distance >= 2:
                return "trade_off"
        return SLOT_BADGES[min(rank, len(SLOT_BADGES) - 1)]

    def build(
        self,
        selected: list[ScoredCandidate],
        archetype: Optional[str],
        heel_drop: Optional[HeelDropPreference] = None,
    ) -> list[RecommendedShoe]:
        """Build display recommendations in left/center/right order.

        With fewer than three picks the best stays center and the second goes left.
        """
        shoes = [c.shoe for c in selected]
        recommendations = []
        for rank, position in DISPLAY_ORDER:
            if rank >= len(selected):
                continue
            candidate = selected[rank]
            is_trade_off = rank == 2
            recommendations.append(RecommendedShoe.from_candidate(
                candidate,
                badge=self.badge_for(candidate.shoe, rank, heel_drop),
                position=position,
                key_strengths=key_strengths(candidate.shoe, archetype, shoes),
                trade_offs=trade_offs(candidate.shoe, shoes) if is_trade_off else [],
                match_reason=match_reason(candidate.shoe, archetype),
            ))

        logger.debug(f"Selected {[(r.shoe_id, r.badge, r.position) for r in recommendations]}")
        return recommendations


def _values(shoes: list[Shoe], getter) -> list[float]:
    return [v for v in (getter(s) for s in shoes) if v is not None]


def key_strengths(shoe: Shoe, archetype: Optional[str], group: list[Shoe]) -> list[str]:
    """What sets this shoe apart from the others it is shown with."""
    strengths: list[str] = []
    others = [s for s in group if s.shoe_id != shoe.shoe_id]

    weights = _values(group, lambda s: s.weight_g)
    if shoe.weight_g is not None and weights:
        if shoe.weight_g == min(weights) and shoe.weight_g < 240:
            strengths.append(f"Lightest option at {shoe.weight_g:g}g for nimble feel")
        elif shoe.weight_g == max(weights) and any(shoe.weight_g - w >= 30 for w in weights):
            strengths.append(f"Most protective build at {shoe.weight_g:g}g")

    cushion = shoe.cushion_softness_1to5
    cushions = _values(group, lambda s: s.cushion_softness_1to5)
    if cushion is not None:
        if cushion == max(cushions) and cushion >= 4:
            strengths.append(f"Softest ride with {'max' if cushion == 5 else 'plush'} cushioning")
        elif cushion == min(cushions) and cushion <= 2:
            strengths.append("Firmest platform for responsive efficiency")

    bounce = shoe.bounce_1to5
    if bounce is not None and bounce >= 4 and bounce == max(_values(group, lambda s: s.bounce_1to5)):
        if len(strengths) < MAX_STRENGTHS:
            strengths.append("Most energetic foam returns power with each step")

    if shoe.has_plate and shoe.plate_tech_name and len(strengths) < MAX_STRENGTHS:
        if not any(s.has_plate for s in others):
            strengths.append(f"Only plated option with {shoe.plate_tech_name}")
        else:
            strengths.append(f"{shoe.plate_tech_name} for snappy propulsion")

    stability = shoe.stability_1to5
    if stability is not None and stability >= 4 and stability == max(_values(group, lambda s: s.stability_1to5)):
        if len(strengths) < MAX_STRENGTHS:
            strengths.append("Most stable platform controls excessive motion")

    rocker = shoe.rocker_1to5
    if rocker is not None and rocker >= 4 and rocker == max(_values(group, lambda s: s.rocker_1to5)):
        if len(strengths) < MAX_STRENGTHS:
            strengths.append("Aggressive rocker for smooth, efficient transitions")

    archetypes = shoe.archetypes
    if len(archetypes) >= 2 and len(strengths) < MAX_STRENGTHS:
        if len(archetypes) > max((len(s.archetypes) for s in others), default=0):
            strengths.append(f"Most versatile across {len(archetypes)} shoe types")

    if len(strengths) < 2 and shoe.notable_detail:
        strengths.append(shoe.notable_detail)
    if len(strengths) < 2 and shoe.why_it_feels_this_way:
        strengths.append(shoe.why_it_feels_this_way)

    if not strengths:
        if (cushion or 0) >= 4:
            strengths.append("Soft, protective cushion for comfort")
        elif (bounce or 0) >= 4:
            strengths.append("Bouncy, responsive foam")
        else:
            strengths.append(f"Balanced ride for {archetype_label(archetype)}")

    return strengths[:MAX_STRENGTHS]


def trade_offs(shoe: Shoe, group: list[Shoe]) -> list[str]:
    """Where the trade-off pick gives ground to the other two."""
    notes: list[str] = []
    others = [s for s in group if s.shoe_id != shoe.shoe_id]

    weights = _values(group, lambda s: s.weight_g)
    if shoe.weight_g is not None and weights:
        lightest = min(weights)
        if shoe.weight_g == max(weights) and shoe.weight_g - lightest >= 30:
            notes.append(f"Heavier than alternatives ({shoe.weight_g:g}g vs {lightest:g}g)")

    cushion = shoe.cushion_softness_1to5
    cushions = _values(group, lambda s: s.cushion_softness_1to5)
    if cushion is not None and cushion == min(cushions) and max(cushions) - cushion >= 2:
        notes.append("Firmer ride than softer alternatives")

    stability = shoe.stability_1to5
    stabilities = _values(group, lambda s: s.stability_1to5)
    if stability is not None and stability == min(stabilities) and max(stabilities) - stability >= 2:
        notes.append("Less stability than structured alternatives")

    premium = shoe.retail_price_category in ("Premium", "Race_Day")
    if premium and any(s.retail_price_category in ("Budget", "Core") for s in others):
        notes.append("Premium price vs more affordable alternatives")

    if not notes:
        if cushion is not None and cushion <= 2:
            notes.append("Firmer ride may take adjustment")
        elif premium:
            notes.append("Premium price point")

    return notes[:MAX_TRADE_OFFS]


def match_reason(shoe: Shoe, archetype: Optional[str]) -> list[str]:
    """Three short bullets from catalogue text."""
    why = shoe.why_it_feels_this_way
    if len(why) > 80:
        why = why[:77].rstrip(".") + "..."
    bullets = [
        shoe.notable_detail.rstrip("."),
        why.rstrip(".") if not why.endswith("...") else why,
        f"Well-suited for {archetype_label(archetype)}",
    ]
    return [b for b in bullets if b]
