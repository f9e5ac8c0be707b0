"""Hard-filter candidate retrieval with ordered constraint relaxation."""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from cinda.models.profile import HeelDropPreference
from cinda.models.recommendations import RelaxationStep
from cinda.models.shoe import PRICE_TIERS, Shoe
from cinda.services.catalogue_service import CatalogueService
from cinda.services.scorers.candidate_scorer import serves_archetype
from cinda.utils.heel_drop import bucket_distance

logger = logging.getLogger(__name__)

HEEL_DROP_TOLERANCE = 2

RELATED_ARCHETYPES: dict[str, list[str]] = {
    "daily_trainer": ["recovery_shoe", "workout_shoe"],
    "recovery_shoe": ["daily_trainer"],
    "workout_shoe": ["daily_trainer", "race_shoe"],
    "race_shoe": ["workout_shoe"],
    "trail_shoe": [],  # Trail never mixes with road
}


class UnderConstrainedError(ValueError):
    """Fewer than the minimum number of candidates survive every relaxation."""

    def __init__(self, constraint: str, candidate_count: int, message: Optional[str] = None):
        self.constraint = constraint
        self.candidate_count = candidate_count
        super().__init__(
            message
            or f"Unable to find 3 suitable recommendations. Only found {candidate_count} "
            f"candidates. Try relaxing {constraint}."
        )


@dataclass(frozen=True)
class RetrievalConstraints:
    """Hard filters for one slot."""

    archetypes: tuple[str, ...]
    exclude_ids: frozenset[str] = frozenset()
    brand_only: Optional[str] = None
    max_price: Optional[str] = None
    heel_drop: HeelDropPreference = field(default_factory=HeelDropPreference)
    heel_drop_tolerance: Optional[int] = HEEL_DROP_TOLERANCE  # None disables the filter
    admit_budget: bool = False

    @property
    def wants_trail(self) -> bool:
        return "trail_shoe" in self.archetypes

    @property
    def wants_road(self) -> bool:
        return any(a != "trail_shoe" for a in self.archetypes)


def passes_hard_filters(shoe: Shoe, constraints: RetrievalConstraints) -> bool:
    if shoe.shoe_id in constraints.exclude_ids:
        return False

    if constraints.brand_only and shoe.brand.lower() != constraints.brand_only.lower():
        return False

    if shoe.retail_price_category == "Budget" and not constraints.admit_budget:
        return False

    if constraints.max_price in PRICE_TIERS and shoe.price_rank > PRICE_TIERS.index(constraints.max_price):
        return False

    if constraints.wants_trail and not shoe.is_trail:
        return False
    if constraints.wants_road and shoe.is_trail and not constraints.wants_trail:
        return False

    if not any(serves_archetype(shoe, a) for a in constraints.archetypes):
        return False

    if constraints.heel_drop.is_user_set and constraints.heel_drop_tolerance is not None:
        distance = bucket_distance(shoe.heel_drop_mm, constraints.heel_drop.values)
        if distance is not None and distance > constraints.heel_drop_tolerance:
            return False

    return True


def _drop_brand(c: RetrievalConstraints) -> Optional[RetrievalConstraints]:
    return replace(c, brand_only=None) if c.brand_only else None


def _widen_price(c: RetrievalConstraints) -> Optional[RetrievalConstraints]:
    if c.max_price not in PRICE_TIERS or c.max_price == PRICE_TIERS[-1]:
        return None
    return replace(c, max_price=PRICE_TIERS[PRICE_TIERS.index(c.max_price) + 1])


def _expand_archetypes(c: RetrievalConstraints) -> Optional[RetrievalConstraints]:
    expanded = list(c.archetypes)
    for archetype in c.archetypes:
        for related in RELATED_ARCHETYPES.get(archetype, []):
            if related not in expanded:
                expanded.append(related)
    if len(expanded) == len(c.archetypes):
        return None
    return replace(c, archetypes=tuple(expanded))


def _widen_heel_drop(c: RetrievalConstraints) -> Optional[RetrievalConstraints]:
    if not c.heel_drop.is_user_set or c.heel_drop_tolerance is None:
        return None
    return replace(c, heel_drop_tolerance=None)


def _drop_price_cap(c: RetrievalConstraints) -> Optional[RetrievalConstraints]:
    return replace(c, max_price=None) if c.max_price else None


def _admit_budget(c: RetrievalConstraints) -> Optional[RetrievalConstraints]:
    return None if c.admit_budget else replace(c, admit_budget=True)


RelaxationRule = Callable[[RetrievalConstraints], Optional[RetrievalConstraints]]

# Ordered; each step runs only while the pool is still too small
RELAXATION_STEPS: list[tuple[str, RelaxationRule]] = [
    ("drop_brand", _drop_brand),
    ("widen_price", _widen_price),
    ("expand_archetypes", _expand_archetypes),
    ("widen_heel_drop", _widen_heel_drop),
    ("drop_price_cap", _drop_price_cap),
    ("admit_budget", _admit_budget),
]


@dataclass
class RetrievalResult:
    """Surviving candidates plus the constraints and relaxations that produced them."""

    shoes: list[Shoe]
    constraints: RetrievalConstraints
    relaxations: list[RelaxationStep] = field(default_factory=list)


class CandidateRetriever:
    """Applies hard filters, relaxing constraints until enough candidates survive."""

    def __init__(self, catalogue: CatalogueService, min_candidates: int = 3):
        self.catalogue = catalogue
        self.min_candidates = min_candidates

    def filter(self, constraints: RetrievalConstraints) -> list[Shoe]:
        return [shoe for shoe in self.catalogue.shoes if passes_hard_filters(shoe, constraints)]

    def retrieve(self, constraints: RetrievalConstraints, strict: bool = True) -> RetrievalResult:
        """Get candidates for a slot.

        Args:
            constraints: Initial hard filters
            strict: Raise when fewer than min_candidates survive every step

        Raises:
            CatalogueUnavailableError: If the catalogue is empty
            UnderConstrainedError: If strict and relaxation cannot reach min_candidates
        """
        self.catalogue.ensure_available()

        shoes = self.filter(constraints)
        relaxations: list[RelaxationStep] = []
        logger.debug(f"{len(shoes)} candidates for {list(constraints.archetypes)} before relaxation")

        for name, relax in RELAXATION_STEPS:
            if len(shoes) >= self.min_candidates:
                break
            relaxed = relax(constraints)
            if relaxed is None:
                continue
            before = len(shoes)
            constraints = relaxed
            shoes = self.filter(constraints)
            relaxations.append(RelaxationStep(
                step=name,
                before=before,
                after=len(shoes),
                detail=describe_constraints(constraints),
            ))
            logger.warning(f"Relaxed constraints ({name}): {before} -> {len(shoes)} candidates")

        if strict and len(shoes) < self.min_candidates:
            raise UnderConstrainedError(
                constraint=binding_constraint(constraints),
                candidate_count=len(shoes),
            )

        return RetrievalResult(shoes=shoes, constraints=constraints, relaxations=relaxations)


def binding_constraint(constraints: RetrievalConstraints) -> str:
    """Name the constraint a caller should relax next."""
    if constraints.brand_only:
        return "brand_only"
    if constraints.max_price:
        return "max_price"
    if constraints.heel_drop.is_user_set and constraints.heel_drop_tolerance is not None:
        return "heel_drop_preference"
    return "archetype"


def describe_constraints(constraints: RetrievalConstraints) -> str:
    parts = [f"archetypes={','.join(constraints.archetypes)}"]
    if constraints.brand_only:
        parts.append(f"brand={constraints.brand_only}")
    if constraints.max_price:
        parts.append(f"max_price={constraints.max_price}")
    if constraints.admit_budget:
        parts.append("budget=admitted")
    return " ".join(parts)
