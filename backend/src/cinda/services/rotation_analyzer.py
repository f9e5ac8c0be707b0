"""Derives coverage, gaps and redundancy from a runner's rotation."""

import logging

from cinda.models.analysis import HealthSummary, RedundancyGroup, RotationAnalysis
from cinda.models.profile import OwnedShoe, RunnerProfile
from cinda.models.shoe import ARCHETYPES, Shoe
from cinda.services.catalogue_service import CatalogueService
from cinda.utils.run_types import archetypes_for_run_type, sort_run_types

logger = logging.getLogger(__name__)


class RotationAnalyzer:
    """Works out which archetypes a rotation covers and which it is missing."""

    # Base archetypes each running pattern needs
    PATTERN_ARCHETYPES: dict[str, tuple[str, ...]] = {
        "infrequent": ("daily_trainer",),
        "mostly_easy": ("daily_trainer", "recovery_shoe"),
        "structured_training": ("daily_trainer", "recovery_shoe", "workout_shoe"),
        "workout_focused": ("daily_trainer", "workout_shoe"),
    }

    # Archetypes a primary goal adds on top of the pattern
    GOAL_ARCHETYPES: dict[str, tuple[str, ...]] = {
        "race_training": ("workout_shoe", "race_shoe"),
        "get_faster": ("workout_shoe",),
        "injury_comeback": ("recovery_shoe",),
        "general_fitness": (),
    }

    TRAIL_FREQUENCIES = frozenset({"most_or_all", "infrequently"})

    # Max rating difference for two shoes to feel the same
    SIMILARITY_TOLERANCE = 1

    def __init__(self, catalogue: CatalogueService):
        self.catalogue = catalogue

    def analyze(self, owned_shoes: list[OwnedShoe], profile: RunnerProfile) -> RotationAnalysis:
        """Analyze the runner's current rotation.

        Args:
            owned_shoes: Runner's current shoes and how they use them
            profile: Runner's profile

        Returns:
            RotationAnalysis with covered/expected/missing archetypes and redundancies
        """
        expected = self.expected_archetypes(profile)

        if not owned_shoes:
            return RotationAnalysis(
                expected_archetypes=expected,
                missing_archetypes=list(expected),
            )

        covered_run_types = sort_run_types(rt for shoe in owned_shoes for rt in shoe.run_types)
        covered = self.covered_archetypes(owned_shoes)
        missing = [a for a in expected if a not in covered]
        unresolved = [s.shoe_id for s in owned_shoes if self.catalogue.get(s.shoe_id) is None]

        analysis = RotationAnalysis(
            covered_run_types=covered_run_types,
            covered_archetypes=covered,
            expected_archetypes=expected,
            missing_archetypes=missing,
            redundancies=self.find_redundancies(owned_shoes),
            all_shoes_liked=all(s.sentiment in ("love", "like") for s in owned_shoes),
            has_disliked_shoes=any(s.sentiment == "dislike" for s in owned_shoes),
            unresolved_shoe_ids=unresolved,
        )
        logger.debug(
            f"Rotation covers {covered}, expects {expected}, missing {missing}, "
            f"{len(analysis.redundancies)} redundancy group(s)"
        )
        return analysis

    def expected_archetypes(self, profile: RunnerProfile) -> list[str]:
        """Archetypes this profile should have covered, in canonical order."""
        expected = set(self.PATTERN_ARCHETYPES.get(profile.running_pattern, ("daily_trainer",)))
        expected.update(self.GOAL_ARCHETYPES.get(profile.primary_goal, ()))
        if profile.trail_running in self.TRAIL_FREQUENCIES:
            expected.add("trail_shoe")
        return [a for a in ARCHETYPES if a in expected]

    def covered_archetypes(self, owned_shoes: list[OwnedShoe]) -> list[str]:
        """Archetypes served by the rotation, in canonical order.

        A run type credits an archetype only when the owned shoe actually
        belongs to it. Shoes missing from the catalogue are taken at the
        runner's word and credited with every archetype their run types map to.
        """
        covered: set[str] = set()
        for owned in owned_shoes:
            shoe = self.catalogue.get(owned.shoe_id)
            for run_type in owned.run_types:
                for archetype in archetypes_for_run_type(run_type):
                    if shoe is None or shoe.has_archetype(archetype):
                        covered.add(archetype)
        return [a for a in ARCHETYPES if a in covered]

    def are_similar(self, first: Shoe, second: Shoe) -> bool:
        """Two shoes feel alike when cushion, stability and bounce are each within 1."""
        for dimension in ("cushion", "stability", "bounce"):
            a, b = first.rating(dimension), second.rating(dimension)
            if a is None or b is None:
                return False
            if abs(a - b) > self.SIMILARITY_TOLERANCE:
                return False
        return True

    def find_redundancies(self, owned_shoes: list[OwnedShoe]) -> list[RedundancyGroup]:
        """Find groups of 2+ similar-feeling shoes sharing a run type."""
        by_run_type: dict[str, list[tuple[OwnedShoe, Shoe]]] = {}
        for owned, shoe in self.catalogue.resolve(owned_shoes):
            for run_type in owned.run_types:
                by_run_type.setdefault(run_type, []).append((owned, shoe))

        groups: list[RedundancyGroup] = []
        seen: set[tuple[str, ...]] = set()
        for run_type in sort_run_types(by_run_type):
            members = by_run_type[run_type]
            if len(members) < 2:
                continue

            clustered: set[str] = set()
            for i, (owned, shoe) in enumerate(members):
                if owned.shoe_id in clustered:
                    continue
                cluster = [(owned, shoe)]
                clustered.add(owned.shoe_id)
                for other_owned, other_shoe in members[i + 1:]:
                    if other_owned.shoe_id in clustered:
                        continue
                    if self.are_similar(shoe, other_shoe):
                        cluster.append((other_owned, other_shoe))
                        clustered.add(other_owned.shoe_id)

                if len(cluster) < 2:
                    continue
                key = tuple(sorted(o.shoe_id for o, _ in cluster))
                if key in seen:
                    continue
                seen.add(key)
                shared = set(cluster[0][0].run_types)
                for o, _ in cluster[1:]:
                    shared &= set(o.run_types)
                groups.append(RedundancyGroup(
                    shoe_ids=[o.shoe_id for o, _ in cluster],
                    overlapping_run_types=sort_run_types(shared),
                ))
        return groups

    @staticmethod
    def health_summary(analysis: RotationAnalysis) -> HealthSummary:
        """Roll the analysis up into a short status and issue list."""
        issues: list[str] = []
        if analysis.missing_archetypes:
            issues.append(f"Missing coverage for: {', '.join(analysis.missing_archetypes)}")
        if analysis.has_disliked_shoes:
            issues.append("Has shoes you don't like")
        if analysis.redundancies:
            issues.append(f"{len(analysis.redundancies)} redundant shoe group(s)")

        if not issues and analysis.all_shoes_liked:
            status = "healthy"
        elif len(analysis.missing_archetypes) > 2 or analysis.has_disliked_shoes:
            status = "critical"
        else:
            status = "needs_attention"
        return HealthSummary(status=status, issues=issues)


def resolve_shoes(catalogue: CatalogueService, owned_shoes: list[OwnedShoe]) -> list[Shoe]:
    """Catalogue records for the owned shoes that exist in the catalogue."""
    return [shoe for _, shoe in catalogue.resolve(owned_shoes)]


def rating_values(shoes: list[Shoe], dimension: str) -> list[int]:
    """Non-null ratings for one dimension."""
    return [v for v in (s.rating(dimension) for s in shoes) if v is not None]


def drop_values(shoes: list[Shoe]) -> list[float]:
    return [s.heel_drop_mm for s in shoes if s.heel_drop_mm is not None]
