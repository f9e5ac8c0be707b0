"""Runs the rotation-analysis and recommendation pipeline end to end.

analyze -> health -> tier (+ legacy gap) -> constraints -> retrieve/relax ->
score -> select three -> summary reasoning.

Every stage is a pure function of the request plus the shared catalogue;
calling any entry point twice with the same inputs gives the same output.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from cinda.models.analysis import ContrastProfile, Gap, RecommendationSlot
from cinda.models.profile import (
    AnalyzeRequest,
    FeelPreference,
    FeelPreferences,
    OwnedShoe,
    RunnerProfile,
)
from cinda.models.recommendations import (
    AnalysisResult,
    DiscoveryRequest,
    DiscoveryResult,
    RecommendedShoe,
    ScoredCandidate,
)
from cinda.models.shoe import Shoe
from cinda.services.candidate_retrieval import (
    CandidateRetriever,
    RetrievalConstraints,
    UnderConstrainedError,
    binding_constraint,
)
from cinda.services.catalogue_service import CatalogueService
from cinda.services.feel_gaps import FeelGapDetector
from cinda.services.gap_detector import GapDetector
from cinda.services.health_scorer import HealthScorer
from cinda.services.pipeline_logger import PipelineLogger
from cinda.services.recommendation_selector import RecommendationSelector, archetype_label
from cinda.services.rotation_analyzer import RotationAnalyzer
from cinda.services.rotation_summary import build_rotation_summary
from cinda.services.scorers.candidate_scorer import CandidateScorer, ScoringContext
from cinda.services.tier_classifier import TierClassifier
from cinda.utils.run_types import archetypes_for_run_type

logger = logging.getLogger(__name__)

MAX_DISCOVERY_REQUESTS = 3

# Feel dimension -> FeelPreferences attribute
PREFERENCE_FIELDS = {
    "cushion": "cushion_amount",
    "stability": "stability_amount",
    "bounce": "energy_return",
    "rocker": "rocker",
    "ground_feel": "ground_feel",
}

# Targets applied to dimensions the runner left to us, by slot archetype
SLOT_FEEL_TARGETS: dict[str, dict[str, int]] = {
    "workout_shoe": {"bounce": 4},
    "race_shoe": {"bounce": 4},
    "recovery_shoe": {"cushion": 5, "stability": 4},
}

DISCOVERY_LABELS = {
    "cushion": ("minimal", "balanced", "max"),
    "bounce": ("damped", "moderate", "bouncy"),
    "stability": ("neutral", "balanced", "stable"),
}


@dataclass
class SlotPlan:
    """Everything needed to fill one recommendation slot."""

    slot: RecommendationSlot
    constraints: RetrievalConstraints
    scoring: ScoringContext
    reasoning_gap: Optional[Gap] = None


def with_targets(preferences: FeelPreferences, targets: dict[str, int]) -> FeelPreferences:
    """Set user_set targets on dimensions still in cinda_decides mode."""
    updates = {}
    for dimension, value in targets.items():
        name = PREFERENCE_FIELDS[dimension]
        if getattr(preferences, name).mode == "cinda_decides":
            updates[name] = FeelPreference(mode="user_set", value=value)
    return replace(preferences, **updates) if updates else preferences


def stability_need(preferences: FeelPreferences, explicit: Optional[str]) -> Optional[str]:
    if explicit:
        return explicit
    stability = preferences.stability_amount
    if stability.is_user_set and stability.value >= 4:
        return "stable_feel"
    return None


def describe_preference(preference: FeelPreference, labels: tuple[str, str, str]) -> str:
    low, mid, high = labels
    if preference.mode == "wildcard":
        return "flexible"
    if not preference.is_user_set:
        return "balanced"
    if preference.value <= 2:
        return low
    if preference.value >= 4:
        return high
    return mid


def discovery_reasoning(request: DiscoveryRequest) -> str:
    prefs = request.feel_preferences
    cushion = describe_preference(prefs.cushion_amount, DISCOVERY_LABELS["cushion"])
    bounce = describe_preference(prefs.energy_return, DISCOVERY_LABELS["bounce"])
    stability = describe_preference(prefs.stability_amount, DISCOVERY_LABELS["stability"])
    return (
        f"Based on your preference for a {archetype_label(request.archetype)} with {cushion} "
        f"cushion, {bounce} response, and {stability} platform."
    )


def build_summary_reasoning(
    gap: Gap,
    slot: RecommendationSlot,
    recommendations: list[RecommendedShoe],
    shoes: list[Shoe],
) -> str:
    """Two or three sentences tying the gap to the shortlist.

    The legacy gap's wording is used only when it points at the same
    archetype the shortlist fills; otherwise the slot reason leads.
    """
    count = len(recommendations)
    brands = ", ".join(dict.fromkeys(r.brand for r in recommendations))
    label = archetype_label(slot.archetype)
    all_plated = all(s.has_plate for s in shoes)
    all_cushioned = all((s.cushion_softness_1to5 or 0) >= 4 for s in shoes)
    weights = [s.weight_g for s in shoes if s.weight_g is not None]
    avg_weight = round(sum(weights) / len(weights)) if weights else None

    gap_type = gap.type if gap.recommended_archetype == slot.archetype else "coverage"
    lead = gap.reasoning if gap.recommended_archetype == slot.archetype else slot.reason

    if gap_type == "performance":
        if all_plated:
            detail = f"All {count} recommendations feature carbon plates for maximum speed: {brands}."
        elif avg_weight is not None:
            detail = f"I've recommended {count} responsive trainers (avg {avg_weight}g) from {brands}."
        else:
            detail = f"I've recommended {count} responsive trainers from {brands}."
    elif gap_type == "recovery":
        detail = f"These {count} max-cushion shoes from {brands} will protect your legs on easy days."
    elif gap_type == "redundancy":
        detail = f"These {count} options from {brands} would diversify your rotation without overlap."
    elif all_cushioned:
        detail = f"I've recommended {count} cushioned options for {label} from {brands}."
    elif all_plated:
        detail = f"I've recommended {count} plated shoes perfect for {label} from {brands}."
    else:
        detail = f"I've recommended {count} shoes to cover {label} from {brands}."

    summary = f"{lead} {detail}"

    trade_off = next((r for r in recommendations if r.badge == "trade_off" and r.trade_offs), None)
    if trade_off:
        notes = ", ".join(trade_off.trade_offs).lower()
        summary += f" Note: {trade_off.full_name} offers a different approach but {notes}."
    return summary


class RecommendationService:
    """Orchestrates analysis, classification and shortlist selection."""

    def __init__(
        self,
        catalogue: CatalogueService,
        min_candidates: int = 3,
        max_candidates: int = 30,
        diagnostics_enabled: Optional[bool] = None,
    ):
        self.catalogue = catalogue
        self.analyzer = RotationAnalyzer(catalogue)
        self.health_scorer = HealthScorer(catalogue)
        self.feel_gaps = FeelGapDetector(catalogue)
        self.tier_classifier = TierClassifier(catalogue, self.feel_gaps)
        self.gap_detector = GapDetector(catalogue)
        self.retriever = CandidateRetriever(catalogue, min_candidates)
        self.scorer = CandidateScorer()
        self.selector = RecommendationSelector()
        self.max_candidates = max_candidates
        self.diagnostics_enabled = diagnostics_enabled

    def _diagnostics(self) -> PipelineLogger:
        return PipelineLogger(enabled=self.diagnostics_enabled)

    def assess(self, profile: RunnerProfile, owned_shoes: list[OwnedShoe]) -> AnalysisResult:
        """Gap detection only: analysis, health, tier, legacy gap, rotation summary."""
        analysis = self.analyzer.analyze(owned_shoes, profile)
        health = self.health_scorer.score(analysis, profile, owned_shoes)
        tier = self.tier_classifier.classify(health, analysis, profile, owned_shoes)
        gap = self.gap_detector.detect(analysis, profile, owned_shoes)
        return AnalysisResult(
            analysis=analysis,
            health=health,
            tier=tier,
            gap=gap,
            rotation_summary=build_rotation_summary(self.catalogue, owned_shoes),
            health_summary=self.analyzer.health_summary(analysis),
        )

    def analyze(self, request: AnalyzeRequest) -> AnalysisResult:
        """Full pipeline: assessment plus a diverse three for the primary slot.

        Raises:
            ValueError: If a replace request names a shoe that is not owned
            CatalogueUnavailableError: If the catalogue is empty
            UnderConstrainedError: If fewer than three candidates survive relaxation
        """
        self.catalogue.ensure_available()
        owned = list(request.owned_shoes)

        diagnostics = self._diagnostics()
        diagnostics.start_session("analyze", {
            "intent": request.intent,
            "owned_shoes": len(owned),
            "goal": request.profile.primary_goal,
            "experience": request.profile.experience,
        })

        try:
            result = self.assess(request.profile, owned)
            diagnostics.log_classification(result.tier.to_dict(), result.gap.to_dict(), result.health.to_dict())

            plan = self.plan_slot(request, result)
            retrieval = self.retriever.retrieve(plan.constraints)
            diagnostics.log_relaxation([step.to_dict() for step in retrieval.relaxations])

            ranked = self.scorer.score_all(retrieval.shoes, plan.scoring)[:self.max_candidates]
            selected = self.selector.select_three(ranked, constraint=binding_constraint(retrieval.constraints))
            recommendations = self.selector.build(
                selected,
                plan.slot.archetype,
                plan.scoring.feel_preferences.heel_drop_preference,
            )
            diagnostics.log_selection(plan.slot.archetype, ranked, recommendations)
        except ValueError as e:
            diagnostics.log_error(str(e))
            diagnostics.save()
            raise

        result.recommendations = recommendations
        result.relaxations = retrieval.relaxations
        result.summary_reasoning = build_summary_reasoning(
            plan.reasoning_gap or result.gap,
            plan.slot,
            recommendations,
            [c.shoe for c in selected],
        )
        diagnostics.save()

        logger.info(
            f"Recommended {[r.shoe_id for r in recommendations]} for {plan.slot.archetype} "
            f"(tier {result.tier.tier}, {len(retrieval.relaxations)} relaxations)"
        )
        return result

    def plan_slot(self, request: AnalyzeRequest, result: AnalysisResult) -> SlotPlan:
        """Turn the classification (or a replace request) into filters and scoring inputs."""
        owned = list(request.owned_shoes)
        preferences = request.feel_preferences
        rotation = [(o, self.catalogue.get(o.shoe_id)) for o in owned]

        if request.intent == "replace":
            slot, preferences = self._replacement_slot(request, preferences)
            archetypes = [slot.archetype]
            reasoning_gap = Gap(
                type="coverage",
                severity="medium",
                reasoning=slot.reason,
                recommended_archetype=slot.archetype,
            )
        else:
            slot = result.tier.primary
            archetypes = [slot.archetype]
            secondary = result.tier.secondary
            if secondary and secondary.archetype != slot.archetype:
                archetypes.append(secondary.archetype)
            preferences = with_targets(preferences, SLOT_FEEL_TARGETS.get(slot.archetype, {}))
            reasoning_gap = None

        constraints = RetrievalConstraints(
            archetypes=(slot.archetype,),
            exclude_ids=frozenset(o.shoe_id for o in owned),
            brand_only=request.constraints.brand_only,
            max_price=request.constraints.max_price,
            heel_drop=preferences.heel_drop_preference,
        )
        scoring = ScoringContext(
            archetypes=archetypes,
            profile=request.profile,
            feel_preferences=preferences,
            stability_preference=stability_need(preferences, request.constraints.stability_preference),
            rotation=rotation,
            feel_gap=slot.feel_gap,
            contrast_with=slot.contrast_with,
        )
        logger.debug(f"Slot plan: {slot.archetype} archetypes={archetypes}")
        return SlotPlan(slot=slot, constraints=constraints, scoring=scoring, reasoning_gap=reasoning_gap)

    def _replacement_slot(
        self,
        request: AnalyzeRequest,
        preferences: FeelPreferences,
    ) -> tuple[RecommendationSlot, FeelPreferences]:
        """Like-for-like slot for the shoe being replaced.

        A loved or liked shoe's ratings become targets; a disliked shoe's
        ratings become the profile to contrast against.
        """
        replaced = next((o for o in request.owned_shoes if o.shoe_id == request.replace_shoe_id), None)
        if replaced is None:
            raise ValueError(f"replace_shoe_id '{request.replace_shoe_id}' is not in owned_shoes")

        shoe = self.catalogue.get(replaced.shoe_id)
        if shoe is not None and shoe.archetypes:
            archetype = shoe.archetypes[0]
        else:
            run_types = list(replaced.run_types) or ["all_runs"]
            archetype = archetypes_for_run_type(run_types[0])[0]

        name = shoe.full_name if shoe else replaced.shoe_id
        contrast = None
        if shoe is not None and replaced.sentiment in ("love", "like"):
            targets = {d: v for d in PREFERENCE_FIELDS if (v := shoe.rating(d)) is not None}
            preferences = with_targets(preferences, targets)
            reason = f"Replacing your {name} with a {archetype_label(archetype)} that keeps the feel you like."
        elif shoe is not None and replaced.sentiment == "dislike":
            contrast = ContrastProfile(**{d: shoe.rating(d) for d in PREFERENCE_FIELDS})
            reason = f"Replacing your {name} with a {archetype_label(archetype)} that feels different."
        else:
            reason = f"Replacing your {name} with another {archetype_label(archetype)}."

        return RecommendationSlot(archetype=archetype, reason=reason, contrast_with=contrast), preferences

    def discover(
        self,
        profile: RunnerProfile,
        owned_shoes: list[OwnedShoe],
        requests: list[DiscoveryRequest],
    ) -> list[DiscoveryResult]:
        """Per-archetype shortlists of one to three shoes.

        Raises:
            ValueError: If more than three archetypes are requested
            CatalogueUnavailableError: If the catalogue is empty
            UnderConstrainedError: If an archetype has no candidates at all
        """
        if len(requests) > MAX_DISCOVERY_REQUESTS:
            raise ValueError(f"Discovery supports a maximum of {MAX_DISCOVERY_REQUESTS} archetype requests")
        self.catalogue.ensure_available()

        diagnostics = self._diagnostics()
        diagnostics.start_session("discovery", {
            "owned_shoes": len(owned_shoes),
            "archetypes": [r.archetype for r in requests],
        })

        rotation = [(o, self.catalogue.get(o.shoe_id)) for o in owned_shoes]
        results = []
        for request in requests:
            preferences = request.feel_preferences
            constraints = RetrievalConstraints(
                archetypes=(request.archetype,),
                exclude_ids=frozenset(o.shoe_id for o in owned_shoes),
                heel_drop=preferences.heel_drop_preference,
            )
            retrieval = self.retriever.retrieve(constraints, strict=False)
            diagnostics.log_relaxation([step.to_dict() for step in retrieval.relaxations])
            if not retrieval.shoes:
                diagnostics.log_error(f"No candidates for {request.archetype}")
                diagnostics.save()
                raise UnderConstrainedError(
                    constraint=binding_constraint(retrieval.constraints),
                    candidate_count=0,
                    message=f"Unable to find any shoes for {request.archetype} with the specified preferences.",
                )

            scoring = ScoringContext(
                archetypes=[request.archetype],
                profile=profile,
                feel_preferences=preferences,
                stability_preference=stability_need(preferences, None),
                rotation=rotation,
            )
            ranked: list[ScoredCandidate] = self.scorer.score_all(retrieval.shoes, scoring)[:self.max_candidates]
            selected = self.selector.select_discovery(ranked)
            recommendations = self.selector.build(selected, request.archetype, preferences.heel_drop_preference)
            diagnostics.log_selection(request.archetype, ranked, recommendations)

            results.append(DiscoveryResult(
                archetype=request.archetype,
                recommendations=recommendations,
                reasoning=discovery_reasoning(request),
                relaxations=retrieval.relaxations,
            ))

        diagnostics.save()
        logger.info(f"Discovery complete for {[r.archetype for r in results]}")
        return results
