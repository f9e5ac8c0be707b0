"""Recommendation models for shoe shortlists."""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from cinda.models.analysis import (
    Gap,
    HealthSummary,
    RotationAnalysis,
    RotationHealth,
    RotationSummaryItem,
    TierClassification,
)
from cinda.models.profile import FeelPreferences
from cinda.models.shoe import Shoe

Badge = Literal["closest_match", "close_match", "trade_off"]
Position = Literal["left", "center", "right"]


@dataclass
class ScoredCandidate:
    """A catalogue shoe with its score for one request."""

    shoe: Shoe
    score: float = 0.0
    breakdown: dict[str, float] = field(default_factory=dict)  # Individual score components


@dataclass
class RecommendedShoe:
    """A shoe chosen for display."""

    shoe_id: str
    full_name: str
    brand: str
    model: str
    badge: Badge
    position: Position
    archetypes: list[str] = field(default_factory=list)
    score: float = 0.0
    score_breakdown: dict[str, float] = field(default_factory=dict)
    key_strengths: list[str] = field(default_factory=list)
    trade_offs: list[str] = field(default_factory=list)
    match_reason: list[str] = field(default_factory=list)
    weight_g: float | None = None
    heel_drop_mm: float | None = None
    has_plate: bool = False
    plate_material: str | None = None
    retail_price_category: str = "Core"
    release_status: str = "available"

    @classmethod
    def from_candidate(
        cls,
        candidate: ScoredCandidate,
        badge: Badge,
        position: Position,
        **extra: Any,
    ) -> "RecommendedShoe":
        shoe = candidate.shoe
        return cls(
            shoe_id=shoe.shoe_id,
            full_name=shoe.full_name,
            brand=shoe.brand,
            model=shoe.model,
            badge=badge,
            position=position,
            archetypes=shoe.archetypes,
            score=candidate.score,
            score_breakdown=dict(candidate.breakdown),
            weight_g=shoe.weight_g,
            heel_drop_mm=shoe.heel_drop_mm,
            has_plate=shoe.has_plate,
            plate_material=shoe.plate_material,
            retail_price_category=shoe.retail_price_category,
            release_status=shoe.release_status,
            **extra,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RelaxationStep:
    """One constraint-relaxation step that fired."""

    step: str
    before: int  # Candidate count before the step
    after: int  # Candidate count after the step
    detail: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProseSummary:
    """Rotation prose from the external generator or its fallback."""

    prose: str
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    source: Literal["generator", "fallback"] = "fallback"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AnalysisResult:
    """Everything the pipeline derives for one request."""

    analysis: RotationAnalysis
    health: RotationHealth
    tier: TierClassification
    gap: Gap
    rotation_summary: list[RotationSummaryItem] = field(default_factory=list)
    health_summary: HealthSummary | None = None
    recommendations: list[RecommendedShoe] = field(default_factory=list)
    summary_reasoning: str = ""
    relaxations: list[RelaxationStep] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "gap": self.gap.to_dict(),
            "tier": self.tier.to_dict(),
            "health": self.health.to_dict(),
            "health_summary": self.health_summary.to_dict() if self.health_summary else None,
            "analysis": self.analysis.to_dict(),
            "rotation_summary": [item.to_dict() for item in self.rotation_summary],
            "recommendations": [rec.to_dict() for rec in self.recommendations],
            "summary_reasoning": self.summary_reasoning,
            "relaxations": [step.to_dict() for step in self.relaxations],
        }


@dataclass(frozen=True)
class DiscoveryRequest:
    """One archetype the runner wants to browse, with its feel preferences."""

    archetype: str
    feel_preferences: FeelPreferences = field(default_factory=FeelPreferences)


@dataclass
class DiscoveryResult:
    """Shortlist for one discovery request."""

    archetype: str
    recommendations: list[RecommendedShoe] = field(default_factory=list)
    reasoning: str = ""
    relaxations: list[RelaxationStep] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "archetype": self.archetype,
            "recommendations": [rec.to_dict() for rec in self.recommendations],
            "reasoning": self.reasoning,
            "relaxations": [step.to_dict() for step in self.relaxations],
        }
