"""Rotation analysis, health and classification models."""

from dataclasses import asdict, dataclass, field
from typing import Literal, Optional

FeelDimension = Literal["cushion", "bounce", "rocker", "stability", "drop", "daily_count"]
GapDirection = Literal["low", "high", "variety"]
GapType = Literal["coverage", "misuse", "performance", "recovery", "redundancy"]
Severity = Literal["high", "medium", "low"]


@dataclass
class RedundancyGroup:
    """Owned shoes with near-identical feel serving the same run types."""

    shoe_ids: list[str]
    overlapping_run_types: list[str] = field(default_factory=list)


@dataclass
class RotationAnalysis:
    """Derived view of what the rotation covers and what it lacks."""

    covered_run_types: list[str] = field(default_factory=list)
    covered_archetypes: list[str] = field(default_factory=list)
    expected_archetypes: list[str] = field(default_factory=list)
    missing_archetypes: list[str] = field(default_factory=list)
    redundancies: list[RedundancyGroup] = field(default_factory=list)
    all_shoes_liked: bool = False
    has_disliked_shoes: bool = False
    unresolved_shoe_ids: list[str] = field(default_factory=list)  # Not in catalogue

    def covers(self, archetype: str) -> bool:
        return archetype in self.covered_archetypes

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RotationHealth:
    """Normalized 0-100 health scores."""

    coverage: int
    variety: int
    load_resilience: int
    goal_alignment: int
    overall: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FeelGap:
    """An under-explored sensory dimension in the rotation."""

    dimension: FeelDimension
    priority: int  # 1 = most important
    direction: GapDirection
    recommended_archetype: str
    reason: str
    current_range: tuple[float, float] | None = None  # (min, max) across owned shoes
    drop_suggestion: str | None = None  # Only for the drop dimension

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.current_range is not None:
            data["current_range"] = {"min": self.current_range[0], "max": self.current_range[1]}
        return data


@dataclass
class FeelGapInfo:
    """Scoring input derived from a FeelGap."""

    dimension: Literal["cushion", "bounce", "rocker", "stability", "drop"]
    direction: GapDirection
    target_value: float  # 1-5 rating, or mm for drop


@dataclass
class ContrastProfile:
    """The rotation's average feel, rounded to whole ratings."""

    cushion: int | None = None
    stability: int | None = None
    bounce: int | None = None
    rocker: int | None = None
    ground_feel: int | None = None

    def as_dimensions(self) -> dict[str, int]:
        """Dimensions that have an average, keyed by short name."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class RecommendationSlot:
    """A target archetype with the reason for recommending it."""

    archetype: str
    reason: str
    feel_gap: FeelGapInfo | None = None
    contrast_with: ContrastProfile | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TierClassification:
    """Severity tier of the runner's unmet need plus one or two slots."""

    tier: Literal[1, 2, 3]
    confidence: Literal["high", "medium", "soft"]
    primary: RecommendationSlot
    secondary: RecommendationSlot | None = None
    tier_reason: str = ""
    feel_gaps: list[FeelGap] = field(default_factory=list)  # Tier 3 only

    @property
    def slots(self) -> list[RecommendationSlot]:
        return [s for s in (self.primary, self.secondary) if s is not None]

    def to_dict(self) -> dict:
        return {
            "tier": self.tier,
            "confidence": self.confidence,
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict() if self.secondary else None,
            "tier_reason": self.tier_reason,
            "feel_gaps": [g.to_dict() for g in self.feel_gaps],
        }


@dataclass
class Gap:
    """Single most important gap from the legacy detector."""

    type: GapType
    severity: Severity
    reasoning: str
    recommended_archetype: str
    run_type: Optional[str] = None
    redundant_shoe_ids: list[str] | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class RotationSummaryItem:
    """One owned shoe, how it is used, and whether that use suits it."""

    shoe_id: str
    full_name: str
    run_types: list[str]
    archetypes: list[str]
    misuse_level: Literal["severe", "good"] = "good"
    misuse_message: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class HealthSummary:
    """Short status rollup of the rotation."""

    status: Literal["healthy", "needs_attention", "critical"]
    issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
