"""Runner profile, rotation and preference models."""

from dataclasses import dataclass, field
from typing import Literal, Optional

Experience = Literal["beginner", "intermediate", "experienced", "competitive"]
PrimaryGoal = Literal["general_fitness", "get_faster", "race_training", "injury_comeback"]
RunningPattern = Literal["infrequent", "mostly_easy", "structured_training", "workout_focused"]
TrailRunning = Literal["most_or_all", "infrequently", "want_to_start", "no_trails"]
Sentiment = Literal["love", "like", "neutral", "dislike"]
PreferenceMode = Literal["cinda_decides", "user_set", "wildcard"]
StabilityPreference = Literal["neutral", "stability", "stable_feel"]

LOVE_TAGS = frozenset({
    "bouncy", "soft_cushion", "lightweight", "stable", "smooth_rocker",
    "long_run_comfort", "fast_feeling", "comfortable_fit", "good_grip",
})
DISLIKE_TAGS = frozenset({
    "too_heavy", "too_soft", "too_firm", "unstable", "blisters",
    "too_narrow", "too_wide", "wears_fast", "causes_pain", "slow_at_speed",
})

KM_PER_MILE = 1.6
KG_PER_LB = 0.4536


@dataclass(frozen=True)
class WeeklyVolume:
    """Weekly running volume."""

    value: float
    unit: Literal["km", "mi"] = "km"

    @property
    def km(self) -> float:
        return self.value * KM_PER_MILE if self.unit == "mi" else self.value


@dataclass(frozen=True)
class BodyWeight:
    """Runner body weight."""

    value: float
    unit: Literal["kg", "lb"] = "kg"

    @property
    def kg(self) -> float:
        return self.value * KG_PER_LB if self.unit == "lb" else self.value


@dataclass(frozen=True)
class RunnerProfile:
    """What the runner told us about themselves. Immutable per request."""

    experience: Experience
    primary_goal: PrimaryGoal
    running_pattern: RunningPattern
    weekly_volume: WeeklyVolume | None = None
    trail_running: TrailRunning | None = None
    body_weight: BodyWeight | None = None
    brand_preference: str | None = None

    @property
    def weekly_km(self) -> float:
        """Weekly volume in km, 0 when not provided."""
        return self.weekly_volume.km if self.weekly_volume else 0.0

    @property
    def is_beginner_segment(self) -> bool:
        return self.experience == "beginner" or self.primary_goal == "injury_comeback"


@dataclass(frozen=True)
class OwnedShoe:
    """A shoe in the runner's rotation and how they use it."""

    shoe_id: str
    run_types: tuple[str, ...] = ()  # Canonical run types, see utils.run_types
    sentiment: Sentiment = "neutral"
    love_tags: tuple[str, ...] = ()
    dislike_tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class FeelPreference:
    """How strongly a single feel dimension should be matched."""

    mode: PreferenceMode = "cinda_decides"
    value: int | None = None  # 1-5, only meaningful for user_set

    @property
    def is_user_set(self) -> bool:
        return self.mode == "user_set" and self.value is not None


@dataclass(frozen=True)
class HeelDropPreference:
    """Preferred heel-drop buckets (see utils.heel_drop)."""

    mode: PreferenceMode = "cinda_decides"
    values: tuple[str, ...] = ()

    @property
    def is_user_set(self) -> bool:
        return self.mode == "user_set" and bool(self.values)


@dataclass(frozen=True)
class FeelPreferences:
    """Per-dimension feel preferences for a recommendation request."""

    cushion_amount: FeelPreference = field(default_factory=FeelPreference)
    stability_amount: FeelPreference = field(default_factory=FeelPreference)
    energy_return: FeelPreference = field(default_factory=FeelPreference)
    rocker: FeelPreference = field(default_factory=FeelPreference)
    ground_feel: FeelPreference = field(default_factory=FeelPreference)
    heel_drop_preference: HeelDropPreference = field(default_factory=HeelDropPreference)

    def for_dimension(self, dimension: str) -> FeelPreference:
        """Get the preference for a short dimension name (cushion, bounce, ...)."""
        return {
            "cushion": self.cushion_amount,
            "stability": self.stability_amount,
            "bounce": self.energy_return,
            "rocker": self.rocker,
            "ground_feel": self.ground_feel,
        }[dimension]


@dataclass(frozen=True)
class Constraints:
    """Caller-supplied hard constraints on the shortlist."""

    brand_only: str | None = None
    stability_preference: StabilityPreference | None = None
    max_price: str | None = None  # Highest acceptable price tier


@dataclass(frozen=True)
class AnalyzeRequest:
    """A fully validated analysis request."""

    profile: RunnerProfile
    owned_shoes: tuple[OwnedShoe, ...]
    intent: Literal["add", "replace"] = "add"
    replace_shoe_id: Optional[str] = None
    constraints: Constraints = field(default_factory=Constraints)
    feel_preferences: FeelPreferences = field(default_factory=FeelPreferences)
