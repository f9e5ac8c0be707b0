"""Catalogue shoe record."""

from dataclasses import asdict, dataclass, fields
from typing import Any, Optional

# Archetypes in their canonical display order
ARCHETYPES: tuple[str, ...] = (
    "daily_trainer",
    "recovery_shoe",
    "workout_shoe",
    "race_shoe",
    "trail_shoe",
)

ARCHETYPE_FLAGS: dict[str, str] = {
    "daily_trainer": "is_daily_trainer",
    "recovery_shoe": "is_recovery_shoe",
    "workout_shoe": "is_workout_shoe",
    "race_shoe": "is_race_shoe",
    "trail_shoe": "is_trail_shoe",
}

# Short dimension names -> catalogue rating fields
RATING_FIELDS: dict[str, str] = {
    "cushion": "cushion_softness_1to5",
    "bounce": "bounce_1to5",
    "stability": "stability_1to5",
    "rocker": "rocker_1to5",
    "ground_feel": "ground_feel_1to5",
    "weight_feel": "weight_feel_1to5",
}

PRICE_TIERS: tuple[str, ...] = ("Budget", "Core", "Premium", "Race_Day")
RELEASE_STATUSES = frozenset({"available", "coming_soon", "regional", "discontinued"})
SUPPORT_TYPES = frozenset({"neutral", "stable_neutral", "stability", "max_stability"})
SURFACES = frozenset({"road", "trail", "track", "mixed"})


@dataclass(frozen=True)
class Shoe:
    """A single catalogue entry. Never mutated after load."""

    shoe_id: str
    brand: str
    model: str
    full_name: str
    version: str | None = None

    # Archetype membership
    is_daily_trainer: bool = False
    is_recovery_shoe: bool = False
    is_workout_shoe: bool = False
    is_race_shoe: bool = False
    is_trail_shoe: bool = False
    is_super_trainer: bool = False

    # Feel ratings, 1-5 (None when the catalogue has no rating)
    cushion_softness_1to5: int | None = None  # 5 = very soft
    bounce_1to5: int | None = None  # 5 = very energetic
    stability_1to5: int | None = None  # 5 = very planted
    rocker_1to5: int | None = None  # 5 = aggressive rocker
    ground_feel_1to5: int | None = None  # 5 = very direct
    weight_feel_1to5: int | None = None  # 5 = feels heavy

    # Specs
    weight_g: float | None = None
    heel_drop_mm: float | None = None
    has_plate: bool = False
    plate_tech_name: str | None = None
    plate_material: str | None = None  # carbon/pebax/nylon/TPU
    support_type: str = "neutral"
    surface: str = "road"
    wet_grip: str | None = None
    fit_volume: str | None = None
    toe_box: str | None = None

    # Commercial
    retail_price_category: str = "Core"
    release_status: str = "available"

    # Descriptions
    why_it_feels_this_way: str = ""
    notable_detail: str = ""
    avoid_if: str = ""
    common_issues: tuple[str, ...] = ()

    @property
    def archetypes(self) -> list[str]:
        """Archetypes this shoe belongs to, in canonical order."""
        return [a for a in ARCHETYPES if getattr(self, ARCHETYPE_FLAGS[a])]

    def has_archetype(self, archetype: str) -> bool:
        flag = ARCHETYPE_FLAGS.get(archetype)
        return bool(flag and getattr(self, flag))

    @property
    def is_trail(self) -> bool:
        return self.is_trail_shoe or self.surface == "trail"

    @property
    def price_rank(self) -> int:
        try:
            return PRICE_TIERS.index(self.retail_price_category)
        except ValueError:
            return PRICE_TIERS.index("Core")

    def rating(self, dimension: str) -> Optional[int]:
        """Get a feel rating by short dimension name (cushion, bounce, ...)."""
        return getattr(self, RATING_FIELDS[dimension])

    def to_dict(self) -> dict:
        data = asdict(self)
        data["common_issues"] = list(self.common_issues)
        data["archetypes"] = self.archetypes
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Shoe":
        """Build a Shoe from a catalogue record.

        Unknown keys are ignored; absent numeric fields stay None.

        Raises:
            ValueError: If a required field is missing or a numeric field is
                outside its valid range.
        """
        for required in ("shoe_id", "brand", "model"):
            if not data.get(required):
                raise ValueError(f"Catalogue record missing '{required}'")

        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values.setdefault("full_name", f"{data['brand']} {data['model']}".strip())
        if "common_issues" in values:
            values["common_issues"] = tuple(values["common_issues"] or ())

        for rating_field in RATING_FIELDS.values():
            rating = values.get(rating_field)
            if rating is None:
                continue
            if isinstance(rating, bool) or not isinstance(rating, (int, float)):
                raise ValueError(f"{data['shoe_id']}: {rating_field} must be numeric")
            if not 1 <= rating <= 5:
                raise ValueError(f"{data['shoe_id']}: {rating_field}={rating} outside 1-5")
            values[rating_field] = int(rating)

        for spec_field in ("weight_g", "heel_drop_mm"):
            spec = values.get(spec_field)
            if spec is None:
                continue
            if isinstance(spec, bool) or not isinstance(spec, (int, float)):
                raise ValueError(f"{data['shoe_id']}: {spec_field} must be numeric")
            if spec < 0:
                raise ValueError(f"{data['shoe_id']}: {spec_field} cannot be negative")

        # Drop explicit nulls for fields that carry non-null defaults
        for name in ("support_type", "surface", "retail_price_category", "release_status",
                     "why_it_feels_this_way", "notable_detail", "avoid_if"):
            if name in values and values[name] is None:
                del values[name]

        return cls(**values)
