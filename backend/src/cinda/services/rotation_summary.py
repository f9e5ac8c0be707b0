"""Per-shoe usage summary with misuse detection."""

from typing import Optional

from cinda.models.analysis import RotationSummaryItem
from cinda.models.profile import OwnedShoe
from cinda.models.shoe import Shoe
from cinda.services.catalogue_service import CatalogueService

HEAVY_SHOE_G = 290

MISUSE_MESSAGES = {
    "race_shoe_daily": (
        "This is a race-day shoe with a carbon plate. Using it daily will wear it out quickly "
        "and you're not getting the benefit it's designed for."
    ),
    "recovery_shoe_fast": (
        "This is a recovery shoe with soft cushioning. It's not designed for the demands of "
        "racing or speed work and could slow you down."
    ),
    "trail_shoe_road_race": (
        "This is a trail shoe with lugs designed for dirt and mud. The aggressive tread will "
        "work against you on smooth pavement and feel uncomfortable."
    ),
    "road_racer_trail": (
        "This is a road race shoe with minimal grip and no protection. It's dangerous on trails "
        "- you'll slip on loose terrain and risk injury."
    ),
    "plated_tempo_easy": (
        "This is a plated tempo shoe designed for faster efforts. Using it only for easy runs "
        "limits your natural movement when you need relaxed running."
    ),
}


def detect_misuse(run_types: list[str], shoe: Shoe) -> Optional[str]:
    """Return a misuse message if the shoe is used for runs it doesn't suit."""
    used = set(run_types)

    if shoe.is_race_shoe and not shoe.is_daily_trainer and used & {"all_runs", "recovery"}:
        return MISUSE_MESSAGES["race_shoe_daily"]

    soft_or_recovery = shoe.is_recovery_shoe or (shoe.cushion_softness_1to5 or 0) >= 4
    is_recovery_shoe = not shoe.is_race_shoe and not shoe.is_workout_shoe and soft_or_recovery
    if is_recovery_shoe and used & {"races", "workouts"}:
        return MISUSE_MESSAGES["recovery_shoe_fast"]

    if shoe.surface == "trail" and "races" in used and "trail" not in used:
        return MISUSE_MESSAGES["trail_shoe_road_race"]

    if shoe.surface == "road" and shoe.is_race_shoe and "trail" in used:
        return MISUSE_MESSAGES["road_racer_trail"]

    if (shoe.weight_g or 0) > HEAVY_SHOE_G and "workouts" in used and not shoe.is_workout_shoe:
        return (
            f"This is a heavy, max-cushion shoe ({shoe.weight_g:g}g). It's not designed for speed "
            "work and the extra weight will slow you down on the track."
        )

    plated_tempo = shoe.has_plate and shoe.is_workout_shoe and not shoe.is_race_shoe
    if plated_tempo and used == {"recovery"}:
        return MISUSE_MESSAGES["plated_tempo_easy"]

    return None


def build_rotation_summary(catalogue: CatalogueService, owned_shoes: list[OwnedShoe]) -> list[RotationSummaryItem]:
    """Summarize each catalogued owned shoe and flag misuse."""
    items = []
    for owned, shoe in catalogue.resolve(owned_shoes):
        message = detect_misuse(list(owned.run_types), shoe)
        items.append(RotationSummaryItem(
            shoe_id=shoe.shoe_id,
            full_name=shoe.full_name,
            run_types=list(owned.run_types),
            archetypes=shoe.archetypes,
            misuse_level="severe" if message else "good",
            misuse_message=message,
        ))
    return items
