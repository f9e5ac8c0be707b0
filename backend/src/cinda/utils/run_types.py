"""Centralized run-type and archetype normalization.

All run-type handling in the codebase should use this module so that legacy
clients (which send ``roles`` such as "easy" or "tempo") and current clients
(which send ``run_types``) agree. The canonical run types are:
all_runs, recovery, long_runs, workouts, races, trail.
"""

from typing import Iterable, Optional

CANONICAL_RUN_TYPES = frozenset({"all_runs", "recovery", "long_runs", "workouts", "races", "trail"})

# Run-type ordering for consistent display/sorting
RUN_TYPE_ORDER = ["all_runs", "recovery", "long_runs", "workouts", "races", "trail"]

# Mapping from any known run-type or legacy role string to canonical run type
RUN_TYPE_ALIASES: dict[str, str] = {
    # Everyday running
    "all_runs": "all_runs",
    "all_my_runs": "all_runs",
    "daily": "all_runs",
    "everyday": "all_runs",

    # Easy running
    "recovery": "recovery",
    "easy": "recovery",
    "easy_runs": "recovery",

    # Long running
    "long_runs": "long_runs",
    "long": "long_runs",
    "long_run": "long_runs",

    # Speed work
    "workouts": "workouts",
    "workout": "workouts",
    "tempo": "workouts",
    "intervals": "workouts",
    "speed": "workouts",

    # Racing
    "races": "races",
    "race": "races",
    "racing": "races",
    "race_day": "races",

    # Off-road
    "trail": "trail",
    "trails": "trail",
}

# Which archetypes are capable of serving each run type
RUN_TYPE_ARCHETYPES: dict[str, tuple[str, ...]] = {
    "all_runs": ("daily_trainer",),
    "recovery": ("recovery_shoe", "daily_trainer"),
    "long_runs": ("daily_trainer", "workout_shoe", "recovery_shoe"),
    "workouts": ("workout_shoe", "race_shoe"),
    "races": ("race_shoe", "workout_shoe"),
    "trail": ("trail_shoe",),
}

# Archetype shorthands used by discovery requests and older clients
ARCHETYPE_ALIASES: dict[str, str] = {
    "daily_trainer": "daily_trainer",
    "daily": "daily_trainer",
    "not_sure": "daily_trainer",
    "recovery_shoe": "recovery_shoe",
    "recovery": "recovery_shoe",
    "workout_shoe": "workout_shoe",
    "workout": "workout_shoe",
    "tempo": "workout_shoe",
    "race_shoe": "race_shoe",
    "race": "race_shoe",
    "race_day": "race_shoe",
    "trail_shoe": "trail_shoe",
    "trail": "trail_shoe",
}


def normalize_run_type(run_type: Optional[str]) -> Optional[str]:
    """Normalize a run-type or legacy role string to its canonical form.

    Args:
        run_type: Run type in any known format (e.g., "tempo", "all_my_runs", "long_runs")

    Returns:
        Canonical run type or None if invalid/None

    Examples:
        >>> normalize_run_type("tempo")
        'workouts'
        >>> normalize_run_type("all_my_runs")
        'all_runs'
        >>> normalize_run_type("Easy")
        'recovery'
        >>> normalize_run_type(None)
    """
    if run_type is None:
        return None

    key = run_type.strip().lower().replace("-", "_").replace(" ", "_")
    return RUN_TYPE_ALIASES.get(key)


def normalize_run_type_strict(run_type: str) -> str:
    """Normalize a run type, raising ValueError if unknown."""
    normalized = normalize_run_type(run_type)
    if normalized is None:
        raise ValueError(f"Unknown run type: {run_type}")
    return normalized


def normalize_run_types(run_types: Iterable[str]) -> list[str]:
    """Normalize a list of run types, dropping duplicates and keeping order.

    Raises:
        ValueError: If any run type is not recognized
    """
    result: list[str] = []
    for run_type in run_types:
        normalized = normalize_run_type_strict(run_type)
        if normalized not in result:
            result.append(normalized)
    return result


def normalize_archetype(archetype: Optional[str]) -> Optional[str]:
    """Normalize an archetype shorthand ("race_day", "workout") to canonical form."""
    if archetype is None:
        return None
    return ARCHETYPE_ALIASES.get(archetype.strip().lower())


def archetypes_for_run_type(run_type: str) -> tuple[str, ...]:
    """Archetypes capable of serving a canonical run type."""
    return RUN_TYPE_ARCHETYPES.get(run_type, ())


def sort_run_types(run_types: Iterable[str]) -> list[str]:
    """Sort canonical run types in standard display order."""
    def order(run_type: str) -> int:
        try:
            return RUN_TYPE_ORDER.index(run_type)
        except ValueError:
            return 99

    return sorted(set(run_types), key=order)
