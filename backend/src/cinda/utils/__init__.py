"""Utility modules for cinda."""

from cinda.utils.run_types import (
    ARCHETYPE_ALIASES,
    CANONICAL_RUN_TYPES,
    RUN_TYPE_ALIASES,
    RUN_TYPE_ARCHETYPES,
    RUN_TYPE_ORDER,
    archetypes_for_run_type,
    normalize_archetype,
    normalize_run_type,
    normalize_run_type_strict,
    normalize_run_types,
    sort_run_types,
)
from cinda.utils.heel_drop import (
    HEEL_DROP_BUCKETS,
    bucket_distance,
    bucket_index,
    drop_bucket_gap,
    heel_drop_bucket,
)

__all__ = [
    "ARCHETYPE_ALIASES",
    "CANONICAL_RUN_TYPES",
    "RUN_TYPE_ALIASES",
    "RUN_TYPE_ARCHETYPES",
    "RUN_TYPE_ORDER",
    "archetypes_for_run_type",
    "normalize_archetype",
    "normalize_run_type",
    "normalize_run_type_strict",
    "normalize_run_types",
    "sort_run_types",
    "HEEL_DROP_BUCKETS",
    "bucket_distance",
    "bucket_index",
    "drop_bucket_gap",
    "heel_drop_bucket",
]
