"""Heel-drop bucketing shared by filtering, scoring and badge assignment."""

from typing import Iterable, Optional

# Ordered buckets; distance between buckets is the index difference
HEEL_DROP_BUCKETS: tuple[str, ...] = ("0mm", "1-4mm", "5-8mm", "9-12mm", "12mm+")


def heel_drop_bucket(drop_mm: float) -> str:
    """Bucket a heel drop in mm.

    Examples:
        >>> heel_drop_bucket(0)
        '0mm'
        >>> heel_drop_bucket(6)
        '5-8mm'
        >>> heel_drop_bucket(13)
        '12mm+'
    """
    if drop_mm <= 0:
        return "0mm"
    if drop_mm <= 4:
        return "1-4mm"
    if drop_mm <= 8:
        return "5-8mm"
    if drop_mm <= 12:
        return "9-12mm"
    return "12mm+"


def bucket_index(bucket: str) -> int:
    """Position of a bucket label in the ordered bucket list.

    Raises:
        ValueError: If the label is not a known bucket
    """
    try:
        return HEEL_DROP_BUCKETS.index(bucket)
    except ValueError:
        raise ValueError(f"Unknown heel drop bucket: {bucket}") from None


def bucket_distance(drop_mm: Optional[float], selected: Iterable[str]) -> Optional[int]:
    """Minimum bucket distance from a shoe's drop to any selected bucket.

    Returns None when the drop is unknown or nothing is selected.
    """
    selected = list(selected)
    if drop_mm is None or not selected:
        return None
    shoe_index = bucket_index(heel_drop_bucket(drop_mm))
    return min(abs(bucket_index(b) - shoe_index) for b in selected)


def drop_bucket_gap(drop_mm: float, target_mm: float) -> int:
    """Bucket distance between two drops in mm."""
    return abs(bucket_index(heel_drop_bucket(drop_mm)) - bucket_index(heel_drop_bucket(target_mm)))
