"""Daily difficulty mix per user level."""

from __future__ import annotations

from typing import Dict

from ..models import DEFAULT_LEVEL, DIFFICULTIES

BASE_TOTAL = 10

# Counts for a ten-question day, ordered Easy / Medium / Hard.
DIFFICULTY_TABLE: Dict[str, tuple[int, int, int]] = {
    "Beginner": (7, 3, 0),
    "Intermediate": (4, 5, 1),
    "Advanced": (2, 5, 3),
    "Pro": (1, 4, 5),
    "Expert": (0, 3, 7),
}

_LEVEL_LOOKUP = {name.lower(): name for name in DIFFICULTY_TABLE}


def canonical_level(level: str | None) -> str:
    """Map any level spelling onto a known tier, defaulting to Beginner."""
    if not level:
        return DEFAULT_LEVEL
    return _LEVEL_LOOKUP.get(str(level).strip().lower(), DEFAULT_LEVEL)


def resolve_distribution(level: str | None, total: int = BASE_TOTAL) -> Dict[str, int]:
    """Return {Easy, Medium, Hard} counts for ``level`` summing to ``total``.

    Totals other than ten scale the base table with largest-remainder
    rounding; ties go to the easier tier.
    """
    base = DIFFICULTY_TABLE[canonical_level(level)]
    if total <= 0:
        return {difficulty: 0 for difficulty in DIFFICULTIES}
    if total == BASE_TOTAL:
        return dict(zip(DIFFICULTIES, base))

    exact = [count * total / BASE_TOTAL for count in base]
    counts = [int(value) for value in exact]
    remainder = total - sum(counts)
    by_fraction = sorted(
        range(len(DIFFICULTIES)),
        key=lambda idx: (exact[idx] - counts[idx], -idx),
        reverse=True,
    )
    for idx in by_fraction[:remainder]:
        counts[idx] += 1
    return dict(zip(DIFFICULTIES, counts))
