"""
VerseRank Backend: Rank Table & Calculator
===========================================

What:  The biblical rank catalog and the pure functions that map a
       "verses memorized" count to a rank tier, progress and distance
       to the next tier.
Why:   Every read and write path (progress, leaderboard, recorder) must agree
       on which tier a count belongs to. The web client ships the same table
       and the same arithmetic, so results must match it exactly.
How:   RANK_TABLE is a compiled-in tuple of frozen dataclasses, validated once
       at import. calculate_rank() scans it; no caching (8 entries).
Who:   ProgressService, LeaderboardService, the /api/ranks route and the
       ranking migration backfill.

Rank Ladder:
    Nicodemus (1-3) → Thomas (4-8) → Peter (9-16) → John (17-27)
    → Paul (28-40) → David (41-55) → Daniel (56-75) → Solomon (76-100)

Progress rounding:
    The client computes Math.round(progress * 100) / 100, which rounds
    half-up. Python's round() is banker's rounding, so _round_half_up()
    reproduces the client arithmetic instead.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class RankTier:
    """
    One band of the verse-count axis.

    Attributes:
        level:       Unique rank name (a biblical character)
        min_verses:  Inclusive lower bound
        max_verses:  Inclusive upper bound
        next_level:  Name of the following tier, None for the terminal tier
        description: Display text shown under the badge
    """
    level: str
    min_verses: int
    max_verses: int
    next_level: Optional[str]
    description: str

    @property
    def is_terminal(self) -> bool:
        return self.next_level is None


@dataclass(frozen=True)
class RankInfo:
    """Result of calculate_rank()."""
    current_rank: RankTier
    progress: float
    verses_to_next_rank: int


@dataclass(frozen=True)
class LevelUp:
    """Result of check_level_up()."""
    leveled_up: bool
    previous_rank: RankTier
    new_rank: RankTier


# ── Rank Table ────────────────────────────────────────────────────────────
# Must stay identical to the client copy (src/utils/rankingSystem).
RANK_TABLE = (
    RankTier("Nicodemus", 1, 3, "Thomas", "Just beginning your journey, seeking truth"),
    RankTier("Thomas", 4, 8, "Peter", "Growing in faith, overcoming doubts"),
    RankTier("Peter", 9, 16, "John", "Bold and passionate follower"),
    RankTier("John", 17, 27, "Paul", "Drawing close to the heart of God"),
    RankTier("Paul", 28, 40, "David", "Transformed and zealous for the Word"),
    RankTier("David", 41, 55, "Daniel", "A person after God's own heart"),
    RankTier("Daniel", 56, 75, "Solomon", "Steadfast in faith and commitment"),
    RankTier("Solomon", 76, 100, None, "Wise and deeply rooted in Scripture"),
)


def validate_rank_table(tiers: Sequence[RankTier]) -> None:
    """
    Check the structural invariants of a rank table.

    Invariants:
        1. Non-empty, first tier starts at 1
        2. Bounds are ordered (min <= max) and contiguous (max + 1 == next min)
        3. Each next_level names the tier that follows it
        4. Exactly one terminal tier, and it is the last one
        5. Level names are unique

    Raises:
        ValueError: describing the first violated invariant
    """
    if not tiers:
        raise ValueError("Rank table is empty")
    if tiers[0].min_verses != 1:
        raise ValueError(f"First tier must start at 1, got {tiers[0].min_verses}")

    levels = [tier.level for tier in tiers]
    if len(set(levels)) != len(levels):
        raise ValueError("Rank levels must be unique")

    for index, tier in enumerate(tiers):
        if tier.min_verses > tier.max_verses:
            raise ValueError(f"Tier {tier.level} has min_verses > max_verses")

        is_last = index == len(tiers) - 1
        if is_last:
            if tier.next_level is not None:
                raise ValueError(f"Terminal tier {tier.level} must not have a next level")
            continue

        following = tiers[index + 1]
        if tier.max_verses + 1 != following.min_verses:
            raise ValueError(
                f"Tiers {tier.level} and {following.level} are not contiguous"
            )
        if tier.next_level != following.level:
            raise ValueError(
                f"Tier {tier.level} points to {tier.next_level}, expected {following.level}"
            )


validate_rank_table(RANK_TABLE)


def _round_half_up(value: float) -> float:
    """Two-decimal rounding that matches JavaScript's Math.round(x * 100) / 100."""
    return math.floor(value * 100 + 0.5) / 100


def calculate_rank(verses_count: int) -> RankInfo:
    """
    Map a verse count to its tier, in-tier progress and verses to the next tier.

    Algorithm:
        1. count <= 0: initial tier, progress 0, verses_to_next = initial.min_verses
        2. First tier whose [min, max] contains count
        3. count above the terminal max: clamp to the terminal tier
        4. progress = (count - min + 1) / (max - min + 1) * 100, clamped to
           [0, 100]; terminal tier at or above its max reports exactly 100
        5. verses_to_next = max(max + 1 - count, 0), or 0 for the terminal tier

    Examples:
        calculate_rank(0)   → Nicodemus, 0.0, 1
        calculate_rank(25)  → John, 81.82, 3
        calculate_rank(150) → Solomon, 100.0, 0
    """
    first = RANK_TABLE[0]
    if verses_count <= 0:
        return RankInfo(current_rank=first, progress=0.0, verses_to_next_rank=first.min_verses)

    terminal = RANK_TABLE[-1]
    current = terminal
    for tier in RANK_TABLE:
        if tier.min_verses <= verses_count <= tier.max_verses:
            current = tier
            break

    if current.is_terminal and verses_count >= current.max_verses:
        progress = 100.0
    else:
        tier_range = current.max_verses - current.min_verses + 1
        position_in_tier = verses_count - current.min_verses + 1
        progress = min(max(position_in_tier / tier_range * 100, 0.0), 100.0)

    verses_to_next = 0
    if current.next_level is not None:
        verses_to_next = max(current.max_verses + 1 - verses_count, 0)

    return RankInfo(
        current_rank=current,
        progress=_round_half_up(progress),
        verses_to_next_rank=verses_to_next,
    )


def get_rank_by_level(level: str) -> Optional[RankTier]:
    """Look up a tier by name. Returns None for unknown names."""
    for tier in RANK_TABLE:
        if tier.level == level:
            return tier
    return None


def get_next_rank(current_level: str) -> Optional[RankTier]:
    """Tier following `current_level`, or None at the top / for unknown names."""
    current = get_rank_by_level(current_level)
    if current is None or current.next_level is None:
        return None
    return get_rank_by_level(current.next_level)


def check_level_up(previous_count: int, new_count: int) -> LevelUp:
    """Compare the tiers of two counts."""
    previous_rank = calculate_rank(previous_count).current_rank
    new_rank = calculate_rank(new_count).current_rank
    return LevelUp(
        leveled_up=previous_rank.level != new_rank.level,
        previous_rank=previous_rank,
        new_rank=new_rank,
    )


def get_all_ranks() -> List[RankTier]:
    """All tiers in ascending order, as a fresh list."""
    return list(RANK_TABLE)
