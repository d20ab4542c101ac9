"""
VerseRank Backend: Rank Calculator Unit Tests
==============================================

What:  Tests for the rank table invariants and the pure rank arithmetic.
Why:   The web client runs the same calculation; any drift shows users a
       different rank than the server stores.

What we test:
    ✅ Table invariants (contiguous, single terminal tier, starts at 1)
    ✅ Every count in 1..100 maps to exactly one tier
    ✅ Tier boundaries, zero/negative counts, clamping above 100
    ✅ Progress rounding matches the client (half-up, 2 decimals)
    ✅ Lookups: get_rank_by_level, get_next_rank, check_level_up, get_all_ranks
"""

import pytest

from verserank.services.rank_calculator import (
    RANK_TABLE,
    RankTier,
    calculate_rank,
    check_level_up,
    get_all_ranks,
    get_next_rank,
    get_rank_by_level,
    validate_rank_table,
)


class TestRankTable:
    """Structural invariants of the compiled-in table."""

    def test_table_is_valid(self):
        validate_rank_table(RANK_TABLE)

    def test_exactly_one_terminal_tier_and_it_is_last(self):
        terminal = [tier for tier in RANK_TABLE if tier.next_level is None]
        assert terminal == [RANK_TABLE[-1]]
        assert RANK_TABLE[-1].level == "Solomon"

    def test_tiers_are_contiguous_from_one(self):
        assert RANK_TABLE[0].min_verses == 1
        for current, following in zip(RANK_TABLE, RANK_TABLE[1:]):
            assert current.max_verses + 1 == following.min_verses
            assert current.next_level == following.level

    def test_gap_is_rejected(self):
        tiers = [
            RankTier("A", 1, 3, "B", ""),
            RankTier("B", 5, 8, None, ""),
        ]
        with pytest.raises(ValueError, match="not contiguous"):
            validate_rank_table(tiers)

    def test_second_terminal_tier_is_rejected(self):
        tiers = [
            RankTier("A", 1, 3, None, ""),
            RankTier("B", 4, 8, None, ""),
        ]
        with pytest.raises(ValueError):
            validate_rank_table(tiers)

    def test_table_must_start_at_one(self):
        with pytest.raises(ValueError, match="start at 1"):
            validate_rank_table([RankTier("A", 2, 3, None, "")])

    def test_empty_table_is_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            validate_rank_table([])


class TestCalculateRank:
    """calculate_rank() for representative and boundary counts."""

    def test_every_count_maps_to_exactly_one_tier(self):
        for count in range(1, 101):
            matches = [t for t in RANK_TABLE if t.min_verses <= count <= t.max_verses]
            assert len(matches) == 1
            assert calculate_rank(count).current_rank == matches[0]

    @pytest.mark.parametrize(
        "count, level",
        [
            (1, "Nicodemus"),
            (3, "Nicodemus"),
            (4, "Thomas"),
            (8, "Thomas"),
            (9, "Peter"),
            (16, "Peter"),
            (17, "John"),
            (27, "John"),
            (28, "Paul"),
            (41, "David"),
            (56, "Daniel"),
            (75, "Daniel"),
            (76, "Solomon"),
            (100, "Solomon"),
        ],
    )
    def test_tier_boundaries(self, count, level):
        assert calculate_rank(count).current_rank.level == level

    def test_zero_verses(self):
        info = calculate_rank(0)
        assert info.current_rank.level == "Nicodemus"
        assert info.progress == 0
        assert info.verses_to_next_rank == 1

    def test_negative_count_behaves_like_zero(self):
        assert calculate_rank(-5) == calculate_rank(0)

    def test_top_of_ladder(self):
        info = calculate_rank(100)
        assert info.current_rank.level == "Solomon"
        assert info.progress == 100
        assert info.verses_to_next_rank == 0

    def test_above_max_clamps_to_terminal_tier(self):
        info = calculate_rank(150)
        assert info.current_rank.level == "Solomon"
        assert info.progress == 100
        assert info.verses_to_next_rank == 0

    def test_mid_tier_progress_and_remaining(self):
        info = calculate_rank(25)
        assert info.current_rank.level == "John"
        assert info.progress == 81.82
        assert info.verses_to_next_rank == 3

    def test_last_verse_of_tier_is_full_progress(self):
        info = calculate_rank(16)
        assert info.current_rank.level == "Peter"
        assert info.progress == 100
        assert info.verses_to_next_rank == 1

    def test_first_verse_of_terminal_tier(self):
        info = calculate_rank(76)
        assert info.progress == 4.0
        assert info.verses_to_next_rank == 0

    @pytest.mark.parametrize(
        "count, expected",
        [
            (1, 33.33),   # 1/3
            (2, 66.67),   # 2/3, rounds up
            (5, 40.0),    # 2/5
            (18, 18.18),  # 2/11
        ],
    )
    def test_progress_rounds_half_up_to_two_decimals(self, count, expected):
        assert calculate_rank(count).progress == expected

    def test_progress_always_within_bounds(self):
        for count in range(-3, 160):
            assert 0 <= calculate_rank(count).progress <= 100


class TestLookups:
    def test_get_rank_by_level(self):
        tier = get_rank_by_level("Paul")
        assert tier is not None
        assert (tier.min_verses, tier.max_verses) == (28, 40)

    def test_get_rank_by_unknown_level(self):
        assert get_rank_by_level("Goliath") is None

    def test_get_next_rank(self):
        assert get_next_rank("Daniel").level == "Solomon"

    def test_get_next_rank_at_top_and_for_unknown(self):
        assert get_next_rank("Solomon") is None
        assert get_next_rank("Goliath") is None

    def test_check_level_up_across_boundary(self):
        result = check_level_up(3, 4)
        assert result.leveled_up is True
        assert result.previous_rank.level == "Nicodemus"
        assert result.new_rank.level == "Thomas"

    def test_check_level_up_within_tier(self):
        assert check_level_up(5, 6).leveled_up is False

    def test_first_verse_is_not_a_level_up(self):
        assert check_level_up(0, 1).leveled_up is False

    def test_get_all_ranks_returns_a_copy(self):
        ranks = get_all_ranks()
        ranks.pop()
        assert len(get_all_ranks()) == len(RANK_TABLE) == 8
