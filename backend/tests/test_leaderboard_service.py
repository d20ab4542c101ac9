"""
VerseRank Backend: Leaderboard Service Tests
=============================================

What we test:
    ✅ limit/offset bounds rejected before touching the database
    ✅ Ties share a rank; the next distinct count skips (1, 1, 3)
    ✅ Zero-verse users are neither ranked nor counted
    ✅ Earlier rank_updated_at wins among equal counts
    ✅ The requester's entry is returned even when off-page
    ✅ Zero-verse and unknown requesters
    ✅ Storage failures become DatabaseError
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from verserank.exceptions import DatabaseError, ValidationError
from verserank.services.leaderboard_service import LeaderboardService


class TestValidatePage:
    def setup_method(self):
        self.service = LeaderboardService()

    @pytest.mark.parametrize("limit", [0, -1, 501])
    @pytest.mark.asyncio
    async def test_limit_out_of_bounds(self, mock_db_session, limit):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.get_leaderboard(mock_db_session, limit=limit, offset=0)
        assert exc_info.value.field == "limit"
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_negative_offset(self, mock_db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.get_leaderboard(mock_db_session, limit=10, offset=-1)
        assert exc_info.value.field == "offset"
        mock_db_session.execute.assert_not_called()

    def test_bounds_are_inclusive(self):
        self.service.validate_page(1, 0)
        self.service.validate_page(500, 10_000)

    @pytest.mark.asyncio
    async def test_query_failure_raises_database_error(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("database is locked"))
        )

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.get_leaderboard(mock_db_session, limit=10, offset=0)
        assert "locked" not in exc_info.value.message


class TestGetLeaderboard:
    """Ranking semantics against a real SQLite database."""

    def setup_method(self):
        self.service = LeaderboardService()

    @pytest.mark.asyncio
    async def test_ties_share_rank_and_next_rank_skips(self, create_user, db_session):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        first = await create_user(verses_memorized=10, rank_updated_at=base)
        second = await create_user(verses_memorized=10, rank_updated_at=base + timedelta(hours=1))
        third = await create_user(verses_memorized=5, rank_updated_at=base)

        result = await self.service.get_leaderboard(db_session, limit=50, offset=0)

        assert [(e.user_id, e.rank) for e in result.leaderboard] == [
            (first, 1),
            (second, 1),
            (third, 3),
        ]
        assert result.total_users == 3
        assert result.leaderboard[0].current_rank == "Peter"
        assert result.leaderboard[2].current_rank == "Thomas"

    @pytest.mark.asyncio
    async def test_earlier_achiever_listed_first_among_ties(self, create_user, db_session):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        later = await create_user(verses_memorized=7, rank_updated_at=base + timedelta(days=1))
        earlier = await create_user(verses_memorized=7, rank_updated_at=base)

        result = await self.service.get_leaderboard(db_session, limit=50, offset=0)

        assert [e.user_id for e in result.leaderboard] == [earlier, later]

    @pytest.mark.asyncio
    async def test_zero_verse_users_excluded(self, create_user, db_session):
        await create_user(verses_memorized=0)
        ranked = await create_user(verses_memorized=2)

        result = await self.service.get_leaderboard(db_session, limit=50, offset=0)

        assert [e.user_id for e in result.leaderboard] == [ranked]
        assert result.total_users == 1

    @pytest.mark.asyncio
    async def test_empty_leaderboard(self, db_session):
        result = await self.service.get_leaderboard(db_session, limit=50, offset=0)

        assert result.leaderboard == []
        assert result.total_users == 0
        assert result.current_user is None

    @pytest.mark.asyncio
    async def test_paging_keeps_global_ranks(self, create_user, db_session):
        for count in (40, 30, 20, 10):
            await create_user(verses_memorized=count)

        result = await self.service.get_leaderboard(db_session, limit=2, offset=2)

        assert [e.rank for e in result.leaderboard] == [3, 4]
        assert [e.verses_memorized for e in result.leaderboard] == [20, 10]
        assert result.total_users == 4
        assert (result.limit, result.offset) == (2, 2)

    @pytest.mark.asyncio
    async def test_requester_outside_page(self, create_user, db_session):
        for count in (50, 40, 30):
            await create_user(verses_memorized=count)
        me = await create_user(verses_memorized=3, username="latecomer")

        result = await self.service.get_leaderboard(
            db_session, limit=2, offset=0, requesting_user_id=me
        )

        assert me not in [e.user_id for e in result.leaderboard]
        current = result.current_user
        assert current.user_id == me
        assert current.username == "latecomer"
        assert current.rank == 4
        assert current.current_rank == "Nicodemus"
        assert current.top_percent == 100.0

    @pytest.mark.asyncio
    async def test_top_percent(self, create_user, db_session):
        me = await create_user(verses_memorized=90)
        for count in (10, 9, 8):
            await create_user(verses_memorized=count)

        result = await self.service.get_leaderboard(
            db_session, limit=50, offset=0, requesting_user_id=me
        )

        assert result.current_user.rank == 1
        assert result.current_user.top_percent == 25.0

    @pytest.mark.asyncio
    async def test_zero_verse_requester_has_no_position(self, create_user, db_session):
        await create_user(verses_memorized=5)
        me = await create_user(verses_memorized=0)

        result = await self.service.get_leaderboard(
            db_session, limit=50, offset=0, requesting_user_id=me
        )

        assert result.current_user.user_id == me
        assert result.current_user.rank is None
        assert result.current_user.top_percent is None
        assert result.current_user.verses_memorized == 0

    @pytest.mark.asyncio
    async def test_unknown_requester(self, create_user, db_session):
        await create_user(verses_memorized=5)

        result = await self.service.get_leaderboard(
            db_session, limit=50, offset=0, requesting_user_id=9999
        )

        assert result.current_user is None
        assert len(result.leaderboard) == 1
