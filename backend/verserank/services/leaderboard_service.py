"""
VerseRank Backend: Leaderboard Service
=======================================

What:  Read-only ranking of users by verses memorized.
Why:   Motivates users by showing where they stand, including their own
       position when it falls outside the requested page.
How:   One ordered page query, one count query and one query for the
       requester. Each row's rank is a correlated subquery:
           rank = 1 + COUNT(users with strictly more verses)

Query plan:
    SELECT u.*, 1 + (SELECT COUNT(*) FROM users a
                     WHERE a.verses_memorized > u.verses_memorized) AS rank
    FROM users u WHERE u.verses_memorized > 0
    ORDER BY verses_memorized DESC, rank_updated_at ASC NULLS LAST, id ASC
    LIMIT :limit OFFSET :offset
    → idx_users_verses_rank serves both the ordering and the counts

Isolation:
    Read-committed is enough. No locks are taken; a leaderboard a few
    seconds stale is acceptable.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from verserank.exceptions import DatabaseError, ValidationError
from verserank.models import User
from verserank.schemas.leaderboard import (
    CurrentUserEntry,
    LeaderboardEntry,
    LeaderboardResponse,
)
from verserank.services.rank_calculator import calculate_rank

logger = logging.getLogger(__name__)

MAX_LEADERBOARD_LIMIT = 500


def _rank_expression():
    """Correlated scalar subquery: 1 + users with strictly more verses."""
    ahead = aliased(User)
    return (
        select(func.count(ahead.id))
        .where(ahead.verses_memorized > User.verses_memorized)
        .correlate(User)
        .scalar_subquery()
        + 1
    ).label("leaderboard_rank")


class LeaderboardService:
    """Builds leaderboard pages. Stateless; the session is passed in."""

    def validate_page(self, limit: int, offset: int) -> None:
        """
        Bounds: 1 <= limit <= 500, offset >= 0.

        Raises:
            ValidationError: naming the violated constraint (→ 400)
        """
        if not 1 <= limit <= MAX_LEADERBOARD_LIMIT:
            raise ValidationError(
                message=f"limit must be between 1 and {MAX_LEADERBOARD_LIMIT}",
                field="limit",
                context={"value": limit},
            )
        if offset < 0:
            raise ValidationError(
                message="offset must be greater than or equal to 0",
                field="offset",
                context={"value": offset},
            )

    async def get_leaderboard(
        self,
        db: AsyncSession,
        limit: int,
        offset: int,
        requesting_user_id: Optional[int] = None,
    ) -> LeaderboardResponse:
        """
        A page of the leaderboard plus the requester's own standing.

        Ordering:
            verses_memorized DESC, then rank_updated_at ASC (whoever reached
            the count first places higher), then id for stable pages.

        Exclusions:
            Users with zero verses are not ranked and not counted. They still
            get a current_user entry (rank=None) so the client can render
            "memorize your first verse" instead of a position.

        Raises:
            ValidationError: limit/offset out of bounds (→ 400)
            DatabaseError: query failed (→ 500)
        """
        self.validate_page(limit, offset)

        rank = _rank_expression()
        columns = (
            User.id,
            User.username,
            User.verses_memorized,
            User.rank_updated_at,
            rank,
        )

        try:
            page_result = await db.execute(
                select(*columns)
                .where(User.verses_memorized > 0)
                .order_by(
                    User.verses_memorized.desc(),
                    User.rank_updated_at.asc().nulls_last(),
                    User.id.asc(),
                )
                .limit(limit)
                .offset(offset)
            )
            rows = page_result.all()

            total_result = await db.execute(
                select(func.count(User.id)).where(User.verses_memorized > 0)
            )
            total_users = total_result.scalar() or 0

            current_row = None
            if requesting_user_id is not None:
                current_result = await db.execute(
                    select(*columns).where(User.id == requesting_user_id)
                )
                current_row = current_result.one_or_none()
        except Exception as e:
            logger.error("Database error building leaderboard: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve the leaderboard. Please try again.",
                context={"limit": limit, "offset": offset, "error_type": type(e).__name__},
            )

        leaderboard = [
            LeaderboardEntry(
                rank=row.leaderboard_rank,
                user_id=row.id,
                username=row.username,
                verses_memorized=row.verses_memorized,
                current_rank=calculate_rank(row.verses_memorized).current_rank.level,
                rank_updated_at=row.rank_updated_at,
            )
            for row in rows
        ]

        return LeaderboardResponse(
            leaderboard=leaderboard,
            current_user=self._current_user_entry(current_row, total_users),
            total_users=total_users,
            limit=limit,
            offset=offset,
        )

    def _current_user_entry(self, row, total_users: int) -> Optional[CurrentUserEntry]:
        if row is None:
            return None

        ranked = row.verses_memorized > 0 and total_users > 0
        position = row.leaderboard_rank if ranked else None
        return CurrentUserEntry(
            rank=position,
            user_id=row.id,
            username=row.username,
            verses_memorized=row.verses_memorized,
            current_rank=calculate_rank(row.verses_memorized).current_rank.level,
            top_percent=round(position / total_users * 100, 2) if position else None,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
leaderboard_service = LeaderboardService()
