"""
VerseRank Backend: Progress Service (Progression Recorder)
===========================================================

What:  Records memorization events and reads a user's progress, rank
       history and memorized verses.
Why:   The user's (verses_memorized, current_rank) pair is the only mutable
       shared state of the ranking engine. Every write to it goes through
       record_memorization() so the cached rank can never drift from the
       counter.
How:   One transaction per event: lock the user row, deduplicate, insert the
       verse, bump the counter, recompute the rank, append history on
       level-up, commit. Any failure rolls the whole sequence back.
Who:   Called by the progress route handlers.

Recording Flow (POST /api/memorized-verses):
    ┌───────────┐   ┌────────────┐  repeat  ┌──────────────────────────┐
    │ Lock user │──▶│ Duplicate? │─────────▶│ Refresh memorized_at     │
    │ (FOR UPD.)│   └────────────┘          │ is_new=False, no counter │
    └───────────┘         │ new             └──────────────────────────┘
                          ▼
    ┌──────────────┐   ┌──────────────────┐   ┌──────────────┐   ┌────────┐
    │ Insert verse │──▶│ count+1, rank,   │──▶│ History row  │──▶│ Commit │
    └──────────────┘   │ rank_updated_at  │   │ (if level-up)│   └────────┘
                       └──────────────────┘   └──────────────┘

Concurrency:
    Two different new verses memorized at once by the same user serialize on
    the user row lock (BEGIN IMMEDIATE on SQLite), so the second transaction
    reads the first one's committed counter and neither increment is lost.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from verserank.exceptions import DatabaseError, NotFoundError, ValidationError, VerseRankError
from verserank.models import MemorizedVerse, RankHistory, User
from verserank.schemas.progress import (
    MemorizationResponse,
    MemorizedVerseItem,
    MemorizedVerseListResponse,
    RankHistoryItem,
    RankHistoryResponse,
    RankTierResponse,
    UserProgressResponse,
)
from verserank.services.rank_calculator import calculate_rank, get_next_rank

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Server error while saving progress"

MAX_HISTORY_LIMIT = 100
MAX_VERSES_PAGE_LIMIT = 200


class ProgressService:
    """
    Business logic for memorization progress.

    Responsibilities:
        - record_memorization(): the transactional progression workflow
        - get_user_progress(): rank, progress and distance to the next rank
        - get_rank_history(): level-up audit trail
        - list_memorized_verses(): the user's verse collection

    Error Handling Strategy:
        Our own exceptions (NotFoundError, ValidationError) propagate as-is.
        Anything else raised while talking to the database is logged with
        full detail and re-raised as an opaque DatabaseError.
    """

    async def record_memorization(
        self,
        db: AsyncSession,
        user_id: int,
        verse_id: int,
        verse_reference: str,
        verse_text: str,
        context_text: Optional[str] = None,
    ) -> MemorizationResponse:
        """
        Record that `user_id` memorized `verse_id`.

        Workflow Steps:
            1. Lock the user row (NotFoundError if missing)
            2. Repeat memorization: refresh memorized_at and return progress
            3. Snapshot previous count and rank (under the lock)
            4. Insert the memorized-verse row
            5. Recompute the rank for count + 1 and detect level-up
            6. Persist counter, rank, rank_updated_at
            7. Append a RankHistory row on level-up
            8. Commit

        Raises:
            NotFoundError: user does not exist (→ 404)
            DatabaseError: any storage failure; nothing is persisted (→ 500)
        """
        try:
            user = await self._lock_user(db, user_id)
            now = datetime.now(timezone.utc)

            # ── Step 2: Duplicate check ───────────────────────────────────
            result = await db.execute(
                select(MemorizedVerse).where(
                    MemorizedVerse.user_id == user_id,
                    MemorizedVerse.verse_id == verse_id,
                )
            )
            existing = result.scalar_one_or_none()

            if existing is not None:
                existing.memorized_at = now
                await db.commit()
                logger.info(
                    "User %s re-memorized verse %s; progress unchanged", user_id, verse_id
                )
                rank_info = calculate_rank(user.verses_memorized)
                return MemorizationResponse(
                    message="Verse already memorized",
                    is_new=False,
                    leveled_up=False,
                    previous_rank=rank_info.current_rank.level,
                    current_rank=RankTierResponse.from_tier(rank_info.current_rank),
                    verses_memorized=user.verses_memorized,
                    progress=rank_info.progress,
                    verses_to_next_rank=rank_info.verses_to_next_rank,
                )

            # ── Step 3: Snapshot before any write ─────────────────────────
            previous_count = user.verses_memorized
            previous_rank = user.current_rank

            # ── Step 4: Insert the verse ──────────────────────────────────
            db.add(
                MemorizedVerse(
                    user_id=user_id,
                    verse_id=verse_id,
                    verse_reference=verse_reference,
                    verse_text=verse_text,
                    context_text=context_text,
                    memorized_at=now,
                )
            )

            # ── Step 5: Recompute ─────────────────────────────────────────
            new_count = previous_count + 1
            rank_info = calculate_rank(new_count)
            new_rank = rank_info.current_rank.level
            leveled_up = previous_rank != new_rank

            # ── Step 6: Counter and cached rank ───────────────────────────
            user.verses_memorized = new_count
            user.current_rank = new_rank
            user.rank_updated_at = now

            # ── Step 7: Audit trail ───────────────────────────────────────
            if leveled_up:
                db.add(
                    RankHistory(
                        user_id=user_id,
                        previous_rank=previous_rank,
                        new_rank=new_rank,
                        verses_count=new_count,
                        achieved_at=now,
                    )
                )

            await db.commit()

        except VerseRankError:
            await db.rollback()
            raise
        except Exception as e:
            await db.rollback()
            logger.error(
                "Failed to record memorization (user=%s, verse=%s): %s",
                user_id,
                verse_id,
                str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message=SAVE_FAILED_MESSAGE,
                context={
                    "user_id": user_id,
                    "verse_id": verse_id,
                    "original_error": type(e).__name__,
                },
            )

        if leveled_up:
            logger.info(
                "User %s leveled up: %s -> %s at %d verses",
                user_id,
                previous_rank,
                new_rank,
                new_count,
            )

        return MemorizationResponse(
            message="Verse memorized",
            is_new=True,
            leveled_up=leveled_up,
            previous_rank=previous_rank,
            current_rank=RankTierResponse.from_tier(rank_info.current_rank),
            verses_memorized=new_count,
            progress=rank_info.progress,
            verses_to_next_rank=rank_info.verses_to_next_rank,
        )

    async def get_user_progress(self, db: AsyncSession, user_id: int) -> UserProgressResponse:
        """
        Current progress, recomputed from verses_memorized.

        The stored current_rank is not trusted for display; the calculator is
        cheap and always agrees with the client.

        Raises:
            NotFoundError: user does not exist (→ 404)
            DatabaseError: query failed (→ 500)
        """
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching progress for user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve progress. Please try again.",
                context={"user_id": user_id, "original_error": type(e).__name__},
            )

        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))

        rank_info = calculate_rank(user.verses_memorized)
        next_rank = get_next_rank(rank_info.current_rank.level)
        return UserProgressResponse(
            verses_memorized=user.verses_memorized,
            current_rank=RankTierResponse.from_tier(rank_info.current_rank),
            next_rank=RankTierResponse.from_tier(next_rank) if next_rank else None,
            progress=rank_info.progress,
            verses_to_next_rank=rank_info.verses_to_next_rank,
            rank_updated_at=user.rank_updated_at,
        )

    async def get_rank_history(
        self, db: AsyncSession, user_id: int, limit: int = 20
    ) -> RankHistoryResponse:
        """Level-ups of `user_id`, newest first."""
        if not 1 <= limit <= MAX_HISTORY_LIMIT:
            raise ValidationError(
                message=f"limit must be between 1 and {MAX_HISTORY_LIMIT}",
                field="limit",
                context={"value": limit},
            )

        try:
            await self._get_user(db, user_id)
            result = await db.execute(
                select(RankHistory)
                .where(RankHistory.user_id == user_id)
                .order_by(RankHistory.achieved_at.desc(), RankHistory.id.desc())
                .limit(limit)
            )
            entries = result.scalars().all()
        except VerseRankError:
            raise
        except Exception as e:
            logger.error("Database error fetching rank history for user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve rank history. Please try again.",
                context={"user_id": user_id, "original_error": type(e).__name__},
            )

        return RankHistoryResponse(
            history=[RankHistoryItem.model_validate(entry) for entry in entries]
        )

    async def list_memorized_verses(
        self,
        db: AsyncSession,
        user_id: int,
        limit: int = 50,
        offset: int = 0,
    ) -> MemorizedVerseListResponse:
        """
        Page through the user's memorized verses, most recent first.

        Offset pagination is fine here: the collection is per-user and small
        (the rank ladder tops out at 100 verses).
        """
        if not 1 <= limit <= MAX_VERSES_PAGE_LIMIT:
            raise ValidationError(
                message=f"limit must be between 1 and {MAX_VERSES_PAGE_LIMIT}",
                field="limit",
                context={"value": limit},
            )
        if offset < 0:
            raise ValidationError(
                message="offset must be greater than or equal to 0",
                field="offset",
                context={"value": offset},
            )

        try:
            await self._get_user(db, user_id)
            result = await db.execute(
                select(MemorizedVerse)
                .where(MemorizedVerse.user_id == user_id)
                .order_by(MemorizedVerse.memorized_at.desc(), MemorizedVerse.id.desc())
                .limit(limit)
                .offset(offset)
            )
            verses = result.scalars().all()

            count_result = await db.execute(
                select(func.count(MemorizedVerse.id)).where(MemorizedVerse.user_id == user_id)
            )
            total_count = count_result.scalar() or 0
        except VerseRankError:
            raise
        except Exception as e:
            logger.error("Database error listing verses for user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve memorized verses. Please try again.",
                context={"user_id": user_id, "original_error": type(e).__name__},
            )

        return MemorizedVerseListResponse(
            verses=[MemorizedVerseItem.model_validate(verse) for verse in verses],
            total_count=total_count,
            has_more=offset + len(verses) < total_count,
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _lock_user(self, db: AsyncSession, user_id: int) -> User:
        # FOR UPDATE is a no-op on SQLite; database.py serializes there instead.
        # populate_existing: reload the counter even if the session already holds the row
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def _get_user(self, db: AsyncSession, user_id: int) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
# Stateless: the session is passed into every call
progress_service = ProgressService()
