"""
VerseRank Backend: Leaderboard Route Handler
=============================================

What:  GET /api/leaderboard?limit=50&offset=0
Why:   Offset paging (not cursor) because ranks are positions: "page 3" of a
       leaderboard is a meaningful thing to link to.

limit/offset are plain ints here on purpose: LeaderboardService enforces
1 <= limit <= 500 and offset >= 0 and answers 400 with the violated bound.
"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from verserank.config import settings
from verserank.database import get_db_session
from verserank.dependencies import get_current_user_id
from verserank.schemas.common import ErrorResponse
from verserank.schemas.leaderboard import LeaderboardResponse
from verserank.services.leaderboard_service import leaderboard_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Leaderboard"])


@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    responses={
        400: {"description": "limit/offset out of bounds", "model": ErrorResponse},
        401: {"description": "No authenticated principal", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get the verse memorization leaderboard",
)
async def get_leaderboard(
    response: Response,
    limit: int = Query(default=settings.leaderboard_default_limit, description="Entries per page (1-500)"),
    offset: int = Query(default=0, description="Entries to skip (>= 0)"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LeaderboardResponse:
    """
    Ranked page of users with at least one verse, plus the caller's own entry.

    Staleness of a few seconds is acceptable, so a short private cache is set.
    """
    result = await leaderboard_service.get_leaderboard(
        db=db,
        limit=limit,
        offset=offset,
        requesting_user_id=user_id,
    )
    response.headers["X-Total-Count"] = str(result.total_users)
    response.headers["Cache-Control"] = "private, max-age=5"
    return result
