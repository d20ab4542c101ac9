"""
VerseRank Backend: Progress Route Handlers
===========================================

What:  Recording memorizations and reading the caller's progress.
Who:   Called by the memorize screen and the profile/progress page.

Status codes for POST /api/memorized-verses:
    201 Created: first memorization of this verse (counter advanced)
    200 OK:      repeat memorization (timestamp refreshed, counter unchanged)
"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from verserank.config import settings
from verserank.database import get_db_session
from verserank.dependencies import get_current_user_id
from verserank.schemas.common import ErrorResponse
from verserank.schemas.progress import (
    MemorizationResponse,
    MemorizedVerseListResponse,
    MemorizeVerseRequest,
    RankHistoryResponse,
    UserProgressResponse,
)
from verserank.services.progress_service import progress_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Progress"])


@router.post(
    "/memorized-verses",
    status_code=201,
    response_model=MemorizationResponse,
    responses={
        200: {"description": "Verse was already memorized", "model": MemorizationResponse},
        201: {"description": "Verse memorized, progress updated", "model": MemorizationResponse},
        400: {"description": "Invalid verse payload", "model": ErrorResponse},
        401: {"description": "No authenticated principal", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Server error while saving progress", "model": ErrorResponse},
    },
    summary="Record a memorized verse",
)
async def memorize_verse(
    payload: MemorizeVerseRequest,
    response: Response,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MemorizationResponse:
    result = await progress_service.record_memorization(
        db=db,
        user_id=user_id,
        verse_id=payload.verse_id,
        verse_reference=payload.verse_reference,
        verse_text=payload.verse_text,
        context_text=payload.context_text,
    )
    if not result.is_new:
        response.status_code = 200
    return result


@router.get(
    "/memorized-verses",
    response_model=MemorizedVerseListResponse,
    responses={
        400: {"description": "Invalid pagination parameters", "model": ErrorResponse},
        401: {"description": "No authenticated principal", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="List the caller's memorized verses",
)
async def list_memorized_verses(
    response: Response,
    limit: int = Query(default=50, description="Items per page (max 200)"),
    offset: int = Query(default=0, description="Items to skip"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MemorizedVerseListResponse:
    result = await progress_service.list_memorized_verses(
        db=db, user_id=user_id, limit=limit, offset=offset
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get(
    "/progress",
    response_model=UserProgressResponse,
    responses={
        401: {"description": "No authenticated principal", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Get the caller's rank and progress",
)
async def get_progress(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserProgressResponse:
    """Rank, in-tier progress and verses to the next rank, recomputed on every call."""
    return await progress_service.get_user_progress(db=db, user_id=user_id)


@router.get(
    "/progress/history",
    response_model=RankHistoryResponse,
    responses={
        400: {"description": "Invalid limit", "model": ErrorResponse},
        401: {"description": "No authenticated principal", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Get the caller's level-up history",
)
async def get_rank_history(
    limit: int = Query(
        default=settings.history_default_limit, description="Entries to return (max 100)"
    ),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> RankHistoryResponse:
    return await progress_service.get_rank_history(db=db, user_id=user_id, limit=limit)
