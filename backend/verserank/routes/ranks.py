"""
VerseRank Backend: Rank Ladder Route
=====================================

What:  GET /api/ranks returns the full rank table so the client can render
       the ladder without hard-coding it. Public; no principal required.
"""

from fastapi import APIRouter, Response

from verserank.schemas.progress import RankListResponse, RankTierResponse
from verserank.services.rank_calculator import get_all_ranks

router = APIRouter(prefix="/api", tags=["Ranks"])


@router.get(
    "/ranks",
    response_model=RankListResponse,
    summary="List all rank tiers",
)
async def list_ranks(response: Response) -> RankListResponse:
    # The table is compiled in; it only changes with a deploy
    response.headers["Cache-Control"] = "public, max-age=3600"
    return RankListResponse(ranks=[RankTierResponse.from_tier(tier) for tier in get_all_ranks()])
