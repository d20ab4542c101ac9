"""
VerseRank Backend: Leaderboard Response Schemas
================================================

Ranking rule:
    rank = 1 + number of users with strictly more verses.
    Ties share a rank and the next distinct count skips ahead:
    counts [10, 10, 5] → ranks [1, 1, 3].
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class LeaderboardEntry(BaseModel):
    rank: int = Field(description="1-based position; ties share a rank")
    user_id: int
    username: str
    verses_memorized: int
    current_rank: str = Field(description="Rank level computed from verses_memorized")
    rank_updated_at: Optional[datetime] = None


class CurrentUserEntry(BaseModel):
    """
    The requester's own standing, returned even when outside the page.

    rank and top_percent are null for users who have not memorized a verse;
    they are not on the leaderboard.
    """
    rank: Optional[int] = None
    user_id: int
    username: str
    verses_memorized: int
    current_rank: str
    top_percent: Optional[float] = Field(
        default=None, description="rank / total_users * 100, e.g. 10.0 means top 10%"
    )


class LeaderboardResponse(BaseModel):
    leaderboard: List[LeaderboardEntry]
    current_user: Optional[CurrentUserEntry] = None
    total_users: int = Field(description="Users with at least one verse memorized")
    limit: int
    offset: int
