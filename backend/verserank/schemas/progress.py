"""
VerseRank Backend: Progress Request/Response Schemas
=====================================================

What:  API contract for recording memorizations and reading progress.
Why:   Schemas are separate from the ORM models so the API can expose
       computed fields (progress, verses_to_next_rank) and hide internal ones.

Validation (MemorizeVerseRequest):
    Mirrors the rules the web client already enforces, so the API rejects the
    same payloads with a 400:
    - verse_id: positive 32-bit integer
    - verse_reference: "Book Chapter:Verse" or "Book Chapter:Verse-Verse", max 50
    - verse_text: 1-5000 characters
    - context_text: optional, max 5000 characters
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from verserank.services.rank_calculator import RankTier

VERSE_REFERENCE_PATTERN = re.compile(r"^[a-zA-Z0-9\s]+\s\d+:\d+(-\d+)?$")

MAX_VERSE_ID = 2_147_483_647


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class MemorizeVerseRequest(BaseModel):
    """Body of POST /api/memorized-verses."""
    verse_id: int = Field(ge=1, le=MAX_VERSE_ID, description="Catalog id of the verse")
    verse_reference: str = Field(min_length=1, max_length=50, description="e.g. 'John 3:16'")
    verse_text: str = Field(min_length=1, max_length=5000, description="The memorized text")
    context_text: Optional[str] = Field(
        default=None, max_length=5000, description="Surrounding passage, if any"
    )

    @field_validator("verse_reference", "verse_text", "context_text", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("verse_reference")
    @classmethod
    def validate_reference(cls, v: str) -> str:
        """Ensures the reference looks like 'Book Chapter:Verse'."""
        if not VERSE_REFERENCE_PATTERN.match(v):
            raise ValueError(
                'Verse reference format is invalid (expected: "Book Chapter:Verse")'
            )
        return v

    @field_validator("context_text")
    @classmethod
    def empty_context_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RankTierResponse(BaseModel):
    """One tier of the rank ladder."""
    level: str = Field(description="Rank name")
    description: str = Field(description="Display text")
    min_verses: int = Field(description="Inclusive lower bound")
    max_verses: int = Field(description="Inclusive upper bound")
    next_level: Optional[str] = Field(default=None, description="Following rank, null at the top")

    @classmethod
    def from_tier(cls, tier: RankTier) -> "RankTierResponse":
        return cls(
            level=tier.level,
            description=tier.description,
            min_verses=tier.min_verses,
            max_verses=tier.max_verses,
            next_level=tier.next_level,
        )


class RankListResponse(BaseModel):
    """Returned by GET /api/ranks."""
    ranks: List[RankTierResponse]


class UserProgressResponse(BaseModel):
    """
    What:  A user's progress, always recomputed from verses_memorized.
    Who:   Returned by GET /api/progress.
    """
    verses_memorized: int = Field(description="Distinct verses memorized")
    current_rank: RankTierResponse = Field(description="Tier for verses_memorized")
    next_rank: Optional[RankTierResponse] = Field(default=None, description="Next tier, null at the top")
    progress: float = Field(description="Completion within the current tier, 0-100")
    verses_to_next_rank: int = Field(description="Verses left until the next tier")
    rank_updated_at: Optional[datetime] = Field(default=None, description="Last recomputation (UTC)")


class MemorizationResponse(BaseModel):
    """
    What:  Outcome of recording one memorization.
    Who:   Returned by POST /api/memorized-verses (201 new, 200 repeat).

    The repeat path carries the same progress payload as the new path, with
    is_new=false and leveled_up=false.
    """
    message: str = Field(description="Human-readable outcome")
    is_new: bool = Field(description="False when the verse was already memorized")
    leveled_up: bool = Field(description="True when this memorization changed the rank")
    previous_rank: str = Field(description="Rank level before this memorization")
    current_rank: RankTierResponse = Field(description="Rank after this memorization")
    verses_memorized: int = Field(description="Counter after this memorization")
    progress: float = Field(description="Completion within the current tier, 0-100")
    verses_to_next_rank: int = Field(description="Verses left until the next tier")


class RankHistoryItem(BaseModel):
    previous_rank: str
    new_rank: str
    verses_count: int
    achieved_at: datetime

    model_config = {"from_attributes": True}


class RankHistoryResponse(BaseModel):
    """Returned by GET /api/progress/history, newest first."""
    history: List[RankHistoryItem]


class MemorizedVerseItem(BaseModel):
    verse_id: int
    verse_reference: str
    verse_text: str
    context_text: Optional[str] = None
    memorized_at: datetime

    model_config = {"from_attributes": True}


class MemorizedVerseListResponse(BaseModel):
    """Returned by GET /api/memorized-verses, most recently memorized first."""
    verses: List[MemorizedVerseItem]
    total_count: int = Field(description="All verses memorized by the user")
    has_more: bool = Field(description="Whether another page exists")
