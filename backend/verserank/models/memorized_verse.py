"""
VerseRank Backend: Memorized Verse SQLAlchemy Model
====================================================

What:  ORM model for `user_memorized_verses`, one row per (user, verse).
Why:   The unique constraint on (user_id, verse_id) is what makes a repeat
       memorization idempotent: the recorder refreshes memorized_at on the
       existing row instead of inserting, and the counter does not move.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from verserank.database import Base


class MemorizedVerse(Base):
    """A verse a user has memorized, with the text they memorized it from."""

    __tablename__ = "user_memorized_verses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    verse_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Format: "Book Chapter:Verse" or "Book Chapter:Verse-Verse"
    verse_reference: Mapped[str] = mapped_column(String(50), nullable=False)

    verse_text: Mapped[str] = mapped_column(Text, nullable=False)

    # Optional surrounding passage the user studied the verse with
    context_text: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    memorized_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "verse_id", name="uq_memorized_verses_user_verse"),
        Index("idx_memorized_verses_user", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<MemorizedVerse(user_id={self.user_id}, verse_id={self.verse_id}, "
            f"reference='{self.verse_reference}')>"
        )
