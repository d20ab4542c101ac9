"""
VerseRank Backend: Rank History SQLAlchemy Model
=================================================

What:  Append-only audit log of level-ups.
Lifecycle:
    Inserted exactly once per level-up, in the same transaction as the
    counter update that caused it. Never updated, never deleted (except by
    the ON DELETE CASCADE of the owning user).
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from verserank.database import Base


class RankHistory(Base):
    """One transition from `previous_rank` to `new_rank`."""

    __tablename__ = "rank_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    previous_rank: Mapped[str] = mapped_column(String(50), nullable=False)

    new_rank: Mapped[str] = mapped_column(String(50), nullable=False)

    # verses_memorized right after the transition
    verses_count: Mapped[int] = mapped_column(Integer, nullable=False)

    achieved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_user_history", "user_id", "achieved_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<RankHistory(user_id={self.user_id}, {self.previous_rank} -> {self.new_rank}, "
            f"verses_count={self.verses_count})>"
        )
