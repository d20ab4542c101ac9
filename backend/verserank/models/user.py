"""
VerseRank Backend: User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table, restricted to the columns this
       service reads or writes.
Why:   The ranking engine owns the progress columns (verses_memorized,
       current_rank, rank_updated_at). Credentials and billing columns belong
       to the auth and billing services and are not mapped here.

Consistency Invariant:
    current_rank == calculate_rank(verses_memorized).current_rank.level
    Only ProgressService.record_memorization() writes these columns, inside
    one transaction holding the row lock.

Index (verses_memorized DESC, rank_updated_at ASC):
    Serves the leaderboard ordering and the "strictly more verses" counts.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from verserank.database import Base


class User(Base):
    """A registered user together with their memorization progress."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)

    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # ── Progress ──────────────────────────────────────────────────────────
    verses_memorized: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Number of distinct verses memorized; only ever incremented",
    )

    current_rank: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="Nicodemus",
        server_default=text("'Nicodemus'"),
        comment="Cached rank level derived from verses_memorized",
    )

    rank_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        comment="When verses_memorized/current_rank were last recomputed",
    )

    __table_args__ = (
        Index("idx_users_verses_rank", verses_memorized.desc(), rank_updated_at.asc()),
    )

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, verses_memorized={self.verses_memorized}, "
            f"current_rank='{self.current_rank}')>"
        )
