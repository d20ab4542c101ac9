"""Add biblical ranking system

Revision ID: 002
Revises: 001
Create Date: 2025-11-16 00:00:00.000000+00:00

What:  Progress columns on users, the rank_history audit table, the
       leaderboard index, and a backfill for users who memorized verses
       before ranking existed.

Backfill:
    1. verses_memorized = COUNT(user_memorized_verses)
    2. rank_updated_at  = MAX(memorized_at) for users with verses
    3. current_rank     = calculate_rank(verses_memorized), computed in Python
       so the migration and the service share one rank table

Rollback: downgrade() drops the history table, the indexes and the columns.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

from verserank.services.rank_calculator import calculate_rank

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Step 1: Progress columns ──────────────────────────────────────────
    with op.batch_alter_table("users") as batch:
        batch.add_column(
            sa.Column("verses_memorized", sa.Integer(), nullable=False, server_default=sa.text("0"))
        )
        batch.add_column(
            sa.Column(
                "current_rank",
                sa.String(50),
                nullable=False,
                server_default=sa.text("'Nicodemus'"),
            )
        )
        batch.add_column(sa.Column("rank_updated_at", sa.DateTime(timezone=True), nullable=True))

    # ── Step 2: Level-up audit table ──────────────────────────────────────
    op.create_table(
        "rank_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("previous_rank", sa.String(50), nullable=False),
        sa.Column("new_rank", sa.String(50), nullable=False),
        sa.Column("verses_count", sa.Integer(), nullable=False),
        sa.Column(
            "achieved_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_user_history", "rank_history", ["user_id", "achieved_at"])

    # ── Step 3: Indexes ───────────────────────────────────────────────────
    # Leaderboard ordering and "users with strictly more verses" counts
    op.create_index(
        "idx_users_verses_rank",
        "users",
        [sa.text("verses_memorized DESC"), sa.text("rank_updated_at ASC")],
    )
    op.create_index("idx_memorized_verses_user", "user_memorized_verses", ["user_id"])

    # ── Step 4: Backfill ──────────────────────────────────────────────────
    bind = op.get_bind()
    bind.execute(
        sa.text(
            """
            UPDATE users
            SET verses_memorized = (
                SELECT COUNT(*) FROM user_memorized_verses umv
                WHERE umv.user_id = users.id
            )
            """
        )
    )
    bind.execute(
        sa.text(
            """
            UPDATE users
            SET rank_updated_at = (
                SELECT MAX(umv.memorized_at) FROM user_memorized_verses umv
                WHERE umv.user_id = users.id
            )
            WHERE verses_memorized > 0 AND rank_updated_at IS NULL
            """
        )
    )

    rows = bind.execute(
        sa.text("SELECT id, verses_memorized FROM users WHERE verses_memorized > 0")
    ).all()
    for user_id, verses_memorized in rows:
        bind.execute(
            sa.text("UPDATE users SET current_rank = :rank WHERE id = :user_id"),
            {"rank": calculate_rank(verses_memorized).current_rank.level, "user_id": user_id},
        )


def downgrade() -> None:
    op.drop_index("idx_memorized_verses_user", table_name="user_memorized_verses")
    op.drop_index("idx_users_verses_rank", table_name="users")
    op.drop_index("idx_user_history", table_name="rank_history")
    op.drop_table("rank_history")

    with op.batch_alter_table("users") as batch:
        batch.drop_column("rank_updated_at")
        batch.drop_column("current_rank")
        batch.drop_column("verses_memorized")
