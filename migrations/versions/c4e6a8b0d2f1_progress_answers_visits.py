"""player progress, answer submissions and page visits

Revision ID: c4e6a8b0d2f1
Revises: a1c3e5f7b9d0
Create Date: 2026-10-17 15:40:08.904117

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "c4e6a8b0d2f1"
down_revision: Union[str, Sequence[str], None] = "a1c3e5f7b9d0"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create progress, answer key, submission and page visit tables."""
    op.create_table(
        "player_progresses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("discovered_puzzles", sa.JSON(), nullable=False),
        sa.Column("puzzle_board", sa.JSON(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("completed_games", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("ix_player_progresses_score_id", "player_progresses", ["score", "id"])

    op.create_table(
        "minigame_answers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("minigame_name", sa.String(length=100), nullable=False),
        sa.Column("answer_key", sa.String(length=100), nullable=False),
        sa.Column("answer_value", sa.Text(), nullable=False),
        sa.Column("requires_admin_verification", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("minigame_name", "answer_key", name="uq_minigame_answers_name_key"),
    )
    op.create_index("ix_minigame_answers_minigame_name", "minigame_answers", ["minigame_name"])

    op.create_table(
        "answer_submissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("minigame_name", sa.String(length=100), nullable=False),
        sa.Column("answer_key", sa.String(length=100), nullable=False),
        sa.Column("submitted_answer", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("verification_status", sa.String(length=16), nullable=False),
        sa.Column("verified_by", sa.Integer(), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["verified_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_answer_submissions_user_id", "answer_submissions", ["user_id"])
    op.create_index("ix_answer_submissions_minigame_name", "answer_submissions", ["minigame_name"])
    op.create_index(
        "ix_answer_submissions_verification_status", "answer_submissions", ["verification_status"]
    )

    op.create_table(
        "page_visits",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("session_token", sa.String(length=64), nullable=True),
        sa.Column("page_path", sa.String(length=500), nullable=False),
        sa.Column("page_title", sa.String(length=500), nullable=True),
        sa.Column("referrer", sa.String(length=500), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("device_type", sa.String(length=16), nullable=True),
        sa.Column("device_info", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_page_visits_user_id", "page_visits", ["user_id"])
    op.create_index("ix_page_visits_session_token", "page_visits", ["session_token"])
    op.create_index("ix_page_visits_created_at", "page_visits", ["created_at"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_page_visits_created_at", table_name="page_visits")
    op.drop_index("ix_page_visits_session_token", table_name="page_visits")
    op.drop_index("ix_page_visits_user_id", table_name="page_visits")
    op.drop_table("page_visits")
    op.drop_index("ix_answer_submissions_verification_status", table_name="answer_submissions")
    op.drop_index("ix_answer_submissions_minigame_name", table_name="answer_submissions")
    op.drop_index("ix_answer_submissions_user_id", table_name="answer_submissions")
    op.drop_table("answer_submissions")
    op.drop_index("ix_minigame_answers_minigame_name", table_name="minigame_answers")
    op.drop_table("minigame_answers")
    op.drop_index("ix_player_progresses_score_id", table_name="player_progresses")
    op.drop_table("player_progresses")
