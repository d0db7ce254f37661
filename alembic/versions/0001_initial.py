"""challenge tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _competitor_columns() -> list[sa.Column]:
    return [
        sa.Column("account", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("identity", sa.String(length=50), nullable=False),
        sa.Column("province", sa.String(length=100), nullable=False),
        sa.Column("detail", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "competition_competitors",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("track_id", sa.String(length=100), nullable=False),
        sa.Column("phase", sa.String(length=20), nullable=False),
        *_competitor_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_competition_competitors"),
        sa.UniqueConstraint(
            "track_id", "phase", "account", name="uq_competition_competitor"
        ),
    )
    op.create_index(
        "ix_competition_competitors_account",
        "competition_competitors",
        ["account"],
    )

    op.create_table(
        "competition_submissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("track_id", sa.String(length=100), nullable=False),
        sa.Column("phase", sa.String(length=20), nullable=False),
        sa.Column("account", sa.String(length=64), nullable=False),
        sa.Column("submission_id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_competition_submissions"),
        sa.UniqueConstraint(
            "track_id", "submission_id", name="uq_competition_submission"
        ),
    )
    op.create_index(
        "ix_competition_submissions_track_account",
        "competition_submissions",
        ["track_id", "phase", "account"],
    )

    op.create_table(
        "quiz_competitors",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("quiz_id", sa.String(length=100), nullable=False),
        *_competitor_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_quiz_competitors"),
        sa.UniqueConstraint("quiz_id", "account", name="uq_quiz_competitor"),
    )
    op.create_index("ix_quiz_competitors_account", "quiz_competitors", ["account"])

    op.create_table(
        "choice_questions",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("pool_id", sa.String(length=100), nullable=False),
        sa.Column("idx", sa.Integer(), nullable=False),
        sa.Column("desc", sa.Text(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("answer", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_choice_questions"),
        sa.UniqueConstraint("pool_id", "idx", name="uq_choice_question_idx"),
    )

    op.create_table(
        "completion_questions",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("pool_id", sa.String(length=100), nullable=False),
        sa.Column("idx", sa.Integer(), nullable=False),
        sa.Column("desc", sa.Text(), nullable=False),
        sa.Column("answer", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_completion_questions"),
        sa.UniqueConstraint("pool_id", "idx", name="uq_completion_question_idx"),
    )

    op.create_table(
        "quiz_sessions",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("quiz_id", sa.String(length=100), nullable=False),
        sa.Column("account", sa.String(length=64), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("expiry", sa.BigInteger(), nullable=False),
        sa.Column("attempts_used", sa.Integer(), nullable=False),
        sa.Column("best_score", sa.Integer(), nullable=False),
        sa.Column("graded_attempts", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_quiz_sessions"),
        sa.UniqueConstraint("quiz_id", "account", "date", name="uq_quiz_session_day"),
        sa.CheckConstraint(
            "status IN ('in_progress','completed')",
            name="ck_quiz_sessions_quiz_session_status_enum",
        ),
        sa.CheckConstraint(
            "attempts_used >= 0",
            name="ck_quiz_sessions_quiz_session_attempts_non_negative",
        ),
        sa.CheckConstraint(
            "best_score >= 0",
            name="ck_quiz_sessions_quiz_session_best_score_non_negative",
        ),
    )


def downgrade() -> None:
    op.drop_table("quiz_sessions")
    op.drop_table("completion_questions")
    op.drop_table("choice_questions")
    op.drop_index("ix_quiz_competitors_account", table_name="quiz_competitors")
    op.drop_table("quiz_competitors")
    op.drop_index(
        "ix_competition_submissions_track_account",
        table_name="competition_submissions",
    )
    op.drop_table("competition_submissions")
    op.drop_index(
        "ix_competition_competitors_account", table_name="competition_competitors"
    )
    op.drop_table("competition_competitors")
