"""Database models for the quiz track: competitors, question pools and daily sessions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from ..challenge.types import (
    ChoiceQuestion,
    CompetitorInfo,
    CompletionQuestion,
    QuizSessionRecord,
    QuizStatus,
)
from .base import Base, ID_TYPE
from .competitor import CompetitorDetailsMixin


class QuizCompetitor(CompetitorDetailsMixin, Base):
    """A competitor registered for a quiz track."""

    __tablename__ = "quiz_competitors"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    quiz_id: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (UniqueConstraint("quiz_id", "account", name="uq_quiz_competitor"),)

    def __init__(self, *, quiz_id: str, info: CompetitorInfo) -> None:
        self.quiz_id = quiz_id
        self.apply_info(info)

    @classmethod
    def get_by_account(
        cls, session: Session, quiz_id: str, account: str
    ) -> Optional["QuizCompetitor"]:
        return session.scalar(
            select(cls).where(cls.quiz_id == quiz_id, cls.account == account)
        )


class PoolChoiceQuestion(Base):
    """A multiple-choice question in a question pool."""

    __tablename__ = "choice_questions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    pool_id: Mapped[str] = mapped_column(String(100), nullable=False)
    idx: Mapped[int] = mapped_column(Integer, nullable=False)
    """1-based position in the pool; the sampler draws from these indices."""

    desc: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list] = mapped_column(JSON, nullable=False)
    answer: Mapped[str] = mapped_column(String(255), nullable=False)
    """Correct answer. Never sent to the client in plaintext."""

    __table_args__ = (UniqueConstraint("pool_id", "idx", name="uq_choice_question_idx"),)

    def __init__(
        self, *, pool_id: str, idx: int, desc: str, options: list[str], answer: str
    ) -> None:
        self.pool_id = pool_id
        self.idx = idx
        self.desc = desc
        self.options = list(options)
        self.answer = answer

    def to_question(self) -> ChoiceQuestion:
        return ChoiceQuestion(
            desc=self.desc, options=tuple(self.options or ()), answer=self.answer
        )


class PoolCompletionQuestion(Base):
    """A fill-in-the-blank question in a question pool."""

    __tablename__ = "completion_questions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    pool_id: Mapped[str] = mapped_column(String(100), nullable=False)
    idx: Mapped[int] = mapped_column(Integer, nullable=False)
    desc: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("pool_id", "idx", name="uq_completion_question_idx"),
    )

    def __init__(self, *, pool_id: str, idx: int, desc: str, answer: str) -> None:
        self.pool_id = pool_id
        self.idx = idx
        self.desc = desc
        self.answer = answer

    def to_question(self) -> CompletionQuestion:
        return CompletionQuestion(desc=self.desc, answer=self.answer)


class QuizSession(Base):
    """One competitor's quiz attempts for one day bucket.

    At most one row exists per ``(quiz_id, account, date)``. Rows are
    never deleted; a new day creates a new row.
    """

    __tablename__ = "quiz_sessions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    quiz_id: Mapped[str] = mapped_column(String(100), nullable=False)
    account: Mapped[str] = mapped_column(String(64), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    """Day bucket (``YYYY-MM-DD``) in the server's time zone."""

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    """:class:`QuizStatus` value."""

    expiry: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """Epoch seconds after which the live attempt can no longer be submitted."""

    attempts_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    graded_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("quiz_id", "account", "date", name="uq_quiz_session_day"),
        CheckConstraint(
            "status IN ('in_progress','completed')", name="quiz_session_status_enum"
        ),
        CheckConstraint("attempts_used >= 0", name="quiz_session_attempts_non_negative"),
        CheckConstraint("best_score >= 0", name="quiz_session_best_score_non_negative"),
    )

    def __init__(self, *, quiz_id: str, record: QuizSessionRecord) -> None:
        self.quiz_id = quiz_id
        self.account = record.account
        self.date = record.date
        self.status = record.status.value
        self.expiry = record.expiry
        self.attempts_used = record.attempts_used
        self.best_score = record.best_score
        self.graded_attempts = record.graded_attempts

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<QuizSession(id={self.id}, quiz_id='{self.quiz_id}', account='{self.account}', "
            f"date='{self.date}', status='{self.status}', attempts_used={self.attempts_used})>"
        )

    def to_record(self) -> QuizSessionRecord:
        return QuizSessionRecord(
            account=self.account,
            date=self.date,
            status=QuizStatus(self.status),
            expiry=int(self.expiry),
            attempts_used=int(self.attempts_used),
            best_score=int(self.best_score),
            graded_attempts=int(self.graded_attempts or 0),
        )


__all__ = [
    "PoolChoiceQuestion",
    "PoolCompletionQuestion",
    "QuizCompetitor",
    "QuizSession",
]
