"""Database models for the competition tracks."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from ..challenge.types import CompetitionTrackRef, CompetitorInfo, SubmissionInfo
from .base import Base
from .competitor import CompetitorDetailsMixin


class CompetitionCompetitor(CompetitorDetailsMixin, Base):
    """A competitor enrolled in one phase of a competition track."""

    __tablename__ = "competition_competitors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    track_id: Mapped[str] = mapped_column(String(100), nullable=False)
    """Identifier of the competition track."""

    phase: Mapped[str] = mapped_column(String(20), nullable=False)
    """:class:`CompetitionPhase` value the registration applies to."""

    __table_args__ = (
        UniqueConstraint(
            "track_id", "phase", "account", name="uq_competition_competitor"
        ),
    )

    def __init__(self, *, track: CompetitionTrackRef, info: CompetitorInfo) -> None:
        self.track_id = track.id
        self.phase = track.phase.value
        self.apply_info(info)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<CompetitionCompetitor(id={self.id}, track_id='{self.track_id}', "
            f"phase='{self.phase}', account='{self.account}')>"
        )

    @classmethod
    def get_by_account(
        cls, session: Session, track: CompetitionTrackRef, account: str
    ) -> Optional["CompetitionCompetitor"]:
        """Return the registration of ``account`` in ``track`` if it exists."""

        return session.scalar(
            select(cls).where(
                cls.track_id == track.id,
                cls.phase == track.phase.value,
                cls.account == account,
            )
        )


class CompetitionSubmission(Base):
    """A result submitted to a competition track."""

    __tablename__ = "competition_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    track_id: Mapped[str] = mapped_column(String(100), nullable=False)
    phase: Mapped[str] = mapped_column(String(20), nullable=False)
    account: Mapped[str] = mapped_column(String(64), nullable=False)
    submission_id: Mapped[str] = mapped_column(String(64), nullable=False)
    """Identifier assigned by the competition service."""

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    """Evaluation status reported by the competition service, e.g. ``"success"``."""

    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("track_id", "submission_id", name="uq_competition_submission"),
        Index("ix_competition_submissions_track_account", "track_id", "phase", "account"),
    )

    def __init__(
        self,
        *,
        track: CompetitionTrackRef,
        account: str,
        submission_id: str,
        status: str,
        score: float = 0.0,
        submitted_at: Optional[datetime] = None,
    ) -> None:
        self.track_id = track.id
        self.phase = track.phase.value
        self.account = account
        self.submission_id = submission_id
        self.status = status
        self.score = score
        if submitted_at is not None:
            self.submitted_at = submitted_at

    def to_info(self) -> SubmissionInfo:
        return SubmissionInfo(id=self.submission_id, status=self.status, score=self.score)

    @classmethod
    def list_for(
        cls, session: Session, track: CompetitionTrackRef, account: str
    ) -> list["CompetitionSubmission"]:
        stmt = (
            select(cls)
            .where(
                cls.track_id == track.id,
                cls.phase == track.phase.value,
                cls.account == account,
            )
            .order_by(cls.submitted_at.asc(), cls.id.asc())
        )
        return list(session.scalars(stmt).all())


__all__ = ["CompetitionCompetitor", "CompetitionSubmission"]
