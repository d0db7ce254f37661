"""SQLAlchemy implementations of the challenge persistence contracts.

Both stores work inside the caller's transaction: they flush, never commit.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..challenge.errors import (
    AlreadyRegistered,
    CollaboratorError,
    NotFound,
    SessionConflict,
)
from ..challenge.types import (
    ChoiceQuestion,
    CompetitionTrackRef,
    CompetitorInfo,
    CompletionQuestion,
    QuizSessionRecord,
    SubmissionInfo,
)
from ..models import (
    CompetitionCompetitor,
    CompetitionSubmission,
    PoolChoiceQuestion,
    PoolCompletionQuestion,
    QuizCompetitor,
    QuizSession,
)

logger = logging.getLogger(__name__)


class SqlCompetitionTrackStore:
    """Competition tracks persisted in the local database."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def save_competitor(self, track: CompetitionTrackRef, info: CompetitorInfo) -> None:
        try:
            if CompetitionCompetitor.get_by_account(self._session, track, info.account):
                raise AlreadyRegistered(f"{info.account} is already registered in {track}")
            self._session.add(CompetitionCompetitor(track=track, info=info))
            self._session.flush()
        except IntegrityError as exc:
            raise AlreadyRegistered(
                f"{info.account} is already registered in {track}"
            ) from exc
        except SQLAlchemyError as exc:
            logger.error(f"Saving competitor {info.account} in {track} failed: {exc}")
            raise CollaboratorError(f"failed to save competitor in {track}") from exc

    def get_registration_and_submissions(
        self, track: CompetitionTrackRef, account: str
    ) -> Tuple[bool, list[SubmissionInfo]]:
        try:
            competitor = CompetitionCompetitor.get_by_account(self._session, track, account)
            if competitor is None:
                return False, []
            submissions = CompetitionSubmission.list_for(self._session, track, account)
        except SQLAlchemyError as exc:
            logger.error(f"Loading competitor {account} in {track} failed: {exc}")
            raise CollaboratorError(f"failed to load competitor in {track}") from exc
        return True, [s.to_info() for s in submissions]

    def record_submission(
        self,
        track: CompetitionTrackRef,
        account: str,
        submission_id: str,
        status: str,
        score: float = 0.0,
    ) -> None:
        """Store a result reported by the competition service."""
        try:
            self._session.add(
                CompetitionSubmission(
                    track=track,
                    account=account,
                    submission_id=submission_id,
                    status=status,
                    score=score,
                )
            )
            self._session.flush()
        except SQLAlchemyError as exc:
            raise CollaboratorError(f"failed to record submission in {track}") from exc


class SqlQuizStore:
    """Quiz competitors, question pools and daily session records."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def save_competitor(self, quiz_id: str, info: CompetitorInfo) -> None:
        try:
            if QuizCompetitor.get_by_account(self._session, quiz_id, info.account):
                raise AlreadyRegistered(
                    f"{info.account} is already registered in quiz {quiz_id}"
                )
            self._session.add(QuizCompetitor(quiz_id=quiz_id, info=info))
            self._session.flush()
        except IntegrityError as exc:
            raise AlreadyRegistered(
                f"{info.account} is already registered in quiz {quiz_id}"
            ) from exc
        except SQLAlchemyError as exc:
            logger.error(f"Saving quiz competitor {info.account} failed: {exc}")
            raise CollaboratorError(f"failed to save competitor in quiz {quiz_id}") from exc

    def get_competitor_and_scores(
        self, quiz_id: str, account: str
    ) -> Tuple[bool, list[int]]:
        try:
            if QuizCompetitor.get_by_account(self._session, quiz_id, account) is None:
                return False, []
            stmt = (
                select(QuizSession.best_score)
                .where(
                    QuizSession.quiz_id == quiz_id,
                    QuizSession.account == account,
                    QuizSession.graded_attempts > 0,
                )
                .order_by(QuizSession.date.asc())
            )
            scores = [int(v) for v in self._session.scalars(stmt).all()]
        except SQLAlchemyError as exc:
            raise CollaboratorError(f"failed to load scores in quiz {quiz_id}") from exc
        return True, scores

    def get_questions(
        self,
        pool_id: str,
        choice_idx: Sequence[int],
        completion_idx: Sequence[int],
    ) -> Tuple[list[ChoiceQuestion], list[CompletionQuestion]]:
        try:
            choice_rows = self._rows_by_idx(PoolChoiceQuestion, pool_id, choice_idx)
            completion_rows = self._rows_by_idx(
                PoolCompletionQuestion, pool_id, completion_idx
            )
        except SQLAlchemyError as exc:
            raise CollaboratorError(f"failed to load question pool {pool_id}") from exc

        choices = [choice_rows[i].to_question() for i in choice_idx]
        completions = [completion_rows[i].to_question() for i in completion_idx]
        return choices, completions

    def _rows_by_idx(self, model, pool_id: str, indices: Sequence[int]) -> dict:
        if not indices:
            return {}
        rows = self._session.scalars(
            select(model).where(model.pool_id == pool_id, model.idx.in_(list(indices)))
        ).all()
        by_idx = {row.idx: row for row in rows}
        missing = sorted(set(indices) - set(by_idx))
        if missing:
            raise NotFound(
                f"question pool {pool_id} has no {model.__tablename__} at {missing}"
            )
        return by_idx

    def _find(self, quiz_id: str, account: str, date: str) -> Optional[QuizSession]:
        return self._session.scalar(
            select(QuizSession).where(
                QuizSession.quiz_id == quiz_id,
                QuizSession.account == account,
                QuizSession.date == date,
            )
        )

    def get_session(self, quiz_id: str, account: str, date: str) -> QuizSessionRecord:
        try:
            row = self._find(quiz_id, account, date)
        except SQLAlchemyError as exc:
            raise CollaboratorError("failed to load quiz session") from exc
        if row is None:
            raise NotFound(f"no quiz session for {account} on {date}")
        return row.to_record()

    def create_session(self, quiz_id: str, record: QuizSessionRecord) -> None:
        try:
            if self._find(quiz_id, record.account, record.date) is not None:
                raise SessionConflict(
                    f"quiz session for {record.account} on {record.date} already exists"
                )
            self._session.add(QuizSession(quiz_id=quiz_id, record=record))
            self._session.flush()
        except IntegrityError as exc:
            # Lost the insert race; the unique key guarantees one row per day.
            raise SessionConflict(
                f"quiz session for {record.account} on {record.date} already exists"
            ) from exc
        except SQLAlchemyError as exc:
            logger.error(f"Creating quiz session for {record.account} failed: {exc}")
            raise CollaboratorError("failed to create quiz session") from exc

    def save_session(
        self,
        quiz_id: str,
        record: QuizSessionRecord,
        *,
        expected: Optional[QuizSessionRecord] = None,
    ) -> None:
        stmt = update(QuizSession).where(
            QuizSession.quiz_id == quiz_id,
            QuizSession.account == record.account,
            QuizSession.date == record.date,
        )
        if expected is not None:
            status, expiry, attempts_used = expected.cas_key()
            stmt = stmt.where(
                QuizSession.status == status.value,
                QuizSession.expiry == expiry,
                QuizSession.attempts_used == attempts_used,
            )
        stmt = stmt.values(
            status=record.status.value,
            expiry=record.expiry,
            attempts_used=record.attempts_used,
            best_score=record.best_score,
            graded_attempts=record.graded_attempts,
        )

        try:
            result = self._session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error(f"Saving quiz session for {record.account} failed: {exc}")
            raise CollaboratorError("failed to save quiz session") from exc

        if result.rowcount == 0:
            if expected is None:
                raise NotFound(f"no quiz session for {record.account} on {record.date}")
            raise SessionConflict(
                f"quiz session for {record.account} on {record.date} changed concurrently"
            )

    def list_best_scores(self, quiz_id: str) -> list[Tuple[str, int]]:
        stmt = (
            select(QuizSession.account, func.max(QuizSession.best_score))
            .where(QuizSession.quiz_id == quiz_id, QuizSession.graded_attempts > 0)
            .group_by(QuizSession.account)
            .order_by(QuizSession.account.asc())
        )
        try:
            rows = self._session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise CollaboratorError(f"failed to rank quiz {quiz_id}") from exc
        return [(account, int(best)) for account, best in rows]

    def add_questions(
        self,
        pool_id: str,
        choices: Sequence[ChoiceQuestion],
        completions: Sequence[CompletionQuestion],
    ) -> None:
        """Populate an empty pool, numbering each block from 1."""
        for idx, q in enumerate(choices, start=1):
            self._session.add(
                PoolChoiceQuestion(
                    pool_id=pool_id,
                    idx=idx,
                    desc=q.desc,
                    options=list(q.options),
                    answer=q.answer,
                )
            )
        for idx, q in enumerate(completions, start=1):
            self._session.add(
                PoolCompletionQuestion(pool_id=pool_id, idx=idx, desc=q.desc, answer=q.answer)
            )
        self._session.flush()


__all__ = ["SqlCompetitionTrackStore", "SqlQuizStore"]
