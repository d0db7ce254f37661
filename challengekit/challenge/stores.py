"""Contracts the challenge engine expects from its persistence collaborators.

Implementations live in :mod:`challengekit.storage` (SQLAlchemy) and
:mod:`challengekit.remote` (HTTP). Transport failures must surface as
:class:`~challengekit.challenge.errors.CollaboratorError`.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, Tuple

from .types import (
    ChoiceQuestion,
    CompetitionTrackRef,
    CompetitorInfo,
    CompletionQuestion,
    QuizSessionRecord,
    SubmissionInfo,
)


class CompetitionTrackStore(Protocol):
    def save_competitor(self, track: CompetitionTrackRef, info: CompetitorInfo) -> None:
        """Register ``info`` in ``track``.

        Raises ``AlreadyRegistered`` when the account is already enrolled.
        """
        ...

    def get_registration_and_submissions(
        self, track: CompetitionTrackRef, account: str
    ) -> Tuple[bool, list[SubmissionInfo]]:
        """Return whether ``account`` is enrolled in ``track`` and its submissions."""
        ...


class QuizStore(Protocol):
    def save_competitor(self, quiz_id: str, info: CompetitorInfo) -> None: ...

    def get_competitor_and_scores(
        self, quiz_id: str, account: str
    ) -> Tuple[bool, list[int]]:
        """Return registration status and the best score of every completed day."""
        ...

    def get_questions(
        self,
        pool_id: str,
        choice_idx: Sequence[int],
        completion_idx: Sequence[int],
    ) -> Tuple[list[ChoiceQuestion], list[CompletionQuestion]]:
        """Return the questions at the requested indices, in request order.

        Raises ``NotFound`` if any index is missing from the pool.
        """
        ...

    def get_session(self, quiz_id: str, account: str, date: str) -> QuizSessionRecord:
        """Raises ``NotFound`` when no record exists for the day bucket."""
        ...

    def create_session(self, quiz_id: str, record: QuizSessionRecord) -> None:
        """Insert a new record; raises ``SessionConflict`` if one already exists."""
        ...

    def save_session(
        self,
        quiz_id: str,
        record: QuizSessionRecord,
        *,
        expected: Optional[QuizSessionRecord] = None,
    ) -> None:
        """Overwrite the stored record.

        When ``expected`` is given the write only applies if the stored
        ``(status, expiry, attempts_used)`` still equal ``expected``'s, and
        raises ``SessionConflict`` otherwise.
        """
        ...

    def list_best_scores(self, quiz_id: str) -> list[Tuple[str, int]]:
        """Return ``(account, best score)`` over completed attempts, one row per account."""
        ...


__all__ = ["CompetitionTrackStore", "QuizStore"]
