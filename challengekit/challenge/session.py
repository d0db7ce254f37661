"""Lifecycle of one competitor's daily quiz attempt."""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Optional, Sequence

from ..clock import Clock, SystemClock
from ..db.utils import epoch_to_datetime
from .cipher import AnswerCipher
from .config import QuestionSetConfig
from .errors import (
    AlreadySubmitted,
    AttemptInProgress,
    AttemptNumberMismatch,
    AttemptsExhausted,
    CollaboratorError,
    NoActiveSession,
    NotFound,
    SessionConflict,
    SessionTimedOut,
    ShapeMismatch,
)
from .sampler import sample_distinct
from .scoring import ScoreCalculator
from .stores import QuizStore
from .types import (
    ChoiceQuestionView,
    QuestionSet,
    QuizSessionRecord,
    QuizStatus,
    SessionSnapshot,
    SessionState,
)

logger = logging.getLogger(__name__)


def session_state(record: Optional[QuizSessionRecord], now: int) -> SessionState:
    """Derive the lifecycle state of ``record`` at ``now``."""
    if record is None:
        return SessionState.NO_SESSION
    if record.status == QuizStatus.COMPLETED:
        return SessionState.COMPLETED
    if now < record.expiry:
        return SessionState.IN_PROGRESS
    return SessionState.EXPIRED


class QuestionSessionStateMachine:
    """Issues, times and grades the daily quiz attempts of one quiz track."""

    def __init__(
        self,
        config: QuestionSetConfig,
        store: QuizStore,
        cipher: AnswerCipher,
        calculator: Optional[ScoreCalculator] = None,
        *,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Bind the state machine to a quiz configuration and its collaborators.

        Parameters
        ----------
        config : QuestionSetConfig
            Static quiz configuration.
        store : QuizStore
            Persistence collaborator for questions and session records.
        cipher : AnswerCipher
            Seals the answer key into the question set.
        calculator : Optional[ScoreCalculator], default: None
            Grading rules. Built from ``config`` when omitted.
        clock : Optional[Clock], default: None
            Time source. Defaults to a UTC :class:`SystemClock`.
        rng : Optional[random.Random], default: None
            Randomness for question sampling. Defaults to the process-wide
            generator of :func:`sample_distinct`.
        """
        self.config = config
        self._store = store
        self._cipher = cipher
        self._calculator = calculator or ScoreCalculator(config)
        self._clock = clock or SystemClock()
        self._rng = rng

    @property
    def quiz_id(self) -> str:
        return self.config.quiz_id

    def _load_today(self, account: str, date: str) -> Optional[QuizSessionRecord]:
        try:
            return self._store.get_session(self.quiz_id, account, date)
        except NotFound:
            return None

    def snapshot(self, account: str) -> SessionSnapshot:
        """Return today's session state for ``account`` without mutating anything."""
        now = self._clock.now()
        record = self._load_today(account, self._clock.day_bucket(now))
        return SessionSnapshot(state=session_state(record, now), record=record, now=now)

    def start_or_resume_attempt(self, account: str) -> QuestionSet:
        """Issue a fresh question set for today's next attempt.

        Returns
        -------
        QuestionSet
            Question texts, the sealed answer token and the attempt number
            the submission must quote.

        Raises
        ------
        AttemptsExhausted
            If today's attempt budget is used up.
        AttemptInProgress
            If a live attempt already owns today's slot, including when a
            concurrent request won the race to create or advance it.

        Notes
        -----
        The question set is always generated before the record is written,
        so a generation failure never consumes an attempt.
        """
        now = self._clock.now()
        date = self._clock.day_bucket(now)
        expiry = self.config.expiry_from(now)

        current = self._load_today(account, date)
        if current is None:
            question_set = self._generate()
            record = QuizSessionRecord(
                account=account,
                date=date,
                status=QuizStatus.IN_PROGRESS,
                expiry=expiry,
                attempts_used=1,
                best_score=0,
            )
            try:
                self._store.create_session(self.quiz_id, record)
            except SessionConflict as exc:
                logger.warning(
                    f"Concurrent first attempt for {account} on {date} in quiz {self.quiz_id}"
                )
                raise AttemptInProgress("an attempt is already in progress") from exc
            logger.debug(
                f"Started attempt 1 for {account} on {date}, "
                f"expires {epoch_to_datetime(expiry).isoformat()}"
            )
            return self._with_attempt(question_set, record.attempts_used)

        if current.attempts_used >= self.config.max_attempts_per_day:
            raise AttemptsExhausted(
                f"all {self.config.max_attempts_per_day} attempts for {date} are used"
            )
        if session_state(current, now) is SessionState.IN_PROGRESS:
            raise AttemptInProgress("an attempt is already in progress")

        question_set = self._generate()
        updated = current.evolve(
            status=QuizStatus.IN_PROGRESS,
            expiry=expiry,
            attempts_used=current.attempts_used + 1,
        )
        try:
            self._store.save_session(self.quiz_id, updated, expected=current)
        except SessionConflict as exc:
            logger.warning(
                f"Concurrent retry for {account} on {date} in quiz {self.quiz_id}"
            )
            raise AttemptInProgress("an attempt is already in progress") from exc

        logger.debug(
            f"Started attempt {updated.attempts_used} for {account} on {date}, "
            f"expires {epoch_to_datetime(expiry).isoformat()}"
        )
        return self._with_attempt(question_set, updated.attempts_used)

    def submit_answer(
        self,
        account: str,
        attempt_number: int,
        sealed_token: str,
        results: Sequence[str],
    ) -> int:
        """Grade the live attempt and close it.

        Parameters
        ----------
        account : str
            Competitor account.
        attempt_number : int
            Attempt number returned with the question set.
        sealed_token : str
            The ``answer`` token returned with the question set.
        results : Sequence[str]
            Choice answers followed by completion answers.

        Returns
        -------
        int
            Score of this attempt. The stored best score keeps the maximum.

        Raises
        ------
        NoActiveSession, AlreadySubmitted, SessionTimedOut, AttemptNumberMismatch
            When the attempt cannot be graded; the record is left untouched.
        CryptoError, ShapeMismatch
            When the token or the results are unusable.
        """
        now = self._clock.now()
        date = self._clock.day_bucket(now)

        current = self._load_today(account, date)
        if current is None:
            raise NoActiveSession(f"no attempt was started on {date}")
        if current.status != QuizStatus.IN_PROGRESS:
            raise AlreadySubmitted("this attempt has already been submitted")
        if now > current.expiry:
            raise SessionTimedOut("the attempt has timed out")
        if attempt_number != current.attempts_used:
            raise AttemptNumberMismatch(
                f"attempt {attempt_number} has been superseded by attempt "
                f"{current.attempts_used}"
            )

        answers = self._cipher.unseal(sealed_token)
        if len(results) != len(answers):
            raise ShapeMismatch(
                f"expected {len(answers)} results, received {len(results)}"
            )

        score = self._calculator.grade_quiz(results, answers)
        updated = current.evolve(
            status=QuizStatus.COMPLETED,
            best_score=max(current.best_score, score),
            graded_attempts=current.graded_attempts + 1,
        )
        try:
            self._store.save_session(self.quiz_id, updated, expected=current)
        except SessionConflict as exc:
            raise AlreadySubmitted("this attempt has already been submitted") from exc

        logger.debug(
            f"Graded attempt {current.attempts_used} for {account} on {date}: {score}"
        )
        return score

    def _generate(self) -> QuestionSet:
        cfg = self.config
        choice_idx = sample_distinct(cfg.choice_pool_size, cfg.choice_count, self._rng)
        completion_idx = sample_distinct(
            cfg.completion_pool_size, cfg.completion_count, self._rng
        )

        choices, completions = self._store.get_questions(
            cfg.question_pool_id, choice_idx, completion_idx
        )
        if len(choices) != len(choice_idx) or len(completions) != len(completion_idx):
            raise CollaboratorError(
                f"question pool {cfg.question_pool_id} returned an incomplete set"
            )

        answers = [q.answer for q in choices] + [q.answer for q in completions]
        return QuestionSet(
            choices=tuple(ChoiceQuestionView(desc=q.desc, options=q.options) for q in choices),
            completions=tuple(q.desc for q in completions),
            answer=self._cipher.seal(answers),
        )

    @staticmethod
    def _with_attempt(question_set: QuestionSet, attempt: int) -> QuestionSet:
        return replace(question_set, attempt=attempt)


__all__ = ["QuestionSessionStateMachine", "session_state"]
