"""Coordinates registration and eligibility across every challenge track."""

from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from ..clock import Clock, SystemClock
from .cipher import AnswerCipher
from .config import ChallengeConfig
from .errors import ChallengeError, CollaboratorError, RegistrationError
from .scoring import LeaderboardEntry, ScoreCalculator, ScoreOrder, rank_entries
from .session import QuestionSessionStateMachine
from .stores import CompetitionTrackStore, QuizStore
from .types import (
    CombinedEligibilityResult,
    CompetitionTrackRef,
    CompetitorInfo,
    QuestionSet,
    SessionSnapshot,
)

logger = logging.getLogger(__name__)


class ChallengeOrchestrator:
    """Entry point combining the competition tracks and the quiz track.

    Registration and eligibility fan out over ``config.competitions`` in
    configured order, sequentially, and then the quiz track.
    """

    def __init__(
        self,
        config: ChallengeConfig,
        competition_store: CompetitionTrackStore,
        quiz_store: QuizStore,
        cipher: AnswerCipher,
        *,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.tracks: tuple[CompetitionTrackRef, ...] = tuple(config.competitions)
        self._competitions = competition_store
        self._quiz = quiz_store
        self.calculator = ScoreCalculator.from_config(config)
        self.sessions = QuestionSessionStateMachine(
            config.quiz,
            quiz_store,
            cipher,
            self.calculator,
            clock=clock or SystemClock(config.timezone),
            rng=rng,
        )

    @property
    def quiz_id(self) -> str:
        return self.config.quiz.quiz_id

    def register_competitor(self, info: CompetitorInfo) -> None:
        """Write ``info`` into every competition track and then the quiz track.

        Writes run in a fixed order and stop at the first failure. Earlier
        writes are not rolled back.

        Raises
        ------
        AlreadyRegistered
            Or any other actionable refusal, re-raised as is with
            ``completed`` and ``failed`` attached.
        RegistrationError
            Wrapping an operational failure, with the targets already written
            in ``completed`` so that a reconciliation pass can resume.
        """
        completed: list[object] = []
        targets: list[object] = [*self.tracks, self.quiz_id]
        for target in targets:
            try:
                if isinstance(target, CompetitionTrackRef):
                    self._competitions.save_competitor(target, info)
                else:
                    self._quiz.save_competitor(self.quiz_id, info)
            except ChallengeError as exc:
                if exc.actionable:
                    exc.completed = tuple(completed)
                    exc.failed = target
                    logger.info(
                        f"Registration of {info.account} refused at {target}: {exc}"
                    )
                    raise
                logger.error(
                    f"Registration of {info.account} failed at {target} "
                    f"after {len(completed)} of {len(targets)} writes: {exc}"
                )
                raise RegistrationError(
                    f"registration stopped at {target}: {exc}",
                    completed=completed,
                    failed=target,
                ) from exc
            completed.append(target)

        logger.debug(f"Registered {info.account} in {len(targets)} tracks")

    def get_combined_eligibility(self, account: str) -> CombinedEligibilityResult:
        """Aggregate eligibility and score over all tracks.

        Competition tracks are checked in order and the check stops at the
        first track the competitor is not registered in; the score collected
        so far is still reported. The competitor is eligible only once every
        competition track passed and the quiz track holds at least one
        completed attempt, whose best score is added to the total.

        Raises
        ------
        CollaboratorError
            When a lookup fails. The partial result is attached as
            ``partial``.
        """
        total = 0
        for track in self.tracks:
            try:
                registered, submissions = (
                    self._competitions.get_registration_and_submissions(track, account)
                )
            except CollaboratorError as exc:
                exc.partial = CombinedEligibilityResult(False, total)
                raise
            if not registered:
                return CombinedEligibilityResult(is_eligible=False, total_score=total)
            total += self.calculator.grade_competition_track(submissions)

        try:
            registered, scores = self._quiz.get_competitor_and_scores(self.quiz_id, account)
        except CollaboratorError as exc:
            exc.partial = CombinedEligibilityResult(False, total)
            raise

        if registered and scores:
            return CombinedEligibilityResult(
                is_eligible=True, total_score=total + max(scores)
            )
        return CombinedEligibilityResult(is_eligible=False, total_score=total)

    def start_quiz_attempt(self, account: str) -> QuestionSet:
        return self.sessions.start_or_resume_attempt(account)

    def submit_quiz_answer(
        self,
        account: str,
        attempt_number: int,
        sealed_token: str,
        results: Sequence[str],
    ) -> int:
        return self.sessions.submit_answer(account, attempt_number, sealed_token, results)

    def quiz_session(self, account: str) -> SessionSnapshot:
        return self.sessions.snapshot(account)

    def quiz_leaderboard(
        self,
        *,
        limit: Optional[int] = None,
        order: Optional[ScoreOrder] = None,
    ) -> list[LeaderboardEntry]:
        """Rank competitors by their best quiz score, ties at the cutoff included."""
        entries = [
            LeaderboardEntry(account=account, score=score)
            for account, score in self._quiz.list_best_scores(self.quiz_id)
        ]
        return rank_entries(entries, order, limit=limit)


__all__ = ["ChallengeOrchestrator"]
