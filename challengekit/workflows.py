from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy.orm import Session

from .challenge.cipher import AnswerCipher
from .challenge.config import ChallengeConfig
from .challenge.orchestrator import ChallengeOrchestrator
from .challenge.scoring import LeaderboardEntry, ScoreOrder
from .challenge.types import (
    ChoiceQuestion,
    CombinedEligibilityResult,
    CompetitorInfo,
    CompletionQuestion,
    QuestionSet,
    SessionSnapshot,
)
from .storage.sql import SqlCompetitionTrackStore, SqlQuizStore

if TYPE_CHECKING:
    from .challenge.stores import CompetitionTrackStore
    from .clock import Clock

logger = logging.getLogger(__name__)


def build_orchestrator(
    session: Session,
    config: ChallengeConfig,
    *,
    cipher: Optional[AnswerCipher] = None,
    clock: Optional["Clock"] = None,
    competition_store: Optional["CompetitionTrackStore"] = None,
) -> ChallengeOrchestrator:
    """Wire a :class:`ChallengeOrchestrator` to ``session``.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session. The quiz store always uses it; the
        competition tracks use it unless ``competition_store`` is given.
    config : ChallengeConfig
        Static challenge configuration.
    cipher : Optional[AnswerCipher]
        Answer cipher. If not provided, one keyed by ``CHALLENGE_ANSWER_KEY``
        is created.
    clock : Optional[Clock]
        Time source; defaults to the wall clock in ``config.timezone``.
    competition_store : Optional[CompetitionTrackStore]
        Alternative competition-track backend, e.g.
        :class:`~challengekit.remote.api.CompetitionServiceClient`.
    """
    return ChallengeOrchestrator(
        config,
        competition_store or SqlCompetitionTrackStore(session),
        SqlQuizStore(session),
        cipher or AnswerCipher(),
        clock=clock,
    )


def register_competitor(
    session: Session,
    config: ChallengeConfig,
    info: CompetitorInfo,
    **kwargs,
) -> None:
    """Register ``info`` in every competition track and the quiz track.

    The caller owns the transaction. With the default SQL stores a failure
    part way through leaves nothing behind once the caller rolls back; with a
    remote competition store, writes already accepted by the service stay
    and are listed in ``completed`` on the raised
    :class:`~challengekit.challenge.errors.AlreadyRegistered` or
    :class:`~challengekit.challenge.errors.RegistrationError`.
    """
    build_orchestrator(session, config, **kwargs).register_competitor(info)
    session.flush()


def get_combined_eligibility(
    session: Session,
    config: ChallengeConfig,
    account: str,
    **kwargs,
) -> CombinedEligibilityResult:
    """Return the competitor's eligibility and total score across all tracks."""
    return build_orchestrator(session, config, **kwargs).get_combined_eligibility(account)


def start_quiz_attempt(
    session: Session,
    config: ChallengeConfig,
    account: str,
    **kwargs,
) -> QuestionSet:
    """Issue today's next question set for ``account``.

    The returned set carries the sealed answer token and the attempt number
    that :func:`submit_quiz_answer` must echo back. Commit the session
    afterwards so the consumed attempt is recorded.

    Raises
    ------
    AttemptsExhausted
        When the daily budget is used up.
    AttemptInProgress
        When a live attempt already exists.
    """
    question_set = build_orchestrator(session, config, **kwargs).start_quiz_attempt(account)
    session.flush()
    return question_set


def submit_quiz_answer(
    session: Session,
    config: ChallengeConfig,
    account: str,
    attempt_number: int,
    sealed_token: str,
    results: Sequence[str],
    **kwargs,
) -> int:
    """Grade the live attempt of ``account`` and return its score.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    config : ChallengeConfig
        Static challenge configuration.
    account : str
        Competitor account.
    attempt_number : int
        ``QuestionSet.attempt`` of the set being answered.
    sealed_token : str
        ``QuestionSet.answer`` of the set being answered.
    results : Sequence[str]
        Choice answers followed by completion answers.

    Returns
    -------
    int
        Score of this attempt.
    """
    score = build_orchestrator(session, config, **kwargs).submit_quiz_answer(
        account, attempt_number, sealed_token, results
    )
    session.flush()
    return score


def get_quiz_session(
    session: Session,
    config: ChallengeConfig,
    account: str,
    **kwargs,
) -> SessionSnapshot:
    return build_orchestrator(session, config, **kwargs).quiz_session(account)


def quiz_leaderboard(
    session: Session,
    config: ChallengeConfig,
    *,
    limit: Optional[int] = None,
    smaller_is_better: bool = False,
    **kwargs,
) -> list[LeaderboardEntry]:
    """Rank the quiz track by best score; entries tied at the cutoff are kept."""
    return build_orchestrator(session, config, **kwargs).quiz_leaderboard(
        limit=limit, order=ScoreOrder(smaller_is_better=smaller_is_better)
    )


def seed_question_pool(
    session: Session,
    pool_id: str,
    choices: Sequence[ChoiceQuestion],
    completions: Sequence[CompletionQuestion],
) -> None:
    """Load a question pool. Indices start at 1, matching the sampler's range."""
    SqlQuizStore(session).add_questions(pool_id, choices, completions)
    logger.debug(
        f"Seeded pool {pool_id} with {len(choices)} choice and "
        f"{len(completions)} completion questions"
    )
