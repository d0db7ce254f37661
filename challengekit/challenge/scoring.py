"""Scoring rules for quiz attempts and competition tracks."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable, Optional, Sequence

from .config import ChallengeConfig, QuestionSetConfig
from .errors import ShapeMismatch, ValidationError
from .types import SubmissionInfo


def is_better(a: float, b: float, smaller_is_better: bool) -> bool:
    """Return ``True`` when score ``a`` ranks at least as high as ``b``.

    Ties count as better. ``smaller_is_better`` flips the direction, e.g. for
    contests ranked by elapsed time.
    """
    if smaller_is_better:
        return a <= b
    return a >= b


@dataclass(frozen=True)
class ScoreOrder:
    """Ranking direction of a leaderboard."""

    smaller_is_better: bool = False

    def is_better(self, a: float, b: float) -> bool:
        return is_better(a, b, self.smaller_is_better)

    def compare(self, a: float, b: float) -> int:
        """``cmp``-style comparison where better scores sort first."""
        if a == b:
            return 0
        return -1 if self.is_better(a, b) else 1


@dataclass(frozen=True)
class LeaderboardEntry:
    """A competitor's ranked score.

    Attributes
    ----------
    account : str
        Competitor account.
    score : float
        Score being ranked.
    rank : int
        1-based rank; tied scores share a rank.
    """

    account: str
    score: float
    rank: int = 0


class ScoreCalculator:
    """Point rules for the quiz track and the competition tracks."""

    def __init__(
        self,
        quiz: QuestionSetConfig,
        *,
        success_status: str = "success",
        success_score: int = 0,
    ) -> None:
        self.quiz = quiz
        self.success_status = success_status
        self.success_score = success_score

    @classmethod
    def from_config(cls, config: ChallengeConfig) -> "ScoreCalculator":
        return cls(
            config.quiz,
            success_status=config.competition_success_status,
            success_score=config.competition_success_score,
        )

    def grade_quiz(self, results: Sequence[str], answers: Sequence[str]) -> int:
        """Grade one attempt.

        ``results`` and ``answers`` hold the choice answers followed by the
        completion answers. Positions ``[0, choice_count)`` earn
        ``choice_points`` each when they match, positions
        ``[choice_count, choice_count + completion_count)`` earn
        ``completion_points``.

        Raises
        ------
        ShapeMismatch
            If the two sequences differ in length or are shorter than the
            configured question count.
        """
        if len(results) != len(answers):
            raise ShapeMismatch(
                f"expected {len(answers)} results, received {len(results)}"
            )
        cfg = self.quiz
        if len(answers) < cfg.question_count:
            raise ShapeMismatch(
                f"answer key holds {len(answers)} entries, "
                f"the quiz has {cfg.question_count} questions"
            )

        score = 0
        for i in range(cfg.choice_count):
            if results[i] == answers[i]:
                score += cfg.choice_points

        for i in range(cfg.choice_count, cfg.question_count):
            if results[i] == answers[i]:
                score += cfg.completion_points

        return score

    def grade_competition_track(self, submissions: Iterable[SubmissionInfo]) -> int:
        """Binary pass/fail per track: the success score once any submission succeeded."""
        for submission in submissions:
            if submission.status == self.success_status:
                return self.success_score
        return 0


def rank_entries(
    entries: Iterable[LeaderboardEntry],
    order: Optional[ScoreOrder] = None,
    *,
    limit: Optional[int] = None,
) -> list[LeaderboardEntry]:
    """Return ``entries`` ranked best first, including any ties at the cutoff.

    Equal scores keep their input order and share a rank.
    """
    if limit is not None and limit < 0:
        raise ValidationError("limit must be non-negative when provided")

    active = order or ScoreOrder()
    ordered = sorted(
        entries, key=cmp_to_key(lambda x, y: active.compare(x.score, y.score))
    )

    ranked: list[LeaderboardEntry] = []
    previous: Optional[LeaderboardEntry] = None
    for position, entry in enumerate(ordered, start=1):
        tied = previous is not None and previous.score == entry.score
        if limit is not None and len(ranked) >= limit and not tied:
            break
        rank = ranked[-1].rank if tied else position
        previous = LeaderboardEntry(account=entry.account, score=entry.score, rank=rank)
        ranked.append(previous)

    return ranked


__all__ = [
    "LeaderboardEntry",
    "ScoreCalculator",
    "ScoreOrder",
    "is_better",
    "rank_entries",
]
