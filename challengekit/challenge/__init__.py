"""Timed daily quiz and multi-track challenge engine."""

from .cipher import AnswerCipher
from .config import ChallengeConfig, QuestionSetConfig, load_config
from .orchestrator import ChallengeOrchestrator
from .sampler import sample_distinct
from .scoring import (
    LeaderboardEntry,
    ScoreCalculator,
    ScoreOrder,
    is_better,
    rank_entries,
)
from .session import QuestionSessionStateMachine, session_state

__all__ = [
    "AnswerCipher",
    "ChallengeConfig",
    "ChallengeOrchestrator",
    "LeaderboardEntry",
    "QuestionSessionStateMachine",
    "QuestionSetConfig",
    "ScoreCalculator",
    "ScoreOrder",
    "is_better",
    "load_config",
    "rank_entries",
    "sample_distinct",
    "session_state",
]
