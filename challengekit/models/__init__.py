from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .competition import CompetitionCompetitor, CompetitionSubmission  # noqa: F401
from .quiz import (  # noqa: F401
    PoolChoiceQuestion,
    PoolCompletionQuestion,
    QuizCompetitor,
    QuizSession,
)

__all__ = [
    "Base",
    "CompetitionCompetitor",
    "CompetitionSubmission",
    "PoolChoiceQuestion",
    "PoolCompletionQuestion",
    "QuizCompetitor",
    "QuizSession",
]
