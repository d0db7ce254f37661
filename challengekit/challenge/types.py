"""Value objects shared by the challenge engine and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class CompetitionPhase(str, Enum):
    """Phase of a competition track a competitor registers for."""

    PRELIMINARY = "preliminary"
    FINAL = "final"


class QuizStatus(str, Enum):
    """Persisted status of a daily quiz attempt."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SessionState(str, Enum):
    """Lifecycle state of today's attempt, derived from the stored record."""

    NO_SESSION = "no_session"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class CompetitionTrackRef:
    """Reference to one competition track a competitor can enrol in."""

    id: str
    phase: CompetitionPhase = CompetitionPhase.PRELIMINARY

    def __str__(self) -> str:
        return f"{self.id}/{self.phase.value}"


@dataclass(frozen=True)
class CompetitorInfo:
    """Registration record submitted by a competitor.

    Attributes
    ----------
    account : str
        Account name of the competitor; the registration key in every track.
    name, city, email, phone, identity, province : str
        Contact and identity details, stored verbatim.
    detail : dict[str, str]
        Free-form extra fields collected by the registration form.
    """

    account: str
    name: str
    city: str = ""
    email: str = ""
    phone: str = ""
    identity: str = ""
    province: str = ""
    detail: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SubmissionInfo:
    """A submission made to a competition track."""

    id: str
    status: str
    score: float = 0.0


@dataclass(frozen=True)
class QuizSessionRecord:
    """The only quiz state persisted server-side.

    Keyed by ``(quiz_id, account, date)``; never holds the answer key.
    ``expiry`` is expressed in epoch seconds. ``graded_attempts`` counts the
    submissions graded that day, so a day whose latest attempt is still open
    keeps counting as a submission once any earlier attempt was graded.
    """

    account: str
    date: str
    status: QuizStatus
    expiry: int
    attempts_used: int = 0
    best_score: int = 0
    graded_attempts: int = 0

    def cas_key(self) -> Tuple[QuizStatus, int, int]:
        """Return the fields a conditional update compares against."""
        return (self.status, self.expiry, self.attempts_used)

    def evolve(self, **changes: Any) -> "QuizSessionRecord":
        return replace(self, **changes)


@dataclass(frozen=True)
class ChoiceQuestion:
    desc: str
    options: Tuple[str, ...]
    answer: str


@dataclass(frozen=True)
class CompletionQuestion:
    desc: str
    answer: str


@dataclass(frozen=True)
class ChoiceQuestionView:
    """Client-facing choice question; carries no answer."""

    desc: str
    options: Tuple[str, ...]


@dataclass(frozen=True)
class QuestionSet:
    """Question set handed to the competitor for one attempt.

    Attributes
    ----------
    choices : tuple[ChoiceQuestionView, ...]
        Choice questions in grading order.
    completions : tuple[str, ...]
        Completion question descriptions in grading order.
    answer : str
        Sealed answer token that must be echoed back on submission.
    attempt : int
        Attempt number the submission must quote.
    """

    choices: Tuple[ChoiceQuestionView, ...]
    completions: Tuple[str, ...]
    answer: str
    attempt: int = 0

    def to_json(self) -> Dict[str, Any]:
        return {
            "choices": [
                {"desc": c.desc, "options": list(c.options)} for c in self.choices
            ],
            "completions": list(self.completions),
            "answer": self.answer,
            "times": self.attempt,
        }


@dataclass(frozen=True)
class CombinedEligibilityResult:
    """Eligibility and score aggregated over every track. Never persisted."""

    is_eligible: bool = False
    total_score: int = 0


@dataclass(frozen=True)
class SessionSnapshot:
    """Today's session state as seen at ``now``."""

    state: SessionState
    record: Optional[QuizSessionRecord]
    now: int


__all__ = [
    "ChoiceQuestion",
    "ChoiceQuestionView",
    "CombinedEligibilityResult",
    "CompetitionPhase",
    "CompetitionTrackRef",
    "CompetitorInfo",
    "CompletionQuestion",
    "QuestionSet",
    "QuizSessionRecord",
    "QuizStatus",
    "SessionSnapshot",
    "SessionState",
    "SubmissionInfo",
]
