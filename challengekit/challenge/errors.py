"""Error taxonomy for the challenge engine.

Every failure surfaced by the engine is a :class:`ChallengeError`. Callers
that render messages to competitors should check :attr:`ChallengeError.actionable`:
``True`` means "you cannot act right now" (expected, user-facing), while
:class:`CollaboratorError` is operational and should be logged and shown as a
generic failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from .types import CombinedEligibilityResult


class ChallengeError(Exception):
    """Base class for all errors raised by the challenge engine."""

    actionable: bool = False


class ValidationError(ChallengeError, ValueError):
    """Malformed configuration or input (e.g. unsupported pool size)."""


class NotFound(ChallengeError, LookupError):
    """No session, registration or question record exists."""


class AlreadyRegistered(ChallengeError):
    """The competitor already has a registration for the target.

    Raised unwrapped by a registration fan-out, which attaches the targets
    written before it as ``completed`` and the refusing target as ``failed``.
    """

    actionable = True


class ActionNotAllowed(ChallengeError):
    """The competitor cannot perform the requested action right now."""

    actionable = True


class AttemptsExhausted(ActionNotAllowed):
    """The daily attempt budget is used up."""


class AttemptInProgress(ActionNotAllowed):
    """A live attempt already owns today's slot."""


class AlreadySubmitted(ActionNotAllowed):
    """The current attempt has already been graded."""


class SessionTimedOut(ActionNotAllowed):
    """The submission arrived after the attempt expired."""


class AttemptNumberMismatch(ActionNotAllowed):
    """The submission was computed against a superseded question set."""


class NoActiveSession(NotFound):
    """No attempt has been started today."""

    actionable = True


class ShapeMismatch(ChallengeError):
    """Submitted results do not line up with the sealed answer key."""


class CryptoError(ChallengeError):
    """A sealed token is malformed, tampered with or sealed under another key."""


class CollaboratorError(ChallengeError):
    """Wraps a storage, HTTP or crypto transport failure.

    Attributes
    ----------
    partial : Optional[CombinedEligibilityResult]
        Result accumulated before the failure, when the failing operation
        was an eligibility lookup.
    """

    def __init__(
        self,
        message: str,
        *,
        partial: Optional["CombinedEligibilityResult"] = None,
    ) -> None:
        super().__init__(message)
        self.partial = partial


class SessionConflict(CollaboratorError):
    """A conditional write on a quiz session lost a race."""


class RegistrationError(CollaboratorError):
    """A registration fan-out stopped part way through.

    Attributes
    ----------
    completed : tuple
        Targets (track references and finally the quiz id) that were written
        before the failure, in write order.
    failed : Any
        The target whose write raised.
    """

    def __init__(self, message: str, *, completed: Sequence[Any], failed: Any) -> None:
        super().__init__(message)
        self.completed = tuple(completed)
        self.failed = failed


__all__ = [
    "ActionNotAllowed",
    "AlreadyRegistered",
    "AlreadySubmitted",
    "AttemptInProgress",
    "AttemptNumberMismatch",
    "AttemptsExhausted",
    "ChallengeError",
    "CollaboratorError",
    "CryptoError",
    "NoActiveSession",
    "NotFound",
    "RegistrationError",
    "SessionConflict",
    "SessionTimedOut",
    "ShapeMismatch",
    "ValidationError",
]
