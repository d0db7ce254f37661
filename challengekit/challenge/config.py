"""Static challenge configuration and its validation."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

from dotenv import load_dotenv

from .errors import ValidationError
from .types import CompetitionPhase, CompetitionTrackRef

logger = logging.getLogger(__name__)

# Extra grace given on top of the advertised timeout before an attempt expires.
EXPIRY_GRACE_MINUTES = 10


@dataclass(frozen=True)
class QuestionSetConfig:
    """Shape and scoring of the daily quiz.

    Attributes
    ----------
    quiz_id : str
        Identifier of the quiz track.
    question_pool_id : str
        Pool the questions are drawn from.
    timeout_minutes : int
        Advertised time limit of one attempt.
    max_attempts_per_day : int
        Attempt budget per competitor per day bucket.
    choice_count, completion_count : int
        Questions drawn per attempt from each pool.
    choice_pool_size, completion_pool_size : int
        Exclusive upper bound of the pool indices; indices are drawn from
        ``[1, pool_size)``.
    choice_points, completion_points : int
        Points awarded per correct answer.
    """

    quiz_id: str
    question_pool_id: str
    timeout_minutes: int
    max_attempts_per_day: int
    choice_count: int
    choice_pool_size: int
    choice_points: int
    completion_count: int
    completion_pool_size: int
    completion_points: int

    @property
    def question_count(self) -> int:
        return self.choice_count + self.completion_count

    def expiry_from(self, now: int) -> int:
        """Return the expiry (epoch seconds) of an attempt started at ``now``."""
        return now + (self.timeout_minutes + EXPIRY_GRACE_MINUTES) * 60

    def validate(self) -> None:
        """Raise :class:`ValidationError` when the configuration is unusable."""
        if not self.quiz_id:
            raise ValidationError("quiz_id must not be empty")
        if not self.question_pool_id:
            raise ValidationError("question_pool_id must not be empty")
        if self.timeout_minutes <= 0:
            raise ValidationError("timeout_minutes must be positive")
        if self.max_attempts_per_day < 1:
            raise ValidationError("max_attempts_per_day must be at least 1")
        for label, count, pool_size, points in (
            ("choice", self.choice_count, self.choice_pool_size, self.choice_points),
            (
                "completion",
                self.completion_count,
                self.completion_pool_size,
                self.completion_points,
            ),
        ):
            if count < 0:
                raise ValidationError(f"{label}_count must not be negative")
            if points < 0:
                raise ValidationError(f"{label}_points must not be negative")
            # Indices come from [1, pool_size), so the pool holds pool_size - 1 questions.
            if count and count >= pool_size:
                raise ValidationError(
                    f"{label}_pool_size ({pool_size}) must exceed {label}_count ({count})"
                )
        if self.question_count == 0:
            raise ValidationError("a quiz needs at least one question")


@dataclass(frozen=True)
class ChallengeConfig:
    """Everything the orchestrator needs, loaded once at start-up."""

    competitions: Tuple[CompetitionTrackRef, ...]
    quiz: QuestionSetConfig
    competition_success_status: str = "success"
    competition_success_score: int = 0
    timezone: str = "UTC"
    extras: Mapping[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        seen = set()
        for track in self.competitions:
            if not track.id:
                raise ValidationError("competition ids must not be empty")
            if track in seen:
                raise ValidationError(f"competition {track} is configured twice")
            seen.add(track)
        if not self.competition_success_status:
            raise ValidationError("competition_success_status must not be empty")
        if self.competition_success_score < 0:
            raise ValidationError("competition_success_score must not be negative")
        self.quiz.validate()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ChallengeConfig":
        """Build and validate a config from a parsed JSON document."""
        try:
            quiz_raw = raw["quiz"]
            quiz = QuestionSetConfig(
                quiz_id=str(quiz_raw["quiz_id"]),
                question_pool_id=str(quiz_raw["question_pool_id"]),
                timeout_minutes=int(quiz_raw["timeout_minutes"]),
                max_attempts_per_day=int(quiz_raw["max_attempts_per_day"]),
                choice_count=int(quiz_raw["choice_count"]),
                choice_pool_size=int(quiz_raw["choice_pool_size"]),
                choice_points=int(quiz_raw["choice_points"]),
                completion_count=int(quiz_raw["completion_count"]),
                completion_pool_size=int(quiz_raw["completion_pool_size"]),
                completion_points=int(quiz_raw["completion_points"]),
            )
            phase = CompetitionPhase(raw.get("competition_phase", "preliminary"))
            competitions = tuple(
                CompetitionTrackRef(id=str(cid), phase=phase)
                for cid in raw.get("competitions", [])
            )
            config = cls(
                competitions=competitions,
                quiz=quiz,
                competition_success_status=str(
                    raw.get("competition_success_status", "success")
                ),
                competition_success_score=int(raw.get("competition_success_score", 0)),
                timezone=str(raw.get("timezone", "UTC")),
                extras={
                    k: v
                    for k, v in raw.items()
                    if k
                    not in {
                        "quiz",
                        "competitions",
                        "competition_phase",
                        "competition_success_status",
                        "competition_success_score",
                        "timezone",
                    }
                },
            )
        except KeyError as exc:
            raise ValidationError(f"missing configuration key: {exc.args[0]}") from exc
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"invalid configuration value: {exc}") from exc

        config.validate()
        return config


def load_config(path: Optional[Union[str, Path]] = None) -> ChallengeConfig:
    """Load the challenge configuration from a JSON file.

    The file location defaults to ``CHALLENGE_CONFIG_FILE``; a
    ``CHALLENGE_TIMEZONE`` variable overrides the file's ``timezone`` entry.
    """
    load_dotenv()
    location = path or os.getenv("CHALLENGE_CONFIG_FILE")
    if not location:
        raise ValidationError("Environment variable 'CHALLENGE_CONFIG_FILE' is not set")

    try:
        with open(location, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except OSError as exc:
        raise ValidationError(f"cannot read challenge config {location}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValidationError(f"challenge config {location} is not valid JSON") from exc

    if not isinstance(raw, dict):
        raise ValidationError("challenge config must be a JSON object")

    tz_override = os.getenv("CHALLENGE_TIMEZONE")
    if tz_override:
        raw = {**raw, "timezone": tz_override}

    config = ChallengeConfig.from_dict(raw)
    logger.debug(
        f"Loaded challenge config from {location}: "
        f"{len(config.competitions)} competition tracks, quiz {config.quiz.quiz_id}"
    )
    return config


__all__ = [
    "EXPIRY_GRACE_MINUTES",
    "ChallengeConfig",
    "QuestionSetConfig",
    "load_config",
]
