"""Seed the development database with a question pool and a few competitors."""

from __future__ import annotations

import json
import os
from pathlib import Path

from cryptography.fernet import Fernet

from challengekit.challenge.cipher import AnswerCipher
from challengekit.challenge.config import ChallengeConfig
from challengekit.challenge.types import (
    ChoiceQuestion,
    CompetitorInfo,
    CompletionQuestion,
)
from challengekit.db.engine import get_sessionmaker, make_engine
from challengekit.models import Base
from challengekit.storage.sql import SqlCompetitionTrackStore
from challengekit.workflows import register_competitor, seed_question_pool

DEV_CONFIG = {
    "competitions": ["text-classification", "image-segmentation"],
    "competition_phase": "preliminary",
    "competition_success_status": "success",
    "competition_success_score": 20,
    "timezone": "Asia/Shanghai",
    "quiz": {
        "quiz_id": "ai-quiz",
        "question_pool_id": "dev-pool",
        "timeout_minutes": 30,
        "max_attempts_per_day": 3,
        "choice_count": 5,
        "choice_pool_size": 21,
        "choice_points": 4,
        "completion_count": 2,
        "completion_pool_size": 11,
        "completion_points": 10,
    },
}


def _choices(n: int) -> list[ChoiceQuestion]:
    return [
        ChoiceQuestion(
            desc=f"Sample choice question #{i}",
            options=("A", "B", "C", "D"),
            answer="ABCD"[i % 4],
        )
        for i in range(1, n + 1)
    ]


def _completions(n: int) -> list[CompletionQuestion]:
    return [
        CompletionQuestion(desc=f"Sample completion question #{i}", answer=f"answer-{i}")
        for i in range(1, n + 1)
    ]


def main() -> None:
    """Recreate the schema and load the development fixtures."""
    engine = make_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    config = ChallengeConfig.from_dict(DEV_CONFIG)
    quiz = config.quiz

    with Session.begin() as session:
        # The pool must hold every index in [1, pool_size).
        seed_question_pool(
            session,
            quiz.question_pool_id,
            _choices(quiz.choice_pool_size - 1),
            _completions(quiz.completion_pool_size - 1),
        )

        alice = CompetitorInfo(account="alice", name="Alice", city="Hangzhou")
        bob = CompetitorInfo(account="bob", name="Bob", city="Shenzhen")
        # Registration never seals answers; a throwaway key avoids requiring
        # CHALLENGE_ANSWER_KEY just to seed.
        cipher = AnswerCipher(Fernet(Fernet.generate_key()))
        for info in (alice, bob):
            register_competitor(session, config, info, cipher=cipher)

        tracks = SqlCompetitionTrackStore(session)
        tracks.record_submission(config.competitions[0], "alice", "sub-1", "success", 0.93)
        tracks.record_submission(config.competitions[1], "alice", "sub-2", "failed")

    out = Path(os.getenv("CHALLENGE_CONFIG_FILE", "challenge.dev.json"))
    out.write_text(json.dumps(DEV_CONFIG, indent=2), encoding="utf-8")
    print(f"Seeded {engine.url.render_as_string(hide_password=True)}; config written to {out}")


if __name__ == "__main__":
    main()
