import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from challengekit.challenge.config import ChallengeConfig, load_config
from challengekit.challenge.errors import ValidationError
from challengekit.challenge.types import CompetitionPhase, CompetitionTrackRef


def raw_config(**overrides):
    raw = {
        "competitions": ["image-seg", "speech"],
        "competition_phase": "final",
        "competition_success_status": "success",
        "competition_success_score": 50,
        "quiz": {
            "quiz_id": "ai-quiz",
            "question_pool_id": "pool",
            "timeout_minutes": 30,
            "max_attempts_per_day": 3,
            "choice_count": 3,
            "choice_pool_size": 6,
            "choice_points": 10,
            "completion_count": 2,
            "completion_pool_size": 4,
            "completion_points": 20,
        },
        "banner": "Spring challenge",
    }
    raw.update(overrides)
    return raw


class ChallengeConfigTests(unittest.TestCase):
    def test_from_dict(self):
        config = ChallengeConfig.from_dict(raw_config())

        self.assertEqual(
            config.competitions,
            (
                CompetitionTrackRef("image-seg", CompetitionPhase.FINAL),
                CompetitionTrackRef("speech", CompetitionPhase.FINAL),
            ),
        )
        self.assertEqual(config.competition_success_score, 50)
        self.assertEqual(config.quiz.question_count, 5)
        self.assertEqual(config.timezone, "UTC")
        self.assertEqual(config.extras, {"banner": "Spring challenge"})
        self.assertEqual(str(config.competitions[0]), "image-seg/final")

    def test_expiry_includes_grace_period(self):
        config = ChallengeConfig.from_dict(raw_config())
        self.assertEqual(config.quiz.expiry_from(1_000), 1_000 + 40 * 60)

    def test_missing_key(self):
        raw = raw_config()
        del raw["quiz"]["choice_points"]
        with self.assertRaises(ValidationError):
            ChallengeConfig.from_dict(raw)

    def test_invalid_values(self):
        cases = {
            "bad phase": raw_config(competition_phase="semi"),
            "bad number": raw_config(competition_success_score="lots"),
            "negative score": raw_config(competition_success_score=-1),
            "duplicate track": raw_config(competitions=["a", "a"]),
        }
        for label, raw in cases.items():
            with self.subTest(label):
                with self.assertRaises(ValidationError):
                    ChallengeConfig.from_dict(raw)

    def test_pool_must_exceed_count(self):
        raw = raw_config()
        raw["quiz"]["choice_pool_size"] = 3
        with self.assertRaises(ValidationError):
            ChallengeConfig.from_dict(raw)

    def test_empty_block_needs_no_pool(self):
        raw = raw_config()
        raw["quiz"].update(completion_count=0, completion_pool_size=0)

        quiz = ChallengeConfig.from_dict(raw).quiz
        self.assertEqual(quiz.question_count, 3)

        raw["quiz"].update(choice_count=0, choice_pool_size=0)
        with self.assertRaises(ValidationError):
            ChallengeConfig.from_dict(raw)

    def test_attempt_budget_and_timeout_positive(self):
        for key in ("max_attempts_per_day", "timeout_minutes"):
            with self.subTest(key):
                raw = raw_config()
                raw["quiz"][key] = 0
                with self.assertRaises(ValidationError):
                    ChallengeConfig.from_dict(raw)


@patch("challengekit.challenge.config.load_dotenv")
class LoadConfigTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / "challenge.json"
        self.path.write_text(json.dumps(raw_config()), encoding="utf-8")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_loads_file_from_environment(self, mock_load_dotenv):
        env = {"CHALLENGE_CONFIG_FILE": str(self.path), "CHALLENGE_TIMEZONE": "Asia/Tokyo"}
        with patch.dict(os.environ, env, clear=True):
            config = load_config()
        self.assertEqual(config.quiz.quiz_id, "ai-quiz")
        self.assertEqual(config.timezone, "Asia/Tokyo")

    def test_explicit_path(self, mock_load_dotenv):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(load_config(self.path).timezone, "UTC")

    def test_unset_or_unreadable(self, mock_load_dotenv):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValidationError):
                load_config()
            with self.assertRaises(ValidationError):
                load_config(Path(self.tmpdir.name) / "missing.json")

    def test_not_json(self, mock_load_dotenv):
        self.path.write_text("competitions: []", encoding="utf-8")
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValidationError):
                load_config(self.path)


if __name__ == "__main__":
    unittest.main()
