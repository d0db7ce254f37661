import random
import unittest

from cryptography.fernet import Fernet

from challengekit.challenge.cipher import AnswerCipher
from challengekit.challenge.config import ChallengeConfig, QuestionSetConfig
from challengekit.challenge.errors import (
    AlreadyRegistered,
    CollaboratorError,
    NotFound,
    RegistrationError,
    SessionConflict,
)
from challengekit.challenge.orchestrator import ChallengeOrchestrator
from challengekit.challenge.scoring import ScoreOrder
from challengekit.challenge.types import (
    ChoiceQuestion,
    CompetitionPhase,
    CompetitionTrackRef,
    CompetitorInfo,
    CompletionQuestion,
    SessionState,
    SubmissionInfo,
)
from challengekit.clock import FrozenClock

A = CompetitionTrackRef("a", CompetitionPhase.PRELIMINARY)
B = CompetitionTrackRef("b", CompetitionPhase.PRELIMINARY)


class DummyCompetitionStore:
    def __init__(self):
        self.competitors = {}
        self.submissions = {}
        self.calls = []
        self.fail_on = None

    def save_competitor(self, track, info):
        self.calls.append(("save", track, info.account))
        if track == self.fail_on:
            raise CollaboratorError(f"{track} unavailable")
        key = (track, info.account)
        if key in self.competitors:
            raise AlreadyRegistered(f"{info.account} in {track}")
        self.competitors[key] = info

    def get_registration_and_submissions(self, track, account):
        self.calls.append(("get", track, account))
        if track == self.fail_on:
            raise CollaboratorError(f"{track} unavailable")
        if (track, account) not in self.competitors:
            return False, []
        return True, list(self.submissions.get((track, account), []))


class DummyQuizStore:
    def __init__(self):
        self.competitors = {}
        self.sessions = {}
        self.scores = {}
        self.pool = {
            "choice": {
                i: ChoiceQuestion(desc=f"q{i}", options=("A", "B"), answer="A")
                for i in range(1, 4)
            },
            "completion": {i: CompletionQuestion(desc=f"c{i}", answer="x") for i in range(1, 3)},
        }

    def save_competitor(self, quiz_id, info):
        if (quiz_id, info.account) in self.competitors:
            raise AlreadyRegistered(info.account)
        self.competitors[(quiz_id, info.account)] = info

    def get_competitor_and_scores(self, quiz_id, account):
        if (quiz_id, account) not in self.competitors:
            return False, []
        return True, list(self.scores.get(account, []))

    def get_questions(self, pool_id, choice_idx, completion_idx):
        return (
            [self.pool["choice"][i] for i in choice_idx],
            [self.pool["completion"][i] for i in completion_idx],
        )

    def get_session(self, quiz_id, account, date):
        try:
            return self.sessions[(quiz_id, account, date)]
        except KeyError:
            raise NotFound(account) from None

    def create_session(self, quiz_id, record):
        key = (quiz_id, record.account, record.date)
        if key in self.sessions:
            raise SessionConflict("exists")
        self.sessions[key] = record

    def save_session(self, quiz_id, record, *, expected=None):
        key = (quiz_id, record.account, record.date)
        current = self.sessions.get(key)
        if current is None:
            raise NotFound(record.account)
        if expected is not None and current.cas_key() != expected.cas_key():
            raise SessionConflict("changed")
        self.sessions[key] = record

    def list_best_scores(self, quiz_id):
        return sorted((account, max(s)) for account, s in self.scores.items() if s)


def make_config(competitions=(A, B)):
    return ChallengeConfig(
        competitions=tuple(competitions),
        quiz=QuestionSetConfig(
            quiz_id="quiz",
            question_pool_id="pool",
            timeout_minutes=30,
            max_attempts_per_day=3,
            choice_count=2,
            choice_pool_size=4,
            choice_points=10,
            completion_count=1,
            completion_pool_size=3,
            completion_points=20,
        ),
        competition_success_status="success",
        competition_success_score=50,
    )


class ChallengeOrchestratorTests(unittest.TestCase):
    def setUp(self):
        self.competitions = DummyCompetitionStore()
        self.quiz = DummyQuizStore()
        self.cipher = AnswerCipher(Fernet(Fernet.generate_key()))
        self.clock = FrozenClock(1_700_000_000)
        self.orchestrator = ChallengeOrchestrator(
            make_config(),
            self.competitions,
            self.quiz,
            self.cipher,
            clock=self.clock,
            rng=random.Random(3),
        )
        self.info = CompetitorInfo(account="alice", name="Alice", city="Kyoto")

    def _register_everywhere(self, account="alice"):
        info = CompetitorInfo(account=account, name=account.title())
        self.orchestrator.register_competitor(info)
        return info

    def test_register_writes_tracks_in_order_then_quiz(self):
        self.orchestrator.register_competitor(self.info)

        self.assertEqual(
            self.competitions.calls,
            [("save", A, "alice"), ("save", B, "alice")],
        )
        self.assertIn(("quiz", "alice"), self.quiz.competitors)

    def test_registration_failure_reports_progress(self):
        self.competitions.fail_on = B

        with self.assertRaises(RegistrationError) as ctx:
            self.orchestrator.register_competitor(self.info)

        self.assertEqual(ctx.exception.completed, (A,))
        self.assertEqual(ctx.exception.failed, B)
        self.assertIsInstance(ctx.exception.__cause__, CollaboratorError)
        # Earlier writes are kept and the quiz track was never reached.
        self.assertIn((A, "alice"), self.competitions.competitors)
        self.assertEqual(self.quiz.competitors, {})

    def test_re_registration_is_rejected(self):
        self.orchestrator.register_competitor(self.info)

        with self.assertRaises(AlreadyRegistered) as ctx:
            self.orchestrator.register_competitor(self.info)
        # A refusal the competitor caused is not an operational failure.
        self.assertNotIsInstance(ctx.exception, CollaboratorError)
        self.assertTrue(ctx.exception.actionable)
        self.assertEqual(ctx.exception.completed, ())
        self.assertEqual(ctx.exception.failed, A)

    def test_partial_re_registration_reports_progress(self):
        self.competitions.competitors[(B, "alice")] = self.info

        with self.assertLogs("challengekit.challenge.orchestrator", level="INFO") as logs:
            with self.assertRaises(AlreadyRegistered) as ctx:
                self.orchestrator.register_competitor(self.info)

        self.assertEqual(ctx.exception.completed, (A,))
        self.assertEqual(ctx.exception.failed, B)
        self.assertTrue(all(r.levelname == "INFO" for r in logs.records))

    def test_eligible_with_quiz_and_successful_tracks(self):
        # Tracks a and b both succeeded, quiz best score 60.
        self._register_everywhere()
        self.competitions.submissions[(A, "alice")] = [SubmissionInfo("1", "success")]
        self.competitions.submissions[(B, "alice")] = [
            SubmissionInfo("2", "failed"),
            SubmissionInfo("3", "success"),
        ]
        self.quiz.scores["alice"] = [40, 60, 20]

        result = self.orchestrator.get_combined_eligibility("alice")

        self.assertTrue(result.is_eligible)
        self.assertEqual(result.total_score, 160)

    def test_quiz_score_alone_makes_registered_competitor_eligible(self):
        self._register_everywhere()
        self.competitions.submissions[(A, "alice")] = [SubmissionInfo("1", "failed")]
        self.quiz.scores["alice"] = [50]

        result = self.orchestrator.get_combined_eligibility("alice")

        self.assertTrue(result.is_eligible)
        self.assertEqual(result.total_score, 50)

    def test_missing_track_short_circuits_with_partial_score(self):
        self.competitions.competitors[(A, "alice")] = self.info
        self.competitions.submissions[(A, "alice")] = [SubmissionInfo("1", "success")]

        result = self.orchestrator.get_combined_eligibility("alice")

        self.assertFalse(result.is_eligible)
        self.assertEqual(result.total_score, 50)
        self.assertEqual(
            self.competitions.calls, [("get", A, "alice"), ("get", B, "alice")]
        )

    def test_quiz_without_graded_attempt_is_ineligible(self):
        self._register_everywhere()
        self.competitions.submissions[(A, "alice")] = [SubmissionInfo("1", "success")]

        result = self.orchestrator.get_combined_eligibility("alice")

        self.assertFalse(result.is_eligible)
        self.assertEqual(result.total_score, 50)

    def test_unknown_account(self):
        result = self.orchestrator.get_combined_eligibility("nobody")
        self.assertFalse(result.is_eligible)
        self.assertEqual(result.total_score, 0)
        self.assertEqual(self.competitions.calls, [("get", A, "nobody")])

    def test_lookup_failure_carries_partial_result(self):
        self._register_everywhere()
        self.competitions.submissions[(A, "alice")] = [SubmissionInfo("1", "success")]
        self.competitions.fail_on = B

        with self.assertRaises(CollaboratorError) as ctx:
            self.orchestrator.get_combined_eligibility("alice")

        self.assertFalse(ctx.exception.partial.is_eligible)
        self.assertEqual(ctx.exception.partial.total_score, 50)

    def test_quiz_only_challenge(self):
        orchestrator = ChallengeOrchestrator(
            make_config(competitions=()),
            self.competitions,
            self.quiz,
            self.cipher,
            clock=self.clock,
        )
        orchestrator.register_competitor(self.info)
        self.quiz.scores["alice"] = [30]

        result = orchestrator.get_combined_eligibility("alice")
        self.assertTrue(result.is_eligible)
        self.assertEqual(result.total_score, 30)
        self.assertEqual(self.competitions.calls, [])

    def test_quiz_attempt_through_orchestrator(self):
        self._register_everywhere()
        self.assertEqual(
            self.orchestrator.quiz_session("alice").state, SessionState.NO_SESSION
        )

        question_set = self.orchestrator.start_quiz_attempt("alice")
        payload = question_set.to_json()
        self.assertEqual(payload["times"], 1)
        self.assertEqual(len(payload["choices"]), 2)
        self.assertEqual(len(payload["completions"]), 1)

        score = self.orchestrator.submit_quiz_answer(
            "alice", 1, question_set.answer, ["A", "B", "x"]
        )
        self.assertEqual(score, 30)
        snapshot = self.orchestrator.quiz_session("alice")
        self.assertEqual(snapshot.state, SessionState.COMPLETED)
        self.assertEqual(snapshot.record.best_score, 30)

    def test_leaderboard(self):
        self.quiz.scores.update({"alice": [40, 70], "bob": [70], "carol": [10]})

        board = self.orchestrator.quiz_leaderboard(limit=1)
        self.assertEqual([(e.account, e.rank) for e in board], [("alice", 1), ("bob", 1)])

        reverse = self.orchestrator.quiz_leaderboard(order=ScoreOrder(smaller_is_better=True))
        self.assertEqual(reverse[0].account, "carol")


if __name__ == "__main__":
    unittest.main()
