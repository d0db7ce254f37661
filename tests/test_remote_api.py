import os
import unittest
from unittest.mock import patch

import requests

from challengekit.challenge.errors import AlreadyRegistered, CollaboratorError
from challengekit.challenge.types import (
    CompetitionPhase,
    CompetitionTrackRef,
    CompetitorInfo,
    SubmissionInfo,
)
from challengekit.remote.api import CompetitionServiceClient
from challengekit.remote.utils import configured_timeout, open_session

TRACK = CompetitionTrackRef("nlp 2024", CompetitionPhase.FINAL)


class DummyResponse:
    def __init__(self, json_data=None, content: bytes = b"", status_code: int = 200):
        self._json = json_data
        if json_data is not None and not content:
            import json as _json

            content = _json.dumps(json_data).encode()
        self.content = content
        self.status_code = status_code

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class DummySession:
    def __init__(self, response=None, error: Exception = None):
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


class TestCompetitionServiceClient(unittest.TestCase):
    def _client(self, response=None, error=None):
        session = DummySession(response, error)
        client = CompetitionServiceClient(
            base_url="https://contest.example.com/", timeout=3.5, session=session
        )
        return client, session

    @patch("challengekit.remote.api.open_session")
    @patch("challengekit.remote.api.load_dotenv")
    def test_requires_base_url(self, mock_load_dotenv, mock_open_session):
        # Ensure environment variable is not set and no session is opened
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                CompetitionServiceClient()
        mock_open_session.assert_not_called()

    @patch("challengekit.remote.api.open_session")
    @patch("challengekit.remote.api.load_dotenv")
    def test_base_url_and_timeout_from_environment(self, mock_load_dotenv, mock_open_session):
        env = {
            "COMPETITION_SERVICE_URL": "https://contest.example.com",
            "COMPETITION_SERVICE_TIMEOUT": "2.5",
        }
        with patch.dict(os.environ, env, clear=True):
            client = CompetitionServiceClient()
        self.assertEqual(client.base_url, "https://contest.example.com")
        self.assertEqual(client.timeout, 2.5)
        self.assertIs(client.session, mock_open_session.return_value)

    def test_save_competitor_posts_details(self):
        client, session = self._client(DummyResponse(status_code=201))
        info = CompetitorInfo(account="alice", name="Alice", detail={"team": "red"})

        client.save_competitor(TRACK, info)

        call = session.calls[0]
        self.assertEqual(call["method"], "POST")
        self.assertEqual(
            call["url"],
            "https://contest.example.com/api/v1/competitions/nlp%202024/final/competitors",
        )
        self.assertEqual(call["json"]["account"], "alice")
        self.assertEqual(call["json"]["detail"], {"team": "red"})
        self.assertEqual(call["timeout"], 3.5)

    def test_duplicate_registration(self):
        client, _ = self._client(DummyResponse(status_code=409))
        with self.assertRaises(AlreadyRegistered):
            client.save_competitor(TRACK, CompetitorInfo(account="alice", name="Alice"))

    def test_registration_and_submissions(self):
        payload = {
            "is_competitor": True,
            "submissions": [
                {"id": 7, "status": "success", "score": "0.92"},
                {"id": "8", "status": "failed"},
            ],
        }
        client, session = self._client(DummyResponse(json_data=payload))

        registered, submissions = client.get_registration_and_submissions(TRACK, "alice")

        self.assertTrue(registered)
        self.assertEqual(
            submissions,
            [SubmissionInfo("7", "success", 0.92), SubmissionInfo("8", "failed", 0.0)],
        )
        self.assertTrue(session.calls[0]["url"].endswith("/final/competitors/alice"))

    def test_not_registered(self):
        for response in (
            DummyResponse(status_code=404),
            DummyResponse(json_data={"is_competitor": False, "submissions": []}),
        ):
            with self.subTest(status=response.status_code):
                client, _ = self._client(response)
                self.assertEqual(
                    client.get_registration_and_submissions(TRACK, "bob"), (False, [])
                )

    def test_transport_failures_are_collaborator_errors(self):
        cases = {
            "timeout": (None, requests.Timeout("read timed out")),
            "server error": (DummyResponse(status_code=503), None),
            "invalid json": (DummyResponse(content=b"<html>"), None),
            "not an object": (DummyResponse(json_data=["alice"]), None),
            "bad submission": (
                DummyResponse(json_data={"is_competitor": True, "submissions": [{"id": 1}]}),
                None,
            ),
        }
        for label, (response, error) in cases.items():
            with self.subTest(label):
                client, _ = self._client(response, error)
                with self.assertRaises(CollaboratorError):
                    client.get_registration_and_submissions(TRACK, "alice")


class TestSessionHelpers(unittest.TestCase):
    def test_open_session_headers(self):
        with patch.dict(os.environ, {"COMPETITION_SERVICE_TOKEN": "secret"}, clear=True):
            session = open_session()
        self.assertEqual(session.headers["Accept"], "application/json")
        self.assertEqual(session.headers["Authorization"], "Bearer secret")

        with patch.dict(os.environ, {}, clear=True):
            self.assertNotIn("Authorization", open_session().headers)

    def test_configured_timeout(self):
        for raw, expected in [(None, 10.0), ("4", 4.0), ("abc", 10.0), ("-1", 10.0)]:
            env = {} if raw is None else {"COMPETITION_SERVICE_TIMEOUT": raw}
            with self.subTest(raw=raw):
                with patch.dict(os.environ, env, clear=True):
                    self.assertEqual(configured_timeout(), expected)


if __name__ == "__main__":
    unittest.main()
