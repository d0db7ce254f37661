import os
import logging
from urllib.parse import quote, urljoin
from dotenv import load_dotenv
import requests
from typing import Any, Optional, Tuple

from ..challenge.errors import AlreadyRegistered, CollaboratorError
from ..challenge.types import CompetitionTrackRef, CompetitorInfo, SubmissionInfo
from .utils import configured_timeout, open_session

logger = logging.getLogger(__name__)


class CompetitionServiceClient:
    """HTTP-backed :class:`~challengekit.challenge.stores.CompetitionTrackStore`.

    Talks to the service that owns the competition tracks. Every request uses
    ``timeout``; transport errors surface as :class:`CollaboratorError`.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        load_dotenv()
        url = base_url or os.getenv("COMPETITION_SERVICE_URL")
        if not url:
            raise ValueError("Environment variable 'COMPETITION_SERVICE_URL' is not set")

        self.base_url = url.rstrip("/")
        self.session = session or open_session()
        self.timeout = timeout if timeout is not None else configured_timeout()

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        allow_not_found: bool = False,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        try:
            r = self.session.request(
                method=method.upper(),
                url=url,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error(f"{method.upper()} {path} failed: {exc}")
            raise CollaboratorError(f"competition service unreachable: {exc}") from exc

        if allow_not_found and r.status_code == 404:
            return None
        if r.status_code == 409:
            raise AlreadyRegistered(f"competition service rejected {path} as a duplicate")
        try:
            r.raise_for_status()
        except requests.HTTPError as exc:
            logger.error(f"{method.upper()} {path} returned {r.status_code}")
            raise CollaboratorError(
                f"competition service returned {r.status_code}"
            ) from exc

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as exc:
            raise CollaboratorError("competition service returned invalid JSON") from exc

    @staticmethod
    def _competitors_path(track: CompetitionTrackRef) -> str:
        return (
            f"/api/v1/competitions/{quote(track.id, safe='')}"
            f"/{track.phase.value}/competitors"
        )

    # -------- CompetitionTrackStore --------
    def save_competitor(self, track: CompetitionTrackRef, info: CompetitorInfo) -> None:
        self._request(
            "POST",
            self._competitors_path(track),
            json={
                "account": info.account,
                "name": info.name,
                "city": info.city,
                "email": info.email,
                "phone": info.phone,
                "identity": info.identity,
                "province": info.province,
                "detail": dict(info.detail),
            },
        )

    def get_registration_and_submissions(
        self, track: CompetitionTrackRef, account: str
    ) -> Tuple[bool, list[SubmissionInfo]]:
        payload = self._request(
            "GET",
            f"{self._competitors_path(track)}/{quote(account, safe='')}",
            allow_not_found=True,
        )
        if payload is None:
            return False, []
        if not isinstance(payload, dict):
            raise CollaboratorError(f"Unexpected competition service response: {payload!r}")

        if not payload.get("is_competitor", False):
            return False, []

        submissions: list[SubmissionInfo] = []
        for item in payload.get("submissions") or []:
            try:
                submissions.append(
                    SubmissionInfo(
                        id=str(item["id"]),
                        status=str(item["status"]),
                        score=float(item.get("score", 0.0)),
                    )
                )
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                raise CollaboratorError(
                    f"malformed submission in competition service response: {item!r}"
                ) from exc
        return True, submissions
