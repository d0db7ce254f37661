import os
import logging
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()


def open_session(token: Optional[str] = None) -> requests.Session:
    """Open a requests session for the competition service.

    Parameters
    ----------
    token : Optional[str]
        Bearer token. Defaults to ``COMPETITION_SERVICE_TOKEN``; when neither is
        set the session is unauthenticated.

    Returns
    -------
    requests.Session
        Session carrying the JSON ``Accept`` header and, if available, the
        ``Authorization`` header.
    """
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})

    bearer = token or os.environ.get("COMPETITION_SERVICE_TOKEN")
    if bearer:
        session.headers["Authorization"] = f"Bearer {bearer}"
        # Never log the token value
        logger.debug("Competition service session opened with a bearer token")
    else:
        logger.debug("Competition service session opened without credentials")
    return session


def configured_timeout(default: float = 10.0) -> float:
    """Return ``COMPETITION_SERVICE_TIMEOUT`` in seconds, or ``default``."""
    raw = os.environ.get("COMPETITION_SERVICE_TIMEOUT")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid COMPETITION_SERVICE_TIMEOUT={raw!r}")
        return default
    return value if value > 0 else default
