"""Seal the answer key into an opaque token that round-trips through the client."""

from __future__ import annotations

import base64
import binascii
import functools
import logging
import os
from typing import Optional, Protocol, Sequence

from cryptography.fernet import Fernet, InvalidToken
from dotenv import load_dotenv

from .errors import CollaboratorError, CryptoError, ValidationError

logger = logging.getLogger(__name__)

# ASCII unit separator; not expected inside any answer text.
ANSWER_DELIMITER = "\x1f"


class SymmetricEncryption(Protocol):
    def encrypt(self, data: bytes) -> bytes: ...

    def decrypt(self, token: bytes) -> bytes: ...


@functools.lru_cache(maxsize=1)
def _build_fernet(key: str) -> Fernet:
    sanitized = key.strip()
    if not sanitized:
        raise ValidationError("CHALLENGE_ANSWER_KEY is not configured")
    try:
        return Fernet(sanitized.encode("utf-8"))
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid CHALLENGE_ANSWER_KEY provided") from exc


def fernet_from_env() -> Fernet:
    """Return a cached Fernet instance keyed by ``CHALLENGE_ANSWER_KEY``."""
    load_dotenv()
    return _build_fernet(os.getenv("CHALLENGE_ANSWER_KEY", ""))


class AnswerCipher:
    """Symmetric seal/unseal of an ordered answer list.

    The key, not the question set, is the trust root: the correct answers are
    never stored server-side between issuance and grading.
    """

    def __init__(
        self,
        encryption: Optional[SymmetricEncryption] = None,
        *,
        delimiter: str = ANSWER_DELIMITER,
    ) -> None:
        if not delimiter:
            raise ValidationError("delimiter must not be empty")
        self._encryption = encryption if encryption is not None else fernet_from_env()
        self._delimiter = delimiter

    def seal(self, answers: Sequence[str]) -> str:
        # An empty list and [""] would both seal to the same payload.
        if not answers:
            raise ValidationError("cannot seal an empty answer list")
        for answer in answers:
            if self._delimiter in answer:
                raise ValidationError("answer contains the reserved delimiter")
        payload = self._delimiter.join(answers).encode("utf-8")
        try:
            token = self._encryption.encrypt(payload)
        except Exception as exc:
            logger.error(f"Answer encryption failed: {type(exc).__name__}")
            raise CollaboratorError("failed to seal the answer key") from exc
        # Collaborators may return raw binary ciphertext; armour it for transport.
        return base64.urlsafe_b64encode(token).decode("ascii")

    def unseal(self, token: str) -> list[str]:
        if not token:
            raise CryptoError("sealed answer token is empty")
        try:
            raw = base64.b64decode(token.encode("ascii"), altchars=b"-_", validate=True)
        except (UnicodeEncodeError, binascii.Error) as exc:
            raise CryptoError("sealed answer token is malformed") from exc

        try:
            payload = self._encryption.decrypt(raw)
        except InvalidToken as exc:
            # Do not log the token itself.
            logger.warning("Rejected a tampered or foreign answer token")
            raise CryptoError("sealed answer token is invalid") from exc
        except Exception as exc:
            logger.error(f"Answer decryption failed: {type(exc).__name__}")
            raise CollaboratorError("failed to unseal the answer key") from exc

        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CryptoError("sealed answer token is corrupted") from exc
        return text.split(self._delimiter)


__all__ = [
    "ANSWER_DELIMITER",
    "AnswerCipher",
    "SymmetricEncryption",
    "fernet_from_env",
]
