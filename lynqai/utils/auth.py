import logging
from dataclasses import dataclass, field
from typing import Any, Dict

import firebase_admin
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin import exceptions as firebase_exceptions

from lynqai.errors import Unauthenticated
from lynqai.settings import config

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    uid: str
    email: str | None = None
    claims: Dict[str, Any] = field(default_factory=dict)


class TokenVerifier:
    """Verifies Firebase ID tokens. The Firebase app is created on first use."""

    def __init__(self, credentials_path: str | None = None) -> None:
        self.credentials_path = credentials_path
        self._app: firebase_admin.App | None = None

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app()
            except ValueError:
                cred = (
                    credentials.Certificate(self.credentials_path)
                    if self.credentials_path
                    else credentials.ApplicationDefault()
                )
                self._app = firebase_admin.initialize_app(cred)
        return self._app

    def verify(self, token: str) -> AuthenticatedUser:
        try:
            decoded = firebase_auth.verify_id_token(token, app=self._get_app())
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.warning(f"Rejected ID token: {type(e).__name__}")
            raise Unauthenticated("Invalid credential") from e
        return AuthenticatedUser(uid=decoded["uid"], email=decoded.get("email"), claims=decoded)


token_verifier = TokenVerifier(config.firebase_credentials)


def get_token_verifier() -> TokenVerifier:
    return token_verifier


def get_current_user(
    credential: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> AuthenticatedUser:
    """
    Resolve the caller from the ``Authorization: Bearer`` header.

    A missing or non-bearer header is rejected before the verifier is called.
    """
    if credential is None or not credential.credentials.strip():
        raise Unauthenticated("Missing bearer credential")
    return verifier.verify(credential.credentials.strip())
