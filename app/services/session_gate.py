"""
Session Gate: turns the auth provider's session into a single yes/no.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from app.core.exceptions import AuthError
from app.services.auth_provider import AuthProvider, AuthSession

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    success: bool
    error: Optional[str] = None
    session: Optional[AuthSession] = None


class SessionGate:
    """Tracks whether a user is signed in. One attempt per call, no retries."""

    def __init__(self, provider: AuthProvider):
        self._provider = provider
        self._session: Optional[AuthSession] = None

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def restore(self, access_token: Optional[str]) -> bool:
        """Pick up an existing session from its token."""
        self._session = self._provider.get_session(access_token)
        return self.is_authenticated

    def login(self, identifier: str, secret: str) -> LoginResult:
        try:
            self._session = self._provider.sign_in(identifier, secret)
        except AuthError as e:
            self._session = None
            return LoginResult(success=False, error=str(e))
        return LoginResult(success=True, session=self._session)

    def logout(self) -> None:
        if self._session is None:
            return
        try:
            self._provider.sign_out(self._session.access_token)
        except AuthError as e:
            logger.error(f"Error signing out: {e}")
        self._session = None
