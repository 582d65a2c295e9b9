"""
Authentication provider.

Users live in the ``users`` table with bcrypt password hashes; sessions are
JWT access tokens. Signing out revokes the token id for the lifetime of the
process.
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Optional, Set

from sqlalchemy.orm import Session, sessionmaker

from app.core.auth import create_access_token, decode_access_token, get_password_hash, verify_password
from app.core.exceptions import AuthError
from app.models.user import User
from app.schemas.auth import UserOut

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid login credentials"


@dataclass
class AuthSession:
    access_token: str
    user: UserOut


class AuthProvider:
    """Email/password sign-in backed by the users table"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._revoked: Set[str] = set()
        self._lock = Lock()

    def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Check the credentials and open a session.

        Raises:
            AuthError: unknown email or wrong password
        """
        with self._session_factory() as db:
            user = db.query(User).filter(User.email == email).first()
            if not user or not verify_password(password, user.password):
                logger.warning(f"Failed login attempt for {email}")
                raise AuthError(INVALID_CREDENTIALS)
            user_out = UserOut.model_validate(user)

        token = create_access_token({
            "user_id": user_out.id,
            "email": user_out.email,
            "name": user_out.name,
        })
        logger.info(f"User {user_out.id} signed in")
        return AuthSession(access_token=token, user=user_out)

    def sign_out(self, access_token: str) -> None:
        payload = decode_access_token(access_token)
        with self._lock:
            self._revoked.add(payload["jti"])
        logger.info(f"User {payload.get('user_id')} signed out")

    def get_session(self, access_token: Optional[str]) -> Optional[AuthSession]:
        """The session behind a token, or None when it is missing, invalid or revoked."""
        if not access_token:
            return None
        try:
            payload = decode_access_token(access_token)
        except AuthError:
            return None

        with self._lock:
            if payload.get("jti") in self._revoked:
                return None

        user = UserOut(id=payload["user_id"], name=payload.get("name", ""), email=payload["email"])
        return AuthSession(access_token=access_token, user=user)

    def ensure_default_user(self, name: str, email: Optional[str], password: Optional[str]) -> Optional[UserOut]:
        """Create the first account when the users table is empty."""
        if not email or not password:
            return None

        with self._session_factory() as db:
            return self._seed(db, name, email, password)

    @staticmethod
    def _seed(db: Session, name: str, email: str, password: str) -> Optional[UserOut]:
        if db.query(User).first() is not None:
            return None

        user = User(name=name, email=email, password=get_password_hash(password))
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Seeded default user {email}")
        return UserOut.model_validate(user)
