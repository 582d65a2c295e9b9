"""
Shared router dependencies.

The store, the notification center and the auth provider are created once in
the application lifespan and kept on ``app.state``.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.services.auth_provider import AuthProvider
from app.services.entity_store import EntityStore
from app.services.image_storage import ImageStorage
from app.services.notifications import NotificationCenter
from app.services.session_gate import SessionGate

# HTTP Bearer token security
security = HTTPBearer(auto_error=False)


def get_store(request: Request) -> EntityStore:
    return request.app.state.store


def get_notification_center(request: Request) -> NotificationCenter:
    return request.app.state.notification_center


def get_image_storage(request: Request) -> ImageStorage:
    return request.app.state.image_storage


def get_auth_provider(request: Request) -> AuthProvider:
    return request.app.state.auth_provider


def get_device_id(x_device_id: Optional[str] = Header(None)) -> str:
    """Device-local notification state is keyed by the X-Device-Id header"""
    return x_device_id or "default"


def require_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    provider: AuthProvider = Depends(get_auth_provider),
) -> SessionGate:
    """
    Session gate restored from the bearer token.

    Raises:
        HTTPException 401: missing, invalid or revoked token
    """
    gate = SessionGate(provider)
    if not gate.restore(credentials.credentials if credentials else None):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No autenticado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return gate
