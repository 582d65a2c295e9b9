"""
Authentication API endpoints.

Login opens a session through the Session Gate; logout revokes its token.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.routers.deps import get_auth_provider, require_session
from app.schemas.auth import LoginRequest, LoginResponse, SessionResponse
from app.schemas.product import SuccessResponse
from app.services.auth_provider import AuthProvider
from app.services.session_gate import SessionGate

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(login_data: LoginRequest, provider: AuthProvider = Depends(get_auth_provider)):
    """
    Authenticate a user and return an access token.

    Raises:
        HTTPException 401: If the provider rejects the credentials (its message is passed through)
    """
    gate = SessionGate(provider)
    result = gate.login(login_data.email, login_data.password)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.error or "No se pudo iniciar sesión",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return LoginResponse(
        access_token=result.session.access_token,
        token_type="bearer",
        user=result.session.user,
    )


@router.post("/logout", response_model=SuccessResponse)
def logout(gate: SessionGate = Depends(require_session)):
    """Revoke the current access token."""
    gate.logout()
    return SuccessResponse(message="Sesión cerrada correctamente")


@router.get("/session", response_model=SessionResponse)
def get_session(gate: SessionGate = Depends(require_session)):
    """Describe the session behind the bearer token."""
    return SessionResponse(authenticated=gate.is_authenticated, user=gate.session.user)
