"""
Pydantic schemas for authentication.

These schemas are used for request/response validation.
"""

from pydantic import BaseModel, EmailStr, Field


class UserOut(BaseModel):
    """Schema for user response (excludes password)."""
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    """Schema for login request."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="Plain text password")


class LoginResponse(BaseModel):
    """Schema for login response."""
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class SessionResponse(BaseModel):
    """Schema describing the current session."""
    authenticated: bool
    user: UserOut
