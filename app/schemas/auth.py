from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.base import CamelModel
from app.schemas.user import User


class SessionClaims(BaseModel):
    """Identity carried by a verified access token."""

    user_id: str
    email: str
    full_name: str
    issued_at: datetime
    expires_at: datetime


class SignupRequest(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    # Shape is checked by the password policy so the error message matches signup's rules.
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)


class SigninRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class PasswordResetRequest(CamelModel):
    email: str = Field(..., min_length=1)


class PasswordReset(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class AuthResult(CamelModel):
    message: str
    user: User
    token: str


class MessageResponse(CamelModel):
    message: str
