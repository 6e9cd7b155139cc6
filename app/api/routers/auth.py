from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import app.services.auth as auth_service
from app.api.deps import get_current_claims, get_current_user, get_db
from app.db.models import User as UserModel
from app.schemas.auth import (
    AuthResult,
    ChangePasswordRequest,
    MessageResponse,
    PasswordReset,
    PasswordResetRequest,
    SessionClaims,
    SigninRequest,
    SignupRequest,
)
from app.schemas.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResult, status_code=status.HTTP_201_CREATED)
def signup(signup_data: SignupRequest, db: Session = Depends(get_db)):
    """Register a new user and return it together with a session token."""
    return auth_service.signup(
        db,
        full_name=signup_data.full_name,
        email=signup_data.email,
        password=signup_data.password,
    )


@router.post("/signin", response_model=AuthResult)
def signin(credentials: SigninRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a session token."""
    return auth_service.signin(db, credentials.email, credentials.password)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(request: PasswordResetRequest, db: Session = Depends(get_db)):
    """Request password reset - stores a reset token and emails it when SMTP is configured."""
    return await auth_service.forgot_password(db, request.email)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(reset_data: PasswordReset, db: Session = Depends(get_db)):
    """Reset password using a single-use token from the reset email."""
    return auth_service.reset_password(db, reset_data.token, reset_data.new_password)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    passwords: ChangePasswordRequest,
    claims: SessionClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """Change the password of the bearer-token holder."""
    return auth_service.change_password(
        db, claims.user_id, passwords.current_password, passwords.new_password
    )


@router.get("/me", response_model=User)
def get_current_user_info(current_user: UserModel = Depends(get_current_user)):
    """Get current authenticated user information."""
    return User.model_validate(current_user)
