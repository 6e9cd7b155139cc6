"""Auth service: signup, signin, password change, password reset request and redemption."""

import logging

import aiosmtplib
from sqlalchemy.orm import Session

import app.repositories.role as role_repo
import app.repositories.user as user_repo
import app.services.reset_token as reset_tokens
from app.core.security import (
    get_password_hash,
    session_tokens,
    verify_dummy_password,
    verify_password,
)
from app.db.models import User as UserModel
from app.db.models.role import DEFAULT_ROLE_NAME
from app.domain.password_policy import password_strength_error, validate_email_shape
from app.errors import (
    DomainValidationError,
    DuplicateResourceError,
    InternalError,
    NotFoundError,
    ResetTokenError,
    UnauthorizedError,
)
from app.schemas.auth import AuthResult, SessionClaims
from app.schemas.user import User
from app.services.email import EmailNotConfiguredError, send_password_reset_email

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _ensure_strong_password(password: str) -> None:
    error_message = password_strength_error(password)
    if error_message:
        raise DomainValidationError(error_message)


def _auth_result(user: UserModel, message: str) -> AuthResult:
    token = session_tokens.issue(user.id, user.email, user.full_name)
    return AuthResult(message=message, user=User.model_validate(user), token=token)


def signup(db: Session, full_name: str, email: str, password: str) -> AuthResult:
    """
    Register a user with the default role and sign them in.

    Raises:
        DomainValidationError: Blank name, bad email shape or weak password.
        DuplicateResourceError: Email already registered.
        InternalError: The default role is missing from the store.
    """
    full_name = full_name.strip()
    email = normalize_email(email)
    if not full_name or not email or not password:
        raise DomainValidationError("All fields are required")
    if not validate_email_shape(email):
        raise DomainValidationError("Invalid email address")
    _ensure_strong_password(password)

    if user_repo.get_user_by_email(db, email):
        raise DuplicateResourceError("User with this email already exists")

    default_role = role_repo.get_role_by_name(db, DEFAULT_ROLE_NAME)
    if not default_role:
        logger.error("Default role %r not found; were migrations applied?", DEFAULT_ROLE_NAME)
        raise InternalError("Default role not found")

    user = user_repo.create_user(
        db,
        full_name=full_name,
        email=email,
        password_hash=get_password_hash(password),
        role=default_role,
    )
    logger.info("User %s registered", user.id)
    return _auth_result(user, "User registered successfully")


def signin(db: Session, email: str, password: str) -> AuthResult:
    """
    Authenticate by email and password.

    Raises:
        UnauthorizedError: Same message for unknown email, wrong password and inactive account.
    """
    user = user_repo.get_user_by_email(db, normalize_email(email))
    if user is None:
        verify_dummy_password(password)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if not verify_password(password, user.password_hash) or not user.is_active:
        raise UnauthorizedError(INVALID_CREDENTIALS)

    return _auth_result(user, "Signin successful")


def change_password(
    db: Session, user_id: str, current_password: str, new_password: str
) -> dict[str, str]:
    """
    Replace the password of an already authenticated user.

    Raises:
        NotFoundError: The token's user no longer exists.
        UnauthorizedError: current_password does not match.
        DomainValidationError: new_password breaks the policy.
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    if not verify_password(current_password, user.password_hash):
        raise UnauthorizedError("Current password is incorrect")

    _ensure_strong_password(new_password)

    user_repo.update_user_password(db, user.id, get_password_hash(new_password))
    logger.info("Password changed for user %s", user.id)
    return {"message": "Password updated successfully"}


async def forgot_password(db: Session, email: str) -> dict[str, str]:
    """
    Issue a reset token and hand it to the mail collaborator.

    Delivery problems are logged and do not fail the request; the token stays
    valid until it expires.

    Raises:
        NotFoundError: No user with that email.
    """
    user = user_repo.get_user_by_email(db, normalize_email(email))
    if not user:
        raise NotFoundError("User not found")

    reset_token = reset_tokens.issue(db, user.id)
    try:
        await send_password_reset_email(user.email, reset_token)
    except EmailNotConfiguredError:
        logger.warning("SMTP not configured - reset token for user %s was not delivered", user.id)
    except (aiosmtplib.SMTPException, OSError):
        logger.exception("Failed to send password reset email for user %s", user.id)

    return {"message": "Password reset instructions sent to email"}


def reset_password(db: Session, token: str, new_password: str) -> dict[str, str]:
    """
    Set a new password using a reset token.

    Raises:
        DomainValidationError: Weak password, or the token is unknown, used or expired.
    """
    _ensure_strong_password(new_password)

    try:
        reset_tokens.redeem(db, token, new_password)
    except ResetTokenError as e:
        logger.info("Password reset rejected: %s", e)
        raise DomainValidationError("Invalid or expired token") from e

    return {"message": "Password reset successful"}


def get_me(db: Session, claims: SessionClaims) -> UserModel:
    user = user_repo.get_user_by_id(db, claims.user_id)
    if not user:
        raise NotFoundError("User not found")
    return user
