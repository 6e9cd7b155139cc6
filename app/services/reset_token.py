"""Password reset tokens: issue, then redeem exactly once before expiry."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import app.repositories.reset_token as reset_token_repo
from app.core.config import settings
from app.core.security import PASSWORD_RESET_TOKEN_TYPE, get_password_hash, session_tokens
from app.db.models import User as UserModel
from app.errors import (
    InvalidTokenError,
    ResetTokenExpiredError,
    ResetTokenNotFoundError,
    ResetTokenUsedError,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def issue(db: Session, user_id: str) -> str:
    """Create, store and return a reset token for the user, valid for the configured window."""
    expires_delta = timedelta(minutes=settings.password_reset_token_expire_minutes)
    token = session_tokens.create_password_reset_token(user_id, expires_delta)
    reset_token_repo.create_reset_token(
        db,
        user_id=user_id,
        token=token,
        expires_at=datetime.now(timezone.utc) + expires_delta,
    )
    logger.info("Issued password reset token for user %s", user_id)
    return token


def redeem(db: Session, token: str, new_password: str) -> UserModel:
    """
    Consume a reset token and set the owner's password.

    The token flip and the password update share one transaction: either both
    are committed or neither is.

    Raises:
        ResetTokenNotFoundError: No such token, or its signature/owner binding is wrong.
        ResetTokenUsedError: Already redeemed, including by a concurrent request.
        ResetTokenExpiredError: expires_at is not in the future.
    """
    row = reset_token_repo.get_reset_token(db, token)
    if row is None:
        raise ResetTokenNotFoundError("Reset token not found")

    try:
        payload = session_tokens.decode(token, verify_exp=False)
    except InvalidTokenError as e:
        raise ResetTokenNotFoundError("Reset token not found") from e
    if payload.get("type") != PASSWORD_RESET_TOKEN_TYPE or payload.get("sub") != row.user_id:
        raise ResetTokenNotFoundError("Reset token not found")

    if row.is_used:
        raise ResetTokenUsedError("Reset token already used")

    now = datetime.now(timezone.utc)
    if _as_utc(row.expires_at) <= now:
        raise ResetTokenExpiredError("Reset token expired")

    # Hash before opening the write so the lock is held only for the two updates.
    password_hash = get_password_hash(new_password)

    try:
        if not reset_token_repo.claim_reset_token(db, row.id):
            db.rollback()
            raise ResetTokenUsedError("Reset token already used")

        user = row.user
        user.password_hash = password_hash
        user.updated_at = now
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("Password reset completed for user %s", user.id)
    return user
