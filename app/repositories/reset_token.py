from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.db.models import PasswordResetToken as ResetTokenModel


def create_reset_token(
    db: Session, user_id: str, token: str, expires_at: datetime
) -> ResetTokenModel:
    """Store a freshly issued reset token."""
    db_token = ResetTokenModel(
        user_id=user_id,
        token=token,
        expires_at=expires_at,
        is_used=False,
    )
    db.add(db_token)
    db.commit()
    db.refresh(db_token)
    return db_token


def get_reset_token(db: Session, token: str) -> ResetTokenModel | None:
    """Get a reset token row by its value, used or not."""
    return db.query(ResetTokenModel).filter(ResetTokenModel.token == token).first()


def claim_reset_token(db: Session, token_id: int) -> bool:
    """
    Flip is_used from False to True inside the caller's transaction.

    Returns True only for the one transaction whose UPDATE matched the unused
    row; concurrent claimers match zero rows once the winner commits. Does not
    commit.
    """
    result = db.execute(
        update(ResetTokenModel)
        .where(ResetTokenModel.id == token_id, ResetTokenModel.is_used.is_(False))
        .values(is_used=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
