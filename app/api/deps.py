from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.security import session_tokens
from app.db import SessionLocal
from app.db.models import User as UserModel
from app.errors import MissingTokenError
from app.schemas.auth import SessionClaims
from app.services.auth import get_me

bearer_scheme = HTTPBearer(auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> SessionClaims:
    """
    Verify the `Authorization: Bearer <token>` header without touching the store.

    Raises:
        MissingTokenError: No bearer header.
        TokenExpiredError: Token past its expiry.
        InvalidTokenError: Malformed token or bad signature.
    """
    if credentials is None or not credentials.credentials:
        raise MissingTokenError("No token, authorization denied")

    return session_tokens.verify(credentials.credentials)


def get_current_user(
    claims: SessionClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
) -> UserModel:
    """Load the user behind a verified token, for endpoints that need stored fields."""
    return get_me(db, claims)
