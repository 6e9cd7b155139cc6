import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.errors import MalformedTokenError, TokenExpiredError, TokenSignatureError
from app.schemas.auth import SessionClaims

ACCESS_TOKEN_TYPE = "access"
PASSWORD_RESET_TOKEN_TYPE = "password_reset"

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Unrecognised or corrupt digest
        return False


def verify_dummy_password(plain_password: str) -> bool:
    """Spend the same work as a real verify so unknown accounts don't answer faster."""
    pwd_context.dummy_verify()
    return False


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


class SessionTokenService:
    """Issues and verifies signed, time-bounded bearer tokens.

    The secret is handed in once at construction and never read again from
    settings, so a single instance is built at import time and shared.
    """

    def __init__(self, secret_key: str, algorithm: str, ttl: timedelta):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.ttl = ttl

    def __repr__(self) -> str:
        return f"SessionTokenService(algorithm={self._algorithm!r}, ttl={self.ttl!r})"

    def encode(self, data: dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
        now = datetime.now(timezone.utc)
        to_encode = data.copy()
        to_encode.update({"iat": now, "exp": now + expires_delta, "type": token_type})
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str, verify_exp: bool = True) -> dict[str, Any]:
        """
        Decode and verify a JWT, translating PyJWT failures into domain errors.

        Raises:
            TokenExpiredError: The signature is fine but `exp` has passed.
            TokenSignatureError: The token was not signed with our key.
            MalformedTokenError: Anything else PyJWT rejects.
        """
        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "sub"], "verify_exp": verify_exp},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token expired") from e
        except jwt.InvalidSignatureError as e:
            raise TokenSignatureError("Invalid token") from e
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError("Invalid token") from e

    def issue(self, user_id: str, email: str, full_name: str, ttl: timedelta | None = None) -> str:
        """Create an access token carrying the user's identity claims."""
        return self.encode(
            {"sub": str(user_id), "email": email, "full_name": full_name},
            ACCESS_TOKEN_TYPE,
            ttl if ttl is not None else self.ttl,
        )

    def verify(self, token: str) -> SessionClaims:
        """Verify an access token and return its claims."""
        payload = self.decode(token)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise MalformedTokenError("Invalid token")
        if not payload.get("email"):
            raise MalformedTokenError("Invalid token")

        return SessionClaims(
            user_id=payload["sub"],
            email=payload["email"],
            full_name=payload.get("full_name") or "",
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def create_password_reset_token(self, user_id: str, expires_delta: timedelta) -> str:
        """Create a reset token bound to the user; `jti` keeps tokens issued in the same second distinct."""
        return self.encode(
            {"sub": str(user_id), "jti": secrets.token_urlsafe(16)},
            PASSWORD_RESET_TOKEN_TYPE,
            expires_delta,
        )


session_tokens = SessionTokenService(
    settings.secret_key,
    settings.algorithm,
    timedelta(minutes=settings.access_token_expire_minutes),
)
