"""Signed session tokens (JWT)"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import JWTError, jwt

from homestock.core.config import settings
from homestock.models.user import User
from homestock.schemas.auth_schemas import TokenData

logger = logging.getLogger(__name__)


class SessionIssuer:
    """
    Mints bearer tokens carrying ``{id, email, isAdmin}`` with a fixed lifetime.

    The token is self-contained: validating it needs only the signing key,
    there is no server-side session table.
    """

    def __init__(
        self,
        secret_key: str,
        expires_delta: timedelta,
        algorithm: str = "HS256",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret_key:
            raise ValueError("JWT_SECRET is not configured")
        self._secret_key = secret_key
        self.expires_delta = expires_delta
        self.algorithm = algorithm
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(self, user: User) -> str:
        now = self._clock()
        claims = {
            "id": user.id,
            "email": user.email,
            "isAdmin": bool(user.is_admin),
            "iat": now,
            "exp": now + self.expires_delta,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> Optional[TokenData]:
        """
        Decode and validate a token; returns None when it is malformed,
        badly signed or expired.
        """
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.info(f"JWT decode error: {str(e)}")
            return None

        user_id = payload.get("id")
        if not user_id:
            return None
        return TokenData(
            user_id=str(user_id),
            email=payload.get("email"),
            is_admin=bool(payload.get("isAdmin", False)),
        )


def login_session_issuer() -> SessionIssuer:
    """Issuer for password / Google logins (short-lived)."""
    return SessionIssuer(
        settings.JWT_SECRET,
        timedelta(minutes=settings.SESSION_TOKEN_EXPIRE_MINUTES),
        algorithm=settings.JWT_ALGORITHM,
    )


def registration_session_issuer() -> SessionIssuer:
    """Issuer for the token handed out right after registration."""
    return SessionIssuer(
        settings.JWT_SECRET,
        timedelta(days=settings.REGISTRATION_TOKEN_EXPIRE_DAYS),
        algorithm=settings.JWT_ALGORITHM,
    )
