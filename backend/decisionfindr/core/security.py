from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from decisionfindr.config import get_settings
from decisionfindr.core.interfaces import IPasswordHasher, ITokenService

settings = get_settings()


class PasswordHasher(IPasswordHasher):
    """Bcrypt password hasher."""

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())


class JWTService(ITokenService):
    """Issues and decodes the session tokens that identify the current user."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        access_expire_minutes: int = settings.jwt_access_token_expire_minutes,
        refresh_expire_days: int = settings.jwt_refresh_token_expire_days,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._access_expire = timedelta(minutes=access_expire_minutes)
        self._refresh_expire = timedelta(days=refresh_expire_days)

    def _encode(self, data: dict[str, Any], token_type: str, lifetime: timedelta) -> str:
        claims = {
            **data,
            "exp": datetime.now(timezone.utc) + lifetime,
            "type": token_type,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def create_access_token(self, data: dict[str, Any]) -> str:
        return self._encode(data, "access", self._access_expire)

    def create_refresh_token(self, data: dict[str, Any]) -> str:
        return self._encode(data, "refresh", self._refresh_expire)

    def decode_token(self, token: str) -> dict[str, Any] | None:
        try:
            return jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError:
            return None


def user_id_of(user: dict[str, Any]) -> str:
    """Id of a user document as carried in tokens and storage keys."""
    return str(user["_id"])


def session_claims(user: dict[str, Any]) -> dict[str, Any]:
    """Claims identifying a signed-in user."""
    return {"sub": user_id_of(user)}


def user_id_from_claims(payload: dict[str, Any] | None, token_type: str) -> str | None:
    """User id of a decoded token, or None when it is not a token of that type."""
    if not payload or payload.get("type") != token_type:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) and subject else None


# Default instances (overridable in tests via dependency injection)
password_hasher = PasswordHasher()
jwt_service = JWTService()
