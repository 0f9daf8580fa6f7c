import logging
from typing import Any

from decisionfindr.core.interfaces import IPasswordHasher, ITokenService, IUserRepository
from decisionfindr.core.security import session_claims, user_id_from_claims
from decisionfindr.users.model import create_user_document, UserRole
from decisionfindr.auth.exceptions import (
    UserAlreadyExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserDeactivatedError,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Session lifecycle: sign-up, sign-in, token refresh and user resolution."""

    def __init__(
        self,
        user_repository: IUserRepository,
        password_hasher: IPasswordHasher,
        jwt_service: ITokenService,
    ) -> None:
        self._user_repository = user_repository
        self._password_hasher = password_hasher
        self._jwt_service = jwt_service

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
    ) -> dict[str, Any]:
        """Register a new user. The first account becomes the admin."""
        if await self._user_repository.get_by_email(email):
            raise UserAlreadyExistsError(email)

        is_first_user = await self._user_repository.count() == 0
        user_document = create_user_document(
            email=email,
            hashed_password=self._password_hasher.hash(password),
            full_name=full_name,
            role=UserRole.ADMIN if is_first_user else UserRole.USER,
        )

        user = await self._user_repository.create(user_document)
        logger.info(f"Registered user {email} ({user_document['role']})")
        return user

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate user and return tokens."""
        user = await self._user_repository.get_by_email(email)
        if not user or not self._password_hasher.verify(password, user["hashed_password"]):
            raise InvalidCredentialsError()

        if not user.get("is_active", True):
            raise UserDeactivatedError()

        claims = session_claims(user)
        return {
            "access_token": self._jwt_service.create_access_token(claims),
            "refresh_token": self._jwt_service.create_refresh_token(claims),
            "token_type": "bearer",
        }

    async def _user_from_token(self, token: str, token_type: str) -> dict[str, Any]:
        user_id = user_id_from_claims(self._jwt_service.decode_token(token), token_type)
        if user_id is None:
            raise InvalidTokenError()

        user = await self._user_repository.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("User not found")

        return user

    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        """Generate new access token from refresh token."""
        user = await self._user_from_token(refresh_token, "refresh")
        return {
            "access_token": self._jwt_service.create_access_token(session_claims(user)),
            "token_type": "bearer",
        }

    async def get_current_user(self, access_token: str) -> dict[str, Any]:
        """Get current user from access token. Deactivated accounts are refused."""
        user = await self._user_from_token(access_token, "access")
        if not user.get("is_active", True):
            raise UserDeactivatedError()
        return user

    async def logout(self, access_token: str | None) -> None:
        """Record a sign-out. Tokens are stateless, so this only logs."""
        if not access_token:
            logger.info("Logout without a session token")
            return

        try:
            user = await self.get_current_user(access_token)
            logger.info(f"User logout: {user.get('email')} ({user['_id']})")
        except InvalidTokenError:
            logger.warning("Logout with an invalid or expired token")
