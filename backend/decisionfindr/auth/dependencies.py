from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase

from decisionfindr.database import get_database
from decisionfindr.users.repository import UserRepository
from decisionfindr.core.security import jwt_service, password_hasher, user_id_of
from decisionfindr.auth.service import AuthService
from decisionfindr.auth.exceptions import InvalidTokenError, UserDeactivatedError

security = HTTPBearer()
# Sign-out must succeed even when the client no longer holds a token.
optional_security = HTTPBearer(auto_error=False)


def get_auth_service(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)],
) -> AuthService:
    """Dependency injection for AuthService."""
    return AuthService(
        user_repository=UserRepository(db),
        password_hasher=password_hasher,
        jwt_service=jwt_service,
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> dict:
    """Resolve the signed-in user. Every per-user route depends on this."""
    try:
        return await auth_service.get_current_user(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except UserDeactivatedError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated",
        )


async def get_current_user_id(
    current_user: Annotated[dict, Depends(get_current_user)],
) -> str:
    """The signed-in user's id as used in storage keys."""
    return user_id_of(current_user)
