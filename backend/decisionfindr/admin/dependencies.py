import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status

from decisionfindr.auth.dependencies import get_current_user
from decisionfindr.users.model import UserRole

logger = logging.getLogger(__name__)


async def get_current_admin_user(
    current_user: Annotated[dict, Depends(get_current_user)],
) -> dict:
    """Only admins may manage accounts."""
    if current_user.get("role") != UserRole.ADMIN.value:
        logger.warning(f"Admin access denied for {current_user.get('email')}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
