"""Account settings API router."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from decisionfindr.auth.dependencies import get_current_user
from decisionfindr.database import get_database
from decisionfindr.users.model import create_plan_subscription
from decisionfindr.users.repository import UserRepository
from decisionfindr.users.schemas import (
    PreferencesUpdateRequest,
    SubscriptionResponse,
    SubscriptionUpdateRequest,
    UserPreferences,
    preferences_of,
    subscription_of,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def get_user_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)],
) -> UserRepository:
    """Dependency injection for UserRepository."""
    return UserRepository(db)


@router.get("/me/preferences", response_model=UserPreferences)
async def get_preferences(
    current_user: Annotated[dict, Depends(get_current_user)],
) -> UserPreferences:
    """Get the current user's preferences."""
    return preferences_of(current_user)


@router.patch("/me/preferences", response_model=UserPreferences)
async def update_preferences(
    request: PreferencesUpdateRequest,
    current_user: Annotated[dict, Depends(get_current_user)],
    user_repository: Annotated[UserRepository, Depends(get_user_repository)],
) -> UserPreferences:
    """Update the current user's preferences."""
    changes = request.model_dump(exclude_none=True, mode="json")
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )

    user = await user_repository.update_preferences(str(current_user["_id"]), changes)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return preferences_of(user)


@router.get("/me/subscription", response_model=SubscriptionResponse)
async def get_subscription(
    current_user: Annotated[dict, Depends(get_current_user)],
) -> SubscriptionResponse:
    """Get the current user's subscription."""
    return subscription_of(current_user)


@router.patch("/me/subscription", response_model=SubscriptionResponse)
async def update_subscription(
    request: SubscriptionUpdateRequest,
    current_user: Annotated[dict, Depends(get_current_user)],
    user_repository: Annotated[UserRepository, Depends(get_user_repository)],
) -> SubscriptionResponse:
    """Move the current user to another plan, starting a new billing period."""
    if subscription_of(current_user).plan == request.plan:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Already on the {request.plan.value} plan",
        )

    subscription = create_plan_subscription(request.plan, datetime.now(timezone.utc))
    user = await user_repository.update_subscription(str(current_user["_id"]), subscription)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    logger.info(f"User {current_user['email']} switched to the {request.plan.value} plan")
    return subscription_of(user)
