from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr

from decisionfindr.export.writers import ExportFormat
from decisionfindr.users.model import (
    DEFAULT_PREFERENCES,
    SubscriptionPlan,
    UserRole,
    create_subscription,
)


class UserBase(BaseModel):
    email: EmailStr
    full_name: str


class UserPreferences(BaseModel):
    default_export_format: ExportFormat = ExportFormat.CSV
    email_notifications: bool = True


class UserResponse(UserBase):
    id: str
    role: str = UserRole.USER.value
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PreferencesUpdateRequest(BaseModel):
    default_export_format: ExportFormat | None = None
    email_notifications: bool | None = None


class SubscriptionResponse(BaseModel):
    plan: SubscriptionPlan
    searches_remaining: int
    active_until: datetime


class SubscriptionUpdateRequest(BaseModel):
    plan: SubscriptionPlan


class UserUpdateRequest(BaseModel):
    role: UserRole | None = None
    is_active: bool | None = None


def user_to_response(user: dict[str, Any]) -> UserResponse:
    """Convert a user document to UserResponse."""
    return UserResponse(
        id=str(user["_id"]),
        email=user["email"],
        full_name=user["full_name"],
        role=user.get("role", UserRole.USER.value),
        is_active=user.get("is_active", True),
        created_at=user["created_at"],
    )


def preferences_of(user: dict[str, Any]) -> UserPreferences:
    """Stored preferences of a user, defaults filled in."""
    return UserPreferences(**{**DEFAULT_PREFERENCES, **(user.get("preferences") or {})})


def subscription_of(user: dict[str, Any]) -> SubscriptionResponse:
    """Stored subscription of a user, or the one their role starts with."""
    stored = user.get("subscription")
    if not stored:
        role = UserRole(user.get("role", UserRole.USER.value))
        stored = create_subscription(role, user["created_at"])
    return SubscriptionResponse(**stored)
