from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any


class UserRole(str, Enum):
    """User roles for authorization."""
    USER = "user"
    ADMIN = "admin"


class SubscriptionPlan(str, Enum):
    """Plans a user can subscribe to."""
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


DEFAULT_PREFERENCES: dict[str, Any] = {
    "default_export_format": "csv",
    "email_notifications": True,
}

# Monthly search allowance of each plan
PLAN_SEARCH_ALLOWANCE: dict[SubscriptionPlan, int] = {
    SubscriptionPlan.FREE: 10,
    SubscriptionPlan.PRO: 100,
    SubscriptionPlan.ENTERPRISE: 500,
}
SUBSCRIPTION_PERIOD = timedelta(days=30)

ADMIN_SEARCH_ALLOWANCE = 999999
ADMIN_ACTIVE_UNTIL = datetime(2030, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


def create_plan_subscription(plan: SubscriptionPlan, now: datetime) -> dict[str, Any]:
    """A fresh billing period on the given plan."""
    return {
        "plan": plan.value,
        "searches_remaining": PLAN_SEARCH_ALLOWANCE[plan],
        "active_until": now + SUBSCRIPTION_PERIOD,
    }


def create_subscription(role: UserRole, now: datetime) -> dict[str, Any]:
    """Subscription seeded at sign-up. Admins start on the enterprise plan."""
    if role == UserRole.ADMIN:
        return {
            "plan": SubscriptionPlan.ENTERPRISE.value,
            "searches_remaining": ADMIN_SEARCH_ALLOWANCE,
            "active_until": ADMIN_ACTIVE_UNTIL,
        }
    return create_plan_subscription(SubscriptionPlan.FREE, now)


def create_user_document(
    email: str,
    hashed_password: str,
    full_name: str,
    role: UserRole = UserRole.USER,
) -> dict[str, Any]:
    """Create a user document for MongoDB insertion."""
    now = datetime.now(timezone.utc)
    return {
        "email": email,
        "hashed_password": hashed_password,
        "full_name": full_name,
        "role": role.value,
        "is_active": True,
        "preferences": dict(DEFAULT_PREFERENCES),
        "subscription": create_subscription(role, now),
        "created_at": now,
        "updated_at": now,
    }
