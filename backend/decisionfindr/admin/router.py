from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from decisionfindr.admin.dependencies import get_current_admin_user
from decisionfindr.users.repository import UserRepository
from decisionfindr.users.router import get_user_repository
from decisionfindr.users.schemas import UserResponse, UserUpdateRequest, user_to_response

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[UserResponse])
async def get_all_users(
    _: Annotated[dict, Depends(get_current_admin_user)],
    user_repository: Annotated[UserRepository, Depends(get_user_repository)],
) -> list[UserResponse]:
    """List all accounts (admin only)."""
    users = await user_repository.get_all_users()
    return [user_to_response(user) for user in users]


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    _: Annotated[dict, Depends(get_current_admin_user)],
    user_repository: Annotated[UserRepository, Depends(get_user_repository)],
) -> UserResponse:
    """Change a user's role or deactivate the account (admin only)."""
    update_data = request.model_dump(exclude_none=True, mode="json")
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )

    user = await user_repository.update(user_id, update_data)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user_to_response(user)
