"""Prospect lists API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from decisionfindr.lists.exceptions import ListNotFoundError
from decisionfindr.lists.schemas import (
    AddProspectsRequest,
    AddProspectsResponse,
    ListCreateRequest,
    ListUpdateRequest,
    ProspectList,
    ProspectListSummary,
    RemoveProspectsRequest,
)
from decisionfindr.lists.service import ProspectListStore, get_prospect_list_store
from decisionfindr.storage.dependencies import get_user_store
from decisionfindr.storage.user_store import UserScopedStore

router = APIRouter(prefix="/lists", tags=["lists"])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="List not found",
    )


@router.get("", response_model=list[ProspectListSummary])
async def list_lists(
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    lists: Annotated[ProspectListStore, Depends(get_prospect_list_store)],
) -> list[ProspectListSummary]:
    """All lists of the current user, without their prospects."""
    return [ProspectListSummary.of(pl) for pl in await lists.list_all(store)]


@router.post("", response_model=ProspectList, status_code=status.HTTP_201_CREATED)
async def create_list(
    request: ListCreateRequest,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    lists: Annotated[ProspectListStore, Depends(get_prospect_list_store)],
) -> ProspectList:
    return await lists.create(
        store,
        name=request.name,
        description=request.description,
        prospects=request.prospects,
        color=request.color,
    )


@router.get("/containing/{identity_key}", response_model=list[ProspectListSummary])
async def lists_containing(
    identity_key: str,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    lists: Annotated[ProspectListStore, Depends(get_prospect_list_store)],
) -> list[ProspectListSummary]:
    """Lists that already hold the given prospect."""
    return [
        ProspectListSummary.of(pl)
        for pl in await lists.lists_containing(store, identity_key)
    ]


@router.get("/{list_id}", response_model=ProspectList)
async def get_list(
    list_id: str,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    lists: Annotated[ProspectListStore, Depends(get_prospect_list_store)],
) -> ProspectList:
    try:
        return await lists.get(store, list_id)
    except ListNotFoundError:
        raise _not_found()


@router.patch("/{list_id}", response_model=ProspectList)
async def update_list(
    list_id: str,
    request: ListUpdateRequest,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    lists: Annotated[ProspectListStore, Depends(get_prospect_list_store)],
) -> ProspectList:
    try:
        return await lists.update(
            store,
            list_id,
            name=request.name,
            description=request.description,
            color=request.color,
        )
    except ListNotFoundError:
        raise _not_found()


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_list(
    list_id: str,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    lists: Annotated[ProspectListStore, Depends(get_prospect_list_store)],
) -> None:
    try:
        await lists.delete(store, list_id)
    except ListNotFoundError:
        raise _not_found()


@router.post("/{list_id}/prospects", response_model=AddProspectsResponse)
async def add_prospects(
    list_id: str,
    request: AddProspectsRequest,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    lists: Annotated[ProspectListStore, Depends(get_prospect_list_store)],
) -> AddProspectsResponse:
    try:
        updated, added = await lists.add_prospects(store, list_id, request.prospects)
    except ListNotFoundError:
        raise _not_found()
    return AddProspectsResponse(prospect_list=updated, added_count=added)


@router.delete("/{list_id}/prospects", response_model=ProspectList)
async def remove_prospects(
    list_id: str,
    request: RemoveProspectsRequest,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    lists: Annotated[ProspectListStore, Depends(get_prospect_list_store)],
) -> ProspectList:
    try:
        return await lists.remove_prospects(store, list_id, request.identity_keys)
    except ListNotFoundError:
        raise _not_found()
