"""Search API router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from decisionfindr.config import get_settings
from decisionfindr.search.exceptions import ProfileFetchError, TemplateNotFoundError
from decisionfindr.search.schemas import (
    ClearResponse,
    RecoverResponse,
    ResultsPageResponse,
    ResultsView,
    SearchParams,
    SearchResponse,
    SearchResult,
    SearchTemplate,
    StoredSearch,
    TemplateCreateRequest,
)
from decisionfindr.search.service import SearchService, get_search_service
from decisionfindr.storage.dependencies import get_user_store
from decisionfindr.storage.user_store import UserScopedStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


async def _run_search(
    service: SearchService,
    store: UserScopedStore,
    params: SearchParams,
) -> SearchResponse:
    try:
        return await service.search(store, params)
    except ProfileFetchError as e:
        logger.error(f"Search failed for user {store.user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )


# =============================================================================
# Search
# =============================================================================

@router.post("", response_model=SearchResponse, response_model_by_alias=True)
async def search(
    params: SearchParams,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> SearchResponse:
    """Search for prospects by job titles and companies.

    Served from the cache when a fresh entry exists. New results are merged
    into the accumulated collection.
    """
    return await _run_search(service, store, params)


@router.get("/results", response_model=ResultsPageResponse, response_model_by_alias=True)
async def get_results(
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
    titles: str | None = Query(None, description="Comma separated job titles"),
    companies: str | None = Query(None, description="Comma separated companies"),
    view: ResultsView = Query(ResultsView.SEARCH),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> ResultsPageResponse:
    """One page of the results view.

    Without titles or companies the last search is recovered from history.
    """
    params = SearchParams.from_query(titles, companies)
    try:
        return await service.results_view(store, params, view, page, page_size)
    except ProfileFetchError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )


@router.get("/recover", response_model=RecoverResponse, response_model_by_alias=True)
async def recover(
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> RecoverResponse:
    return RecoverResponse(params=await service.recover_params(store))


# =============================================================================
# Accumulated results
# =============================================================================

@router.get("/accumulated", response_model=list[SearchResult], response_model_by_alias=True)
async def get_accumulated(
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> list[SearchResult]:
    return await service.accumulator.get_all(store)


@router.delete("/accumulated", response_model=ClearResponse, response_model_by_alias=True)
async def clear_accumulated(
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> ClearResponse:
    """Clear all accumulated and cached results of the current user."""
    logger.info(f"Clearing accumulated results for user {store.user_id}")
    return await service.clear_all(store)


# =============================================================================
# History
# =============================================================================

@router.get("/history", response_model=list[StoredSearch], response_model_by_alias=True)
async def get_history(
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> list[StoredSearch]:
    return await service.history.list_all(store)


@router.get("/recent", response_model=list[StoredSearch], response_model_by_alias=True)
async def get_recent(
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
    limit: int | None = Query(None, ge=1, le=50),
) -> list[StoredSearch]:
    return await service.history.recent(store, limit or get_settings().recent_searches_limit)


# =============================================================================
# Templates
# =============================================================================

@router.get("/templates", response_model=list[SearchTemplate], response_model_by_alias=True)
async def list_templates(
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> list[SearchTemplate]:
    return await service.templates.list_all(store)


@router.post(
    "/templates",
    response_model=SearchTemplate,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_template(
    request: TemplateCreateRequest,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> SearchTemplate:
    return await service.templates.create(
        store,
        name=request.name,
        params=request.params,
        description=request.description,
    )


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: str,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> None:
    try:
        await service.templates.delete(store, template_id)
    except TemplateNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template not found",
        )


@router.post(
    "/templates/{template_id}/run",
    response_model=SearchResponse,
    response_model_by_alias=True,
)
async def run_template(
    template_id: str,
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> SearchResponse:
    """Mark a template as used and run its search."""
    try:
        return await service.run_template(store, template_id)
    except TemplateNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template not found",
        )
    except ProfileFetchError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )
