"""Export API router."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from decisionfindr.auth.dependencies import get_current_user
from decisionfindr.export.writers import ExportFormat, ProspectRow, export_filename, render
from decisionfindr.lists.exceptions import ListNotFoundError
from decisionfindr.lists.service import ProspectListStore, get_prospect_list_store
from decisionfindr.search.schemas import SearchResult
from decisionfindr.search.service import SearchService, get_search_service
from decisionfindr.storage.dependencies import get_user_store
from decisionfindr.storage.user_store import UserScopedStore
from decisionfindr.users.schemas import preferences_of

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/export", tags=["export"])


def _file_response(rows: list[ProspectRow], export_format: ExportFormat) -> Response:
    filename = export_filename(export_format)
    logger.info(f"Exporting {len(rows)} prospects as {filename}")
    return Response(
        content=render(rows, export_format),
        media_type=export_format.media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _rows_from_results(results: list[SearchResult]) -> list[ProspectRow]:
    return [ProspectRow.model_validate(r.to_storage()) for r in results]


def _resolve_format(requested: ExportFormat | None, user: dict) -> ExportFormat:
    return requested or preferences_of(user).default_export_format


@router.post("/{export_format}")
async def export_rows(
    export_format: ExportFormat,
    rows: Annotated[list[dict[str, Any]], Body()],
    _: Annotated[dict, Depends(get_current_user)],
) -> Response:
    """Export the posted prospect rows."""
    if not rows:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No rows to export",
        )
    return _file_response([ProspectRow.model_validate(r) for r in rows], export_format)


@router.get("/accumulated")
async def export_accumulated(
    current_user: Annotated[dict, Depends(get_current_user)],
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    service: Annotated[SearchService, Depends(get_search_service)],
    export_format: ExportFormat | None = Query(None, alias="format"),
) -> Response:
    """Export every accumulated result of the current user."""
    results = await service.accumulator.get_all(store)
    return _file_response(
        _rows_from_results(results),
        _resolve_format(export_format, current_user),
    )


@router.get("/lists/{list_id}")
async def export_list(
    list_id: str,
    current_user: Annotated[dict, Depends(get_current_user)],
    store: Annotated[UserScopedStore, Depends(get_user_store)],
    lists: Annotated[ProspectListStore, Depends(get_prospect_list_store)],
    export_format: ExportFormat | None = Query(None, alias="format"),
) -> Response:
    """Export the prospects of one saved list."""
    try:
        prospect_list = await lists.get(store, list_id)
    except ListNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="List not found",
        )
    return _file_response(
        _rows_from_results(prospect_list.prospects),
        _resolve_format(export_format, current_user),
    )
