"""Pipeline router - the sales Kanban board."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.db.enums import PipelineStage
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.pipeline import (
    PipelineBoard,
    PipelineItemCreate,
    PipelineItemRead,
    PipelineItemUpdate,
    StageUpdate,
    StageUpdateResult,
)
from freelance_os.services import pipeline_service

router = APIRouter()


def _get_item_or_404(db: Session, session: UserSession, item_id: UUID):
    item = pipeline_service.get_item(db, session.user_id, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Pipeline item not found")
    return item


def _stage_result(change: pipeline_service.StageChange) -> StageUpdateResult:
    return StageUpdateResult(
        item=pipeline_service.to_item_read(change.item),
        changed=change.changed,
        invoice_id=change.invoice.id if change.invoice else None,
    )


@router.get("", response_model=list[PipelineItemRead])
def list_items(
    stage: PipelineStage | None = None,
    client_id: UUID | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    items = pipeline_service.list_items(db, session.user_id, stage=stage, client_id=client_id)
    return [pipeline_service.to_item_read(i) for i in items]


@router.get("/board", response_model=PipelineBoard)
def get_board(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Items grouped into stage columns, in stage order."""
    return pipeline_service.get_board(db, session.user_id)


@router.post(
    "",
    response_model=StageUpdateResult,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_item(
    data: PipelineItemCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        change = pipeline_service.create_item(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _stage_result(change)


@router.get("/{item_id}", response_model=PipelineItemRead)
def get_item(
    item_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    item = _get_item_or_404(db, session, item_id)
    return pipeline_service.to_item_read(item)


@router.patch(
    "/{item_id}",
    response_model=PipelineItemRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_item(
    item_id: UUID,
    data: PipelineItemUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    item = _get_item_or_404(db, session, item_id)
    try:
        item = pipeline_service.update_item(db, session.user_id, item, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return pipeline_service.to_item_read(item)


@router.patch(
    "/{item_id}/stage",
    response_model=StageUpdateResult,
    dependencies=[Depends(require_csrf_header)],
)
def update_stage(
    item_id: UUID,
    data: StageUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Move an item to another column.

    Dropping onto the current column reports ``changed: false``.
    """
    item = _get_item_or_404(db, session, item_id)
    return _stage_result(pipeline_service.update_stage(db, item, data.stage))


@router.delete(
    "/{item_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_item(
    item_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    item = _get_item_or_404(db, session, item_id)
    pipeline_service.delete_item(db, item)
    return None
