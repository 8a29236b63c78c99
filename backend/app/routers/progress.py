# app/routers/progress.py
from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel, Field

from app.routers.deps import get_controller
from app.schemas.common import fail, meta_now, ok
from app.services.reconcile import ReconciliationController
from app.store import StoreError

router = APIRouter(prefix="/api/progress", tags=["progress"])
logger = structlog.get_logger(__name__)


class SnapshotRequest(BaseModel):
    weekLabel: Optional[str] = Field(None, description="Defaults to the ISO week, e.g. 2024-W10")


@router.get("/summary")
def progress_summary(controller: ReconciliationController = Depends(get_controller)):
    """
    Derived progress per cable type, in project type order, plus a Total column.
    ``data.configured`` is false when no cable types have been set up yet.
    """
    try:
        project, summary = controller.summary()
    except StoreError as ex:
        logger.exception("progress.summary_failed")
        return fail(code="STORE_UNAVAILABLE", message=str(ex), status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return ok(
        data=summary.to_json(),
        meta=meta_now(project=project.name or None, as_of=project.as_of or None),
    )


@router.post("/snapshots")
def take_snapshot(
    body: Optional[SnapshotRequest] = Body(None),
    controller: ReconciliationController = Depends(get_controller),
):
    """Append a snapshot of the current cumulative pulled metres."""
    try:
        snapshot, result = controller.take_snapshot(week_label=body.weekLabel if body else None)
    except StoreError as ex:
        logger.exception("progress.snapshot_failed")
        return fail(code="STORE_UNAVAILABLE", message=str(ex), status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return ok(
        data={"snapshot": snapshot.to_json(), **result.to_json()},
        meta=meta_now(),
        status_code=status.HTTP_201_CREATED,
    )
