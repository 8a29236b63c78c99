# app/routers/exec.py
"""
Read/write entry point used by the dashboard UI.

    GET  /exec?action=read
    POST /exec  {"action": "writeAll", "data": {...}}
    POST /exec  {"action": "writePartial", "sheetKey": "manual", "data": {...}}

Every response is a JSON object with HTTP 200: the model, ``{"success": true}``
or ``{"error": "<message>"}``. Failures never surface as transport errors.
"""
from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from app.routers.deps import get_controller
from app.schemas.progress import FullModel
from app.services.reconcile import ReconciliationController

router = APIRouter(prefix="/exec", tags=["exec"])
logger = structlog.get_logger(__name__)


class ExecRequest(BaseModel):
    action: str
    sheetKey: Optional[str] = None
    data: Any = None


def handle_get(controller: ReconciliationController, action: str) -> dict:
    if action == "read":
        return controller.read_all().to_json()
    return {"error": f"Unknown GET action: {action}"}


def handle_post(controller: ReconciliationController, body: bytes) -> dict:
    req = ExecRequest.model_validate_json(body or b"{}")

    if req.action == "writeAll":
        if not isinstance(req.data, dict):
            return {"error": "writeAll requires an object in 'data'"}
        return controller.write_all(FullModel.from_json(req.data)).to_json()

    if req.action == "writePartial":
        if not req.sheetKey:
            return {"error": "writePartial requires 'sheetKey'"}
        return controller.write_partial(req.sheetKey, req.data).to_json()

    return {"error": f"Unknown POST action: {req.action}"}


def _error_message(ex: Exception) -> str:
    if isinstance(ex, ValidationError):
        first = ex.errors()[0] if ex.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ())) or "body"
        return f"Invalid request ({where}): {first.get('msg', 'validation error')}"
    return str(ex) or type(ex).__name__


@router.get("")
async def exec_get(
    action: str = Query("", description="Only 'read' is supported"),
    controller: ReconciliationController = Depends(get_controller),
) -> dict:
    try:
        return await run_in_threadpool(handle_get, controller, action)
    except Exception as ex:
        logger.exception("exec.get_failed", action=action)
        return {"error": _error_message(ex)}


@router.post("")
async def exec_post(
    request: Request,
    controller: ReconciliationController = Depends(get_controller),
) -> dict:
    try:
        body = await request.body()
        return await run_in_threadpool(handle_post, controller, body)
    except Exception as ex:
        logger.exception("exec.post_failed")
        return {"error": _error_message(ex)}
