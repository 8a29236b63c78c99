from __future__ import annotations
from typing import Any, Dict, Optional
from fastapi import status as http
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from datetime import datetime, timezone
from fastapi.encoders import jsonable_encoder

API_VERSION = "0.3.0"

class ApiError(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

class ResponseMeta(BaseModel):
    project: Optional[str] = None
    params: Optional[Dict[str, Any]] = None
    generated_at: str
    version: str = API_VERSION

class Envelope(BaseModel):
    ok: bool                              # <-- canonical flag
    data: Any | None = None
    error: ApiError | None = None
    meta: ResponseMeta

def ok(data: Any = None, meta: Optional[ResponseMeta] = None, status_code: int = http.HTTP_200_OK) -> JSONResponse:
    """
    Return unified success envelope. Pass meta through as-is (don't re-wrap).
    """
    if meta is None:
        meta = ResponseMeta(generated_at=datetime.now(timezone.utc).isoformat())
    payload = Envelope(ok=True, data=data, error=None, meta=meta).model_dump()
    return JSONResponse(content=jsonable_encoder(payload), status_code=status_code)

def fail(
    code: str,
    message: str,
    status_code: int = http.HTTP_400_BAD_REQUEST,
    details: Optional[Dict[str, Any]] = None,
    meta: Optional[ResponseMeta] = None,
) -> JSONResponse:
    """
    Return unified error envelope with ok=False.
    """
    if meta is None:
        meta = ResponseMeta(generated_at=datetime.now(timezone.utc).isoformat())
    payload = Envelope(
        ok=False,
        data=None,
        error=ApiError(code=code, message=message, details=details),
        meta=meta,
    ).model_dump()
    return JSONResponse(content=jsonable_encoder(payload), status_code=status_code)

def meta_now(*, project: Optional[str] = None, **params) -> ResponseMeta:
    clean = {k: v for k, v in params.items() if v is not None}
    return ResponseMeta(
        project=project,
        params=clean or None,
        generated_at=datetime.now(timezone.utc).isoformat(),
    )
