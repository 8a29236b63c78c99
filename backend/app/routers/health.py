from fastapi import APIRouter
from app.config import get_settings
from app.schemas.common import ok, meta_now

router = APIRouter(prefix="/api/health", tags=["health"])

@router.get("")
def healthcheck():
    return ok(
        data={"status": "ok", "store": get_settings().STORE_BACKEND},
        meta=meta_now()
    )
