from fastapi import APIRouter, Depends

from app.core.responses import error_response, success_response
from app.db.session import Database, get_database

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/health/live")
def live():
    return {"status": "live"}


@router.get("/health/ready")
def ready(database: Database = Depends(get_database)):
    ok, _message = database.ping()
    if not ok:
        return error_response("db not ready", 503)
    return success_response({"status": "ready"})
