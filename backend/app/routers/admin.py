from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Query, Request

from app.core import queue
from app.core.config import settings
from app.core.responses import error_response, success_response
from app.schemas.asset import SchemaSyncAck
from app.services.schema_sync import sync_schema_job

router = APIRouter(prefix="/admin", tags=["admin"])

log = logging.getLogger(__name__)


def _admin_secret_ok(request: Request) -> bool:
    secret = str(getattr(settings, "admin_secret", "") or "").strip()
    if not secret:
        return True
    provided = str(request.headers.get("x-admin-secret") or "").strip()
    return bool(provided) and hmac.compare_digest(provided, secret)


def _sync_lock_key() -> str:
    deployment = str(getattr(settings, "deployment_id", "") or "").strip() or "local"
    return f"locks:schema_sync:{deployment}"


@router.post("/sync-schema")
def sync_schema(
    request: Request,
    force: bool = Query(default=False),
):
    if not _admin_secret_ok(request):
        return error_response("forbidden", 403)

    lock_key = _sync_lock_key()
    try:
        if force:
            queue.release_dispatch(lock_key)
        job_id, enqueued = queue.dispatch_once(
            lock_key=lock_key,
            func=sync_schema_job,
            queue_name=str(settings.rq_queue_default),
            job_timeout=int(settings.schema_sync_job_timeout_seconds),
            result_ttl=60 * 60 * 24,
            failure_ttl=60 * 60 * 24,
        )
    except Exception as e:
        log.exception("schema sync dispatch failed")
        return error_response("Failed to dispatch schema sync", 500, e)

    ack = SchemaSyncAck(
        message="Schema sync dispatched" if enqueued else "Schema sync already dispatched",
        job_id=job_id or None,
        enqueued=enqueued,
    )
    return success_response(ack.to_wire(), 202)


@router.get("/jobs/{job_id}")
def job_status(job_id: str, request: Request):
    if not _admin_secret_ok(request):
        return error_response("forbidden", 403)
    return success_response(queue.describe_job(job_id))
