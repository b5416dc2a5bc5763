from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import redis
from rq import Queue
from rq.job import Job

from app.core.config import settings


log = logging.getLogger(__name__)


def get_redis() -> redis.Redis:
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)


def get_queue(name: str | None = None) -> Queue:
    conn = redis.Redis.from_url(settings.redis_url)
    eff = str(name or "").strip() or str(settings.rq_queue_default)
    return Queue(name=eff, connection=conn)


def fetch_job(job_id: str) -> Job | None:
    try:
        conn = redis.Redis.from_url(settings.redis_url)
        return Job.fetch(job_id, connection=conn)
    except Exception:
        return None


def dispatch_once(
    *,
    lock_key: str,
    func: Callable[..., Any],
    queue_name: str | None = None,
    **enqueue_kwargs: Any,
) -> tuple[str | None, bool]:
    """Enqueue `func` unless a job was already dispatched under `lock_key`.

    Returns `(job_id, enqueued)`. The lock has no TTL: it holds for the life of
    the deployment it names. While another dispatch holds the lock but has not enqueued yet, the job id
    is reported as None.
    """

    r = get_redis()
    acquired = r.set(lock_key, "pending", nx=True)
    if not acquired:
        existing = str(r.get(lock_key) or "")
        if existing == "pending":
            existing = ""
        log.info("dispatch skipped, already dispatched lock=%s job_id=%s", lock_key, existing)
        return existing or None, False

    try:
        job = get_queue(queue_name).enqueue(func, **enqueue_kwargs)
    except Exception:
        r.delete(lock_key)
        raise

    r.set(lock_key, str(job.id))
    log.info("dispatched lock=%s job_id=%s", lock_key, job.id)
    return str(job.id), True


def release_dispatch(lock_key: str) -> None:
    get_redis().delete(lock_key)


def describe_job(job_id: str) -> dict[str, Any]:
    job = fetch_job(job_id)
    if job is None:
        return {"id": str(job_id), "status": "missing", "result": None}

    try:
        st = job.get_status(refresh=True)
        # JobStatus is a str enum; str() would give "JobStatus.FINISHED".
        status = str(getattr(st, "value", st) or "unknown")
    except Exception:
        status = "unknown"

    result = None
    if status == "finished":
        try:
            result = job.return_value()
        except Exception:
            result = None

    return {
        "id": str(job.id),
        "status": status,
        "enqueuedAt": job.enqueued_at.isoformat() if job.enqueued_at else None,
        "startedAt": job.started_at.isoformat() if job.started_at else None,
        "endedAt": job.ended_at.isoformat() if job.ended_at else None,
        "result": result,
    }
