from rq.job import JobStatus
from sqlalchemy import create_engine, inspect, text

from app.core import queue as queue_module
from app.core.config import settings
from app.services.schema_sync import sync_schema, sync_schema_job


def test_sync_creates_missing_table(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path}/fresh.db")
    summary = sync_schema(engine)

    assert summary["created_tables"] == ["assets"]
    assert "assets" in inspect(engine).get_table_names()

    again = sync_schema(engine)
    assert again == {"created_tables": [], "added_columns": [], "created_indexes": []}
    engine.dispose()


def test_sync_adds_missing_columns_and_indexes(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path}/legacy.db")
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE assets ("
                "id VARCHAR(36) PRIMARY KEY, owner_id VARCHAR(255) NOT NULL, "
                "name VARCHAR(255) NOT NULL, description TEXT, category VARCHAR(100) NOT NULL, "
                "created_at DATETIME NOT NULL, updated_at DATETIME NOT NULL)"
            )
        )

    summary = sync_schema(engine)
    assert summary["created_tables"] == []
    assert summary["added_columns"] == ["assets.image_key"]
    assert set(summary["created_indexes"]) == {"ix_assets_owner_id", "ix_assets_category", "ix_assets_created_at"}

    insp = inspect(engine)
    assert "image_key" in {c["name"] for c in insp.get_columns("assets")}
    engine.dispose()


def test_sync_job_returns_plain_success_body(tmp_path):
    out = sync_schema_job(database_url=f"sqlite:///{tmp_path}/job.db")
    assert out["success"] is True
    assert out["statusCode"] == 200
    assert out["message"] == "Database schema synced successfully"


def test_sync_job_returns_plain_error_body(tmp_path):
    out = sync_schema_job(database_url=f"sqlite:///{tmp_path}/no/such/dir/job.db")
    assert out["success"] is False
    assert out["statusCode"] == 500
    assert out["error"]


def test_dispatch_acknowledges_without_running_the_job(client, job_queue):
    r = client.post("/admin/sync-schema")
    assert r.status_code == 202
    body = r.json()
    assert body["success"] is True
    assert body["data"]["enqueued"] is True
    assert body["data"]["message"] == "Schema sync dispatched"
    assert body["data"]["jobId"] == job_queue.jobs[0].id

    assert len(job_queue.jobs) == 1
    job = job_queue.jobs[0]
    assert job.func is sync_schema_job
    assert job.kwargs["job_timeout"] == settings.schema_sync_job_timeout_seconds


def test_dispatch_happens_once_per_deployment(client, job_queue, mem_redis):
    first = client.post("/admin/sync-schema").json()["data"]
    second = client.post("/admin/sync-schema")
    assert second.status_code == 202
    data = second.json()["data"]
    assert data["enqueued"] is False
    assert data["jobId"] == first["jobId"]
    assert len(job_queue.jobs) == 1
    assert mem_redis.get(f"locks:schema_sync:{settings.deployment_id}") == first["jobId"]

    forced = client.post("/admin/sync-schema", params={"force": "true"}).json()["data"]
    assert forced["enqueued"] is True
    assert len(job_queue.jobs) == 2


def test_dispatch_failure_is_500_and_releases_lock(client, job_queue, mem_redis):
    job_queue.fail = True
    r = client.post("/admin/sync-schema")
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Failed to dispatch schema sync"}
    assert mem_redis.get(f"locks:schema_sync:{settings.deployment_id}") is None

    job_queue.fail = False
    assert client.post("/admin/sync-schema").json()["data"]["enqueued"] is True


def test_admin_secret_guards_dispatch(client, job_queue, monkeypatch):
    monkeypatch.setattr(settings, "admin_secret", "s3cret-value")

    r = client.post("/admin/sync-schema")
    assert r.status_code == 403
    assert job_queue.jobs == []

    r = client.post("/admin/sync-schema", headers={"X-Admin-Secret": "s3cret-value"})
    assert r.status_code == 202


def test_job_status_for_unknown_job(client, monkeypatch):
    monkeypatch.setattr(queue_module, "fetch_job", lambda job_id: None)
    r = client.get("/admin/jobs/abc123")
    assert r.status_code == 200
    assert r.json()["data"] == {"id": "abc123", "status": "missing", "result": None}


class _FinishedJob:
    id = "job-1"
    enqueued_at = None
    started_at = None
    ended_at = None

    def get_status(self, refresh=True):
        return JobStatus.FINISHED

    def return_value(self):
        return {"success": True, "message": "Database schema synced successfully"}


def test_job_status_reports_finished_job_and_result(client, monkeypatch):
    monkeypatch.setattr(queue_module, "fetch_job", lambda job_id: _FinishedJob())
    r = client.get("/admin/jobs/job-1")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["status"] == "finished"
    assert data["result"] == {"success": True, "message": "Database schema synced successfully"}


def test_dispatch_in_flight_reports_no_job_id(client, job_queue, mem_redis):
    mem_redis.set(f"locks:schema_sync:{settings.deployment_id}", "pending")
    r = client.post("/admin/sync-schema")
    assert r.status_code == 202
    data = r.json()["data"]
    assert data["enqueued"] is False
    assert data["jobId"] is None
    assert job_queue.jobs == []
