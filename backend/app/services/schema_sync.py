from __future__ import annotations

import logging

from rq import get_current_job
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from app.db.base import Base
from app.db.session import Database


log = logging.getLogger(__name__)


def sync_schema(engine: Engine) -> dict:
    """Bring the live schema up to the ORM metadata.

    Creates missing tables, then adds columns and indexes that exist in the
    metadata but not in the database. Existing columns are never altered or
    dropped, so it is safe to run repeatedly.
    """

    # Register models on Base.metadata.
    from app import models  # noqa: F401

    existing_tables = set(inspect(engine).get_table_names())

    Base.metadata.create_all(bind=engine, checkfirst=True)
    created_tables = sorted(t.name for t in Base.metadata.sorted_tables if t.name not in existing_tables)

    added_columns: list[str] = []
    created_indexes: list[str] = []
    preparer = engine.dialect.identifier_preparer

    with engine.begin() as conn:
        insp = inspect(conn)
        for table in Base.metadata.sorted_tables:
            if table.name not in existing_tables:
                continue

            live_columns = {c["name"] for c in insp.get_columns(table.name)}
            for column in table.columns:
                if column.name in live_columns:
                    continue
                # Added as nullable: existing rows have no value for it.
                col_type = column.type.compile(dialect=engine.dialect)
                conn.execute(
                    text(
                        f"ALTER TABLE {preparer.quote(table.name)} "
                        f"ADD COLUMN {preparer.quote(column.name)} {col_type}"
                    )
                )
                added_columns.append(f"{table.name}.{column.name}")

            live_indexes = {ix["name"] for ix in insp.get_indexes(table.name)}
            for index in table.indexes:
                if index.name in live_indexes:
                    continue
                index.create(bind=conn)
                created_indexes.append(str(index.name))

    return {
        "created_tables": created_tables,
        "added_columns": added_columns,
        "created_indexes": created_indexes,
    }


def sync_schema_job(*, database_url: str | None = None) -> dict:
    """Queue entry point. Returns a plain success/error body with a status code."""

    try:
        job = get_current_job()
    except Exception:
        job = None

    database = Database(database_url) if database_url else Database.from_settings()
    try:
        log.info("schema sync started job_id=%s", getattr(job, "id", None))
        engine = database.connect()
        summary = sync_schema(engine)
        log.info(
            "schema sync finished tables=%s columns=%s indexes=%s",
            summary["created_tables"],
            summary["added_columns"],
            summary["created_indexes"],
        )
        out = {
            "statusCode": 200,
            "success": True,
            "message": "Database schema synced successfully",
            **summary,
        }
    except Exception as e:
        log.exception("schema sync failed")
        cause = getattr(e, "cause", None)
        out = {
            "statusCode": 500,
            "success": False,
            "error": str(cause or e) or "Unknown error",
        }
    finally:
        database.close()

    if job is not None:
        try:
            job.meta["success"] = bool(out["success"])
            job.save_meta()
        except Exception:
            log.warning("schema sync: could not save job meta")
    return out
