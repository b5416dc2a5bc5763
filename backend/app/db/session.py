from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.errors import ConnectionFailure
from app.core.secrets import get_database_credentials


log = logging.getLogger(__name__)


def resolve_database_url(database_url: str, secret_name: str | None = None) -> URL:
    """Build the connection URL, swapping in secrets-store credentials when configured."""

    url = make_url(database_url)
    if not secret_name:
        return url

    creds = get_database_credentials(secret_name)
    return url.set(
        host=creds.host or url.host,
        port=creds.port or url.port,
        database=creds.database or url.database,
        username=creds.username or url.username,
        password=creds.password or url.password,
    )


class Database:
    """Process-wide pool handle.

    `connect()` establishes the engine on first use (or after `close()`) and
    returns the same engine afterwards, so warm invocations reuse the pool.
    """

    def __init__(
        self,
        database_url: str | None = None,
        *,
        secret_name: str | None = None,
        engine_kwargs: dict[str, Any] | None = None,
    ) -> None:
        self._database_url = database_url or settings.database_url
        self._secret_name = secret_name
        self._engine_kwargs = dict(engine_kwargs or {})
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls) -> "Database":
        return cls(
            settings.database_url,
            secret_name=(settings.db_secret_name or "").strip() or None,
        )

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def _build_engine(self) -> Engine:
        url = resolve_database_url(self._database_url, self._secret_name)

        kwargs: dict[str, Any] = {
            "echo": bool(settings.db_echo),
            "pool_pre_ping": True,
        }
        if url.get_backend_name() != "sqlite":
            kwargs["pool_size"] = int(settings.db_pool_size)
            kwargs["max_overflow"] = int(settings.db_pool_max_overflow)
            kwargs["pool_recycle"] = int(settings.db_pool_recycle_seconds)
            kwargs["connect_args"] = {"connect_timeout": int(settings.db_connect_timeout_seconds)}
        kwargs.update(self._engine_kwargs)
        return create_engine(url, **kwargs)

    def connect(self) -> Engine:
        if self._engine is not None:
            log.debug("reusing database pool")
            return self._engine

        with self._lock:
            if self._engine is not None:
                return self._engine

            log.info("creating database pool")
            try:
                engine = self._build_engine()
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
            except SQLAlchemyError as e:
                raise ConnectionFailure("Database connection failed", cause=e) from e
            except Exception as e:
                # secrets lookup or URL parsing
                raise ConnectionFailure("Database connection failed", cause=e) from e

            self._engine = engine
            self._session_factory = sessionmaker(
                bind=engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
            log.info("database pool established backend=%s", engine.url.get_backend_name())
            return engine

    def close(self) -> None:
        with self._lock:
            if self._engine is None:
                return
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            log.info("database pool closed")

    @contextmanager
    def session(self) -> Iterator[Session]:
        self.connect()
        factory = self._session_factory
        if factory is None:
            raise ConnectionFailure("Database pool closed")
        db = factory()
        try:
            yield db
        finally:
            db.close()

    def ping(self) -> tuple[bool, str]:
        try:
            engine = self.connect()
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except ConnectionFailure as e:
            return False, str(e.cause or e)
        except Exception as e:
            return False, str(e)
        return True, "Connection successful"


def get_database(request: Request) -> Database:
    return request.app.state.database
