"""Single-table persistence for assets.

The repository owns every SQL statement that touches `assets` and translates
SQLAlchemy errors into the service taxonomy, so callers never see driver text.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import (
    DataError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from app.core.errors import ConnectionFailure, ConstraintViolation, StorageFailure
from app.models.asset import Asset as AssetModel


log = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

_WRITABLE = {"name", "description", "category", "image_key"}


@dataclass(frozen=True)
class AssetRecord:
    id: str
    owner_id: str
    name: str
    description: str | None
    category: str
    image_key: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class AssetFilter:
    owner_id: str | None = None
    category: str | None = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def clamp_limit(limit: Any) -> int:
    try:
        n = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return max(1, min(n, MAX_LIMIT))


def clamp_offset(offset: Any) -> int:
    try:
        n = int(offset)
    except (TypeError, ValueError):
        return 0
    return max(0, n)


class AssetRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    @contextmanager
    def _translate(self, op: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            try:
                self._session.rollback()
            except SQLAlchemyError:
                log.warning("rollback failed after %s", op)
            if isinstance(e, (IntegrityError, DataError)):
                raise ConstraintViolation(f"{op}: constraint violated", cause=e) from e
            if isinstance(e, (OperationalError, InterfaceError, DisconnectionError)) or bool(
                getattr(e, "connection_invalidated", False)
            ):
                raise ConnectionFailure(f"{op}: database unavailable", cause=e) from e
            raise StorageFailure(f"{op}: storage error", cause=e) from e

    def insert(self, asset: AssetRecord) -> AssetRecord:
        model = AssetModel(
            id=asset.id,
            owner_id=asset.owner_id,
            name=asset.name,
            description=asset.description,
            category=asset.category,
            image_key=asset.image_key,
            created_at=asset.created_at,
            updated_at=asset.updated_at,
        )
        with self._translate("insert"):
            self._session.add(model)
            self._session.commit()
        return self._to_domain(model)

    def find_by_id(self, asset_id: str) -> AssetRecord | None:
        with self._translate("find_by_id"):
            model = self._session.get(AssetModel, asset_id)
        return self._to_domain(model) if model is not None else None

    def find_page(
        self,
        flt: AssetFilter | None = None,
        limit: Any = DEFAULT_LIMIT,
        offset: Any = 0,
    ) -> tuple[list[AssetRecord], int]:
        flt = flt or AssetFilter()
        take = clamp_limit(limit)
        skip = clamp_offset(offset)

        conditions = []
        if flt.owner_id:
            conditions.append(AssetModel.owner_id == flt.owner_id)
        if flt.category:
            conditions.append(AssetModel.category == flt.category)

        with self._translate("find_page"):
            total = self._session.scalar(select(func.count(AssetModel.id)).where(*conditions)) or 0
            rows = self._session.scalars(
                select(AssetModel)
                .where(*conditions)
                .order_by(AssetModel.created_at.desc(), AssetModel.id.desc())
                .limit(take)
                .offset(skip)
            ).all()
        return [self._to_domain(r) for r in rows], int(total)

    def update_partial(self, asset_id: str, fields: dict[str, Any]) -> AssetRecord | None:
        unknown = set(fields) - _WRITABLE
        if unknown:
            raise ValueError(f"fields not writable: {', '.join(sorted(unknown))}")

        with self._translate("update_partial"):
            model = self._session.get(AssetModel, asset_id)
            if model is None:
                return None
            if not fields:
                return self._to_domain(model)

            for key, value in fields.items():
                setattr(model, key, value)

            now = utcnow()
            previous = _as_utc(model.updated_at)
            # updated_at must move forward even on coarse clocks.
            model.updated_at = now if now > previous else previous + timedelta(microseconds=1)
            self._session.commit()
        return self._to_domain(model)

    def delete_by_id(self, asset_id: str) -> bool:
        with self._translate("delete_by_id"):
            result = self._session.execute(delete(AssetModel).where(AssetModel.id == asset_id))
            self._session.commit()
        return int(result.rowcount or 0) > 0

    @staticmethod
    def _to_domain(model: AssetModel) -> AssetRecord:
        return AssetRecord(
            id=str(model.id),
            owner_id=model.owner_id,
            name=model.name,
            description=model.description,
            category=model.category,
            image_key=model.image_key,
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
        )
