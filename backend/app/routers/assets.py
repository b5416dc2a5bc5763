from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Query, Request

from app.core.errors import Conflict, ConstraintViolation, NotFound
from app.db.session import Database, get_database
from app.schemas.asset import AssetOut, AssetPage, Pagination
from app.services import resource_handler as policies
from app.services.asset_repository import AssetFilter, AssetRecord, AssetRepository, clamp_limit, clamp_offset, utcnow
from app.services.resource_handler import ResourceHandler, require_path_id
from app.services.validation import decode_body, parse_create, parse_update

router = APIRouter(prefix="/assets", tags=["assets"])

log = logging.getLogger(__name__)

handler = ResourceHandler("asset")


async def raw_body(request: Request) -> bytes:
    return await request.body()


@router.post("")
def create_asset(
    body: bytes = Depends(raw_body),
    database: Database = Depends(get_database),
):
    def _create():
        cmd = parse_create(decode_body(body))
        now = utcnow()
        try:
            with database.session() as db:
                record = AssetRepository(db).insert(
                    AssetRecord(
                        id=str(uuid.uuid4()),
                        owner_id=cmd.owner_id,
                        name=cmd.name,
                        description=cmd.description,
                        category=cmd.category,
                        image_key=cmd.image_key,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except ConstraintViolation as e:
            raise Conflict("Asset already exists") from e
        log.info("asset created id=%s owner_id=%s", record.id, record.owner_id)
        return AssetOut.model_validate(record).to_wire()

    return handler.run(policies.CREATE, _create)


@router.get("")
def list_assets(
    owner_id: str | None = Query(default=None, alias="ownerId"),
    category: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    offset: str | None = Query(default=None),
    database: Database = Depends(get_database),
):
    def _list():
        take = clamp_limit(limit)
        skip = clamp_offset(offset)
        flt = AssetFilter(
            owner_id=(owner_id or "").strip() or None,
            category=(category or "").strip().lower() or None,
        )
        with database.session() as db:
            rows, total = AssetRepository(db).find_page(flt, take, skip)
        log.info("listed assets count=%s total=%s", len(rows), total)
        page = AssetPage(
            assets=[AssetOut.model_validate(r) for r in rows],
            pagination=Pagination.build(total=total, limit=take, offset=skip),
        )
        return page.to_wire()

    return handler.run(policies.LIST, _list)


@router.get("/{asset_id}")
def get_asset(
    asset_id: str,
    database: Database = Depends(get_database),
):
    def _get():
        aid = require_path_id(asset_id)
        with database.session() as db:
            record = AssetRepository(db).find_by_id(aid)
        if record is None:
            raise NotFound("Asset not found")
        return AssetOut.model_validate(record).to_wire()

    return handler.run(policies.GET, _get)


@router.api_route("/{asset_id}", methods=["PATCH", "PUT"])
def update_asset(
    asset_id: str,
    body: bytes = Depends(raw_body),
    database: Database = Depends(get_database),
):
    def _update():
        aid = require_path_id(asset_id)
        patch = parse_update(decode_body(body))
        with database.session() as db:
            record = AssetRepository(db).update_partial(aid, patch.fields)
        if record is None:
            raise NotFound("Asset not found")
        log.info("asset updated id=%s fields=%s", record.id, ",".join(sorted(patch.fields)))
        return AssetOut.model_validate(record).to_wire()

    return handler.run(policies.UPDATE, _update)


@router.delete("/{asset_id}")
def delete_asset(
    asset_id: str,
    database: Database = Depends(get_database),
):
    def _delete():
        aid = require_path_id(asset_id)
        with database.session() as db:
            deleted = AssetRepository(db).delete_by_id(aid)
        if deleted:
            log.info("asset deleted id=%s", aid)
        else:
            log.info("asset delete skipped, not found id=%s", aid)
        return None

    return handler.run(policies.DELETE, _delete)
