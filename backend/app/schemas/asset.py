from __future__ import annotations

import math
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AssetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    owner_id: str = Field(serialization_alias="ownerId")
    name: str
    description: str | None = None
    category: str
    image_key: str | None = Field(default=None, serialization_alias="imageKey")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    current_page: int = Field(serialization_alias="currentPage")
    total_pages: int = Field(serialization_alias="totalPages")
    has_more: bool = Field(serialization_alias="hasMore")

    @classmethod
    def build(cls, *, total: int, limit: int, offset: int) -> "Pagination":
        return cls(
            total=int(total),
            limit=int(limit),
            offset=int(offset),
            current_page=int(offset) // int(limit) + 1,
            total_pages=math.ceil(int(total) / int(limit)),
            has_more=int(offset) + int(limit) < int(total),
        )


class AssetPage(BaseModel):
    assets: list[AssetOut]
    pagination: Pagination

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SchemaSyncAck(BaseModel):
    message: str
    job_id: str | None = Field(default=None, serialization_alias="jobId")
    enqueued: bool

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
