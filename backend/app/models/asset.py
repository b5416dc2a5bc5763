import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class AssetCategory(str, enum.Enum):
    image = "image"
    document = "document"
    video = "video"
    other = "other"


ASSET_CATEGORIES: tuple[str, ...] = tuple(c.value for c in AssetCategory)


class Asset(Base):
    __tablename__ = "assets"
    __table_args__ = (
        CheckConstraint(
            "category IN ({})".format(", ".join(f"'{c}'" for c in ASSET_CATEGORIES)),
            name="ck_assets_category",
        ),
        Index("ix_assets_owner_id", "owner_id"),
        Index("ix_assets_category", "category"),
        Index("ix_assets_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(255))

    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100))
    image_key: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Assigned by the repository so created_at == updated_at on insert.
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
