from app.models.asset import ASSET_CATEGORIES, Asset, AssetCategory

__all__ = [
    "ASSET_CATEGORIES",
    "Asset",
    "AssetCategory",
]
