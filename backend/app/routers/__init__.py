from app.routers import admin, assets, health

__all__ = [
    "admin",
    "assets",
    "health",
]
