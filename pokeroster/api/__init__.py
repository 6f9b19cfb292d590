from pokeroster.api.catalog import router as catalog_router
from pokeroster.api.health import router as health_router
from pokeroster.api.teams import router as teams_router

__all__ = [
    "catalog_router",
    "health_router",
    "teams_router",
]
