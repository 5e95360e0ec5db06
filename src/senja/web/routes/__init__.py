"""Route handlers for the Web API."""

from senja.web.routes.health import router as health_router
from senja.web.routes.settings import router as settings_router
from senja.web.routes.sync import router as sync_router
from senja.web.routes.tables import router as tables_router

__all__ = [
    "health_router",
    "settings_router",
    "sync_router",
    "tables_router",
]
