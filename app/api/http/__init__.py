from app.api.http.health import router as health_router
from app.api.http.folders import router as folders_router
from app.api.http.notes import router as notes_router
from app.api.http.summary import router as summary_router

__all__ = [
    "health_router",
    "folders_router",
    "notes_router",
    "summary_router"
]
