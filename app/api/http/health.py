import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    """Проверка живости сервиса и доступности БД"""
    database = request.app.state.database
    try:
        await database.ping()
    except (SQLAlchemyError, RuntimeError) as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unavailable", "database": "down"})

    return {"status": "ok", "database": "up"}
