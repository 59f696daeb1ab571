import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.http import health_router, folders_router, notes_router, summary_router
from app.core.config import Settings, settings as default_settings
from app.core.db import Database
from app.core.errors import NotebookError, InvalidInput, Unauthenticated
from app.core.logging import configure_logging
from app.domains.summary.services import ExtractiveSummarizer, Summarizer

logger = logging.getLogger(__name__)


def _error_response(error: NotebookError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, Unauthenticated) else None
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.to_dict()},
        headers=headers
    )


async def notebook_error_handler(request: Request, exc: NotebookError) -> JSONResponse:
    return _error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Ошибки pydantic приводятся к InvalidInput"""
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return _error_response(InvalidInput("Invalid request payload", {"errors": errors}))


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    summarizer: Optional[Summarizer] = None
) -> FastAPI:
    """Сборка приложения с явно переданным хранилищем"""
    settings = settings or default_settings
    database = database or Database(settings.database_url, echo=settings.sql_echo)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        await database.open()
        if settings.create_schema:
            await database.create_all()
        logger.info("Notebook service started")
        try:
            yield
        finally:
            await database.close()
            logger.info("Notebook service stopped")

    app = FastAPI(
        title="Notebook",
        description="Личные заметки и папки",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database
    app.state.summarizer = summarizer or ExtractiveSummarizer()

    # Настройка CORS для работы с frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(NotebookError, notebook_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Подключаем роутеры
    app.include_router(health_router)
    app.include_router(folders_router)
    app.include_router(notes_router)
    app.include_router(summary_router)

    @app.get("/")
    async def root():
        """Корневой эндпоинт"""
        return {
            "message": "Notebook API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()
