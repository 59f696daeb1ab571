import logging
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.db.base import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Хэндл хранилища: асинхронный движок и фабрика сессий

    Создается явно при старте приложения, открывается в lifespan
    и закрывается при остановке.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    async def open(self) -> None:
        """Создание движка и фабрики сессий"""
        if self.is_open:
            return

        engine = create_async_engine(self.url, future=True, echo=self.echo)
        if engine.dialect.name == "sqlite":
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._engine = engine
        self._sessionmaker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
        logger.info(f"Database opened ({engine.dialect.name})")

    async def close(self) -> None:
        """Освобождение пула соединений"""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Database closed")

    async def create_all(self) -> None:
        """Создание таблиц по метаданным моделей"""
        import app.db.models  # noqa: F401 - регистрация моделей в Base.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Проверка доступности БД"""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not open")
        return self._sessionmaker()


# Функция для dependency injection в FastAPI
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
