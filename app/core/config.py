from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    log_level: str = "INFO"
    sql_echo: bool = False
    # Создавать таблицы при старте (для разработки, в проде - alembic)
    create_schema: bool = True
    cors_origins: List[str] = ["*"]

    model_config = {"env_file": ".env", "extra": "ignore"}

settings = Settings()
