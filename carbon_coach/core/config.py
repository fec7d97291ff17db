# carbon_coach/core/config.py
import os
from functools import lru_cache
from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from psycopg.conninfo import make_conninfo
from typing import Optional

load_dotenv()


class Settings(BaseSettings):
    APP_NAME: str = "Carbon Coach API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    CORS_ORIGINS: str = "*"

    # Sin clave, el gateway responde "no configurado" y no llama a Gemini
    GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")
    GEMINI_CHAT_MODEL: str = "gemini-1.5-flash"
    GEMINI_SUGGESTIONS_MODEL: str = "gemini-2.0-flash-lite"
    COACH_AUDIENCE: str = "an Indian audience"

    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DB_HOST: Optional[str] = os.getenv("DB_HOST")
    DB_USER: Optional[str] = os.getenv("DB_USER")
    DB_PASSWORD: Optional[str] = os.getenv("DB_PASSWORD")
    DB_NAME: Optional[str] = os.getenv("DB_NAME")
    DB_PORT: Optional[int] = os.getenv("DB_PORT", 5432)
    DB_SSLMODE: Optional[str] = os.getenv("DB_SSLMODE", "require")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def database_dsn(self) -> Optional[str]:
        """DSN completa: DATABASE_URL o, si falta, construida a partir de DB_*."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_HOST and self.DB_USER and self.DB_PASSWORD and self.DB_NAME:
            return make_conninfo(
                host=self.DB_HOST,
                user=self.DB_USER,
                password=self.DB_PASSWORD,
                dbname=self.DB_NAME,
                port=self.DB_PORT,
                sslmode=self.DB_SSLMODE,
            )
        return None


@lru_cache
def get_settings() -> Settings:
    return Settings()
