"""Environment configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import quote

APP_NAME = "livevip-api"


@dataclass(frozen=True)
class Settings:
    port: int = 3001
    db_host: str = "livevip-bd"
    db_port: int = 5432
    db_name: str = "livevip"
    db_user: str = "livevip"
    db_password: str = ""
    # a full SQLAlchemy URL wins over the DB_* parts
    database_url: str = ""
    log_level: str = "INFO"
    service_name: str = APP_NAME

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            port=int(os.getenv("PORT", "3001")),
            db_host=os.getenv("DB_HOST", "livevip-bd"),
            db_port=int(os.getenv("DB_PORT", "5432")),
            db_name=os.getenv("DB_NAME", "livevip"),
            db_user=os.getenv("DB_USER", "livevip"),
            db_password=os.getenv("DB_PASSWORD", ""),
            database_url=os.getenv("DATABASE_URL", ""),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            service_name=os.getenv("SERVICE_NAME", APP_NAME),
        )

    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        user = quote(self.db_user, safe="")
        password = quote(self.db_password, safe="")
        return (
            f"postgresql+pg8000://{user}:{password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )
