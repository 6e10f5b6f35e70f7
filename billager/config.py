# billager/config.py
from __future__ import annotations
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _database_url() -> str:
    url = os.getenv("DATABASE_URL", "sqlite:///./billager.db")
    # SQLAlchemy 2.x doesn't accept 'postgres://'
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


@dataclass(frozen=True)
class Settings:
    # "table" (SQL database) or "local" (JSON key-value file)
    storage_backend: str = os.getenv("STORAGE_BACKEND", "table").lower()

    database_url: str = _database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))

    local_store_path: str = os.getenv("LOCAL_STORE_PATH", "./billager_store.json")

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

settings = Settings()
