# billager/db.py
"""Database engine and session utilities.

Centralized SQLAlchemy engine creation and the session factory shared by
gateways and the auth service.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

Base = declarative_base()


def make_engine(url: str = settings.database_url):
    if url.startswith("sqlite"):
        # sqlite ignores pool sizing; FastAPI's threadpool needs cross-thread use
        return create_engine(url, connect_args={"check_same_thread": False})
    # tuned pool settings for cloud DB
    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True
    )

engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
