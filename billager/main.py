# billager/main.py
from fastapi import FastAPI
from .api.routes import router as api_router
from .config import settings
from .db import Base, engine
from . import models  # noqa: F401 ensure models are imported so tables are known
from .utils import logger

app = FastAPI(title="Billager")
app.include_router(api_router)


@app.on_event("startup")
def on_startup_create_tables():
    # users and sessions always live in the database, listings only with the table backend
    Base.metadata.create_all(bind=engine)
    logger.info("Billager started with %s listing storage", settings.storage_backend)
