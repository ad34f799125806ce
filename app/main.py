import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes.inventory import router as inventory_router
from app.api.routes.users import router as users_router
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.database import engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    logger.info("%s starting", settings.app_name)
    try:
        yield
    finally:
        engine.dispose()
        logger.info("%s stopped", settings.app_name)


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(users_router)
app.include_router(inventory_router)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}
