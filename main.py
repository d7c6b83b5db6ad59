import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config import settings
from catalog_store import init_catalog
from api.chat import router as chat_router
from api.health import router as health_router
from api.matching import router as matching_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_catalog()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Lender matching and deal-desk chat API",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(matching_router)
app.include_router(chat_router)
app.include_router(health_router)
