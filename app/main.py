from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import router
from datastore.readings_store import build_default_store
from logging_config import configure_logging
from models.tariffs import build_default_tariffs
from services.consumption import build_default_service


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # tariffs load before the first request is served
    build_default_service()
    try:
        yield
    finally:
        build_default_service.cache_clear()
        build_default_tariffs.cache_clear()
        build_default_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Meter Billing",
        description="Records utility meter readings per apartment and bills each period.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.include_router(router)
    return app

app = create_app()
