"""
FastAPI application entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from modelshare import dependencies
from modelshare.config import get_settings
from modelshare.routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    dependencies.get_session_manager()
    yield
    dependencies.shutdown()


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )
    app = FastAPI(title="modelshare", version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
