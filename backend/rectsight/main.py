"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rectsight import __version__
from rectsight.config import settings
from rectsight.engine.stages import register_stages
from rectsight.errors import RectSightError, ResourceLimitError
from rectsight.models.responses import ErrorResponse

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.rectsight_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger(__name__)


async def _engine_error(request: Request, exc: RectSightError) -> JSONResponse:
    status = 413 if isinstance(exc, ResourceLimitError) else 422
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content=ErrorResponse(error=type(exc).__name__, detail=str(exc)).model_dump(),
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="RectSight",
        description="Pixel grid to monochrome rectangle partition engine",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RectSightError, _engine_error)

    register_stages()

    from rectsight.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
