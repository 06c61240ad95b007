from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from seedgen import __version__
from seedgen.api import router as api_router
from seedgen.core.assembly import GeneratorHandle, build_from_settings
from seedgen.core.config.settings import settings
from seedgen.core.errors import (
    ExecutorForbidden,
    InputSeedNotReady,
    InvalidOracleProvider,
    InvalidRequest,
    NoInputSeed,
    OwnerForbidden,
    SecretSeedNotReady,
    SeedGenError,
    WrongProvingKey,
)
from seedgen.core.logging.setup import configure_logging

log = structlog.get_logger()

_STATUS_BY_ERROR: dict[type[SeedGenError], int] = {
    ExecutorForbidden: 403,
    OwnerForbidden: 403,
    InputSeedNotReady: 404,
    SecretSeedNotReady: 404,
    WrongProvingKey: 422,
    InvalidOracleProvider: 422,
    InvalidRequest: 409,
    NoInputSeed: 409,
}


def status_for(exc: SeedGenError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    # paused / not paused / depth / outstanding request: state conflicts
    return 409


def create_app(generator: GeneratorHandle | None = None) -> FastAPI:
    """
    Application factory.

    `generator` lets tests inject a pre-wired generator; otherwise one is
    built from settings at startup.
    """
    configure_logging(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        handle = generator if generator is not None else build_from_settings(settings)
        app.state.generator = handle
        log.info("app.startup", environment=settings.env, oracle=handle.sequencer.oracle_handle)
        try:
            yield
        finally:
            handle.close()
            log.info("app.shutdown")

    app = FastAPI(
        title="Seed Generator",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(SeedGenError)
    async def _on_seedgen_error(request: Request, exc: SeedGenError) -> JSONResponse:
        status = status_for(exc)
        log.info("api.rejected", path=request.url.path, error=exc.code, status=status)
        return JSONResponse(status_code=status, content={"error": exc.code, "detail": str(exc)})

    app.include_router(api_router, prefix="/api")

    return app


# ASGI entrypoint
app = create_app()
