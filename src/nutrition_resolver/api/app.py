"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from nutrition_resolver.api.foods import router as foods_router
from nutrition_resolver.app_logging import configure_logging
from nutrition_resolver.containers import AppContainer
from nutrition_resolver.domain.errors import (
    DuplicateBarcodeError,
    FoodValidationError,
    ForbiddenTierError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(foods_router)

    @app.exception_handler(FoodValidationError)
    async def validation_error(
        request: Request, exc: FoodValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"error": str(exc)},
        )

    @app.exception_handler(DuplicateBarcodeError)
    async def duplicate_barcode(
        request: Request, exc: DuplicateBarcodeError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"error": str(exc), "barcode": exc.barcode},
        )

    @app.exception_handler(ForbiddenTierError)
    async def forbidden_tier(request: Request, exc: ForbiddenTierError) -> JSONResponse:
        logger.info("Rejected change to shared food: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"error": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
