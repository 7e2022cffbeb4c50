"""Application entrypoint: ``uvicorn skillswap.main:app``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillswap.api.v1._authz import map_domain_error
from skillswap.api.v1.router import get_api_router
from skillswap.core.config import get_config
from skillswap.core.exceptions import SkillSwapException
from skillswap.core.logging_config import configure_logging
from skillswap.schemas import ErrorEnvelope

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(message=message, code=code).model_dump(),
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    cfg = get_config()
    configure_logging()
    app = FastAPI(title=cfg.APP_NAME, version=cfg.APP_VERSION)
    app.include_router(get_api_router())

    @app.exception_handler(SkillSwapException)
    async def handle_domain_error(request: Request, exc: SkillSwapException) -> JSONResponse:
        status_code = map_domain_error(exc)
        if status_code >= 500:
            logger.error(
                "api.unhandled_domain_error",
                extra={"event": "api.unhandled_domain_error", "action": request.url.path},
            )
        return _error(status_code, str(exc) or exc.code, exc.code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, _validation_message(exc), "VALIDATION_ERROR")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    from skillswap.core.startup import bootstrap

    bootstrap()
    cfg = get_config()
    uvicorn.run(app, host=cfg.API_HOST, port=cfg.API_PORT)
