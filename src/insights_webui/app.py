from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from insights_webui import __version__
from insights_webui.config import WebUIConfig, load_webui_config
from insights_webui.errors import MissingParameter
from insights_webui.gateway import BackendGateway
from insights_webui.logging_config import configure_logging
from insights_webui.ui.router import NOT_FOUND_BODY, STATIC_DIR, TEMPLATES_DIR, is_http_url
from insights_webui.ui.router import router as ui_router

logger = logging.getLogger(__name__)


def create_app(
    config: WebUIConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the web UI application.

    The configuration is read once here (from the config file when not given) and
    never changes afterwards. `transport` replaces the HTTP transport used to talk
    to the controller service.
    """

    if config is None:
        config = load_webui_config()

    if config.ui.html_dir:
        html_dir = Path(config.ui.html_dir).expanduser().resolve()
        templates_dir, static_dir = html_dir, html_dir
    else:
        templates_dir, static_dir = TEMPLATES_DIR, STATIC_DIR

    gateway = BackendGateway(config.backend, transport=transport)

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        configure_logging(config.logging)
        logger.info("Insights Operator Web UI starting up")
        logger.info("Controller service: %s", config.backend.base_url)
        logger.info("Templates directory: %s", templates_dir)
        try:
            yield
        finally:
            await gateway.close()

    app = FastAPI(title="Insights Operator Web UI", version=__version__, lifespan=_lifespan)

    app.state.webui_config = config
    app.state.gateway = gateway
    templates = Jinja2Templates(directory=str(templates_dir))
    templates.env.tests["http_url"] = is_http_url
    app.state.templates = templates
    app.state.static_dir = static_dir

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    @app.exception_handler(MissingParameter)
    async def _missing_parameter_handler(
        request: Request, exc: MissingParameter
    ) -> PlainTextResponse:
        logger.info("%s: %s", request.url.path, exc)
        return PlainTextResponse(NOT_FOUND_BODY, status_code=404)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> PlainTextResponse:
        logger.info("%s: request validation failed: %s", request.url.path, exc.errors())
        return PlainTextResponse(NOT_FOUND_BODY, status_code=404)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> PlainTextResponse:
        if exc.status_code == 404:
            return PlainTextResponse(NOT_FOUND_BODY, status_code=404)
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return PlainTextResponse(message, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
        logger.exception("Unhandled error while serving %s", request.url.path)
        return PlainTextResponse("Internal server error", status_code=500)

    app.include_router(ui_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
