import time
import traceback

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from xlsx_pdf_service.api import api
from xlsx_pdf_service.api.middleware import (
    APIKeyMiddleware,
    RateLimitMiddleware,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
    SlidingWindowRateLimiter,
)
from xlsx_pdf_service.api.responses import INTERNAL_ERROR_MESSAGE, error_response
from xlsx_pdf_service.processor.processor import Processor
from xlsx_pdf_service.settings import Settings
from xlsx_pdf_service.utils.utils import setup_logging


def create_app(settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """
        :description: Creates the FastAPI application, its conversion processor and transport middleware
        :param settings: Service settings, read from the environment when omitted
        :param transport: Optional httpx transport used for every renderer call (tests inject a mock here)
        :return: FastAPI application instance
    """

    if settings is None:
        settings = Settings()  # type: ignore[call-arg]

    log = setup_logging(component_name="api", log_level=settings.LOG_LEVEL)

    app = FastAPI(title="XLSX to PDF Service",
                  description="Formats uploaded spreadsheets for print and converts them to PDF via Gotenberg",
                  version=settings.XLSX_PDF_SERVICE_VERSION,
                  default_response_class=ORJSONResponse,
                  debug=settings.DEBUG_MODE)
    app.include_router(api)

    app.state.settings = settings
    app.state.processor = Processor(settings, transport=transport)
    app.state.started_at = time.monotonic()

    # added last runs first: context -> security headers -> cors -> rate limit -> api key
    app.add_middleware(APIKeyMiddleware, api_key=settings.XLSX_PDF_SERVICE_API_KEY, log=log,
                       trusted_proxies=settings.TRUSTED_PROXIES)
    app.add_middleware(
        RateLimitMiddleware,
        limiter=SlidingWindowRateLimiter(max_requests=settings.XLSX_PDF_SERVICE_RATE_LIMIT_MAX,
                                         window_seconds=settings.XLSX_PDF_SERVICE_RATE_LIMIT_WINDOW_SEC),
        log=log,
        trusted_proxies=settings.TRUSTED_PROXIES,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware,
                       log=setup_logging(component_name="http", log_level=settings.LOG_LEVEL))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
        log.warning("invalid request to %s: %s", request.url.path, exc.errors())
        return error_response(400, "Invalid request")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
        log.error("unhandled error on %s %s: %s", request.method, request.url.path, traceback.format_exc())
        return error_response(500, INTERNAL_ERROR_MESSAGE)

    log.info("app created | renderer: %s | max concurrent: %s | memory limit: %s MB",
             settings.GOTENBERG_URL, settings.XLSX_PDF_SERVICE_MAX_CONCURRENT,
             settings.XLSX_PDF_SERVICE_MEMORY_LIMIT_MB)

    return app
