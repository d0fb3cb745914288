"""
WSGI entry point used by gunicorn, bridging to the FastAPI app through a2wsgi.
"""
import re

import orjson
from a2wsgi import ASGIMiddleware

from xlsx_pdf_service.app import create_app
from xlsx_pdf_service.settings import Settings
from xlsx_pdf_service.utils.utils import setup_logging

# scanner probes rejected before they reach the app
BLOCKED_PATH_PATTERN = re.compile(r"(%2e%2e|%00|\${jndi:|/winnt/|/etc/passwd)", re.I)


def _error(start_response, status: str, message: str) -> list[bytes]:
    start_response(status, [("Content-Type", "application/json")])
    return [orjson.dumps({"error": message})]


def create_wsgi_app(settings: Settings):
    bridge = ASGIMiddleware(create_app(settings))  # type: ignore[arg-type]
    log = setup_logging(component_name="wsgi", log_level=settings.LOG_LEVEL)

    def wsgi_app(environ, start_response):
        try:
            path = environ.get("PATH_INFO", "")
            if BLOCKED_PATH_PATTERN.search(path):
                log.warning("blocked request path: %r", path)
                return _error(start_response, "400 Bad Request", "Bad Request")
            return bridge(environ, start_response)
        except UnicodeDecodeError:
            return _error(start_response, "400 Bad Request", "Bad Request")
        except Exception:
            log.exception("unhandled error in wsgi bridge")
            return _error(start_response, "500 Internal Server Error", "Internal server error")

    return wsgi_app


app = create_wsgi_app(Settings())  # type: ignore[call-arg]
