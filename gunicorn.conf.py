from xlsx_pdf_service.settings import Settings

_settings = Settings()  # type: ignore[call-arg]

wsgi_app = "wsgi:app"
bind = f"{_settings.XLSX_PDF_SERVICE_HOST}:{_settings.XLSX_PDF_SERVICE_PORT}"
workers = _settings.XLSX_PDF_SERVICE_WORKERS
# one conversion per limiter slot, each needs its own thread under a sync worker
threads = _settings.XLSX_PDF_SERVICE_MAX_CONCURRENT
# leave room for the request budget before gunicorn kills the worker
timeout = int(_settings.XLSX_PDF_SERVICE_REQUEST_TIMEOUT) + 30
accesslog = "-"
