"""
This file is used to create a FastAPI application that will be served by a ASGI server
"""
import uvicorn

from xlsx_pdf_service.app import create_app
from xlsx_pdf_service.settings import Settings

settings = Settings()  # type: ignore[call-arg]
app = create_app(settings)

if __name__ == "__main__":
    uvicorn.run(app, host=settings.XLSX_PDF_SERVICE_HOST, port=settings.XLSX_PDF_SERVICE_PORT, reload=False)
