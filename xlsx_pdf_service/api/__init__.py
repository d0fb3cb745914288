from xlsx_pdf_service.api.api import api

__all__ = ["api"]
