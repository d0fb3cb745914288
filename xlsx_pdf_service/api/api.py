from fastapi import APIRouter

from xlsx_pdf_service.api.convert import convert_api
from xlsx_pdf_service.api.health import health_api

api = APIRouter()

api.include_router(health_api)
api.include_router(convert_api)
