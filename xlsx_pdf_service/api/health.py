import time

from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse

from xlsx_pdf_service.dto.health_response import HealthResponse
from xlsx_pdf_service.processor.processor import Processor
from xlsx_pdf_service.utils.utils import get_process_memory_mb

health_api = APIRouter()


@health_api.get("/health", response_model=HealthResponse, response_class=ORJSONResponse)
async def health(request: Request) -> ORJSONResponse:
    processor: Processor = request.app.state.processor
    renderer_status = await processor.dispatcher.probe()

    payload = HealthResponse(
        status="ok" if renderer_status == "reachable" else "degraded",
        uptime=time.monotonic() - request.app.state.started_at,
        memoryMB=round(get_process_memory_mb(), 1),
        gotenberg=renderer_status,
    )
    return ORJSONResponse(status_code=200 if renderer_status == "reachable" else 503,
                          content=payload.model_dump())
