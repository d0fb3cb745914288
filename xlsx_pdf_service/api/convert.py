import asyncio

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import Response

from xlsx_pdf_service.api.responses import compose_response, error_response
from xlsx_pdf_service.dto.conversion_options import ConversionOptions
from xlsx_pdf_service.dto.uploaded_file import UploadedFile
from xlsx_pdf_service.processor.processor import Processor

convert_api = APIRouter()


async def read_upload(file: UploadFile | None, max_file_size: int) -> UploadedFile | None:
    """Read the multipart file part, never buffering more than the ceiling plus one byte."""
    if file is None:
        return None
    try:
        stream = await file.read(max_file_size + 1)
    finally:
        await file.close()
    return UploadedFile(stream=stream, file_name=file.filename or "", size=max(file.size or 0, len(stream)))


@convert_api.post("/convert", response_class=Response)
async def convert(
    request: Request,
    file: UploadFile | None = File(None),
    fontSize: str | None = Form(None),
    landscape: str | None = Form(None),
    singlePageSheets: str | None = Form(None),
) -> Response:
    processor: Processor = request.app.state.processor
    settings = processor.settings

    options = ConversionOptions.from_form(
        font_size=fontSize,
        landscape=landscape,
        single_page_sheets=singlePageSheets,
        default_font_size=settings.XLSX_PDF_SERVICE_DEFAULT_FONT_SIZE,
    )
    upload = await read_upload(file, settings.MAX_FILE_SIZE)

    try:
        outcome = await asyncio.wait_for(processor.process(upload, options),
                                         timeout=settings.XLSX_PDF_SERVICE_REQUEST_TIMEOUT)
    except asyncio.TimeoutError:
        processor.log.error("request exceeded " + str(settings.XLSX_PDF_SERVICE_REQUEST_TIMEOUT) + " seconds")
        return error_response(504, "Request timed out")

    return compose_response(outcome, upload.file_name if upload else None)
