from __future__ import annotations

import traceback

import httpx
from starlette.concurrency import run_in_threadpool

from xlsx_pdf_service.dto.conversion_options import ConversionOptions
from xlsx_pdf_service.dto.conversion_outcome import ConversionOutcome, RejectionReason
from xlsx_pdf_service.dto.uploaded_file import UploadedFile
from xlsx_pdf_service.processor.admission import AdmissionGuard
from xlsx_pdf_service.processor.dispatcher import RenderDispatcher
from xlsx_pdf_service.processor.limiter import ConcurrencyLimiter
from xlsx_pdf_service.processor.transformer import DocumentTransformer, MalformedDocumentError
from xlsx_pdf_service.processor.validator import validate_upload
from xlsx_pdf_service.settings import Settings
from xlsx_pdf_service.utils.utils import setup_logging


class Processor:
    """Runs one upload through validation, admission, transformation and rendering.

    Every path ends in a ConversionOutcome; nothing raised by a stage escapes
    ``process`` except cancellation.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.log = setup_logging(component_name="processor", log_level=settings.LOG_LEVEL)
        self.log.debug("log level set to : " + str(settings.LOG_LEVEL))

        self.admission = AdmissionGuard(settings.XLSX_PDF_SERVICE_MEMORY_LIMIT_MB, log=self.log)
        self.limiter = ConcurrencyLimiter(settings.XLSX_PDF_SERVICE_MAX_CONCURRENT)
        self.transformer = DocumentTransformer(
            log=setup_logging(component_name="transformer", log_level=settings.LOG_LEVEL))
        self.dispatcher = RenderDispatcher(
            settings,
            log=setup_logging(component_name="dispatcher", log_level=settings.LOG_LEVEL),
            transport=transport,
        )

    async def process(self, upload: UploadedFile | None, options: ConversionOptions) -> ConversionOutcome:
        rejection = validate_upload(upload, self.settings.MAX_FILE_SIZE)
        if rejection is not None:
            self.log.info("upload rejected: " + str(rejection.reason.value if rejection.reason else ""))
            return rejection

        overloaded = self.admission.admit()
        if overloaded is not None:
            return overloaded

        self.log.info("file received: " + str(upload.size) + " bytes | name: " + upload.file_name)  # type: ignore[union-attr]

        return await self.limiter.schedule(lambda: self._convert(upload, options))

    async def _convert(self, upload: UploadedFile, options: ConversionOptions) -> ConversionOutcome:
        try:
            document = await run_in_threadpool(self.transformer.transform, upload.stream, options)
        except MalformedDocumentError:
            self.log.error("doc name: " + upload.file_name + " | transform exception: " +
                           str(traceback.format_exc()))
            return ConversionOutcome.internal_error(RejectionReason.MALFORMED_DOCUMENT)
        except Exception:
            self.log.error("doc name: " + upload.file_name + " | unexpected transform exception: " +
                           str(traceback.format_exc()))
            return ConversionOutcome.internal_error()

        try:
            return await self.dispatcher.render(document, options)
        except Exception:
            self.log.error("doc name: " + upload.file_name + " | unexpected render exception: " +
                           str(traceback.format_exc()))
            return ConversionOutcome.internal_error()
