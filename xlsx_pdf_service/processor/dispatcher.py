from __future__ import annotations

import asyncio
import logging
import time
from typing import Literal

import httpx

from xlsx_pdf_service.dto.conversion_options import ConversionOptions
from xlsx_pdf_service.dto.conversion_outcome import ConversionOutcome
from xlsx_pdf_service.settings import Settings
from xlsx_pdf_service.utils.utils import XLSX_CONTENT_TYPE

UPSTREAM_FAILURE_MESSAGE = "PDF conversion failed"

# upstream bodies are only logged, and only this much of them
UPSTREAM_LOG_BODY_LIMIT = 500

RendererStatus = Literal["reachable", "unhealthy", "unreachable"]


class RenderDispatcher:
    """Sends transformed workbooks to Gotenberg and classifies what comes back.

    A single attempt is made per document, any failure is terminal for the request.
    """

    def __init__(self, settings: Settings, log: logging.Logger,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.log = log
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        # the abort is driven by wait_for, so the client itself carries no timeout
        return httpx.AsyncClient(transport=self._transport, timeout=None)

    async def _post(self, document: bytes, options: ConversionOptions) -> httpx.Response:
        files = {"files": ("export.xlsx", document, XLSX_CONTENT_TYPE)}
        data = {
            "landscape": "true" if options.landscape else "false",
            "singlePageSheets": "true" if options.single_page_sheets else "false",
        }
        async with self._client() as client:
            return await client.post(self.settings.GOTENBERG_URL, files=files, data=data)

    async def render(self, document: bytes, options: ConversionOptions) -> ConversionOutcome:
        render_start_time = time.time()
        try:
            response = await asyncio.wait_for(self._post(document, options),
                                              timeout=self.settings.GOTENBERG_TIMEOUT)
        except asyncio.TimeoutError:
            self.log.error("renderer call aborted after " + str(self.settings.GOTENBERG_TIMEOUT) + " seconds")
            return ConversionOutcome.timeout_error()
        except httpx.RequestError as exception:
            self.log.error("renderer call failed: " + repr(exception))
            return ConversionOutcome.timeout_error()

        if response.is_success:
            self.log.info("renderer conversion finished | PDF bytes: " + str(len(response.content)) +
                          " | Elapsed : " + str(time.time() - render_start_time) + " seconds")
            return ConversionOutcome.success(response.content)

        self.log.error("renderer returned status %s: %s",
                       response.status_code, response.text[:UPSTREAM_LOG_BODY_LIMIT])

        if response.is_server_error:
            return ConversionOutcome.upstream_error(502, UPSTREAM_FAILURE_MESSAGE)
        return ConversionOutcome.upstream_error(response.status_code, UPSTREAM_FAILURE_MESSAGE)

    async def probe(self) -> RendererStatus:
        """Check the renderer's own health path within the configured bound."""
        try:
            async with self._client() as client:
                response = await asyncio.wait_for(client.get(self.settings.GOTENBERG_HEALTH_URL),
                                                  timeout=self.settings.GOTENBERG_HEALTH_TIMEOUT)
        except (asyncio.TimeoutError, httpx.HTTPError) as exception:
            self.log.warning("renderer health probe failed: " + repr(exception))
            return "unreachable"

        if response.is_success:
            return "reachable"

        self.log.warning("renderer health probe returned status " + str(response.status_code))
        return "unhealthy"
