from fastapi.responses import ORJSONResponse, Response

from xlsx_pdf_service.dto.conversion_outcome import ConversionOutcome, OutcomeKind, RejectionReason
from xlsx_pdf_service.utils.utils import build_pdf_filename

INTERNAL_ERROR_MESSAGE = "Internal server error"

VALIDATION_RESPONSES: dict[RejectionReason, tuple[int, str]] = {
    RejectionReason.MISSING_FILE: (400, "No file uploaded"),
    RejectionReason.INVALID_FORMAT: (400, "Invalid file type. Only .xlsx files are accepted"),
    RejectionReason.TOO_LARGE: (413, "File too large"),
}


def error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def compose_response(outcome: ConversionOutcome, original_filename: str | None) -> Response:
    """Turn a pipeline outcome into the one response sent for the request.

    Error bodies only ever carry the fixed messages below; upstream bodies and
    exception details stay in the logs.
    """
    if outcome.kind is OutcomeKind.SUCCESS:
        filename = build_pdf_filename(original_filename)
        return Response(
            content=outcome.pdf_bytes or b"",
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    if outcome.kind is OutcomeKind.VALIDATION_ERROR and outcome.reason in VALIDATION_RESPONSES:
        status_code, message = VALIDATION_RESPONSES[outcome.reason]
        return error_response(status_code, message)

    if outcome.kind is OutcomeKind.CAPACITY_ERROR:
        return error_response(503, "Server is busy, please retry later", headers={"Retry-After": "5"})

    if outcome.kind is OutcomeKind.UPSTREAM_ERROR:
        return error_response(outcome.status_code or 502, outcome.message or "PDF conversion failed")

    if outcome.kind is OutcomeKind.TIMEOUT_ERROR:
        return error_response(504, "PDF conversion timed out")

    return error_response(500, INTERNAL_ERROR_MESSAGE)
