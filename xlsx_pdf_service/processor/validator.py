from xlsx_pdf_service.dto.conversion_outcome import ConversionOutcome, RejectionReason
from xlsx_pdf_service.dto.uploaded_file import UploadedFile
from xlsx_pdf_service.utils.utils import has_xlsx_signature


def validate_upload(upload: UploadedFile | None, max_file_size: int) -> ConversionOutcome | None:
    """Check an upload before any expensive work is done.

    The signature check only looks at the first four bytes; a correctly signed but
    broken workbook gets past here and fails later in the transformer.

    Args:
        upload: The uploaded file, or None when the request carried no file part.
        max_file_size: Upload ceiling in bytes.

    Returns:
        ConversionOutcome | None: A validation error outcome, or None when the upload is accepted.
    """
    if upload is None or not upload.stream:
        return ConversionOutcome.validation_error(RejectionReason.MISSING_FILE)

    if max(upload.size, len(upload.stream)) > max_file_size:
        return ConversionOutcome.validation_error(RejectionReason.TOO_LARGE)

    if not has_xlsx_signature(upload.stream):
        return ConversionOutcome.validation_error(RejectionReason.INVALID_FORMAT)

    return None
