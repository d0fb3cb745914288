"""Utility helpers for the xlsx-to-pdf service.

This module centralizes shared behaviors across the API and processor layers,
including request field parsing, upload signature checks, download filename
shaping, process memory sampling, and logging setup.
"""

import logging
import re
import sys

import psutil

# ZIP local file header, every OOXML workbook starts with it
XLSX_MAGIC_BYTES: bytes = b"PK\x03\x04"

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

DEFAULT_DOWNLOAD_NAME = "export"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_SPREADSHEET_EXT = re.compile(r"\.xlsx?$", re.IGNORECASE)
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))


def parse_leading_int(value: str | None) -> int | None:
    """Parse the leading integer of a form value.

    Mirrors the lenient parsing clients of the service rely on: ``"12pt"`` is 12,
    ``" 8"`` is 8, and anything without leading digits is ``None``.

    Args:
        value: Raw form field value (may be None).

    Returns:
        int | None: The parsed integer, or None if the value has no leading integer.
    """
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    if match is None:
        return None
    return int(match.group(1))


def parse_bool_flag(value: str | None, default: bool = True) -> bool:
    """Interpret a ``"true"``/``"false"`` form flag.

    Args:
        value: Raw form field value (may be None or empty).
        default: Value used when the field is missing or empty.

    Returns:
        bool: True only for a case-insensitive ``"true"``; the default when absent.
    """
    if value is None or not value.strip():
        return default
    return value.strip().lower() == "true"


def has_xlsx_signature(stream: bytes) -> bool:
    """Cheap structural check: does the stream start with the ZIP container magic?"""
    return stream[:len(XLSX_MAGIC_BYTES)] == XLSX_MAGIC_BYTES


def build_pdf_filename(original_name: str | None) -> str:
    """Build a safe attachment filename for the produced PDF.

    Any directory part is dropped, a trailing spreadsheet extension is removed and
    every character outside ``[A-Za-z0-9._-]`` is replaced with ``_``.

    Args:
        original_name: Filename declared by the client for the upload.

    Returns:
        str: Filename ending in ``.pdf`` that is safe to quote in Content-Disposition.
    """
    name = (original_name or "").replace("\\", "/").rsplit("/", 1)[-1]
    base = _SPREADSHEET_EXT.sub("", name)
    base = _UNSAFE_FILENAME_CHARS.sub("_", base)
    if not base:
        base = DEFAULT_DOWNLOAD_NAME
    return base + ".pdf"


def get_process_memory_mb() -> float:
    """Return the resident set size of the current process in MB."""
    return psutil.Process().memory_info().rss / (1024 * 1024)


def setup_logging(component_name: str = "config_logger", log_level: int = 20) -> logging.Logger:
    """Configure a logger that writes to stdout with a consistent format.

    Args:
        component_name: Logger name to configure.
        log_level: Logging level to set on the logger and handler.

    Returns:
        logging.Logger: Configured logger instance.
    """
    root_logger = logging.getLogger(component_name)
    log_format = '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s'
    log_handler = logging.StreamHandler(sys.stdout)
    log_handler.setFormatter(logging.Formatter(fmt=log_format))
    log_handler.setLevel(level=log_level)
    root_logger.setLevel(level=log_level)
    root_logger.propagate = False

    # only add the handler if a previous one does not exists
    handler_exists = False
    for h in root_logger.handlers:
        if isinstance(h, logging.StreamHandler) and h.level is log_handler.level:
            handler_exists = True
            break

    if not handler_exists:
        root_logger.addHandler(log_handler)

    return root_logger
