from __future__ import annotations

import logging
import time
from copy import copy
from io import BytesIO

from openpyxl import load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.dimensions import ColumnDimension
from openpyxl.worksheet.properties import PageSetupProperties
from openpyxl.worksheet.worksheet import Worksheet

from xlsx_pdf_service.dto.conversion_options import ConversionOptions
from xlsx_pdf_service.utils.utils import clamp

MIN_COLUMN_WIDTH = 8
MAX_COLUMN_WIDTH = 50
COLUMN_WIDTH_PADDING = 2


class MalformedDocumentError(RuntimeError):
    pass


class DocumentTransformer:
    """Applies print formatting to a workbook before it is sent to the renderer.

    Every rule is a function of cell content and the options only, so running the
    transform twice with the same options yields the same formatting.
    """

    def __init__(self, log: logging.Logger) -> None:
        self.log = log

    @staticmethod
    def column_width(max_text_length: int) -> int:
        return clamp(max_text_length + COLUMN_WIDTH_PADDING, MIN_COLUMN_WIDTH, MAX_COLUMN_WIDTH)

    def transform(self, stream: bytes, options: ConversionOptions) -> bytes:
        """Load ``stream`` as a workbook, format every sheet and return new workbook bytes.

        Raises:
            MalformedDocumentError: the bytes could not be loaded or the result could not be saved.
        """
        load_start_time = time.time()
        try:
            workbook = load_workbook(BytesIO(stream))
        except Exception as exception:
            raise MalformedDocumentError("could not load workbook: " + repr(exception)) from exception
        self.log.info("workbook load finished | Elapsed : " + str(time.time() - load_start_time) + " seconds")

        process_start_time = time.time()
        for worksheet in workbook.worksheets:
            self._format_columns(worksheet, options.font_size)
            self._apply_page_setup(worksheet, options)
        self.log.info("workbook formatting finished | sheets: " + str(len(workbook.worksheets)) +
                      " | Elapsed : " + str(time.time() - process_start_time) + " seconds")

        write_start_time = time.time()
        buffer = BytesIO()
        try:
            workbook.save(buffer)
        except Exception as exception:
            raise MalformedDocumentError("could not serialize workbook: " + repr(exception)) from exception
        self.log.info("workbook write finished | Elapsed : " + str(time.time() - write_start_time) + " seconds")

        return buffer.getvalue()

    def _format_columns(self, worksheet: Worksheet, font_size: int) -> None:
        text_lengths: dict[int, int] = {}

        # only cells stored in the sheet, iterating the bounding box would create every empty one
        for (_, column_index), cell in worksheet._cells.items():
            # empty cells keep their font and do not count towards the width
            if cell.value is None:
                continue
            font = copy(cell.font)
            font.size = font_size
            cell.font = font
            text_lengths[column_index] = max(text_lengths.get(column_index, 0), len(str(cell.value)))

        last_column = worksheet.max_column
        self._split_column_groups(worksheet, last_column)

        dimensions = worksheet.column_dimensions
        empty_run_start: int | None = None
        for column_index in range(1, last_column + 2):
            letter = get_column_letter(column_index)
            has_entry = column_index in text_lengths or letter in dimensions
            if column_index <= last_column and not has_entry:
                if empty_run_start is None:
                    empty_run_start = column_index
                continue

            # runs of columns without values or dimensions share one <col> range
            if empty_run_start is not None:
                dimensions[get_column_letter(empty_run_start)] = ColumnDimension(
                    worksheet, index=get_column_letter(empty_run_start), width=MIN_COLUMN_WIDTH,
                    min=empty_run_start, max=column_index - 1)
                empty_run_start = None

            if column_index <= last_column:
                dimensions[letter].width = self.column_width(text_lengths.get(column_index, 0))

    @staticmethod
    def _split_column_groups(worksheet: Worksheet, last_column: int) -> None:
        """Give every column up to ``last_column`` its own dimension.

        A ``<col min=.. max=..>`` group loads as one dimension keyed by its first letter,
        setting widths on the other letters would then produce overlapping ranges.
        The part of a group beyond ``last_column`` stays a single range.
        """
        dimensions = worksheet.column_dimensions
        for letter, dimension in list(dimensions.items()):
            if not dimension.min or not dimension.max or dimension.min == dimension.max:
                continue

            first, last = dimension.min, dimension.max
            del dimensions[letter]

            spans = [(index, index) for index in range(first, min(last, last_column) + 1)]
            if last > last_column:
                spans.append((max(first, last_column + 1), last))

            for span_min, span_max in spans:
                part = ColumnDimension(
                    worksheet,
                    index=get_column_letter(span_min),
                    width=dimension.width,
                    bestFit=dimension.bestFit,
                    hidden=dimension.hidden,
                    outlineLevel=dimension.outlineLevel,
                    collapsed=dimension.collapsed,
                    min=span_min,
                    max=span_max,
                )
                part._style = copy(dimension._style)
                dimensions[get_column_letter(span_min)] = part

    @staticmethod
    def _apply_page_setup(worksheet: Worksheet, options: ConversionOptions) -> None:
        worksheet.page_setup.orientation = options.orientation
        worksheet.page_setup.paperSize = worksheet.PAPERSIZE_A4

        # one page wide, as many pages tall as needed
        if worksheet.sheet_properties.pageSetUpPr is None:
            worksheet.sheet_properties.pageSetUpPr = PageSetupProperties()
        worksheet.sheet_properties.pageSetUpPr.fitToPage = True
        worksheet.page_setup.fitToWidth = 1
        worksheet.page_setup.fitToHeight = 0
