import logging
import unittest
from io import BytesIO

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font

from xlsx_pdf_service.dto.conversion_options import ConversionOptions
from xlsx_pdf_service.processor.transformer import DocumentTransformer, MalformedDocumentError

from ..tests.utils_helpers import make_xlsx_bytes


def load(stream: bytes):
    return load_workbook(BytesIO(stream))


class TestDocumentTransformer(unittest.TestCase):

    def setUp(self) -> None:
        self.transformer = DocumentTransformer(log=logging.getLogger("test_transformer"))
        self.options = ConversionOptions(font_size=14, landscape=True, single_page_sheets=True)

    def test_column_width_formula(self):
        self.assertEqual(DocumentTransformer.column_width(10), 12)
        self.assertEqual(DocumentTransformer.column_width(0), 8)
        self.assertEqual(DocumentTransformer.column_width(3), 8)
        self.assertEqual(DocumentTransformer.column_width(48), 50)
        self.assertEqual(DocumentTransformer.column_width(500), 50)

    def test_sets_widths_from_longest_non_empty_value(self):
        rows = [
            ["Company 42", None, "x" * 80, 12345.67],
            ["Co", None, "short", 5],
        ]
        worksheet = load(self.transformer.transform(make_xlsx_bytes(rows), self.options)).active

        self.assertEqual(worksheet.column_dimensions["A"].width, 12)
        # column without values gets the minimum width
        self.assertEqual(worksheet.column_dimensions["B"].width, 8)
        self.assertEqual(worksheet.column_dimensions["C"].width, 50)
        # "12345.67" is 8 characters long
        self.assertEqual(worksheet.column_dimensions["D"].width, 10)

    def test_sets_font_size_on_non_empty_cells_only(self):
        source = make_xlsx_bytes([["bold header", None], ["value", "other"]])
        workbook = load(source)
        workbook.active["A1"].font = Font(name="Arial", bold=True, size=20)
        buffer = BytesIO()
        workbook.save(buffer)

        worksheet = load(self.transformer.transform(buffer.getvalue(), self.options)).active

        self.assertEqual(worksheet["A1"].font.size, 14)
        # the rest of the font survives
        self.assertTrue(worksheet["A1"].font.bold)
        self.assertEqual(worksheet["A1"].font.name, "Arial")
        self.assertEqual(worksheet["A2"].font.size, 14)
        self.assertEqual(worksheet["B2"].font.size, 14)
        self.assertEqual(worksheet["B1"].font.size, 11)

    def test_page_setup(self):
        portrait = ConversionOptions(font_size=9, landscape=False, single_page_sheets=True)
        for options, orientation in ((self.options, "landscape"), (portrait, "portrait")):
            workbook = load(self.transformer.transform(make_xlsx_bytes(sheets=2), options))
            for worksheet in workbook.worksheets:
                self.assertEqual(worksheet.page_setup.orientation, orientation)
                self.assertEqual(int(worksheet.page_setup.paperSize), worksheet.PAPERSIZE_A4)
                self.assertEqual(int(worksheet.page_setup.fitToWidth), 1)
                self.assertEqual(int(worksheet.page_setup.fitToHeight), 0)
                self.assertTrue(worksheet.sheet_properties.pageSetUpPr.fitToPage)

    def test_formats_every_sheet(self):
        workbook = load(self.transformer.transform(make_xlsx_bytes(sheets=3), self.options))
        self.assertEqual(len(workbook.worksheets), 3)
        for worksheet in workbook.worksheets:
            self.assertEqual(worksheet.column_dimensions["A"].width, 12)
            self.assertEqual(worksheet["A1"].font.size, 14)

    def test_transform_is_idempotent(self):
        once = self.transformer.transform(make_xlsx_bytes(), self.options)
        twice = self.transformer.transform(once, self.options)

        first, second = load(once).active, load(twice).active
        for letter in "ABCD":
            self.assertEqual(first.column_dimensions[letter].width, second.column_dimensions[letter].width)
        for row_first, row_second in zip(first.iter_rows(), second.iter_rows()):
            for cell_first, cell_second in zip(row_first, row_second):
                self.assertEqual(cell_first.value, cell_second.value)
                self.assertEqual(cell_first.font.size, cell_second.font.size)
        self.assertEqual(first.page_setup.orientation, second.page_setup.orientation)
        self.assertEqual(first.page_setup.fitToHeight, second.page_setup.fitToHeight)

    def test_does_not_mutate_input(self):
        source = make_xlsx_bytes()
        snapshot = bytes(source)
        result = self.transformer.transform(source, self.options)
        self.assertEqual(source, snapshot)
        self.assertIsNot(result, source)

    def test_sparse_sheet_does_not_materialize_empty_cells(self):
        workbook = Workbook()
        workbook.active["A1"] = "top left"
        workbook.active["Z20000"] = "far"
        buffer = BytesIO()
        workbook.save(buffer)
        source = buffer.getvalue()

        result = self.transformer.transform(source, self.options)

        # without empty cells the output stays close to the input size
        self.assertLess(len(result), 2 * len(source))
        worksheet = load(result).active
        self.assertEqual(worksheet["A1"].font.size, 14)
        self.assertEqual(worksheet["Z20000"].font.size, 14)
        self.assertEqual(worksheet.column_dimensions["A"].width, 10)
        self.assertEqual(worksheet.column_dimensions["Z"].width, 8)
        # the columns in between share one minimum width range
        self.assertEqual(worksheet.column_dimensions["B"].min, 2)
        self.assertEqual(worksheet.column_dimensions["B"].max, 25)
        self.assertEqual(worksheet.column_dimensions["B"].width, 8)
        self.assertColumnRangesDisjoint(worksheet)

    def test_grouped_columns_are_split(self):
        workbook = load(make_xlsx_bytes())
        worksheet = workbook.active
        worksheet.column_dimensions.group("A", "E", outline_level=1)
        worksheet.column_dimensions["A"].width = 30
        buffer = BytesIO()
        workbook.save(buffer)

        worksheet = load(self.transformer.transform(buffer.getvalue(), self.options)).active

        self.assertColumnRangesDisjoint(worksheet)
        dimensions = worksheet.column_dimensions
        self.assertEqual(dimensions["A"].width, 12)
        # "Account 1" and "Currency USD"
        self.assertEqual(dimensions["B"].width, 11)
        self.assertEqual(dimensions["C"].width, 14)
        self.assertEqual(dimensions["D"].width, 10)
        # past the last used column the group keeps its own width
        self.assertEqual(dimensions["E"].width, 30)
        for letter in "ABCDE":
            self.assertEqual(dimensions[letter].min, dimensions[letter].max)
            self.assertEqual(dimensions[letter].outlineLevel, 1)

    def assertColumnRangesDisjoint(self, worksheet):
        ranges = sorted((dimension.min, dimension.max) for dimension in worksheet.column_dimensions.values()
                        if dimension.min and dimension.max)
        for (_, previous_max), (current_min, _) in zip(ranges, ranges[1:]):
            self.assertGreater(current_min, previous_max)

    def test_malformed_document(self):
        with self.assertRaises(MalformedDocumentError):
            self.transformer.transform(b"PK\x03\x04 definitely not a workbook", self.options)
