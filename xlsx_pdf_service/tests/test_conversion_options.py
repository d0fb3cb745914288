import unittest

from pydantic import ValidationError

from xlsx_pdf_service.dto.conversion_options import ConversionOptions


def options_from(font_size=None, landscape=None, single_page_sheets=None, default_font_size=9):
    return ConversionOptions.from_form(
        font_size=font_size,
        landscape=landscape,
        single_page_sheets=single_page_sheets,
        default_font_size=default_font_size,
    )


class TestConversionOptions(unittest.TestCase):

    def test_defaults(self):
        options = options_from()
        self.assertEqual(options.font_size, 9)
        self.assertTrue(options.landscape)
        self.assertTrue(options.single_page_sheets)
        self.assertEqual(options.orientation, "landscape")

    def test_font_size_is_clamped(self):
        self.assertEqual(options_from(font_size="200").font_size, 72)
        self.assertEqual(options_from(font_size="2").font_size, 6)
        self.assertEqual(options_from(font_size="-5").font_size, 6)
        self.assertEqual(options_from(font_size="14").font_size, 14)

    def test_zero_or_unparsable_font_size_uses_default(self):
        self.assertEqual(options_from(font_size="0").font_size, 9)
        self.assertEqual(options_from(font_size="big").font_size, 9)
        self.assertEqual(options_from(font_size="", default_font_size=11).font_size, 11)

    def test_configured_default_is_clamped_too(self):
        self.assertEqual(options_from(default_font_size=100).font_size, 72)

    def test_portrait(self):
        options = options_from(landscape="false", single_page_sheets="false")
        self.assertFalse(options.landscape)
        self.assertFalse(options.single_page_sheets)
        self.assertEqual(options.orientation, "portrait")

    def test_options_are_immutable(self):
        options = options_from()
        with self.assertRaises(ValidationError):
            options.font_size = 20  # type: ignore[misc]
