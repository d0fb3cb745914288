from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from xlsx_pdf_service.utils.utils import clamp, parse_bool_flag, parse_leading_int

MIN_FONT_SIZE = 6
MAX_FONT_SIZE = 72


class ConversionOptions(BaseModel):
    """Formatting options for one conversion, derived once from the request form."""

    model_config = ConfigDict(frozen=True)

    font_size: int = Field(..., ge=MIN_FONT_SIZE, le=MAX_FONT_SIZE, description="Font size in points.")
    landscape: bool = Field(True, description="Landscape page orientation, portrait otherwise.")
    single_page_sheets: bool = Field(True, description="Ask the renderer to put each sheet on one page.")

    @property
    def orientation(self) -> str:
        return "landscape" if self.landscape else "portrait"

    @classmethod
    def from_form(
        cls,
        *,
        font_size: str | None,
        landscape: str | None,
        single_page_sheets: str | None,
        default_font_size: int,
    ) -> ConversionOptions:
        """Build options from raw form strings, defaulting and clamping each field independently.

        A missing, unparsable or zero ``font_size`` falls back to ``default_font_size``;
        the result is always clamped to [6, 72].
        """
        size = parse_leading_int(font_size) or default_font_size
        return cls(
            font_size=clamp(size, MIN_FONT_SIZE, MAX_FONT_SIZE),
            landscape=parse_bool_flag(landscape),
            single_page_sheets=parse_bool_flag(single_page_sheets),
        )
