"""Spreadsheet to PDF conversion service: formats .xlsx uploads for print and renders them via Gotenberg."""
