"""Manifest text extraction and field recovery."""

from .layouts import LAYOUTS, LayoutProfile, get_layout
from .recovery import format_decimal, parse_decimal, recover_header, recover_manifest, split_client_block
from .spreadsheet import TEMPLATE_COLUMNS, build_template_workbook, group_rows_into_routes
from .text_extractor import COMPACT_JOIN, SPACED_JOIN, JoinStrategy, extract_pdf_text, extract_spreadsheet_rows

__all__ = [
    "LAYOUTS",
    "LayoutProfile",
    "get_layout",
    "format_decimal",
    "parse_decimal",
    "recover_header",
    "recover_manifest",
    "split_client_block",
    "TEMPLATE_COLUMNS",
    "build_template_workbook",
    "group_rows_into_routes",
    "COMPACT_JOIN",
    "SPACED_JOIN",
    "JoinStrategy",
    "extract_pdf_text",
    "extract_spreadsheet_rows",
]
