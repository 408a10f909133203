"""
fill_back.py — write tracking numbers into an original channel export

Only the tracking cells of matched rows change; every other cell, style and
row of the original file is kept. Rows with a blank order key and keys the
result file does not know are left as exported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from openpyxl.utils import get_column_letter

from order_relay.cells import cell_value, text
from order_relay.channels import (
    DATE_TIME_FORMAT,
    HEADER_SCAN_ROWS,
    NAVER,
    NAVER_DATE_HEADERS,
    NAVER_SHEET_TITLE,
    ORDER_KEY_HEADERS,
    TEXT_FORMAT,
    TRACKING_HEADERS,
)
from order_relay.errors import MissingColumn, UnknownSchema
from order_relay.headers import find_header_column, locate_headers
from order_relay.workbook import OpenedSheet, open_first_sheet, workbook_to_bytes


@dataclass(frozen=True)
class FillBackResult:
    data: bytes
    rows_scanned: int
    rows_filled: int
    rows_unmatched: int


def strip_description_rows(opened: OpenedSheet, header_row: int) -> None:
    """Delete the rows above header_row in both views of the sheet."""
    count = header_row - 1
    opened.sheet.delete_rows(1, count)
    opened.cached_sheet.delete_rows(1, count)


def set_column_format(sheet, col: int, number_format: str, first_row: int) -> None:
    sheet.column_dimensions[get_column_letter(col)].number_format = number_format
    for row_idx in range(first_row, sheet.max_row + 1):
        sheet.cell(row=row_idx, column=col).number_format = number_format


def resolve_column(channel: str, headers: list[str], label: str, what: str) -> int:
    col = find_header_column(headers, label)
    if col is None:
        raise MissingColumn(f"{channel}: could not find the {what} column ({label}) in the original file.")
    return col


def fill_tracking_detailed(
    channel: str,
    original: bytes,
    result_map: Mapping[str, str],
    scan_rows: int = HEADER_SCAN_ROWS,
) -> FillBackResult:
    if channel not in ORDER_KEY_HEADERS:
        raise UnknownSchema(f"No fill-back layout for channel {channel!r}")

    opened = open_first_sheet(original)
    sheet = opened.sheet
    if channel == NAVER:
        sheet.title = NAVER_SHEET_TITLE

    header_row, headers = locate_headers(opened.grid(), scan_rows)
    if channel == NAVER and header_row > 1:
        strip_description_rows(opened, header_row)
        header_row, headers = locate_headers(opened.grid(), scan_rows)

    key_col = resolve_column(channel, headers, ORDER_KEY_HEADERS[channel], "order number")
    tracking_col = resolve_column(channel, headers, TRACKING_HEADERS[channel], "tracking number")

    first_data_row = header_row + 1
    set_column_format(sheet, key_col, TEXT_FORMAT, first_data_row)
    set_column_format(sheet, tracking_col, TEXT_FORMAT, first_data_row)
    if channel == NAVER:
        for label in NAVER_DATE_HEADERS:
            col = find_header_column(headers, label)
            if col is not None:
                set_column_format(sheet, col, DATE_TIME_FORMAT, first_data_row)

    scanned = filled = unmatched = 0
    for row_idx in range(first_data_row, sheet.max_row + 1):
        key_cell = sheet.cell(row=row_idx, column=key_col)
        cached = opened.cached_sheet.cell(row=row_idx, column=key_col).value
        key = text(cell_value(key_cell, cached)).strip()
        if not key:
            continue
        scanned += 1
        tracking = result_map.get(key)
        if not tracking:
            unmatched += 1
            continue
        tracking_cell = sheet.cell(row=row_idx, column=tracking_col)
        tracking_cell.value = str(tracking)
        tracking_cell.number_format = TEXT_FORMAT
        filled += 1

    return FillBackResult(
        data=workbook_to_bytes(opened.workbook),
        rows_scanned=scanned,
        rows_filled=filled,
        rows_unmatched=unmatched,
    )


def fill_tracking(channel: str, original: bytes, result_map: Mapping[str, str], scan_rows: int = HEADER_SCAN_ROWS) -> bytes:
    return fill_tracking_detailed(channel, original, result_map, scan_rows).data
