"""
integrate.py — render canonical rows into the purchase-order template

The template's row 1 is the header and row 2 is a styled example row. Every
existing data row is removed, then one row per canonical row is written with
row 2's number format, border, alignment, font, fill and height. Template
columns that match no canonical field are left empty.
"""

from __future__ import annotations

from copy import copy
from dataclasses import dataclass
from typing import Any, Iterable

from order_relay.cells import cell_value
from order_relay.channels import INTEGRATION_COLUMNS, INTEGRATION_KEY_HEADER, INTEGRATION_TRACKING_HEADER, TEXT_FORMAT
from order_relay.headers import header_labels
from order_relay.normalize import CanonicalRow
from order_relay.workbook import first_sheet, load_workbook_bytes, workbook_to_bytes

TEMPLATE_HEADER_ROW = 1
TEMPLATE_EXAMPLE_ROW = 2

# Always written with the text number format
TEXT_ATTRIBUTES = (INTEGRATION_COLUMNS[INTEGRATION_KEY_HEADER], INTEGRATION_COLUMNS[INTEGRATION_TRACKING_HEADER])


@dataclass
class RowStyle:
    number_format: str
    border: Any
    alignment: Any
    font: Any
    fill: Any


def capture_row_style(sheet, row_idx: int, width: int) -> dict[int, RowStyle]:
    styles: dict[int, RowStyle] = {}
    if sheet.max_row < row_idx:
        return styles
    for col in range(1, width + 1):
        cell = sheet.cell(row=row_idx, column=col)
        styles[col] = RowStyle(
            number_format=cell.number_format,
            border=copy(cell.border),
            alignment=copy(cell.alignment),
            font=copy(cell.font),
            fill=copy(cell.fill),
        )
    return styles


def apply_style(cell, style: RowStyle | None) -> None:
    if style is None:
        return
    cell.number_format = style.number_format
    cell.border = copy(style.border)
    cell.alignment = copy(style.alignment)
    cell.font = copy(style.font)
    cell.fill = copy(style.fill)


def output_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def column_map(headers: list[str]) -> dict[str, int]:
    """Canonical attribute -> 1-based template column."""
    columns: dict[str, int] = {}
    for index, label in enumerate(headers, start=1):
        attribute = INTEGRATION_COLUMNS.get(label)
        if attribute and attribute not in columns:
            columns[attribute] = index
    return columns


def clear_data_rows(sheet) -> None:
    if sheet.max_row >= TEMPLATE_EXAMPLE_ROW:
        sheet.delete_rows(TEMPLATE_EXAMPLE_ROW, sheet.max_row - TEMPLATE_HEADER_ROW)
    for row_idx in [idx for idx in sheet.row_dimensions if idx > TEMPLATE_HEADER_ROW]:
        del sheet.row_dimensions[row_idx]


def build_integration_document(template: bytes, rows: Iterable[CanonicalRow]) -> bytes:
    workbook = load_workbook_bytes(template)
    sheet = first_sheet(workbook)

    headers = header_labels([cell_value(cell) for cell in sheet[TEMPLATE_HEADER_ROW]])
    columns = column_map(headers)
    width = max(sheet.max_column, len(headers))
    base_styles = capture_row_style(sheet, TEMPLATE_EXAMPLE_ROW, width)
    base_height = sheet.row_dimensions[TEMPLATE_EXAMPLE_ROW].height if sheet.max_row >= TEMPLATE_EXAMPLE_ROW else None
    text_columns = {columns[attr] for attr in TEXT_ATTRIBUTES if attr in columns}

    clear_data_rows(sheet)

    for offset, row in enumerate(rows):
        row_idx = TEMPLATE_EXAMPLE_ROW + offset
        if base_height is not None:
            sheet.row_dimensions[row_idx].height = base_height
        for col in range(1, width + 1):
            apply_style(sheet.cell(row=row_idx, column=col), base_styles.get(col))
        for attribute, col in columns.items():
            cell = sheet.cell(row=row_idx, column=col)
            if attribute == "tracking_number":
                # always blank at this stage
                cell.value = ""
            else:
                cell.value = output_value(getattr(row, attribute))
            if col in text_columns:
                cell.number_format = TEXT_FORMAT

    return workbook_to_bytes(workbook)
