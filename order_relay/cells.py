"""
cells.py — read openpyxl cells as plain values

Source exports put order data in five cell shapes: blank, plain scalar,
formula (the cached result is the value), hyperlink (the display text is the
value) and rich text (all runs joined in order). Anything else is stringified.
Each shape has exactly one extractor in EXTRACTORS.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any

from openpyxl.cell.rich_text import CellRichText
from openpyxl.worksheet.formula import ArrayFormula, DataTableFormula

BLANK = "blank"
SCALAR = "scalar"
FORMULA = "formula"
HYPERLINK = "hyperlink"
RICH_TEXT = "rich_text"
OTHER = "other"

SCALAR_TYPES = (str, int, float, bool, datetime, date, time, timedelta)


def cell_shape(cell) -> str:
    value = cell.value
    if getattr(cell, "data_type", None) == "f" or isinstance(value, (ArrayFormula, DataTableFormula)):
        return FORMULA
    if isinstance(value, CellRichText):
        return RICH_TEXT
    if getattr(cell, "hyperlink", None) is not None:
        return HYPERLINK
    if value is None:
        return BLANK
    if isinstance(value, SCALAR_TYPES):
        return SCALAR
    return OTHER


def join_runs(value: CellRichText) -> str:
    return "".join(block if isinstance(block, str) else (block.text or "") for block in value)


def _blank(cell, cached):
    return None


def _scalar(cell, cached):
    return cell.value


def _formula(cell, cached):
    # cached comes from the data_only twin; None when the file was never recalculated
    return cached


def _hyperlink(cell, cached):
    value = cell.value
    if isinstance(value, CellRichText):
        return join_runs(value)
    if value is None:
        return cell.hyperlink.display or ""
    return value


def _rich_text(cell, cached):
    return join_runs(cell.value)


def _other(cell, cached):
    return str(cell.value)


EXTRACTORS = {
    BLANK: _blank,
    SCALAR: _scalar,
    FORMULA: _formula,
    HYPERLINK: _hyperlink,
    RICH_TEXT: _rich_text,
    OTHER: _other,
}


def cell_value(cell, cached: Any = None) -> Any:
    return EXTRACTORS[cell_shape(cell)](cell, cached)


def read_grid(sheet, cached_sheet=None) -> list[list[Any]]:
    """Return every row of sheet as extracted values, 0-based lists."""
    grid: list[list[Any]] = []
    for row in sheet.iter_rows(min_row=1, max_row=sheet.max_row):
        values = []
        for cell in row:
            cached = None
            if cached_sheet is not None and cell_shape(cell) == FORMULA:
                cached = cached_sheet.cell(row=cell.row, column=cell.column).value
            values.append(cell_value(cell, cached))
        grid.append(values)
    return grid


def text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, CellRichText):
        return join_runs(value)
    return str(value)
