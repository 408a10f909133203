"""
templates.py — the purchase-order template

load_template() accepts a local path, an http(s) URL or nothing; nothing
means the built-in template from default_template().
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

import openpyxl
import requests
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from order_relay.channels import INTEGRATION_COLUMNS, INTEGRATION_KEY_HEADER, INTEGRATION_TRACKING_HEADER, TEXT_FORMAT
from order_relay.workbook import workbook_to_bytes

MAX_TEMPLATE_MB = 20
MAX_TEMPLATE_BYTES = MAX_TEMPLATE_MB * 1024 * 1024
TEMPLATE_SHEET_TITLE = "통합발주서"

THIN = Side(style="thin", color="BFBFBF")
CELL_BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)


def _header_font() -> Font:
    return Font(bold=True, color="FFFFFF")


def _header_fill(hex_color: str) -> PatternFill:
    return PatternFill("solid", fgColor=hex_color)


def default_template() -> bytes:
    """Header row plus one styled, empty example row."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = TEMPLATE_SHEET_TITLE
    headers = list(INTEGRATION_COLUMNS)
    ws.append(headers)
    for col, label in enumerate(headers, start=1):
        header = ws.cell(row=1, column=col)
        header.font = _header_font()
        header.fill = _header_fill("1565C0")
        header.border = CELL_BORDER
        header.alignment = Alignment(horizontal="center", vertical="center")

        example = ws.cell(row=2, column=col)
        example.font = Font(size=10)
        example.border = CELL_BORDER
        example.alignment = Alignment(vertical="center", wrap_text=label in {"통합배송지", "배송메세지", "상품명"})
        if label in {INTEGRATION_KEY_HEADER, INTEGRATION_TRACKING_HEADER}:
            example.number_format = TEXT_FORMAT
        ws.column_dimensions[get_column_letter(col)].width = max(12, min(40, len(label) * 3))
    ws.row_dimensions[2].height = 18
    ws.freeze_panes = "A2"
    return workbook_to_bytes(wb)


def fetch_remote_template(url: str) -> bytes:
    response = requests.get(url, timeout=60, allow_redirects=True, stream=True)
    try:
        response.raise_for_status()
        chunks: list[bytes] = []
        downloaded = 0
        for chunk in response.iter_content(chunk_size=1024 * 1024):
            if not chunk:
                continue
            downloaded += len(chunk)
            if downloaded > MAX_TEMPLATE_BYTES:
                raise ValueError(f"Remote template is larger than {MAX_TEMPLATE_MB} MB.")
            chunks.append(chunk)
    finally:
        response.close()
    return b"".join(chunks)


def load_template(source: str | Path | None = None) -> bytes:
    if source is None or str(source) == "":
        return default_template()
    raw = str(source)
    if urlparse(raw).scheme in {"http", "https"}:
        try:
            return fetch_remote_template(raw)
        except requests.RequestException as exc:
            raise ValueError(f"Could not download template from {raw}: {exc}") from exc
    path = Path(raw)
    if not path.exists():
        raise FileNotFoundError(f"Template not found: {path}")
    return path.read_bytes()
