"""In-memory channel exports and courier result files for the test suite."""

from __future__ import annotations

import io
from typing import Any, Iterable, Optional

from openpyxl import Workbook, load_workbook

from order_relay.channels import (
    FIELD_HEADERS,
    NAVER,
    NAVER_DATE_HEADERS,
    RESULT_KEY_HEADER,
    RESULT_TRACKING_HEADER,
    TRACKING_HEADERS,
)

NAVER_DESCRIPTION = "발송처리 대상 주문입니다. 송장번호를 입력한 뒤 업로드하세요."


def export_headers(channel: str) -> list[str]:
    headers = list(FIELD_HEADERS[channel].values())
    if channel == NAVER:
        headers += list(NAVER_DATE_HEADERS)
    tracking = TRACKING_HEADERS[channel]
    if tracking not in headers:
        headers.append(tracking)
    return headers


def workbook_bytes(rows: Iterable[Iterable[Any]], title: str = "Sheet1") -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for row in rows:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export_rows(channel: str, orders: Iterable[dict[str, Any]]) -> list[list[Any]]:
    fields = FIELD_HEADERS[channel]
    label_to_field = {label: field for field, label in fields.items()}
    rows = []
    for order in orders:
        rows.append([order.get(label_to_field.get(label, label)) for label in export_headers(channel)])
    return rows


def channel_export(
    channel: str,
    orders: Iterable[dict[str, Any]],
    *,
    description: Optional[str] = None,
    title: str = "Sheet1",
) -> bytes:
    rows: list[list[Any]] = []
    if description is not None:
        rows.append([description])
    rows.append(export_headers(channel))
    rows.extend(export_rows(channel, orders))
    return workbook_bytes(rows, title=title)


def order(key: Any, **values: Any) -> dict[str, Any]:
    base = {
        "order_key": key,
        "ordered_at": "2024/05/01 10:20:30",
        "product_name": "한라봉 3kg",
        "quantity": 1,
        "receiver_name": "김수령",
        "receiver_phone": "010-1111-2222",
        "zip_code": "63000",
        "address": "제주시 1100로 1",
        "message": "문 앞",
        "buyer_name": "박구매",
        "buyer_phone": "010-3333-4444",
    }
    base.update(values)
    return base


def result_file(pairs: Iterable[tuple[Any, Any]], key_header: str = RESULT_KEY_HEADER) -> bytes:
    rows: list[list[Any]] = [["받는분성명", key_header, RESULT_TRACKING_HEADER]]
    for key, tracking in pairs:
        rows.append(["김수령", key, tracking])
    return workbook_bytes(rows)


def first_sheet(data: bytes):
    return load_workbook(io.BytesIO(data)).worksheets[0]


def column_values(sheet, label: str, header_row: int = 1) -> list[Any]:
    headers = [cell.value for cell in sheet[header_row]]
    col = headers.index(label) + 1
    return [sheet.cell(row=row_idx, column=col).value for row_idx in range(header_row + 1, sheet.max_row + 1)]
