#!/usr/bin/env python3
"""
Generates one order export per channel plus a courier result file in
sample-data/, for trying the full order-relay workflow by hand.

Run from the repo root:
    python sample-data/generate_samples.py

Quirks baked in:
  naver_orders.xlsx
    - Free-text description row above the real header (row 1)
    - Order numbers stored as numbers, not text
    - One message that just repeats the address
    - One buyer who is also the receiver
  toss_orders.xlsx
    - Product option in its own column
    - Dates written with slashes and seconds
  coupang_orders.xlsx
    - Empty display product name, only the registered name is filled
    - Order number shared with a NAVER order (same key, other channel)
  mandarinspoon_orders.xlsx
    - Quantity written as "2박스"
    - Duplicate row for the same order number
  courier_result.xlsx
    - Title row above the header
    - One order missing, one unknown order number
"""

from datetime import datetime
from pathlib import Path

import openpyxl

from order_relay.channels import (
    COUPANG,
    FIELD_HEADERS,
    MANDARINSPOON,
    NAVER,
    NAVER_DATE_HEADERS,
    RESULT_KEY_HEADER,
    RESULT_TRACKING_HEADER,
    TOSS,
    TRACKING_HEADERS,
)

OUT_DIR = Path(__file__).parent


def export_headers(channel):
    headers = list(FIELD_HEADERS[channel].values())
    if channel == NAVER:
        headers += list(NAVER_DATE_HEADERS)
    if TRACKING_HEADERS[channel] not in headers:
        headers.append(TRACKING_HEADERS[channel])
    return headers


def write_export(path, channel, orders, preamble=None):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "주문"
    if preamble:
        ws.append([preamble])
    headers = export_headers(channel)
    ws.append(headers)
    label_to_field = {label: field for field, label in FIELD_HEADERS[channel].items()}
    for item in orders:
        ws.append([item.get(label_to_field.get(label, label)) for label in headers])
    wb.save(path)
    print(f"Created: {path}")


# ── NAVER ────────────────────────────────────────────────────────────────────
write_export(
    OUT_DIR / "naver_orders.xlsx",
    NAVER,
    [
        {
            "order_key": 2024050100001,
            "ordered_at": datetime(2024, 5, 1, 9, 12, 44),
            "product_name": "한라봉 3kg",
            "quantity": 1,
            "receiver_name": "김수령",
            "receiver_phone": "010-1111-2222",
            "zip_code": "63000",
            "address": "제주특별자치도 제주시 1100로 1",
            "message": "제주특별자치도 제주시 1100로 1",
            "buyer_name": "박구매",
            "buyer_phone": "010-3333-4444",
            "발주확인일": datetime(2024, 5, 1, 10, 0),
            "발송기한": datetime(2024, 5, 3, 23, 59),
        },
        {
            "order_key": 2024050100002,
            "ordered_at": datetime(2024, 5, 1, 11, 3, 2),
            "product_name": "천혜향 5kg",
            "quantity": 2,
            "receiver_name": "이선물",
            "receiver_phone": "010-5555-6666",
            "zip_code": "06236",
            "address": "서울특별시 강남구 테헤란로 1",
            "message": "부재시 경비실",
            "buyer_name": "이선물",
            "buyer_phone": "010-5555-6666",
            "발주확인일": datetime(2024, 5, 1, 12, 0),
            "발송기한": datetime(2024, 5, 3, 23, 59),
        },
    ],
    preamble="발송처리 대상 주문 목록입니다. 송장번호를 입력한 뒤 일괄 발송처리에 업로드하세요.",
)

# ── TOSS ─────────────────────────────────────────────────────────────────────
write_export(
    OUT_DIR / "toss_orders.xlsx",
    TOSS,
    [
        {
            "order_key": "T-24050101",
            "ordered_at": "2024/05/01 13:45:10",
            "product_name": "레드향",
            "product_option": "2kg 선물용",
            "quantity": "1",
            "receiver_name": "최받음",
            "receiver_phone": "010-7777-8888",
            "zip_code": "48058",
            "address": "부산광역시 해운대구 센텀로 5",
            "message": "",
            "buyer_name": "정주문",
            "buyer_phone": "010-9999-0000",
        },
    ],
)

# ── COUPANG ──────────────────────────────────────────────────────────────────
write_export(
    OUT_DIR / "coupang_orders.xlsx",
    COUPANG,
    [
        {
            "order_key": "2024050100001",
            "ordered_at": "2024-05-01 15:00:00",
            "product_name": None,
            "product_fallback": "감귤 10kg 가정용",
            "quantity": 3,
            "receiver_name": "한택배",
            "receiver_phone": "010-1212-3434",
            "zip_code": "34126",
            "address": "대전광역시 유성구 대학로 99",
            "message": "문 앞",
            "buyer_name": "한택배",
            "buyer_phone": "010-1212-3434",
        },
    ],
)

# ── MANDARINSPOON ────────────────────────────────────────────────────────────
mandarin_order = {
    "order_key": "GS-0501-01",
    "ordered_at": "2024-05-01 16:20",
    "product_name": "황금향 3kg",
    "quantity": "2박스",
    "receiver_name": "윤받는",
    "receiver_phone": "010-4545-5656",
    "zip_code": "61452",
    "address": "광주광역시 동구 금남로 1",
    "message": "",
    "buyer_name": "서보냄",
    "buyer_phone": "010-6767-7878",
}
write_export(OUT_DIR / "mandarinspoon_orders.xlsx", MANDARINSPOON, [mandarin_order, dict(mandarin_order)])

# ── Courier result ───────────────────────────────────────────────────────────
wb = openpyxl.Workbook()
ws = wb.active
ws.title = "접수결과"
ws.append(["택배 접수 결과 (2024-05-02)"])
ws.append(["받는분성명", RESULT_KEY_HEADER, RESULT_TRACKING_HEADER])
ws.append(["김수령", "2024050100001", "612300000001"])
ws.append(["이선물", "2024050100002", "612300000002"])
ws.append(["윤받는", "GS-0501-01", "612300000004"])
ws.append(["미상", "UNKNOWN-1", "612300000099"])
wb.save(OUT_DIR / "courier_result.xlsx")
print(f"Created: {OUT_DIR / 'courier_result.xlsx'}")
