"""
normalize.py — map one channel row onto the canonical order record

Public API:
    row = normalize_row("NAVER", {"상품주문번호": "2024...", ...})

Each channel has its own mapping function registered in NORMALIZERS; the
column labels they read live in channels.FIELD_HEADERS. Rules shared by all
channels:

    names/text   trimmed, whitespace runs collapsed
    quantity     everything but digits and dots stripped, 0 when unparseable
    ordered_at   "YYYY-MM-DD HH:MM", seconds dropped, no timezone shift
    message      blanked when it repeats the address
    admin buyer  operator identity when buyer == receiver

Normalization never raises on bad values. A row whose order key comes out
empty is still returned; callers drop it before it reaches the store.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Mapping

from order_relay.cells import text
from order_relay.channels import COUPANG, FIELD_HEADERS, MANDARINSPOON, NAVER, TOSS
from order_relay.config import DEFAULT_OPERATOR, Operator
from order_relay.errors import UnknownSchema

NON_NUMERIC_RE = re.compile(r"[^\d.]")
TIMESTAMP_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})\s+(\d{2}:\d{2})(:\d{2})?$")


@dataclass(frozen=True)
class CanonicalRow:
    channel: str
    order_key: str
    ordered_at: str = ""
    product_name: str = ""
    quantity: int = 0
    receiver_name: str = ""
    receiver_phone: str = ""
    zip_code: str = ""
    address: str = ""
    message: str = ""
    buyer_name: str = ""
    buyer_phone: str = ""
    admin_buyer_name: str = ""
    admin_buyer_phone: str = ""
    tracking_number: str = ""

    @property
    def composite_key(self) -> tuple[str, str]:
        return (self.channel, self.order_key)


def norm_name(value: Any) -> str:
    return " ".join(text(value).split())


def norm_text(value: Any) -> str:
    return text(value).strip()


norm_phone = norm_text


def to_quantity(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)) and math.isfinite(value) and value >= 0:
        return int(value)
    digits = NON_NUMERIC_RE.sub("", text(value))
    try:
        return int(float(digits))
    except (ValueError, OverflowError):
        return 0


def format_timestamp(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d 00:00")
    raw = text(value).strip()
    if not raw:
        return ""
    dashed = raw.replace("/", "-")
    match = TIMESTAMP_RE.match(dashed)
    if match:
        return f"{match.group(1)} {match.group(2)}"
    return dashed


def blank_if_same_as_address(address: str, message: Any) -> str:
    cleaned = norm_text(message)
    if address and cleaned and norm_name(address) == norm_name(cleaned):
        return ""
    return cleaned


def admin_buyer(buyer_name: str, buyer_phone: str, receiver_name: str, operator: Operator) -> tuple[str, str]:
    buyer = norm_name(buyer_name)
    receiver = norm_name(receiver_name)
    if buyer and receiver and buyer == receiver:
        return operator.name, operator.phone
    return f"{buyer}/{operator.label}", norm_phone(buyer_phone)


def _build_row(
    channel: str,
    row: Mapping[str, Any],
    product_name: str,
    operator: Operator,
) -> CanonicalRow:
    columns = FIELD_HEADERS[channel]
    buyer_name = norm_name(row.get(columns["buyer_name"]))
    buyer_phone = norm_phone(row.get(columns["buyer_phone"]))
    receiver_name = norm_name(row.get(columns["receiver_name"]))
    address = norm_text(row.get(columns["address"]))
    admin_name, admin_phone = admin_buyer(buyer_name, buyer_phone, receiver_name, operator)
    return CanonicalRow(
        channel=channel,
        order_key=norm_text(row.get(columns["order_key"])),
        ordered_at=format_timestamp(row.get(columns["ordered_at"])),
        product_name=product_name,
        quantity=to_quantity(row.get(columns["quantity"])),
        receiver_name=receiver_name,
        receiver_phone=norm_phone(row.get(columns["receiver_phone"])),
        zip_code=norm_text(row.get(columns["zip_code"])),
        address=address,
        message=blank_if_same_as_address(address, row.get(columns["message"])),
        buyer_name=buyer_name,
        buyer_phone=buyer_phone,
        admin_buyer_name=admin_name,
        admin_buyer_phone=admin_phone,
        tracking_number="",
    )


def _normalize_naver(row: Mapping[str, Any], operator: Operator) -> CanonicalRow:
    product = norm_text(row.get(FIELD_HEADERS[NAVER]["product_name"]))
    return _build_row(NAVER, row, product, operator)


def _normalize_toss(row: Mapping[str, Any], operator: Operator) -> CanonicalRow:
    columns = FIELD_HEADERS[TOSS]
    product = norm_text(row.get(columns["product_name"]))
    option = norm_text(row.get(columns["product_option"]))
    return _build_row(TOSS, row, f"{product} {option}" if option else product, operator)


def _normalize_coupang(row: Mapping[str, Any], operator: Operator) -> CanonicalRow:
    columns = FIELD_HEADERS[COUPANG]
    product = norm_text(row.get(columns["product_name"])) or norm_text(row.get(columns["product_fallback"]))
    return _build_row(COUPANG, row, product, operator)


def _normalize_mandarinspoon(row: Mapping[str, Any], operator: Operator) -> CanonicalRow:
    product = norm_text(row.get(FIELD_HEADERS[MANDARINSPOON]["product_name"]))
    return _build_row(MANDARINSPOON, row, product, operator)


NORMALIZERS: dict[str, Callable[[Mapping[str, Any], Operator], CanonicalRow]] = {
    NAVER: _normalize_naver,
    TOSS: _normalize_toss,
    COUPANG: _normalize_coupang,
    MANDARINSPOON: _normalize_mandarinspoon,
}


def normalize_row(channel: str, row: Mapping[str, Any], operator: Operator = DEFAULT_OPERATOR) -> CanonicalRow:
    try:
        normalizer = NORMALIZERS[channel]
    except KeyError:
        raise UnknownSchema(f"No row mapping for channel {channel!r}") from None
    return normalizer(row, operator)
