"""
channels.py — header tables for the four order sources and the courier result

Everything here is plain configuration data. Behaviour that differs per
channel lives in normalize.py and fill_back.py.
"""

from __future__ import annotations

NAVER = "NAVER"
TOSS = "TOSS"
COUPANG = "COUPANG"
MANDARINSPOON = "MANDARINSPOON"
UNKNOWN = "unknown"

CHANNELS = (NAVER, TOSS, COUPANG, MANDARINSPOON)

# Used in output file names
CHANNEL_LABELS = {
    NAVER: "네이버",
    TOSS: "토스",
    COUPANG: "쿠팡",
    MANDARINSPOON: "귤수저",
}

# Minimal header subsets; a sheet belongs to a channel when all three are present.
REQUIRED_HEADERS = {
    NAVER: ("상품주문번호", "수취인명", "송장번호"),
    TOSS: ("주문상품번호", "수령인명", "송장번호"),
    COUPANG: ("주문번호", "수취인이름", "운송장번호"),
    MANDARINSPOON: ("고객주문번호", "보내는분성명", "받는분성명"),
}

# Canonical field -> source column label
FIELD_HEADERS = {
    NAVER: {
        "order_key": "상품주문번호",
        "ordered_at": "주문일시",
        "product_name": "상품명",
        "quantity": "수량",
        "receiver_name": "수취인명",
        "receiver_phone": "수취인연락처1",
        "zip_code": "우편번호",
        "address": "통합배송지",
        "message": "배송메세지",
        "buyer_name": "구매자명",
        "buyer_phone": "구매자연락처",
    },
    TOSS: {
        "order_key": "주문상품번호",
        "ordered_at": "주문일자",
        "product_name": "상품명",
        "product_option": "옵션",
        "quantity": "수량",
        "receiver_name": "수령인명",
        "receiver_phone": "수령인 연락처",
        "zip_code": "우편번호",
        "address": "주소",
        "message": "요청사항",
        "buyer_name": "구매자명",
        "buyer_phone": "구매자 연락처",
    },
    COUPANG: {
        "order_key": "주문번호",
        "ordered_at": "주문일",
        "product_name": "노출상품명(옵션명)",
        "product_fallback": "등록상품명",
        "quantity": "구매수(수량)",
        "receiver_name": "수취인이름",
        "receiver_phone": "수취인전화번호",
        "zip_code": "우편번호",
        "address": "수취인 주소",
        "message": "배송메세지",
        "buyer_name": "구매자",
        "buyer_phone": "구매자전화번호",
    },
    MANDARINSPOON: {
        "order_key": "고객주문번호",
        "ordered_at": "주문일시",
        "product_name": "품목명",
        "quantity": "박스수량",
        "receiver_name": "받는분성명",
        "receiver_phone": "받는분전화번호",
        "zip_code": "받는분우편번호",
        "address": "받는분주소(전체, 분할)",
        "message": "배송메세지1",
        "buyer_name": "보내는분성명",
        "buyer_phone": "보내는분전화번호",
    },
}

# Columns used when writing tracking numbers back into an original export
ORDER_KEY_HEADERS = {channel: FIELD_HEADERS[channel]["order_key"] for channel in CHANNELS}
TRACKING_HEADERS = {
    NAVER: "송장번호",
    TOSS: "송장번호",
    COUPANG: "운송장번호",
    MANDARINSPOON: "운송장번호",
}

# NAVER exports these as raw serial numbers unless a display format is forced
NAVER_DATE_HEADERS = ("발주확인일", "발송기한")
NAVER_SHEET_TITLE = "발송처리"
DATE_TIME_FORMAT = "yyyy-mm-dd hh:mm"
TEXT_FORMAT = "@"

# Courier result file
RESULT_KEY_HEADER = "거래처 주문번호"
RESULT_KEY_FALLBACK_HEADER = "상품주문번호"
RESULT_TRACKING_HEADER = "운송장번호"

# Integration template column -> CanonicalRow attribute
INTEGRATION_COLUMNS = {
    "주문일시": "ordered_at",
    "상품명": "product_name",
    "수량": "quantity",
    "수취인명": "receiver_name",
    "수취인연락처1": "receiver_phone",
    "우편번호": "zip_code",
    "통합배송지": "address",
    "배송메세지": "message",
    "상품주문번호": "order_key",
    "운송장번호": "tracking_number",
    "구매자명": "buyer_name",
    "구매자연락처": "buyer_phone",
    "어드민용 구매자명": "admin_buyer_name",
    "어드민용 구매자연락처": "admin_buyer_phone",
}
INTEGRATION_KEY_HEADER = "상품주문번호"
INTEGRATION_TRACKING_HEADER = "운송장번호"

HEADER_SCAN_ROWS = 20
MIN_HEADER_SCORE = 2


def _header_vocabulary() -> frozenset[str]:
    words = {
        RESULT_KEY_HEADER,
        RESULT_KEY_FALLBACK_HEADER,
        RESULT_TRACKING_HEADER,
        "주문일시",
        "상품명",
        "수량",
        "수취인명",
        "구매자명",
        "통합배송지",
    }
    for labels in REQUIRED_HEADERS.values():
        words.update(labels)
    for fields in FIELD_HEADERS.values():
        words.update(fields.values())
    words.update(TRACKING_HEADERS.values())
    return frozenset(words)


HEADER_KEYWORDS = _header_vocabulary()
