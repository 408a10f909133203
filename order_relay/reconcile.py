"""
reconcile.py — courier result file -> key/tracking map -> match report

The result file is channel-agnostic, so matching uses bare order keys. Two
channels sharing an order key are indistinguishable here even though the
integration document keeps them apart.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Mapping

import pandas as pd

from order_relay.cells import text
from order_relay.channels import (
    HEADER_SCAN_ROWS,
    RESULT_KEY_FALLBACK_HEADER,
    RESULT_KEY_HEADER,
    RESULT_TRACKING_HEADER,
)
from order_relay.errors import MissingColumn
from order_relay.headers import locate_headers, rows_as_records
from order_relay.normalize import CanonicalRow
from order_relay.workbook import open_first_sheet


@dataclass(frozen=True)
class MatchReport:
    total_original_rows: int
    total_result_rows: int
    matched: int
    missing_in_result: list[str] = field(default_factory=list)
    missing_in_canonical: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def select_key_header(headers: list[str]) -> str:
    for candidate in (RESULT_KEY_HEADER, RESULT_KEY_FALLBACK_HEADER):
        if candidate in headers:
            return candidate
    raise MissingColumn(
        "Could not find the order number column in the result file "
        f"({RESULT_KEY_HEADER} / {RESULT_KEY_FALLBACK_HEADER})."
    )


def build_result_map(result: bytes, scan_rows: int = HEADER_SCAN_ROWS) -> dict[str, str]:
    grid = open_first_sheet(result).grid()
    header_row, headers = locate_headers(grid, scan_rows)
    key_header = select_key_header(headers)
    if RESULT_TRACKING_HEADER not in headers:
        raise MissingColumn(f"Could not find the tracking number column in the result file ({RESULT_TRACKING_HEADER}).")

    mapping: dict[str, str] = {}
    for record in rows_as_records(grid, headers, header_row):
        key = text(record.get(key_header)).strip()
        if not key:
            continue
        mapping[key] = text(record.get(RESULT_TRACKING_HEADER)).strip()
    return mapping


def compute_match_report(rows: Iterable[CanonicalRow], result_map: Mapping[str, str]) -> MatchReport:
    rows = list(rows)
    origin_keys = list(dict.fromkeys(row.order_key for row in rows))
    origin_set = set(origin_keys)
    result_keys = list(result_map)
    return MatchReport(
        total_original_rows=len(rows),
        total_result_rows=len(result_map),
        matched=sum(1 for key in origin_keys if key in result_map),
        missing_in_result=[key for key in origin_keys if key not in result_map],
        missing_in_canonical=[key for key in result_keys if key not in origin_set],
    )


def report_frame(report: MatchReport) -> pd.DataFrame:
    records = [(key, "missing_in_result") for key in report.missing_in_result]
    records += [(key, "missing_in_canonical") for key in report.missing_in_canonical]
    return pd.DataFrame.from_records(records, columns=["order_key", "status"])
