"""
headers.py — find the header row of an export sheet

NAVER exports put a free-text description row above the real header, so
"row 1 is the header" does not hold for every channel. Each of the first
scan_rows rows is scored by how many of its labels are known column names;
the best row scoring at least MIN_HEADER_SCORE wins, earliest on ties, and
row 1 is used when nothing qualifies.

Row numbers returned here are 1-based like worksheet rows.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from order_relay.cells import text
from order_relay.channels import HEADER_KEYWORDS, HEADER_SCAN_ROWS, MIN_HEADER_SCORE


def normalize_label(value: Any) -> str:
    return " ".join(text(value).split())


def header_labels(row: Sequence[Any]) -> list[str]:
    labels = [normalize_label(value) for value in row]
    while labels and not labels[-1]:
        labels.pop()
    return labels


def header_score(labels: Iterable[str], vocabulary: frozenset[str] = HEADER_KEYWORDS) -> int:
    return sum(1 for label in labels if label and label in vocabulary)


def find_header_row(grid: Sequence[Sequence[Any]], scan_rows: int = HEADER_SCAN_ROWS) -> int:
    best_row = 1
    best_score = -1
    for index, row in enumerate(grid[:scan_rows], start=1):
        labels = header_labels(row)
        if not labels:
            continue
        score = header_score(labels)
        if score > best_score and score >= MIN_HEADER_SCORE:
            best_score = score
            best_row = index
    return best_row


def locate_headers(grid: Sequence[Sequence[Any]], scan_rows: int = HEADER_SCAN_ROWS) -> tuple[int, list[str]]:
    header_row = find_header_row(grid, scan_rows)
    row = grid[header_row - 1] if len(grid) >= header_row else []
    return header_row, header_labels(row)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def rows_as_records(grid: Sequence[Sequence[Any]], headers: Sequence[str], header_row: int) -> list[dict[str, Any]]:
    """Map every non-empty data row below header_row to a label-keyed dict."""
    records: list[dict[str, Any]] = []
    for row in grid[header_row:]:
        record: dict[str, Any] = {}
        for index, label in enumerate(headers):
            if not label:
                continue
            record[label] = row[index] if index < len(row) else None
        if any(not is_blank(value) for value in record.values()):
            records.append(record)
    return records


def find_header_column(headers: Sequence[str], target: str) -> int | None:
    """1-based column of target: exact label first, then whitespace-insensitive substring."""
    if target in headers:
        return list(headers).index(target) + 1
    squashed = "".join(target.split())
    for index, label in enumerate(headers, start=1):
        if squashed and squashed in "".join(label.split()):
            return index
    return None
