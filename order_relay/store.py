"""Append-only canonical row store and its merge policy."""

from __future__ import annotations

from dataclasses import astuple, dataclass, fields
from typing import Iterable

import pandas as pd

from order_relay.normalize import CanonicalRow

PREVIEW_ROWS = 20


@dataclass(frozen=True)
class CanonicalRowStore:
    rows: tuple[CanonicalRow, ...] = ()

    def __len__(self) -> int:
        return len(self.rows)

    def append(self, rows: Iterable[CanonicalRow]) -> "CanonicalRowStore":
        """Return a new store with rows added; rows without an order key are dropped."""
        added = tuple(row for row in rows if row.order_key)
        return CanonicalRowStore(rows=self.rows + added)

    def deduplicated(self) -> list[CanonicalRow]:
        """First row per (channel, order_key), in upload order."""
        seen: set[tuple[str, str]] = set()
        kept: list[CanonicalRow] = []
        for row in self.rows:
            if row.composite_key in seen:
                continue
            seen.add(row.composite_key)
            kept.append(row)
        return kept

    def order_keys(self) -> list[str]:
        """Unique bare order keys, first-seen order, channel ignored."""
        return list(dict.fromkeys(row.order_key for row in self.rows))

    def channel_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for row in self.rows:
            counts[row.channel] = counts.get(row.channel, 0) + 1
        return counts


def rows_frame(rows: Iterable[CanonicalRow], limit: int | None = PREVIEW_ROWS) -> pd.DataFrame:
    columns = [item.name for item in fields(CanonicalRow)]
    records = [astuple(row) for row in rows]
    if limit is not None:
        records = records[:limit]
    return pd.DataFrame.from_records(records, columns=columns)
