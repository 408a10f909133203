"""
session.py — the operator's working set across both stages

SessionState is a frozen value. Every operation here takes a state and
returns a new one, so a caller can keep the previous value around (undo,
persistence) and a failed step never leaves a half-updated session.

Stage A   ingest_files() -> build_integration()
Stage B   load_result()   -> fill_back_outputs()
"""

from __future__ import annotations

import io
import uuid
import zipfile
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from order_relay.channels import CHANNEL_LABELS, UNKNOWN
from order_relay.config import Settings
from order_relay.detect import detect_channel
from order_relay.errors import FileError, OrderRelayError, SessionError, UnknownSchema, file_error
from order_relay.fill_back import fill_tracking_detailed
from order_relay.headers import locate_headers, rows_as_records
from order_relay.integrate import build_integration_document
from order_relay.normalize import CanonicalRow, normalize_row
from order_relay.reconcile import MatchReport, build_result_map, compute_match_report
from order_relay.store import CanonicalRowStore
from order_relay.workbook import open_first_sheet, to_bytes

INTEGRATION_PREFIX = "통합발주서"
BUNDLE_PREFIX = "결과"


@dataclass(frozen=True)
class ParsedFile:
    id: str
    name: str
    channel: str
    headers: tuple[str, ...]
    row_count: int
    source: bytes = field(repr=False)


@dataclass(frozen=True)
class SessionState:
    files: tuple[ParsedFile, ...] = ()
    store: CanonicalRowStore = field(default_factory=CanonicalRowStore)
    integration_document: bytes | None = field(default=None, repr=False)
    result_document: bytes | None = field(default=None, repr=False)
    result_map: Mapping[str, str] | None = None
    match_report: MatchReport | None = None

    def channel_file_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for parsed in self.files:
            counts[parsed.channel] = counts.get(parsed.channel, 0) + 1
        return counts


@dataclass(frozen=True)
class IngestResult:
    state: SessionState
    parsed: tuple[ParsedFile, ...]
    errors: tuple[FileError, ...]


@dataclass(frozen=True)
class FillBackOutput:
    file_name: str
    source_name: str
    channel: str
    data: bytes = field(repr=False)
    rows_filled: int = 0
    rows_unmatched: int = 0


@dataclass(frozen=True)
class FillBackBatch:
    outputs: tuple[FillBackOutput, ...]
    errors: tuple[FileError, ...]


def integration_file_name(stamp: str) -> str:
    return f"{INTEGRATION_PREFIX}_{stamp}.xlsx"


def bundle_file_name(stamp: str) -> str:
    return f"{BUNDLE_PREFIX}_{stamp}.zip"


def fill_back_file_name(channel: str, stamp: str, ordinal: int = 1) -> str:
    label = CHANNEL_LABELS.get(channel, channel)
    suffix = "" if ordinal <= 1 else f"_{ordinal}"
    return f"{label}_{stamp}{suffix}.xlsx"


def parse_file(name: str, data: bytes, settings: Settings | None = None) -> tuple[ParsedFile, list[CanonicalRow]]:
    """Parse one uploaded export; raises the order_relay error taxonomy."""
    settings = settings or Settings()
    data = to_bytes(data)
    grid = open_first_sheet(data).grid()
    header_row, headers = locate_headers(grid, settings.header_scan_rows)
    channel = detect_channel(headers)
    if channel == UNKNOWN:
        raise UnknownSchema(f"{name}: header row does not match any known order export.")
    records = rows_as_records(grid, headers, header_row)
    rows = [normalize_row(channel, record, settings.operator) for record in records]
    parsed = ParsedFile(
        id=uuid.uuid4().hex,
        name=name,
        channel=channel,
        headers=tuple(headers),
        row_count=len(records),
        source=data,
    )
    return parsed, rows


def ingest_files(
    state: SessionState,
    files: Iterable[tuple[str, bytes]],
    settings: Settings | None = None,
) -> IngestResult:
    """Parse a batch file by file; a bad file is reported and skipped."""
    parsed_files: list[ParsedFile] = []
    errors: list[FileError] = []
    store = state.store
    for name, data in files:
        try:
            parsed, rows = parse_file(name, data, settings)
        except OrderRelayError as exc:
            errors.append(file_error(name, exc))
            continue
        parsed_files.append(parsed)
        store = store.append(rows)

    new_state = replace(state, files=state.files + tuple(parsed_files), store=store)
    if new_state.result_map is not None:
        new_state = replace(new_state, match_report=compute_match_report(store.rows, new_state.result_map))
    return IngestResult(state=new_state, parsed=tuple(parsed_files), errors=tuple(errors))


def build_integration(state: SessionState, template: bytes) -> SessionState:
    if not len(state.store):
        raise SessionError("No order rows loaded yet. Upload at least one channel export first.")
    document = build_integration_document(template, state.store.deduplicated())
    return replace(state, integration_document=document)


def load_result(state: SessionState, result: bytes, settings: Settings | None = None) -> SessionState:
    settings = settings or Settings()
    result = to_bytes(result)
    result_map = build_result_map(result, settings.header_scan_rows)
    report = compute_match_report(state.store.rows, result_map)
    return replace(state, result_document=result, result_map=result_map, match_report=report)


def fill_back_outputs(state: SessionState, stamp: str, settings: Settings | None = None) -> FillBackBatch:
    """Fill every uploaded original; later files of one channel get _2, _3 suffixes."""
    settings = settings or Settings()
    if state.result_map is None:
        raise SessionError("No result file loaded yet. Upload the courier result first.")
    if not state.files:
        raise SessionError("No original files in the session to fill back.")

    outputs: list[FillBackOutput] = []
    errors: list[FileError] = []
    ordinals: dict[str, int] = {}
    for parsed in state.files:
        try:
            filled = fill_tracking_detailed(parsed.channel, parsed.source, state.result_map, settings.header_scan_rows)
        except OrderRelayError as exc:
            errors.append(file_error(parsed.name, exc))
            continue
        ordinals[parsed.channel] = ordinals.get(parsed.channel, 0) + 1
        outputs.append(
            FillBackOutput(
                file_name=fill_back_file_name(parsed.channel, stamp, ordinals[parsed.channel]),
                source_name=parsed.name,
                channel=parsed.channel,
                data=filled.data,
                rows_filled=filled.rows_filled,
                rows_unmatched=filled.rows_unmatched,
            )
        )
    return FillBackBatch(outputs=tuple(outputs), errors=tuple(errors))


def reset() -> SessionState:
    return SessionState()


def bundle_outputs(outputs: Iterable[FillBackOutput]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for output in outputs:
            archive.writestr(output.file_name, output.data)
    return buffer.getvalue()
