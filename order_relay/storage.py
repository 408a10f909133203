"""
storage.py — persist a SessionState to one JSON file

The whole session lives under a single fixed key and is replaced on every
save. Raw workbook bytes are stored base64-encoded so a reloaded session can
still fill back the original files.
"""

from __future__ import annotations

import base64
import json
import os
import tempfile
from dataclasses import asdict
from pathlib import Path
from typing import Any

from order_relay.errors import SessionError
from order_relay.normalize import CanonicalRow
from order_relay.reconcile import MatchReport
from order_relay.session import ParsedFile, SessionState
from order_relay.store import CanonicalRowStore

STORAGE_KEY = "order-relay:v1"


def _encode(data: bytes | None) -> str | None:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def _decode(value: str | None) -> bytes | None:
    if value is None:
        return None
    return base64.b64decode(value.encode("ascii"))


def state_to_payload(state: SessionState) -> dict[str, Any]:
    files = []
    for parsed in state.files:
        files.append(
            {
                "id": parsed.id,
                "name": parsed.name,
                "channel": parsed.channel,
                "headers": list(parsed.headers),
                "row_count": parsed.row_count,
                "source": _encode(parsed.source),
            }
        )
    return {
        STORAGE_KEY: {
            "files": files,
            "rows": [asdict(row) for row in state.store.rows],
            "integration_document": _encode(state.integration_document),
            "result_document": _encode(state.result_document),
            "result_map": dict(state.result_map) if state.result_map is not None else None,
            "match_report": state.match_report.as_dict() if state.match_report is not None else None,
        }
    }


def payload_to_state(payload: dict[str, Any]) -> SessionState:
    body = payload.get(STORAGE_KEY)
    if not isinstance(body, dict):
        raise SessionError(f"Saved session has no {STORAGE_KEY!r} entry.")
    try:
        files = tuple(
            ParsedFile(
                id=item["id"],
                name=item["name"],
                channel=item["channel"],
                headers=tuple(item["headers"]),
                row_count=int(item["row_count"]),
                source=_decode(item["source"]) or b"",
            )
            for item in body.get("files", [])
        )
        rows = tuple(CanonicalRow(**item) for item in body.get("rows", []))
        report = body.get("match_report")
        return SessionState(
            files=files,
            store=CanonicalRowStore(rows=rows),
            integration_document=_decode(body.get("integration_document")),
            result_document=_decode(body.get("result_document")),
            result_map=body.get("result_map"),
            match_report=MatchReport(**report) if report is not None else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise SessionError(f"Saved session is corrupt: {exc}") from exc


def save_state(path: Path, state: SessionState) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=path.suffix, dir=str(path.parent))
    os.close(fd)
    temp_path = Path(tmp_name)
    try:
        temp_path.write_text(json.dumps(state_to_payload(state), ensure_ascii=False), encoding="utf-8")
        os.replace(temp_path, path)
    finally:
        if temp_path.exists():
            temp_path.unlink()


def load_state(path: Path) -> SessionState:
    """Missing file means a fresh session."""
    path = Path(path)
    if not path.exists():
        return SessionState()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SessionError(f"Could not read saved session {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SessionError("Saved session root must be a JSON object.")
    return payload_to_state(payload)


def clear_state(path: Path) -> bool:
    path = Path(path)
    if path.exists():
        path.unlink()
        return True
    return False
