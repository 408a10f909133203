"""Runtime settings: operator identity, header scan depth, template location."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any

from order_relay.channels import HEADER_SCAN_ROWS

DEFAULT_CONFIG_NAME = "order-relay.json"
STATE_ENV = "ORDER_RELAY_STATE"
STAMP_ENV = "ORDER_RELAY_OUTPUT_STAMP"
DEFAULT_STATE_PATH = "order-relay-state.json"


@dataclass(frozen=True)
class Operator:
    """The business itself, used as admin buyer for self-fulfilled orders."""

    name: str = "귤수저"
    phone: str = "010-6837-4121"
    label: str = "귤수저"


DEFAULT_OPERATOR = Operator()


@dataclass(frozen=True)
class Settings:
    operator_name: str = DEFAULT_OPERATOR.name
    operator_phone: str = DEFAULT_OPERATOR.phone
    operator_label: str = DEFAULT_OPERATOR.label
    header_scan_rows: int = HEADER_SCAN_ROWS
    template: str | None = None

    @property
    def operator(self) -> Operator:
        return Operator(name=self.operator_name, phone=self.operator_phone, label=self.operator_label)


def load_settings(path: Path | None = None) -> Settings:
    if path is None:
        candidate = Path.cwd() / DEFAULT_CONFIG_NAME
        if not candidate.exists():
            return Settings()
        path = candidate
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Could not read config {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Config root must be a JSON object.")
    known = {item.name for item in fields(Settings)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    settings = replace(Settings(), **payload)
    if not isinstance(settings.header_scan_rows, int) or settings.header_scan_rows < 1:
        raise ValueError("header_scan_rows must be a positive integer.")
    return settings


def settings_payload(settings: Settings | None = None) -> dict[str, Any]:
    return asdict(settings or Settings())


def state_path(explicit: str | None = None) -> Path:
    if explicit:
        return Path(explicit)
    return Path(os.environ.get(STATE_ENV) or DEFAULT_STATE_PATH)


def date_token() -> str:
    override = os.environ.get(STAMP_ENV)
    if override:
        return override
    return datetime.now().strftime("%Y-%m-%d")
