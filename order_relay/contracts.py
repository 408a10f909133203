"""Shared versioned contracts for order-relay JSON outputs."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

CONTRACT_VERSIONS = {
    "order_relay.ingest_summary": "1.0.0",
    "order_relay.integration_summary": "1.0.0",
    "order_relay.match_report": "1.0.0",
    "order_relay.fill_back_summary": "1.0.0",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    tool: str,
    command: str,
    inputs: list[str] | None = None,
    status: str = "ok",
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "tool": tool,
        "command": command,
        "status": status,
        "generated_at": utc_now_iso(),
        "inputs": list(inputs or []),
        "output_file": str(output_path) if output_path else None,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }


def build_payload(
    name: str,
    *,
    command: str,
    body: dict[str, Any],
    inputs: list[str] | None = None,
    status: str = "ok",
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    payload = {"contract": build_contract(name)}
    payload.update(body)
    payload["run_summary"] = build_run_summary(
        tool="order-relay",
        command=command,
        inputs=inputs,
        status=status,
        output_path=output_path,
        metrics=metrics,
        warnings=warnings,
    )
    return payload
