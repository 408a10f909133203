from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from order_relay import __version__ as TOOL_VERSION
from order_relay.channels import CHANNEL_LABELS, CHANNELS
from order_relay.config import DEFAULT_CONFIG_NAME, Settings, date_token, load_settings, settings_payload, state_path
from order_relay.contracts import build_payload
from order_relay.errors import (
    BufferConversionFailure,
    FileError,
    MissingColumn,
    ParseFailure,
    UnknownSchema,
)
from order_relay.reconcile import MatchReport
from order_relay.session import (
    SessionState,
    build_integration,
    bundle_file_name,
    bundle_outputs,
    fill_back_outputs,
    ingest_files,
    integration_file_name,
    load_result,
)
from order_relay.storage import clear_state, load_state, save_state
from order_relay.store import rows_frame
from order_relay.templates import load_template

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_SCHEMA_FAILED = 3
EXIT_UNMATCHED = 4
EXIT_FAIL_ON_MISSING = 5
EXIT_PARTIAL = 6

DEFAULT_OUTPUT_DIR = "order-relay-output"


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class OrderRelayArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def maybe_emit_json_stdout(payload: Any, enabled: bool) -> None:
    if enabled:
        print(json_dumps(payload))


def write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def safe_output_path(path: Path, *, force: bool = False) -> Path:
    if not force and path.exists():
        raise CliError(f"Refusing to overwrite existing output: {path}", EXIT_COMMAND_ERROR)
    return path


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, (ParseFailure, BufferConversionFailure)):
        return EXIT_PARSE_FAILED
    if isinstance(exc, (MissingColumn, UnknownSchema)):
        return EXIT_SCHEMA_FAILED
    return EXIT_COMMAND_ERROR


def exit_code_for_file_errors(errors: tuple[FileError, ...] | list[FileError], succeeded: int) -> int:
    if not errors:
        return EXIT_SUCCESS
    if succeeded:
        return EXIT_PARTIAL
    kinds = {error.kind for error in errors}
    if kinds & {"parse_failure", "buffer_conversion_failure"}:
        return EXIT_PARSE_FAILED
    return EXIT_SCHEMA_FAILED


def exit_code_for_report(report: MatchReport, fail_on_missing: bool) -> int:
    if report.missing_in_result or report.missing_in_canonical:
        return EXIT_FAIL_ON_MISSING if fail_on_missing else EXIT_UNMATCHED
    return EXIT_SUCCESS


def resolve_settings(args: argparse.Namespace) -> Settings:
    try:
        return load_settings(Path(args.config) if getattr(args, "config", None) else None)
    except ValueError as exc:
        raise CliError(str(exc), EXIT_COMMAND_ERROR) from exc


def resolve_state_path(args: argparse.Namespace) -> Path:
    return state_path(getattr(args, "state", None))


def read_input(path_text: str) -> bytes:
    path = Path(path_text)
    if not path.exists():
        raise CliError(f"File not found: {path}", EXIT_COMMAND_ERROR)
    return path.read_bytes()


def render_file_errors(errors: tuple[FileError, ...] | list[FileError]) -> list[str]:
    return [f"  ! {error.file_name}: [{error.kind}] {error.message}" for error in errors]


def render_match_report_text(report: MatchReport) -> str:
    lines = [
        "Match report",
        f"- Original rows: {report.total_original_rows}",
        f"- Result rows: {report.total_result_rows}",
        f"- Matched keys: {report.matched}",
        f"- Missing in result: {len(report.missing_in_result)}",
        f"- Missing in originals: {len(report.missing_in_canonical)}",
    ]
    for key in report.missing_in_result:
        lines.append(f"  - not shipped: {key}")
    for key in report.missing_in_canonical:
        lines.append(f"  - unknown key: {key}")
    return "\n".join(lines) + "\n"


def render_status_text(state: SessionState) -> str:
    file_counts = state.channel_file_counts()
    row_counts = state.store.channel_counts()
    lines = [
        "Session",
        f"- Files: {len(state.files)}",
        f"- Canonical rows: {len(state.store)} ({len(state.store.deduplicated())} after dedup)",
    ]
    for channel in CHANNELS:
        if channel in file_counts:
            lines.append(
                f"  - {CHANNEL_LABELS[channel]} ({channel}): {file_counts[channel]} file(s), {row_counts.get(channel, 0)} row(s)"
            )
    lines.append(f"- Integration document: {'built' if state.integration_document else 'not built'}")
    lines.append(f"- Result file: {'loaded' if state.result_map is not None else 'not loaded'}")
    if state.match_report is not None:
        lines.append(
            f"- Matched {state.match_report.matched}, "
            f"missing in result {len(state.match_report.missing_in_result)}, "
            f"missing in originals {len(state.match_report.missing_in_canonical)}"
        )
    return "\n".join(lines) + "\n"


def add_common_arguments(parser: argparse.ArgumentParser, *, json_flag: bool = True) -> None:
    parser.add_argument("--state", help="Session file path (default: $ORDER_RELAY_STATE or ./order-relay-state.json)")
    parser.add_argument("--config", help=f"Config file path (default: ./{DEFAULT_CONFIG_NAME} when present)")
    if json_flag:
        parser.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="More human logs")


def build_parser() -> argparse.ArgumentParser:
    parser = OrderRelayArgumentParser(
        prog="order-relay",
        description="Merge channel order exports into one purchase order and fill tracking numbers back.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Add channel order exports to the session.")
    ingest.add_argument("inputs", nargs="+", help="Order export .xlsx files")
    add_common_arguments(ingest)

    build = subparsers.add_parser("build", help="Write the integrated purchase order.")
    build.add_argument("--template", help="Template path or http(s) URL (default: built-in template)")
    build.add_argument("-o", "--output", help="Output path (default: ./통합발주서_<date>.xlsx)")
    build.add_argument("--force", action="store_true", help="Overwrite an existing output file")
    add_common_arguments(build)

    reconcile = subparsers.add_parser("reconcile", help="Load the courier result file and report matches.")
    reconcile.add_argument("result", help="Courier result .xlsx file")
    reconcile.add_argument("--fail-on-missing", action="store_true", help="Return exit code 5 instead of 4 when keys are unmatched")
    add_common_arguments(reconcile)

    fill_back = subparsers.add_parser("fill-back", help="Write tracking numbers into every original export.")
    fill_back.add_argument("-o", "--out", dest="out_dir", help=f"Output directory (default: ./{DEFAULT_OUTPUT_DIR})")
    fill_back.add_argument("--zip", action="store_true", help="Also write one ZIP bundle of all outputs")
    fill_back.add_argument("--force", action="store_true", help="Overwrite existing output files")
    add_common_arguments(fill_back)

    status = subparsers.add_parser("status", help="Show what the session holds.")
    status.add_argument("--preview", action="store_true", help="Print the first canonical rows")
    add_common_arguments(status)

    reset = subparsers.add_parser("reset", help="Discard the whole session.")
    add_common_arguments(reset, json_flag=False)

    config = subparsers.add_parser("config", help="Generate configuration.")
    config_subparsers = config.add_subparsers(dest="config_command", required=True)
    config_init = config_subparsers.add_parser("init", help="Write a starter config file.")
    config_init.add_argument("--path", default=DEFAULT_CONFIG_NAME, help="Config output path")

    subparsers.add_parser("version", help="Print version")
    return parser


def run_ingest(args: argparse.Namespace) -> int:
    try:
        settings = resolve_settings(args)
        path = resolve_state_path(args)
        files = [(Path(item).name, read_input(item)) for item in args.inputs]
        state = load_state(path)
        result = ingest_files(state, files, settings)
        save_state(path, result.state)

        payload = build_payload(
            "order_relay.ingest_summary",
            command="ingest",
            inputs=list(args.inputs),
            status="ok" if not result.errors else ("partial" if result.parsed else "failed"),
            output_path=path,
            body={
                "files": [
                    {"name": parsed.name, "channel": parsed.channel, "row_count": parsed.row_count}
                    for parsed in result.parsed
                ],
                "errors": [error.as_dict() for error in result.errors],
                "channel_counts": result.state.store.channel_counts(),
            },
            metrics={"files_parsed": len(result.parsed), "files_failed": len(result.errors), "rows_total": len(result.state.store)},
        )
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            for parsed in result.parsed:
                emit_human(f"{parsed.name}: {parsed.channel}, {parsed.row_count} row(s)", quiet=args.quiet)
                if args.verbose:
                    emit_human(f"  headers: {', '.join(parsed.headers)}", quiet=args.quiet)
            for line in render_file_errors(result.errors):
                eprint(line)
            emit_human(f"Session saved: {path} ({len(result.state.store)} row(s) total)", quiet=args.quiet)
        return exit_code_for_file_errors(result.errors, len(result.parsed))
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_build(args: argparse.Namespace) -> int:
    try:
        settings = resolve_settings(args)
        path = resolve_state_path(args)
        output_path = Path(args.output) if args.output else Path.cwd() / integration_file_name(date_token())
        safe_output_path(output_path, force=args.force)
        state = load_state(path)
        template_source = args.template or settings.template
        if args.verbose:
            emit_human(f"Template: {template_source or 'built-in'}", quiet=args.quiet)
        state = build_integration(state, load_template(template_source))
        write_bytes(output_path, state.integration_document)
        save_state(path, state)

        rows = state.store.deduplicated()
        payload = build_payload(
            "order_relay.integration_summary",
            command="build",
            inputs=[parsed.name for parsed in state.files],
            output_path=output_path,
            body={"rows_written": len(rows), "template": template_source or "built-in"},
            metrics={"rows_total": len(state.store), "rows_written": len(rows)},
        )
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(f"Integration document written: {output_path} ({len(rows)} row(s))", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_reconcile(args: argparse.Namespace) -> int:
    try:
        settings = resolve_settings(args)
        path = resolve_state_path(args)
        data = read_input(args.result)
        state = load_result(load_state(path), data, settings)
        save_state(path, state)
        report = state.match_report

        payload = build_payload(
            "order_relay.match_report",
            command="reconcile",
            inputs=[args.result],
            status="ok" if not (report.missing_in_result or report.missing_in_canonical) else "unmatched",
            body={"match_report": report.as_dict()},
            metrics={"matched": report.matched, "result_rows": report.total_result_rows},
        )
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            emit_human(render_match_report_text(report).rstrip(), quiet=args.quiet)
        return exit_code_for_report(report, args.fail_on_missing)
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_fill_back(args: argparse.Namespace) -> int:
    try:
        settings = resolve_settings(args)
        path = resolve_state_path(args)
        out_dir = Path(args.out_dir) if args.out_dir else Path.cwd() / DEFAULT_OUTPUT_DIR
        stamp = date_token()
        state = load_state(path)
        batch = fill_back_outputs(state, stamp, settings)

        written = [safe_output_path(out_dir / output.file_name, force=args.force) for output in batch.outputs]
        bundle_path = None
        if args.zip and batch.outputs:
            bundle_path = safe_output_path(out_dir / bundle_file_name(stamp), force=args.force)
        for output, target in zip(batch.outputs, written):
            write_bytes(target, output.data)
        if bundle_path:
            write_bytes(bundle_path, bundle_outputs(batch.outputs))

        payload = build_payload(
            "order_relay.fill_back_summary",
            command="fill-back",
            inputs=[parsed.name for parsed in state.files],
            status="ok" if not batch.errors else ("partial" if batch.outputs else "failed"),
            output_path=bundle_path or out_dir,
            body={
                "outputs": [
                    {
                        "file": output.file_name,
                        "source": output.source_name,
                        "channel": output.channel,
                        "rows_filled": output.rows_filled,
                        "rows_unmatched": output.rows_unmatched,
                    }
                    for output in batch.outputs
                ],
                "errors": [error.as_dict() for error in batch.errors],
            },
            metrics={
                "files_written": len(batch.outputs),
                "rows_filled": sum(output.rows_filled for output in batch.outputs),
            },
        )
        if args.json:
            maybe_emit_json_stdout(payload, True)
        else:
            for output, target in zip(batch.outputs, written):
                emit_human(f"{output.source_name} -> {target} ({output.rows_filled} filled)", quiet=args.quiet)
            for line in render_file_errors(batch.errors):
                eprint(line)
            if bundle_path:
                emit_human(f"Bundle written: {bundle_path}", quiet=args.quiet)
        return exit_code_for_file_errors(batch.errors, len(batch.outputs))
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_status(args: argparse.Namespace) -> int:
    try:
        state = load_state(resolve_state_path(args))
        if args.json:
            payload = {
                "files": [
                    {"name": parsed.name, "channel": parsed.channel, "row_count": parsed.row_count}
                    for parsed in state.files
                ],
                "file_counts": state.channel_file_counts(),
                "row_counts": state.store.channel_counts(),
                "integration_built": state.integration_document is not None,
                "result_loaded": state.result_map is not None,
                "match_report": state.match_report.as_dict() if state.match_report else None,
            }
            maybe_emit_json_stdout(payload, True)
            return EXIT_SUCCESS
        print(render_status_text(state).rstrip())
        if args.preview and len(state.store):
            print(rows_frame(state.store.rows).to_string(index=False))
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_reset(args: argparse.Namespace) -> int:
    path = resolve_state_path(args)
    if clear_state(path):
        emit_human(f"Session cleared: {path}", quiet=args.quiet)
    else:
        emit_human(f"No session to clear at {path}", quiet=args.quiet)
    return EXIT_SUCCESS


def run_config_init(args: argparse.Namespace) -> int:
    config_path = Path(args.path)
    if config_path.exists():
        eprint(f"Refusing to overwrite existing config: {config_path}")
        return EXIT_COMMAND_ERROR
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json_dumps(settings_payload()) + "\n", encoding="utf-8")
    emit_human(f"Config written: {config_path}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "ingest":
            return run_ingest(args)
        if args.command == "build":
            return run_build(args)
        if args.command == "reconcile":
            return run_reconcile(args)
        if args.command == "fill-back":
            return run_fill_back(args)
        if args.command == "status":
            return run_status(args)
        if args.command == "reset":
            return run_reset(args)
        if args.command == "config":
            if args.config_command == "init":
                return run_config_init(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
