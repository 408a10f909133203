#!/usr/bin/env python3
from __future__ import annotations

import pandas as pd
import streamlit as st

from order_relay.channels import CHANNEL_LABELS, CHANNELS
from order_relay.config import date_token, load_settings, state_path
from order_relay.errors import OrderRelayError
from order_relay.reconcile import report_frame
from order_relay.session import (
    SessionState,
    build_integration,
    bundle_file_name,
    bundle_outputs,
    fill_back_outputs,
    ingest_files,
    integration_file_name,
    load_result,
    reset,
)
from order_relay.storage import clear_state, load_state, save_state
from order_relay.store import rows_frame
from order_relay.templates import load_template

UPLOAD_TYPES = ["xlsx", "xlsm"]
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def ensure_state() -> None:
    if "session" not in st.session_state:
        st.session_state["session"] = load_state(state_path())
    st.session_state.setdefault("messages", [])
    st.session_state.setdefault("upload_generation", 0)


def commit(state: SessionState) -> None:
    st.session_state["session"] = state
    save_state(state_path(), state)


def channel_summary_frame(state: SessionState) -> pd.DataFrame:
    file_counts = state.channel_file_counts()
    row_counts = state.store.channel_counts()
    records = [
        (CHANNEL_LABELS[channel], file_counts.get(channel, 0), row_counts.get(channel, 0))
        for channel in CHANNELS
    ]
    return pd.DataFrame.from_records(records, columns=["channel", "files", "rows"])


def render_messages() -> None:
    for level, message in st.session_state["messages"]:
        if level == "error":
            st.error(message)
        elif level == "warning":
            st.warning(message)
        else:
            st.info(message)
    st.session_state["messages"] = []


def handle_uploads(uploads) -> None:
    settings = load_settings()
    files = [(item.name, item.getvalue()) for item in uploads]
    result = ingest_files(st.session_state["session"], files, settings)
    commit(result.state)
    for error in result.errors:
        st.session_state["messages"].append(("error", f"{error.file_name}: {error.message}"))
    for parsed in result.parsed:
        st.session_state["messages"].append(
            ("info", f"{parsed.name}: {CHANNEL_LABELS[parsed.channel]} {parsed.row_count} rows")
        )


def render_stage_a(state: SessionState) -> None:
    st.subheader("1. Order exports")
    uploads = st.file_uploader(
        "Upload channel order exports (NAVER, TOSS, COUPANG, MANDARINSPOON)",
        type=UPLOAD_TYPES,
        accept_multiple_files=True,
        key=f"originals_{st.session_state['upload_generation']}",
    )
    if st.button("Add files", disabled=not uploads, width="stretch"):
        handle_uploads(uploads)
        st.session_state["upload_generation"] += 1
        st.rerun()

    if not state.files:
        st.info("No order exports loaded yet.")
        return

    st.dataframe(channel_summary_frame(state), hide_index=True, width="stretch")
    st.caption(f"{len(state.store)} rows loaded, {len(state.store.deduplicated())} after removing duplicates.")
    with st.expander("Preview (first 20 rows)"):
        st.dataframe(rows_frame(state.store.rows), hide_index=True, width="stretch")

    template_source = load_settings().template
    if st.button("Build purchase order", type="primary", width="stretch"):
        try:
            commit(build_integration(state, load_template(template_source)))
        except (OrderRelayError, ValueError, OSError) as exc:
            st.session_state["messages"].append(("error", str(exc)))
        st.rerun()

    if state.integration_document:
        st.download_button(
            "Download purchase order",
            data=state.integration_document,
            file_name=integration_file_name(date_token()),
            mime=XLSX_MIME,
            width="stretch",
            key="download_integration",
        )


def render_stage_b(state: SessionState) -> None:
    st.subheader("2. Courier result")
    result_upload = st.file_uploader("Upload the courier result file", type=UPLOAD_TYPES, key="result_upload")
    if result_upload is not None and st.button("Load result", width="stretch"):
        try:
            commit(load_result(state, result_upload.getvalue(), load_settings()))
        except OrderRelayError as exc:
            st.session_state["messages"].append(("error", str(exc)))
        st.rerun()

    report = state.match_report
    if report is None:
        return

    metrics = st.columns(4)
    metrics[0].metric("Original rows", report.total_original_rows)
    metrics[1].metric("Result rows", report.total_result_rows)
    metrics[2].metric("Matched", report.matched)
    metrics[3].metric("Unmatched", len(report.missing_in_result) + len(report.missing_in_canonical))
    if report.missing_in_result or report.missing_in_canonical:
        st.warning("Some order numbers did not match. Check the list below before sending the files.")
        st.dataframe(report_frame(report), hide_index=True, width="stretch")

    if not state.files:
        return
    stamp = date_token()
    try:
        batch = fill_back_outputs(state, stamp, load_settings())
    except OrderRelayError as exc:
        st.error(str(exc))
        return
    for error in batch.errors:
        st.error(f"{error.file_name}: {error.message}")
    if batch.outputs:
        st.download_button(
            "Download filled originals (ZIP)",
            data=bundle_outputs(batch.outputs),
            file_name=bundle_file_name(stamp),
            mime="application/zip",
            type="primary",
            width="stretch",
            key="download_bundle",
        )


def set_visuals() -> None:
    st.set_page_config(page_title="order-relay", page_icon="📦", layout="wide", initial_sidebar_state="collapsed")


def main() -> None:
    set_visuals()
    ensure_state()

    st.title("order-relay")
    st.caption("Merge channel order exports into one purchase order, then write courier tracking numbers back.")

    render_messages()
    state = st.session_state["session"]
    render_stage_a(state)
    st.divider()
    render_stage_b(state)
    st.divider()
    if st.button("Reset everything", width="stretch"):
        clear_state(state_path())
        st.session_state["session"] = reset()
        st.session_state["upload_generation"] += 1
        st.rerun()


if __name__ == "__main__":
    main()
