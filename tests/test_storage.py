from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from order_relay.channels import COUPANG, NAVER
from order_relay.errors import SessionError
from order_relay.session import SessionState, build_integration, fill_back_outputs, ingest_files, load_result
from order_relay.storage import STORAGE_KEY, clear_state, load_state, save_state
from order_relay.templates import default_template

from order_fixtures import channel_export, column_values, first_sheet, order, result_file


class StorageTests(unittest.TestCase):
    def test_round_trip_keeps_bytes_rows_and_report(self):
        files = [
            ("naver.xlsx", channel_export(NAVER, [order("N-1")])),
            ("coupang.xlsx", channel_export(COUPANG, [order("C-1")])),
        ]
        state = ingest_files(SessionState(), files).state
        state = build_integration(state, default_template())
        state = load_result(state, result_file([("N-1", "T1"), ("Z-1", "T9")]))

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "session.json"
            save_state(path, state)
            payload = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(list(payload), [STORAGE_KEY])

            restored = load_state(path)

        self.assertEqual(restored.files, state.files)
        self.assertEqual(restored.store, state.store)
        self.assertEqual(restored.integration_document, state.integration_document)
        self.assertEqual(restored.match_report, state.match_report)
        self.assertEqual(dict(restored.result_map), dict(state.result_map))

        batch = fill_back_outputs(restored, "2024-05-02")
        self.assertEqual(column_values(first_sheet(batch.outputs[0].data), "송장번호"), ["T1"])

    def test_missing_file_is_a_fresh_session(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertEqual(load_state(Path(tmpdir) / "absent.json"), SessionState())

    def test_save_replaces_previous_state_entirely(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "session.json"
            loaded = ingest_files(SessionState(), [("naver.xlsx", channel_export(NAVER, [order("N-1")]))]).state
            save_state(path, loaded)
            save_state(path, SessionState())
            self.assertEqual(load_state(path), SessionState())
            self.assertEqual([item.name for item in Path(tmpdir).iterdir()], ["session.json"])

    def test_corrupt_file_raises_session_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "session.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(SessionError):
                load_state(path)
            path.write_text(json.dumps({"other-key": {}}), encoding="utf-8")
            with self.assertRaises(SessionError):
                load_state(path)
            path.write_text(json.dumps({STORAGE_KEY: {"rows": [{"bogus": 1}]}}), encoding="utf-8")
            with self.assertRaises(SessionError):
                load_state(path)

    def test_clear_state(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "session.json"
            save_state(path, SessionState())
            self.assertTrue(clear_state(path))
            self.assertFalse(path.exists())
            self.assertFalse(clear_state(path))


if __name__ == "__main__":
    unittest.main()
