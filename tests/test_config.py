from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from order_relay.config import (
    DEFAULT_OPERATOR,
    STAMP_ENV,
    STATE_ENV,
    Settings,
    date_token,
    load_settings,
    settings_payload,
    state_path,
)
from order_relay.contracts import CONTRACT_VERSIONS, build_contract, build_payload


class SettingsTests(unittest.TestCase):
    def test_defaults_use_fixed_operator(self):
        settings = Settings()
        self.assertEqual(settings.operator, DEFAULT_OPERATOR)
        self.assertEqual(settings.header_scan_rows, 20)

    def test_config_file_overrides_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "order-relay.json"
            path.write_text(json.dumps({"operator_label": "농장몰", "header_scan_rows": 5}), encoding="utf-8")
            settings = load_settings(path)
        self.assertEqual(settings.operator.label, "농장몰")
        self.assertEqual(settings.operator.name, DEFAULT_OPERATOR.name)
        self.assertEqual(settings.header_scan_rows, 5)

    def test_unknown_keys_and_bad_values_are_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "order-relay.json"
            path.write_text(json.dumps({"colour": "red"}), encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "colour"):
                load_settings(path)
            path.write_text(json.dumps({"header_scan_rows": 0}), encoding="utf-8")
            with self.assertRaises(ValueError):
                load_settings(path)
            path.write_text("[1, 2]", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_settings(path)

    def test_payload_round_trips_through_load(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "order-relay.json"
            path.write_text(json.dumps(settings_payload()), encoding="utf-8")
            self.assertEqual(load_settings(path), Settings())

    def test_environment_overrides(self):
        with mock.patch.dict(os.environ, {STATE_ENV: "/tmp/x.json", STAMP_ENV: "fixed"}):
            self.assertEqual(state_path(), Path("/tmp/x.json"))
            self.assertEqual(state_path("explicit.json"), Path("explicit.json"))
            self.assertEqual(date_token(), "fixed")


class ContractTests(unittest.TestCase):
    def test_every_contract_is_versioned(self):
        for name in CONTRACT_VERSIONS:
            self.assertEqual(build_contract(name), {"name": name, "version": "1.0.0"})

    def test_payload_carries_contract_body_and_run_summary(self):
        payload = build_payload(
            "order_relay.match_report",
            command="reconcile",
            inputs=["result.xlsx"],
            body={"match_report": {"matched": 1}},
            warnings=["late"],
        )
        self.assertEqual(payload["contract"]["name"], "order_relay.match_report")
        self.assertEqual(payload["match_report"], {"matched": 1})
        summary = payload["run_summary"]
        self.assertEqual(summary["tool"], "order-relay")
        self.assertEqual(summary["command"], "reconcile")
        self.assertEqual(summary["inputs"], ["result.xlsx"])
        self.assertEqual(summary["warnings_count"], 1)
        self.assertTrue(summary["generated_at"].endswith("Z"))


if __name__ == "__main__":
    unittest.main()
