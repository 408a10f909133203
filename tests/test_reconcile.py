from __future__ import annotations

import unittest

from order_relay.channels import COUPANG, NAVER, RESULT_KEY_FALLBACK_HEADER
from order_relay.errors import MissingColumn
from order_relay.normalize import CanonicalRow
from order_relay.reconcile import build_result_map, compute_match_report, report_frame

from order_fixtures import result_file, workbook_bytes


def rows(*keys: str, channel: str = NAVER) -> list[CanonicalRow]:
    return [CanonicalRow(channel=channel, order_key=key) for key in keys]


class ResultMapTests(unittest.TestCase):
    def test_keys_and_tracking_are_trimmed_and_blank_keys_skipped(self):
        data = result_file([(" A1 ", " 111 "), ("", "222"), (None, "333"), ("A2", "")])
        self.assertEqual(build_result_map(data), {"A1": "111", "A2": ""})

    def test_last_occurrence_wins(self):
        data = result_file([("A1", "111"), ("A2", "222"), ("A1", "999")])
        self.assertEqual(build_result_map(data), {"A1": "999", "A2": "222"})

    def test_numeric_cells_are_read_without_decimal_suffix(self):
        data = result_file([(2024050100001, 612345678901)])
        self.assertEqual(build_result_map(data), {"2024050100001": "612345678901"})

    def test_fallback_key_column(self):
        data = result_file([("A1", "111")], key_header=RESULT_KEY_FALLBACK_HEADER)
        self.assertEqual(build_result_map(data), {"A1": "111"})

    def test_header_below_a_title_row_is_found(self):
        data = workbook_bytes(
            [
                ["택배 접수 결과"],
                ["받는분성명", "거래처 주문번호", "운송장번호"],
                ["김수령", "A1", "111"],
            ]
        )
        self.assertEqual(build_result_map(data), {"A1": "111"})

    def test_missing_key_column_raises(self):
        data = workbook_bytes([["받는분성명", "운송장번호", "수량"], ["김", "111", 1]])
        with self.assertRaises(MissingColumn):
            build_result_map(data)

    def test_missing_tracking_column_raises(self):
        data = workbook_bytes([["거래처 주문번호", "상품명", "수량"], ["A1", "x", 1]])
        with self.assertRaises(MissingColumn):
            build_result_map(data)


class MatchReportTests(unittest.TestCase):
    def test_originals_a1_a2_a3_against_result_a1_a4(self):
        report = compute_match_report(rows("A1", "A2", "A3"), {"A1": "111", "A4": "444"})
        self.assertEqual(report.matched, 1)
        self.assertEqual(report.missing_in_result, ["A2", "A3"])
        self.assertEqual(report.missing_in_canonical, ["A4"])
        self.assertEqual(report.total_original_rows, 3)
        self.assertEqual(report.total_result_rows, 2)

    def test_set_law_holds(self):
        origin = rows("K1", "K2", "K2", "K3") + rows("K3", "K9", channel=COUPANG)
        result = {"K2": "1", "K3": "2", "K5": "3"}
        report = compute_match_report(origin, result)
        origin_keys = {row.order_key for row in origin}
        self.assertEqual(report.matched, len(origin_keys & set(result)))
        self.assertEqual(set(report.missing_in_result), origin_keys - set(result))
        self.assertEqual(set(report.missing_in_canonical), set(result) - origin_keys)
        self.assertEqual(report.total_original_rows, 6)

    def test_report_frame_lists_unmatched_keys(self):
        report = compute_match_report(rows("A1", "A2"), {"A1": "1", "A3": "3"})
        frame = report_frame(report)
        self.assertEqual(frame.to_dict("records"), [
            {"order_key": "A2", "status": "missing_in_result"},
            {"order_key": "A3", "status": "missing_in_canonical"},
        ])


if __name__ == "__main__":
    unittest.main()
