from __future__ import annotations

import io
import unittest
from datetime import datetime

from openpyxl import Workbook
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.cell.text import InlineFont

from order_relay.cells import BLANK, FORMULA, HYPERLINK, RICH_TEXT, SCALAR, cell_shape, cell_value, text
from order_relay.workbook import open_first_sheet


class CellShapeTests(unittest.TestCase):
    def setUp(self):
        self.ws = Workbook().active

    def test_blank_and_scalar(self):
        self.assertEqual(cell_shape(self.ws["A1"]), BLANK)
        self.assertIsNone(cell_value(self.ws["A1"]))
        self.ws["A2"] = 3
        self.ws["A3"] = datetime(2024, 5, 1, 9, 30)
        self.assertEqual(cell_shape(self.ws["A2"]), SCALAR)
        self.assertEqual(cell_value(self.ws["A2"]), 3)
        self.assertEqual(cell_value(self.ws["A3"]), datetime(2024, 5, 1, 9, 30))

    def test_formula_uses_cached_result(self):
        self.ws["B1"] = "=A1&\"-01\""
        self.assertEqual(cell_shape(self.ws["B1"]), FORMULA)
        self.assertEqual(cell_value(self.ws["B1"], "2024-01"), "2024-01")
        self.assertIsNone(cell_value(self.ws["B1"]))

    def test_hyperlink_yields_display_text(self):
        cell = self.ws["C1"]
        cell.value = "A-1001"
        cell.hyperlink = "https://example.com/orders/A-1001"
        self.assertEqual(cell_shape(cell), HYPERLINK)
        self.assertEqual(cell_value(cell), "A-1001")

    def test_rich_text_runs_are_concatenated(self):
        cell = self.ws["D1"]
        cell.value = CellRichText([TextBlock(InlineFont(b=True), "한라"), "봉 ", TextBlock(InlineFont(i=True), "3kg")])
        self.assertEqual(cell_shape(cell), RICH_TEXT)
        self.assertEqual(cell_value(cell), "한라봉 3kg")

    def test_text_drops_float_fraction_for_integral_values(self):
        self.assertEqual(text(2024050112345.0), "2024050112345")
        self.assertEqual(text(1.5), "1.5")
        self.assertEqual(text(None), "")


class GridReadTests(unittest.TestCase):
    def test_formula_without_cached_value_reads_as_none(self):
        wb = Workbook()
        ws = wb.active
        ws.append(["주문번호", "합계"])
        ws.append(["A1", "=1+1"])
        buffer = io.BytesIO()
        wb.save(buffer)

        grid = open_first_sheet(buffer.getvalue()).grid()
        self.assertEqual(grid[1][0], "A1")
        self.assertIsNone(grid[1][1])


if __name__ == "__main__":
    unittest.main()
