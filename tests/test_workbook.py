from __future__ import annotations

import io
import unittest
import zipfile

from openpyxl import Workbook

from order_relay.errors import BufferConversionFailure, ParseFailure
from order_relay.workbook import OLE_MAGIC, is_encrypted_ooxml, load_workbook_bytes, open_first_sheet, to_bytes


class WorkbookCodecTests(unittest.TestCase):
    def test_corrupt_bytes_raise_parse_failure_with_hint(self):
        with self.assertRaisesRegex(ParseFailure, "password"):
            load_workbook_bytes(b"definitely not xlsx")

    def test_encrypted_ole_container_is_rejected(self):
        data = OLE_MAGIC + b"\x00" * 64 + "EncryptedPackage".encode("utf-16-le") + b"\x00" * 16
        self.assertTrue(is_encrypted_ooxml(data))
        with self.assertRaisesRegex(ParseFailure, "encrypted"):
            load_workbook_bytes(data)

    def test_legacy_xls_is_rejected(self):
        with self.assertRaisesRegex(ParseFailure, "Legacy .xls"):
            load_workbook_bytes(OLE_MAGIC + b"\x00" * 64)

    def test_zip_with_encryption_streams_counts_as_encrypted(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("EncryptionInfo", b"x")
            archive.writestr("EncryptedPackage", b"y")
        self.assertTrue(is_encrypted_ooxml(buffer.getvalue()))

    def test_open_first_sheet_reads_only_the_first_sheet(self):
        wb = Workbook()
        wb.active.append(["first"])
        wb.create_sheet("second").append(["second"])
        buffer = io.BytesIO()
        wb.save(buffer)
        opened = open_first_sheet(buffer.getvalue())
        self.assertEqual(opened.grid(), [["first"]])

    def test_to_bytes_accepts_buffer_types(self):
        self.assertEqual(to_bytes(b"ab"), b"ab")
        self.assertEqual(to_bytes(bytearray(b"ab")), b"ab")
        self.assertEqual(to_bytes(memoryview(b"ab")), b"ab")
        self.assertEqual(to_bytes(io.BytesIO(b"ab")), b"ab")
        with self.assertRaises(BufferConversionFailure):
            to_bytes("ab")


if __name__ == "__main__":
    unittest.main()
