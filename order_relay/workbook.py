"""
workbook.py — bytes in, bytes out around openpyxl

load_workbook_bytes() and workbook_to_bytes() are the only places that touch
the binary container. Both raise the order_relay error taxonomy instead of
openpyxl/zipfile exceptions.
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from typing import Any

from openpyxl import load_workbook
from openpyxl.workbook import Workbook

from order_relay.cells import read_grid
from order_relay.errors import PASSWORD_HINT, BufferConversionFailure, ParseFailure

OLE_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"
ZIP_MAGIC = b"PK\x03\x04"


@dataclass
class OpenedSheet:
    workbook: Workbook
    sheet: Any
    cached_sheet: Any

    def grid(self) -> list[list[Any]]:
        return read_grid(self.sheet, self.cached_sheet)


def is_encrypted_ooxml(data: bytes) -> bool:
    if data.startswith(OLE_MAGIC):
        return "EncryptedPackage".encode("utf-16-le") in data
    if not data.startswith(ZIP_MAGIC):
        return False
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return False
    return {"EncryptedPackage", "EncryptionInfo"}.issubset(names)


def load_workbook_bytes(data: bytes, *, data_only: bool = False) -> Workbook:
    data = to_bytes(data)
    if is_encrypted_ooxml(data):
        raise ParseFailure(f"Password-protected / encrypted workbooks are not supported. {PASSWORD_HINT}")
    if data.startswith(OLE_MAGIC):
        raise ParseFailure("Legacy .xls workbooks are not supported. Save the file as .xlsx and re-upload.")
    try:
        return load_workbook(io.BytesIO(data), data_only=data_only, rich_text=True)
    except Exception as exc:
        raise ParseFailure(f"Could not read workbook: {exc}. {PASSWORD_HINT}") from exc


def first_sheet(workbook: Workbook):
    if not workbook.worksheets:
        raise ParseFailure(f"No worksheet found in workbook. {PASSWORD_HINT}")
    return workbook.worksheets[0]


def open_first_sheet(data: bytes) -> OpenedSheet:
    """Open the first sheet twice: once editable, once with cached formula results."""
    workbook = load_workbook_bytes(data)
    cached = load_workbook_bytes(data, data_only=True)
    return OpenedSheet(workbook=workbook, sheet=first_sheet(workbook), cached_sheet=first_sheet(cached))


def to_bytes(out: Any) -> bytes:
    if isinstance(out, bytes):
        return out
    if isinstance(out, (bytearray, memoryview)):
        return bytes(out)
    if isinstance(out, io.BytesIO):
        return out.getvalue()
    raise BufferConversionFailure(f"Could not convert workbook output of type {type(out).__name__} to bytes.")


def workbook_to_bytes(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return to_bytes(buffer)
