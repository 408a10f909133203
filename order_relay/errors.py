"""Error taxonomy shared by the ingestion, build and fill-back stages."""

from __future__ import annotations

from dataclasses import dataclass

PASSWORD_HINT = "If this is a NAVER export, remove the password, save it again and re-upload."


class OrderRelayError(ValueError):
    kind = "error"


class ParseFailure(OrderRelayError):
    """Corrupt, encrypted or sheetless workbook."""

    kind = "parse_failure"


class UnknownSchema(OrderRelayError):
    kind = "unknown_schema"


class MissingColumn(OrderRelayError):
    kind = "missing_column"


class BufferConversionFailure(OrderRelayError):
    kind = "buffer_conversion_failure"


class SessionError(OrderRelayError):
    """An operation was requested before its inputs exist in the session."""

    kind = "session_error"


@dataclass(frozen=True)
class FileError:
    file_name: str
    kind: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"file": self.file_name, "kind": self.kind, "message": self.message}


def file_error(file_name: str, exc: OrderRelayError) -> FileError:
    return FileError(file_name=file_name, kind=exc.kind, message=str(exc))
