from __future__ import annotations

from .models import ErrorKind, ErrorReport


class TurboSignError(RuntimeError):
    """Base class; every error carries the ErrorReport it renders to."""

    kind: ErrorKind = ErrorKind.REMOTE_API

    def __init__(self, report: ErrorReport):
        super().__init__(report.render())
        self.report = report


class MalformedInput(TurboSignError):
    kind = ErrorKind.MALFORMED_INPUT

    def __init__(self, message: str):
        super().__init__(ErrorReport(message=message, kind=self.kind))


class MissingBinaryData(TurboSignError):
    kind = ErrorKind.MISSING_BINARY_DATA

    def __init__(self, property_name: str):
        super().__init__(
            ErrorReport(message=f"No binary data found in property '{property_name}'", kind=self.kind)
        )
        self.property_name = property_name


class RemoteValidationError(TurboSignError):
    kind = ErrorKind.REMOTE_VALIDATION


class RemoteApiError(TurboSignError):
    kind = ErrorKind.REMOTE_API


class TransportError(TurboSignError):
    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str):
        super().__init__(ErrorReport(message=message, kind=self.kind))


class BatchAbortedError(TurboSignError):
    """Raised when a record fails and the batch does not continue on failure."""

    def __init__(self, report: ErrorReport, item_index: int):
        super().__init__(report)
        self.kind = report.kind
        self.item_index = item_index

    def __str__(self) -> str:
        return f"Item {self.item_index}: {self.report.render()}"


_BY_KIND: dict[ErrorKind, type[TurboSignError]] = {
    ErrorKind.REMOTE_VALIDATION: RemoteValidationError,
    ErrorKind.REMOTE_API: RemoteApiError,
}


def error_for(report: ErrorReport) -> TurboSignError:
    """Exception matching a remote report's kind; other kinds use the base class."""
    cls = _BY_KIND.get(report.kind, TurboSignError)
    err = cls(report)
    err.kind = report.kind
    return err
