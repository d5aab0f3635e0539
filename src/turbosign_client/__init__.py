"""TurboSign e-signature client: request building, error normalization, batch dispatch."""

from .config import ApiContext, Settings
from .dispatcher import OperationDispatcher
from .errors import (
    BatchAbortedError,
    MalformedInput,
    MissingBinaryData,
    RemoteApiError,
    RemoteValidationError,
    TransportError,
    TurboSignError,
)
from .models import ErrorReport, FileInputMethod, InputRecord, Operation, OutputRecord
from .service import TurboSignService

__all__ = [
    "ApiContext",
    "BatchAbortedError",
    "ErrorReport",
    "FileInputMethod",
    "InputRecord",
    "MalformedInput",
    "MissingBinaryData",
    "Operation",
    "OperationDispatcher",
    "OutputRecord",
    "RemoteApiError",
    "RemoteValidationError",
    "Settings",
    "TransportError",
    "TurboSignError",
    "TurboSignService",
]
