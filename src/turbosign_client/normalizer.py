"""Turn raw (status, body) pairs into RequestOutcome values.

Failures are described by the first matcher in ``ERROR_MATCHERS`` that
recognises the body. Order matters: a validation-error list is always
preferred over top-level ``error`` or ``message`` fields.
"""
from __future__ import annotations

import json
from typing import Any, Callable, NamedTuple, Optional

import httpx

from .builder import OutboundRequest
from .models import BinaryData, ErrorKind, ErrorReport, FieldError, Failure, RequestOutcome, Success

GENERIC_ERROR_MESSAGE = "Request failed"
DOWNLOAD_CONTENT_TYPE = "application/pdf"


class ErrorMatch(NamedTuple):
    message: str
    kind: ErrorKind
    field_errors: Optional[tuple[FieldError, ...]] = None


ErrorMatcher = Callable[[Any], Optional[ErrorMatch]]


def download_filename(document_id: str) -> str:
    return f"signed-document-{document_id}.pdf"


def parse_body(raw: Any) -> Any:
    """Best-effort JSON decode; text that is not JSON is returned as is."""
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    if isinstance(raw, str):
        if not raw.strip():
            return raw
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def _join_path(path: Any) -> str:
    if isinstance(path, (list, tuple)):
        joined = ".".join(str(p) for p in path)
        return joined or "unknown"
    if isinstance(path, (str, int)) and str(path):
        return str(path)
    return "unknown"


def _validation_entries(body: dict[str, Any]) -> Any:
    data = body.get("data")
    if isinstance(data, dict) and isinstance(data.get("errors"), list):
        return data["errors"]
    return body.get("errors")


def match_validation_errors(body: Any) -> Optional[ErrorMatch]:
    if not isinstance(body, dict):
        return None
    entries = _validation_entries(body)
    if not isinstance(entries, list):
        return None
    field_errors = tuple(
        FieldError(path=_join_path(e.get("path")), message=e["message"])
        for e in entries
        if isinstance(e, dict) and isinstance(e.get("message"), str)
    )
    if not field_errors:
        return None
    message = "; ".join(f"{fe.path}: {fe.message}" for fe in field_errors)
    return ErrorMatch(message, ErrorKind.REMOTE_VALIDATION, field_errors)


def match_error_field(body: Any) -> Optional[ErrorMatch]:
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return ErrorMatch(body["error"], ErrorKind.REMOTE_API)
    return None


def match_message_field(body: Any) -> Optional[ErrorMatch]:
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        return ErrorMatch(body["message"], ErrorKind.REMOTE_API)
    return None


ERROR_MATCHERS: tuple[ErrorMatcher, ...] = (
    match_validation_errors,
    match_error_field,
    match_message_field,
)


def _error_code(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for key in ("type", "code"):
        value = body.get(key)
        if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value):
            return str(value)
    return None


def build_error_report(status_code: int, body: Any) -> ErrorReport:
    parsed = parse_body(body)
    match = next((m for m in (matcher(parsed) for matcher in ERROR_MATCHERS) if m), None)
    if match is None:
        match = ErrorMatch(GENERIC_ERROR_MESSAGE, ErrorKind.REMOTE_API)

    code = _error_code(parsed)
    message = f"{match.message} [{code}]" if code else match.message
    return ErrorReport(
        message=message,
        kind=match.kind,
        code=code,
        http_status=status_code,
        field_errors=match.field_errors,
        response=parsed if parsed != "" else None,
    )


def normalize(
    status_code: int,
    body: Any,
    *,
    expects_binary: bool = False,
    document_id: Optional[str] = None,
) -> RequestOutcome:
    if status_code >= 400:
        return Failure(build_error_report(status_code, body))

    if expects_binary:
        data = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        return Success(
            BinaryData(
                data=data,
                file_name=download_filename(document_id or "unknown"),
                mime_type=DOWNLOAD_CONTENT_TYPE,
            )
        )

    parsed = parse_body(body)
    if parsed is None or parsed == "":
        parsed = {}
    return Success(parsed)


def normalize_response(
    resp: httpx.Response,
    request: OutboundRequest,
    document_id: Optional[str] = None,
) -> RequestOutcome:
    return normalize(
        resp.status_code,
        resp.content,
        expects_binary=request.expects_binary,
        document_id=document_id,
    )
