from __future__ import annotations

from typing import Any, Iterable, Union

from pydantic import ValidationError

from .builder import build_request
from .client import TurboSignClient
from .errors import BatchAbortedError, MalformedInput, TurboSignError
from .logging import get_logger
from .models import (
    BinaryData,
    ErrorReport,
    Failure,
    InputRecord,
    Operation,
    OutputRecord,
    RequestOutcome,
    Success,
)
from .normalizer import normalize_response
from .resolver import resolve

log = get_logger(__name__)

RawRecord = Union[InputRecord, dict[str, Any]]


def coerce_record(raw: RawRecord) -> InputRecord:
    if isinstance(raw, InputRecord):
        return raw
    try:
        return InputRecord.model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}" for err in e.errors()
        )
        raise MalformedInput(f"Invalid parameters: {problems}") from e


def error_json(report: ErrorReport) -> dict[str, Any]:
    body: dict[str, Any] = {"error": report.render(), "kind": report.kind.value, "local": report.is_local}
    if report.http_status is not None:
        body["statusCode"] = report.http_status
    if report.code:
        body["code"] = report.code
    if report.field_errors:
        body["fieldErrors"] = [fe.model_dump() for fe in report.field_errors]
    if report.response is not None:
        body["response"] = report.response
    return body


def _success_record(record: InputRecord, body: Any, index: int) -> OutputRecord:
    if isinstance(body, BinaryData):
        document_id = (record.document_id or "").strip()
        return OutputRecord(json={"documentId": document_id}, binary={"data": body}, paired_item=index)
    if not isinstance(body, dict):
        body = {"data": body}
    return OutputRecord(json=body, paired_item=index)


class OperationDispatcher:
    """Runs resolve -> build -> send -> normalize once per record, strictly in order."""

    def __init__(self, client: TurboSignClient):
        self._client = client

    def execute(self, operation: Operation, record: RawRecord) -> RequestOutcome:
        try:
            record = coerce_record(record)
            payload = resolve(operation, record)
            request = build_request(operation, payload)
            log.debug("turbosign.request", operation=operation.value, method=request.method, path=request.path)
            resp = self._client.send(request)
        except TurboSignError as e:
            return Failure(e.report)
        return normalize_response(resp, request, getattr(payload, "document_id", None))

    def run(
        self,
        operation: Operation,
        records: Iterable[RawRecord],
        continue_on_fail: bool = False,
    ) -> list[OutputRecord]:
        """Process every record; without continue_on_fail the first failure aborts the batch."""
        output: list[OutputRecord] = []
        for index, raw in enumerate(records):
            outcome = self.execute(operation, raw)
            if isinstance(outcome, Success):
                output.append(_success_record(coerce_record(raw), outcome.body, index))
                continue

            report = outcome.report
            log.warning(
                "turbosign.record_failed",
                operation=operation.value,
                item_index=index,
                kind=report.kind.value,
                http_status=report.http_status,
                local=report.is_local,
                error=report.message,
            )
            if not continue_on_fail:
                raise BatchAbortedError(report, item_index=index)
            output.append(OutputRecord(json=error_json(report), paired_item=index, error=report))
        return output
