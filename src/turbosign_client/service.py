from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

import httpx

from .client import TurboSignClient
from .config import Settings
from .dispatcher import OperationDispatcher, RawRecord
from .logging import get_logger
from .models import Operation, OutputRecord

log = get_logger(__name__)


class TurboSignService:
    """High-level orchestration: settings -> context -> http client -> dispatcher."""

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def _http_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.settings.http_timeout_s), transport=self._transport)

    def run(
        self,
        operation: Operation,
        records: Iterable[RawRecord],
        continue_on_fail: bool = False,
    ) -> list[OutputRecord]:
        records = list(records)
        started = datetime.now(tz=timezone.utc)
        # resolved once; every record shares the same read-only context
        ctx = self.settings.api_context()
        log.info("turbosign.batch_started", operation=operation.value, records=len(records), base_url=ctx.base_url)

        with self._http_client() as http:
            dispatcher = OperationDispatcher(TurboSignClient(http=http, ctx=ctx))
            output = dispatcher.run(operation, records, continue_on_fail=continue_on_fail)

        failed = sum(1 for r in output if r.error is not None)
        log.info(
            "turbosign.batch_finished",
            operation=operation.value,
            records=len(output),
            failed=failed,
            elapsed_s=round((datetime.now(tz=timezone.utc) - started).total_seconds(), 3),
        )
        return output

    def check_credentials(self) -> None:
        with self._http_client() as http:
            TurboSignClient(http=http, ctx=self.settings.api_context()).check_credentials()
        log.info("turbosign.credentials_ok")
