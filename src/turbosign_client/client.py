from __future__ import annotations

import httpx

from .builder import OutboundRequest, credential_test_request
from .config import ApiContext
from .errors import TransportError, error_for
from .models import Failure
from .normalizer import normalize_response


class TurboSignClient:
    """Thin TurboSign REST transport.

    Sends exactly one request per call and never raises on HTTP status;
    the caller inspects the response. Only failures below HTTP raise.
    """

    def __init__(self, http: httpx.Client, ctx: ApiContext):
        self._http = http
        self._ctx = ctx

    @property
    def context(self) -> ApiContext:
        return self._ctx

    def _headers(self, request: OutboundRequest) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._ctx.api_key}"}
        if self._ctx.org_id:
            headers["x-rapiddocx-org-id"] = self._ctx.org_id
        headers["Accept"] = "application/pdf, application/json" if request.expects_binary else "application/json"
        return headers

    def send(self, request: OutboundRequest) -> httpx.Response:
        req = self._http.build_request(headers=self._headers(request), **request.httpx_kwargs(self._ctx.base_url))
        try:
            return self._http.send(req, follow_redirects=True)
        except httpx.RequestError as e:
            # covers TooManyRedirects and DecodingError as well as connection failures
            raise TransportError(f"{req.method} {req.url} failed: {str(e) or type(e).__name__}") from e

    def check_credentials(self) -> None:
        """Lightweight authenticated call; raises the normalized error on rejection."""
        request = credential_test_request()
        outcome = normalize_response(self.send(request), request)
        if isinstance(outcome, Failure):
            raise error_for(outcome.report)
