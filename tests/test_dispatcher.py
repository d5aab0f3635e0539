import httpx
import pytest
import respx

from turbosign_client.client import TurboSignClient
from turbosign_client.config import ApiContext
from turbosign_client.dispatcher import OperationDispatcher
from turbosign_client.errors import BatchAbortedError
from turbosign_client.models import ErrorKind, Failure, Operation, Success

BASE = "https://api.example.com"


def _dispatcher(http: httpx.Client) -> OperationDispatcher:
    return OperationDispatcher(TurboSignClient(http=http, ctx=ApiContext(base_url=BASE, api_key="k")))


@respx.mock
def test_resend_email_sends_parsed_ids():
    route = respx.post(f"{BASE}/turbosign/documents/d1/resend-email").respond(200, json={"success": True})
    with httpx.Client() as http:
        out = _dispatcher(http).run(Operation.RESEND_EMAIL, [{"documentId": "d1", "recipientIds": '["a","b"]'}])
    assert out[0].json == {"success": True}
    sent = route.calls.last.request
    sent.read()
    assert sent.content.replace(b" ", b"") == b'{"recipientIds":["a","b"]}'


@respx.mock(assert_all_called=False)
def test_malformed_recipient_ids_make_no_call():
    route = respx.post(f"{BASE}/turbosign/documents/d1/resend-email").respond(200, json={})
    with httpx.Client() as http:
        outcome = _dispatcher(http).execute(Operation.RESEND_EMAIL, {"documentId": "d1", "recipientIds": "[a,b]"})
    assert isinstance(outcome, Failure)
    assert outcome.report.kind is ErrorKind.MALFORMED_INPUT
    assert outcome.report.http_status is None
    assert not route.called


@respx.mock
def test_download_output_record():
    respx.get(f"{BASE}/turbosign/documents/abc-123/download").respond(
        200, content=b"%PDF-1.7", headers={"content-type": "application/pdf"}
    )
    with httpx.Client() as http:
        out = _dispatcher(http).run(Operation.DOWNLOAD_DOCUMENT, [{"documentId": "abc-123"}])
    record = out[0]
    assert record.json == {"documentId": "abc-123"}
    assert record.binary["data"].file_name == "signed-document-abc-123.pdf"
    assert record.binary["data"].mime_type == "application/pdf"
    assert record.binary["data"].data == b"%PDF-1.7"


@respx.mock
def test_continue_on_fail_keeps_order():
    respx.get(f"{BASE}/turbosign/documents/bad/status").respond(
        404, json={"error": "Document not found", "code": "NOT_FOUND"}
    )
    respx.get(f"{BASE}/turbosign/documents/good/status").respond(200, json={"status": "completed"})
    records = [{"documentId": "bad"}, {"documentId": "good"}]
    with httpx.Client() as http:
        out = _dispatcher(http).run(Operation.GET_STATUS, records, continue_on_fail=True)

    assert len(out) == 2
    assert [r.paired_item for r in out] == [0, 1]
    assert out[0].json["error"] == "Document not found [NOT_FOUND] (HTTP 404)"
    assert out[0].json["statusCode"] == 404
    assert out[0].error.http_status == 404
    assert out[1].json == {"status": "completed"}
    assert out[1].error is None


@respx.mock(assert_all_called=False)
def test_abort_on_first_failure(respx_mock):
    respx_mock.get(f"{BASE}/turbosign/documents/bad/status").respond(500, json={"message": "boom"})
    second = respx_mock.get(f"{BASE}/turbosign/documents/good/status").respond(200, json={"status": "completed"})
    records = [{"documentId": "bad"}, {"documentId": "good"}]
    with httpx.Client() as http:
        with pytest.raises(BatchAbortedError) as exc:
            _dispatcher(http).run(Operation.GET_STATUS, records)

    assert exc.value.item_index == 0
    assert exc.value.report.message == "boom"
    assert exc.value.report.http_status == 500
    assert not second.called


@respx.mock
def test_local_errors_are_reported_like_remote_ones():
    respx.get(f"{BASE}/turbosign/documents/good/status").respond(200, json={"status": "draft"})
    records = [{}, {"documentId": "good"}]
    with httpx.Client() as http:
        out = _dispatcher(http).run(Operation.GET_STATUS, records, continue_on_fail=True)
    assert "documentId" in out[0].json["error"]
    assert "statusCode" not in out[0].json
    assert out[0].error.is_local
    assert out[1].json == {"status": "draft"}


@respx.mock
def test_invalid_record_shape_is_malformed_input():
    with httpx.Client() as http:
        out = _dispatcher(http).run(
            Operation.PREPARE_FOR_SIGNING, [{"fileInputMethod": "fax"}], continue_on_fail=True
        )
    assert out[0].error.kind is ErrorKind.MALFORMED_INPUT
    assert "fileInputMethod" in out[0].json["error"]


@respx.mock
def test_prepare_with_template():
    route = respx.post(f"{BASE}/turbosign/single/prepare-for-signing").respond(
        200, json={"success": True, "documentId": "new-doc"}
    )
    record = {
        "fileInputMethod": "template",
        "templateId": "tmpl-1",
        "recipients": '[{"name":"A","email":"a@x.com","signingOrder":1}]',
        "fields": '[{"recipientEmail":"a@x.com","type":"signature","template":{"anchor":"{Sig1}"}}]',
    }
    with httpx.Client() as http:
        out = _dispatcher(http).run(Operation.PREPARE_FOR_SIGNING, [record])
    assert out[0].json["documentId"] == "new-doc"
    sent = route.calls.last.request
    sent.read()
    assert b'name="templateId"' in sent.content
    assert b'name="file"' not in sent.content


@respx.mock
def test_get_status_is_idempotent():
    respx.get(f"{BASE}/turbosign/documents/d1/status").respond(200, json={"status": "pending"})
    with httpx.Client() as http:
        dispatcher = _dispatcher(http)
        first = dispatcher.execute(Operation.GET_STATUS, {"documentId": "d1"})
        second = dispatcher.execute(Operation.GET_STATUS, {"documentId": "d1"})
    assert isinstance(first, Success)
    assert first == second


@respx.mock
def test_transport_failure_has_no_status():
    respx.post(f"{BASE}/turbosign/documents/d1/void").mock(side_effect=httpx.ReadTimeout("timed out"))
    with httpx.Client() as http:
        out = _dispatcher(http).run(
            Operation.VOID_DOCUMENT, [{"documentId": "d1", "voidReason": "typo"}], continue_on_fail=True
        )
    assert out[0].error.kind is ErrorKind.TRANSPORT
    assert out[0].error.http_status is None
    assert not out[0].error.is_local


@respx.mock
def test_redirect_loop_is_isolated_per_record():
    respx.get(f"{BASE}/turbosign/documents/loop/status").respond(
        302, headers={"location": f"{BASE}/turbosign/documents/loop/status"}
    )
    respx.get(f"{BASE}/turbosign/documents/good/status").respond(200, json={"status": "completed"})
    records = [{"documentId": "loop"}, {"documentId": "good"}]
    with httpx.Client() as http:
        out = _dispatcher(http).run(Operation.GET_STATUS, records, continue_on_fail=True)

    assert len(out) == 2
    assert out[0].error.kind is ErrorKind.TRANSPORT
    assert out[0].error.http_status is None
    assert "statusCode" not in out[0].json
    assert out[1].json == {"status": "completed"}


@respx.mock(assert_all_called=False)
def test_redirect_loop_aborts_with_index(respx_mock):
    respx_mock.get(f"{BASE}/turbosign/documents/loop/status").respond(
        302, headers={"location": f"{BASE}/turbosign/documents/loop/status"}
    )
    second = respx_mock.get(f"{BASE}/turbosign/documents/good/status").respond(200, json={})
    with httpx.Client() as http:
        with pytest.raises(BatchAbortedError) as exc:
            _dispatcher(http).run(Operation.GET_STATUS, [{"documentId": "loop"}, {"documentId": "good"}])
    assert exc.value.item_index == 0
    assert exc.value.report.kind is ErrorKind.TRANSPORT
    assert not second.called


@respx.mock
def test_unrecognised_error_body_is_kept_in_output():
    respx.get(f"{BASE}/turbosign/documents/d1/status").respond(500, json={"detail": "x"})
    respx.get(f"{BASE}/turbosign/documents/d2/status").respond(502, text="<html>Bad Gateway</html>")
    records = [{"documentId": "d1"}, {"documentId": "d2"}]
    with httpx.Client() as http:
        out = _dispatcher(http).run(Operation.GET_STATUS, records, continue_on_fail=True)
    assert out[0].json["error"] == "Request failed (HTTP 500)"
    assert out[0].json["response"] == {"detail": "x"}
    assert out[1].json["response"] == "<html>Bad Gateway</html>"


@respx.mock
def test_error_json_flags_local_failures():
    respx.get(f"{BASE}/turbosign/documents/d1/status").respond(404, json={"error": "Document not found"})
    with httpx.Client() as http:
        out = _dispatcher(http).run(Operation.GET_STATUS, [{}, {"documentId": "d1"}], continue_on_fail=True)
    assert out[0].json["local"] is True
    assert "response" not in out[0].json
    assert out[1].json["local"] is False
