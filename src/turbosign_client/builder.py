from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote

from .models import (
    BinaryData,
    DeliverableSource,
    DocumentPayload,
    FileSource,
    Operation,
    ResendPayload,
    ResolvedPayload,
    SignatureRequestPayload,
    TemplateSource,
    UploadSource,
    UrlSource,
    VoidPayload,
)

# Form names of the four mutually exclusive file inputs.
FILE_FIELD_NAMES = ("file", "fileLink", "deliverableId", "templateId")

_PREPARE_PATHS = {
    Operation.PREPARE_FOR_REVIEW: "/turbosign/single/prepare-for-review",
    Operation.PREPARE_FOR_SIGNING: "/turbosign/single/prepare-for-signing",
}

_DOCUMENT_ROUTES = {
    Operation.GET_STATUS: ("GET", "/turbosign/documents/{id}/status"),
    Operation.DOWNLOAD_DOCUMENT: ("GET", "/turbosign/documents/{id}/download"),
    Operation.VOID_DOCUMENT: ("POST", "/turbosign/documents/{id}/void"),
    Operation.RESEND_EMAIL: ("POST", "/turbosign/documents/{id}/resend-email"),
}

CREDENTIAL_TEST_PATH = "/turbosign/documents/signature-documents"


@dataclass(frozen=True)
class OutboundRequest:
    """Shape of one HTTP call; the transport adds base URL and auth."""

    method: str
    path: str
    form: dict[str, str] = field(default_factory=dict)
    attachment: Optional[tuple[str, Any]] = None
    json_body: Optional[dict[str, Any]] = None
    params: dict[str, str] = field(default_factory=dict)
    expects_binary: bool = False

    @property
    def is_multipart(self) -> bool:
        return self.attachment is not None

    def httpx_kwargs(self, base_url: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"method": self.method, "url": f"{base_url}{self.path}"}
        if self.params:
            kwargs["params"] = self.params
        if self.attachment is not None:
            name, value = self.attachment
            if isinstance(value, BinaryData):
                part = (value.file_name, value.data, value.mime_type)
            else:
                # no filename: rendered as a plain form field, keeps the body multipart
                part = (None, value)
            kwargs["data"] = self.form
            kwargs["files"] = [(name, part)]
        elif self.json_body is not None:
            kwargs["json"] = self.json_body
        return kwargs


def _attachment(source: FileSource) -> tuple[str, Any]:
    if isinstance(source, UploadSource):
        return "file", source.file
    if isinstance(source, UrlSource):
        return "fileLink", source.file_link
    if isinstance(source, DeliverableSource):
        return "deliverableId", source.deliverable_id
    if isinstance(source, TemplateSource):
        return "templateId", source.template_id
    raise TypeError(f"Unsupported file source: {source!r}")


def _signature_form(payload: SignatureRequestPayload) -> dict[str, str]:
    form = {"recipients": payload.recipients, "fields": payload.fields}
    optional = {
        "documentName": payload.document_name,
        "documentDescription": payload.document_description,
        "senderName": payload.sender_name,
        "senderEmail": payload.sender_email,
        "ccEmails": payload.cc_emails,
    }
    form.update({k: v for k, v in optional.items() if v})
    return form


def document_path(template: str, document_id: str) -> str:
    return template.format(id=quote(document_id, safe=""))


def build_request(operation: Operation, payload: ResolvedPayload) -> OutboundRequest:
    """Map a resolved payload to the one request `operation` sends."""
    if operation.is_prepare:
        if not isinstance(payload, SignatureRequestPayload):
            raise TypeError(f"{operation.value} needs a SignatureRequestPayload, got {type(payload).__name__}")
        return OutboundRequest(
            method="POST",
            path=_PREPARE_PATHS[operation],
            form=_signature_form(payload),
            attachment=_attachment(payload.source),
        )

    if not isinstance(payload, DocumentPayload):
        raise TypeError(f"{operation.value} needs a document payload, got {type(payload).__name__}")
    method, template = _DOCUMENT_ROUTES[operation]
    path = document_path(template, payload.document_id)

    if operation is Operation.VOID_DOCUMENT:
        if not isinstance(payload, VoidPayload):
            raise TypeError("voidDocument needs a VoidPayload")
        return OutboundRequest(method=method, path=path, json_body={"reason": payload.reason})
    if operation is Operation.RESEND_EMAIL:
        if not isinstance(payload, ResendPayload):
            raise TypeError("resendEmail needs a ResendPayload")
        return OutboundRequest(method=method, path=path, json_body={"recipientIds": list(payload.recipient_ids)})
    return OutboundRequest(
        method=method,
        path=path,
        expects_binary=operation is Operation.DOWNLOAD_DOCUMENT,
    )


def credential_test_request(limit: int = 1) -> OutboundRequest:
    return OutboundRequest(method="GET", path=CREDENTIAL_TEST_PATH, params={"limit": str(limit)})
