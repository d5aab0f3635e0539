from __future__ import annotations

import json
from typing import Optional

from .errors import MalformedInput, MissingBinaryData
from .models import (
    DeliverableSource,
    DocumentPayload,
    FileInputMethod,
    FileSource,
    InputRecord,
    Operation,
    ResendPayload,
    ResolvedPayload,
    SignatureRequestPayload,
    TemplateSource,
    UploadSource,
    UrlSource,
    VoidPayload,
)

DEFAULT_FILENAME = "document.pdf"
DEFAULT_CONTENT_TYPE = "application/pdf"


def _required(value: Optional[str], name: str) -> str:
    if value is None or not value.strip():
        raise MalformedInput(f"Parameter '{name}' is required")
    return value.strip()


def _optional(value: Optional[str]) -> Optional[str]:
    return value if value else None


def resolve_file_source(record: InputRecord) -> FileSource:
    method = record.file_input_method
    if method is None:
        raise MalformedInput("Parameter 'fileInputMethod' is required")

    if method is FileInputMethod.UPLOAD:
        binary = record.binary.get(record.pdf_file)
        if binary is None:
            raise MissingBinaryData(record.pdf_file)
        return UploadSource(
            file=binary.model_copy(
                update={
                    "file_name": binary.file_name or DEFAULT_FILENAME,
                    "mime_type": binary.mime_type or DEFAULT_CONTENT_TYPE,
                }
            )
        )
    if method is FileInputMethod.URL:
        return UrlSource(file_link=_required(record.file_link, "fileLink"))
    if method is FileInputMethod.DELIVERABLE:
        return DeliverableSource(deliverable_id=_required(record.deliverable_id, "deliverableId"))
    return TemplateSource(template_id=_required(record.template_id, "templateId"))


def parse_recipient_ids(raw: Optional[str]) -> list[str]:
    """Parse the recipientIds JSON text; the list is needed locally to build the body."""
    text = _required(raw, "recipientIds")
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInput(f"Parameter 'recipientIds' is not valid JSON: {e.msg}") from e
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MalformedInput("Parameter 'recipientIds' must be a JSON array of strings")
    return value


def resolve(operation: Operation, record: InputRecord) -> ResolvedPayload:
    """Gather and check the parameters `operation` needs; raise before any I/O."""
    if operation.is_prepare:
        extra = record.additional_fields
        return SignatureRequestPayload(
            recipients=record.recipients,
            fields=record.fields,
            source=resolve_file_source(record),
            document_name=_optional(extra.document_name),
            document_description=_optional(extra.document_description),
            sender_name=_optional(extra.sender_name),
            sender_email=_optional(extra.sender_email),
            cc_emails=_optional(extra.cc_emails),
        )

    document_id = _required(record.document_id, "documentId")
    if operation is Operation.VOID_DOCUMENT:
        return VoidPayload(document_id=document_id, reason=_required(record.void_reason, "voidReason"))
    if operation is Operation.RESEND_EMAIL:
        return ResendPayload(document_id=document_id, recipient_ids=parse_recipient_ids(record.recipient_ids))
    return DocumentPayload(document_id=document_id)
