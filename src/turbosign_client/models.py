from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Operation(str, Enum):
    PREPARE_FOR_REVIEW = "prepareForReview"
    PREPARE_FOR_SIGNING = "prepareForSigning"
    GET_STATUS = "getStatus"
    DOWNLOAD_DOCUMENT = "downloadDocument"
    VOID_DOCUMENT = "voidDocument"
    RESEND_EMAIL = "resendEmail"

    @property
    def is_prepare(self) -> bool:
        return self in (Operation.PREPARE_FOR_REVIEW, Operation.PREPARE_FOR_SIGNING)


class FileInputMethod(str, Enum):
    UPLOAD = "upload"
    URL = "url"
    DELIVERABLE = "deliverable"
    TEMPLATE = "template"


class ErrorKind(str, Enum):
    MALFORMED_INPUT = "MalformedInput"
    MISSING_BINARY_DATA = "MissingBinaryData"
    REMOTE_VALIDATION = "RemoteValidationError"
    REMOTE_API = "RemoteApiError"
    TRANSPORT = "TransportError"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BinaryData(_CamelModel):
    """A binary buffer handed over by the host (or produced by a download)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    data: bytes
    file_name: Optional[str] = None
    mime_type: Optional[str] = None


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    message: str


class ErrorReport(BaseModel):
    """Uniform description of a failed record, local or remote."""

    model_config = ConfigDict(frozen=True)

    message: str
    kind: ErrorKind
    code: Optional[str] = None
    http_status: Optional[int] = None
    field_errors: Optional[tuple[FieldError, ...]] = None
    response: Any = None

    @property
    def is_local(self) -> bool:
        return self.http_status is None and self.kind != ErrorKind.TRANSPORT

    def render(self) -> str:
        if self.http_status is None:
            return self.message
        return f"{self.message} (HTTP {self.http_status})"


class AdditionalFields(_CamelModel):
    document_name: Optional[str] = None
    document_description: Optional[str] = None
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    cc_emails: Optional[str] = None


class InputRecord(_CamelModel):
    """Parameters of one host record, keyed the way the host names them."""

    file_input_method: Optional[FileInputMethod] = None
    pdf_file: str = "data"
    file_link: Optional[str] = None
    deliverable_id: Optional[str] = None
    template_id: Optional[str] = None
    recipients: str = "[]"
    fields: str = "[]"
    additional_fields: AdditionalFields = Field(default_factory=AdditionalFields)
    document_id: Optional[str] = None
    void_reason: Optional[str] = None
    recipient_ids: Optional[str] = None
    binary: dict[str, BinaryData] = Field(default_factory=dict)


# -- resolved payloads -------------------------------------------------------

class UploadSource(BaseModel):
    kind: Literal["upload"] = "upload"
    file: BinaryData


class UrlSource(BaseModel):
    kind: Literal["url"] = "url"
    file_link: str


class DeliverableSource(BaseModel):
    kind: Literal["deliverable"] = "deliverable"
    deliverable_id: str


class TemplateSource(BaseModel):
    kind: Literal["template"] = "template"
    template_id: str


FileSource = Annotated[
    Union[UploadSource, UrlSource, DeliverableSource, TemplateSource],
    Field(discriminator="kind"),
]


class SignatureRequestPayload(BaseModel):
    recipients: str
    fields: str
    source: FileSource
    document_name: Optional[str] = None
    document_description: Optional[str] = None
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    cc_emails: Optional[str] = None


class DocumentPayload(BaseModel):
    document_id: str


class VoidPayload(DocumentPayload):
    reason: str


class ResendPayload(DocumentPayload):
    recipient_ids: list[str]


ResolvedPayload = Union[SignatureRequestPayload, VoidPayload, ResendPayload, DocumentPayload]


# -- outcomes ----------------------------------------------------------------

@dataclass(frozen=True)
class Success:
    body: Any


@dataclass(frozen=True)
class Failure:
    report: ErrorReport


RequestOutcome = Union[Success, Failure]


@dataclass(frozen=True)
class OutputRecord:
    json: dict[str, Any]
    paired_item: int
    binary: dict[str, BinaryData] = field(default_factory=dict)
    error: Optional[ErrorReport] = None
