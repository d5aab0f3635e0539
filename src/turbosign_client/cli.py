from __future__ import annotations

import json
from pathlib import Path
import sys
from typing import Any

import typer

from .config import Settings
from .errors import BatchAbortedError, TurboSignError
from .logging import configure_logging
from .models import FileInputMethod, Operation, OutputRecord
from .service import TurboSignService
from .util import guess_content_type, safe_filename

app = typer.Typer(no_args_is_help=True, add_completion=False, help="TurboSign e-signature client.")


def _service() -> TurboSignService:
    try:
        settings = Settings()
    except Exception as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2)
    configure_logging(settings.log_level, json_logs=settings.log_json)
    return TurboSignService(settings)


def _binary_from_path(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise typer.BadParameter(f"File not found: {path}")
    return {"data": path.read_bytes(), "fileName": path.name, "mimeType": guess_content_type(path.name)}


def _render(record: OutputRecord, written: dict[str, Path]) -> dict[str, Any]:
    rendered: dict[str, Any] = {"json": record.json, "pairedItem": record.paired_item}
    if record.binary:
        rendered["binary"] = {
            name: {"fileName": b.file_name, "mimeType": b.mime_type, "path": str(written[name])}
            for name, b in record.binary.items()
        }
    return rendered


def _write_binaries(record: OutputRecord, out: Path) -> dict[str, Path]:
    written: dict[str, Path] = {}
    for name, binary in record.binary.items():
        out.mkdir(parents=True, exist_ok=True)
        path = out / safe_filename(binary.file_name or name)
        path.write_bytes(binary.data)
        written[name] = path
    return written


def _run(
    operation: Operation,
    records: list[dict[str, Any]],
    continue_on_fail: bool = False,
    out: Path = Path("."),
) -> tuple[list[dict[str, Any]], bool]:
    svc = _service()
    try:
        output = svc.run(operation, records, continue_on_fail=continue_on_fail)
    except BatchAbortedError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    return [_render(r, _write_binaries(r, out)) for r in output], any(r.error for r in output)


def _emit_single(operation: Operation, record: dict[str, Any], out: Path = Path(".")) -> None:
    rendered, _ = _run(operation, [record], out=out)
    typer.echo(json.dumps(rendered[0], indent=2))


def _prepare(
    operation: Operation,
    file: Path | None,
    file_link: str | None,
    deliverable_id: str | None,
    template_id: str | None,
    recipients: str,
    fields: str,
    document_name: str | None,
    document_description: str | None,
    sender_name: str | None,
    sender_email: str | None,
    cc_emails: str | None,
) -> None:
    chosen = {
        FileInputMethod.UPLOAD: file,
        FileInputMethod.URL: file_link,
        FileInputMethod.DELIVERABLE: deliverable_id,
        FileInputMethod.TEMPLATE: template_id,
    }
    provided = [method for method, value in chosen.items() if value]
    if len(provided) != 1:
        typer.echo("Exactly one of --file, --file-link, --deliverable-id, --template-id is required", err=True)
        raise typer.Exit(code=2)

    method = provided[0]
    record: dict[str, Any] = {
        "fileInputMethod": method.value,
        "recipients": recipients,
        "fields": fields,
        "additionalFields": {
            "documentName": document_name,
            "documentDescription": document_description,
            "senderName": sender_name,
            "senderEmail": sender_email,
            "ccEmails": cc_emails,
        },
    }
    if method is FileInputMethod.UPLOAD:
        record["binary"] = {"data": _binary_from_path(file)}
    elif method is FileInputMethod.URL:
        record["fileLink"] = file_link
    elif method is FileInputMethod.DELIVERABLE:
        record["deliverableId"] = deliverable_id
    else:
        record["templateId"] = template_id
    _emit_single(operation, record)


def _file_opt():
    return typer.Option(None, help="Local PDF, DOCX or PPTX to upload")


def _file_link_opt():
    return typer.Option(None, help="URL of a hosted file (S3, Google Drive, ...)")


def _deliverable_opt():
    return typer.Option(None, help="UUID of an existing TurboDocx deliverable")


def _template_opt():
    return typer.Option(None, help="UUID of a TurboDocx template (converted to PDF)")


def _recipients_opt():
    return typer.Option("[]", help='JSON array, e.g. [{"name":"John","email":"j@x.com","signingOrder":1}]')


def _fields_opt():
    return typer.Option("[]", help="JSON array of signature fields (coordinates or template anchors)")


def _cc_opt():
    return typer.Option(None, help="JSON array of up to 10 addresses to CC on completion")


@app.command("prepare-review")
def prepare_review(
        file: Path | None = _file_opt(),
        file_link: str | None = _file_link_opt(),
        deliverable_id: str | None = _deliverable_opt(),
        template_id: str | None = _template_opt(),
        recipients: str = _recipients_opt(),
        fields: str = _fields_opt(),
        document_name: str | None = typer.Option(None),
        document_description: str | None = typer.Option(None),
        sender_name: str | None = typer.Option(None),
        sender_email: str | None = typer.Option(None),
        cc_emails: str | None = _cc_opt(),
) -> None:
    """Prepare a document for review: returns a preview URL, sends no emails."""
    _prepare(
        Operation.PREPARE_FOR_REVIEW, file, file_link, deliverable_id, template_id, recipients, fields,
        document_name, document_description, sender_name, sender_email, cc_emails,
    )


@app.command("prepare-signing")
def prepare_signing(
        file: Path | None = _file_opt(),
        file_link: str | None = _file_link_opt(),
        deliverable_id: str | None = _deliverable_opt(),
        template_id: str | None = _template_opt(),
        recipients: str = _recipients_opt(),
        fields: str = _fields_opt(),
        document_name: str | None = typer.Option(None),
        document_description: str | None = typer.Option(None),
        sender_name: str | None = typer.Option(None),
        sender_email: str | None = typer.Option(None),
        cc_emails: str | None = _cc_opt(),
) -> None:
    """Prepare a document for signing and email the recipients."""
    _prepare(
        Operation.PREPARE_FOR_SIGNING, file, file_link, deliverable_id, template_id, recipients, fields,
        document_name, document_description, sender_name, sender_email, cc_emails,
    )


@app.command()
def status(document_id: str = typer.Argument(..., help="UUID of the signature document")) -> None:
    """Get the current status of a signature document."""
    _emit_single(Operation.GET_STATUS, {"documentId": document_id})


@app.command()
def download(
        document_id: str = typer.Argument(..., help="UUID of the signature document"),
        out: Path = typer.Option(Path("./out"), help="Output directory"),
) -> None:
    """Download the signed PDF."""
    _emit_single(Operation.DOWNLOAD_DOCUMENT, {"documentId": document_id}, out=out)


@app.command()
def void(
        document_id: str = typer.Argument(..., help="UUID of the signature document"),
        reason: str = typer.Option(..., help="Reason for voiding (max 500 characters)"),
) -> None:
    """Cancel a signature request."""
    _emit_single(Operation.VOID_DOCUMENT, {"documentId": document_id, "voidReason": reason})


@app.command()
def resend(
        document_id: str = typer.Argument(..., help="UUID of the signature document"),
        recipient_ids: str = typer.Option(..., help='JSON array of recipient UUIDs, e.g. ["uuid1","uuid2"]'),
) -> None:
    """Resend signature request emails to specific recipients."""
    _emit_single(Operation.RESEND_EMAIL, {"documentId": document_id, "recipientIds": recipient_ids})


@app.command()
def batch(
        operation: Operation = typer.Argument(..., help="Operation applied to every record"),
        records_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array of records"),
        continue_on_fail: bool = typer.Option(False, help="Report failed records instead of aborting"),
        out: Path = typer.Option(Path("./out"), help="Directory for downloaded documents"),
) -> None:
    """Run one operation over a JSON file of records.

    Binary properties may reference local files as {"path": "contract.pdf"},
    resolved relative to the records file.
    """
    try:
        records = json.loads(records_file.read_text(encoding="utf-8"))
    except ValueError as e:
        typer.echo(f"Invalid records file: {e}", err=True)
        raise typer.Exit(code=2)
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        typer.echo("Records file must contain a JSON array of objects", err=True)
        raise typer.Exit(code=2)

    base_dir = records_file.parent
    for record in records:
        binary = record.get("binary") or {}
        if not isinstance(binary, dict):
            typer.echo("Record 'binary' must be an object of property name to file", err=True)
            raise typer.Exit(code=2)
        for name, ref in list(binary.items()):
            if isinstance(ref, dict) and "path" in ref:
                binary[name] = _binary_from_path(base_dir / ref["path"])

    rendered, failed = _run(operation, records, continue_on_fail=continue_on_fail, out=out)
    typer.echo(json.dumps(rendered, indent=2))
    if failed:
        raise typer.Exit(code=1)


@app.command("check-auth")
def check_auth() -> None:
    """Validate the configured credentials with a lightweight list call."""
    svc = _service()
    try:
        svc.check_credentials()
    except TurboSignError as e:
        typer.echo(f"Authentication failed: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Credentials OK")


def main() -> None:
    app()


if __name__ == "__main__":
    sys.exit(main())
