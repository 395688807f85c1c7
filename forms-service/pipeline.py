"""
pipeline.py — Form Submission Pipeline
========================================
Executes the processing steps for every form submission. Each step is an
exit point; the mailer is the last step. Nothing is kept between requests.

Steps:
1. Honeypot check (bot → silent success)
2. Sanitize raw fields
3. Validate fields (+ CV upload for careers)
4. Compose the notification
5. Hand off to the route's mailer
6. Return result

Request-body parsing happens in main.py; a malformed body never reaches here.
"""

import logging
import uuid
from dataclasses import dataclass, field

import attachments
import honeypot
import templates
import validation

log = logging.getLogger(__name__)

CONTACT_FAILURE = "Unable to process request at this time."
CAREERS_FAILURE = "Unable to process your application at this time. Please try again."


@dataclass
class SubmissionResult:
    status: str            # "sent" | "dropped" | "invalid" | "error"
    status_code: int
    errors: dict[str, str] = field(default_factory=dict)
    error_message: str | None = None

    def body(self) -> dict:
        if self.status == "invalid":
            return {"errors": self.errors}
        if self.status == "error":
            return {"error": self.error_message}
        return {"ok": True}


def _ok(status: str = "sent") -> SubmissionResult:
    return SubmissionResult(status=status, status_code=200)


def _invalid(submission_id: str, route: str, errors: dict[str, str]) -> SubmissionResult:
    log.info(f"[{submission_id}] {route} submission rejected: fields={sorted(errors)}")
    return SubmissionResult(status="invalid", status_code=422, errors=errors)


def _dispatch(mailer, message, submission_id: str, route: str, failure: str) -> SubmissionResult:
    result = mailer.send(message)
    if not result.success:
        log.error(f"[{submission_id}] {route} delivery failed ({result.error})")
        return SubmissionResult(status="error", status_code=500, error_message=failure)
    log.info(f"[{submission_id}] {route} submission delivered")
    return _ok()


def process_contact(raw: dict, mailer, remote_addr: str | None = None) -> SubmissionResult:
    submission_id = str(uuid.uuid4())
    route = "contact"

    # ── Step 1: Honeypot ─────────────────────────────────────────────────────
    if honeypot.is_bot(raw):
        honeypot.report(route, submission_id, remote_addr)
        return _ok("dropped")

    # ── Step 2: Sanitize ─────────────────────────────────────────────────────
    fields = validation.sanitize_fields(raw, validation.CONTACT_MAX_LENGTHS, collapse_newlines=True)

    # ── Step 3: Validate ─────────────────────────────────────────────────────
    errors = validation.validate_contact(fields)
    if errors:
        return _invalid(submission_id, route, errors)

    # ── Step 4: Compose ──────────────────────────────────────────────────────
    message = templates.compose_contact(fields, mailer.config, submission_id)

    # ── Step 5: Hand off to transport ────────────────────────────────────────
    return _dispatch(mailer, message, submission_id, route, CONTACT_FAILURE)


def process_careers(form, upload, mailer, remote_addr: str | None = None) -> SubmissionResult:
    """
    form   — text fields (dict or werkzeug MultiDict)
    upload — the "cv" file part, or None
    """
    submission_id = str(uuid.uuid4())
    route = "careers"

    # ── Step 1: Honeypot ─────────────────────────────────────────────────────
    if honeypot.is_bot(form):
        honeypot.report(route, submission_id, remote_addr)
        return _ok("dropped")

    # ── Step 2: Sanitize ─────────────────────────────────────────────────────
    # Newlines are kept for the multi-line about field; transport flattens header values
    fields = validation.sanitize_fields(form, validation.CAREERS_MAX_LENGTHS)
    cv = attachments.read_upload(upload)

    # ── Step 3: Validate fields and CV ───────────────────────────────────────
    errors = validation.validate_careers(fields)
    file_error = attachments.check_attachment(cv)
    if file_error:
        errors["file"] = file_error
    if errors:
        return _invalid(submission_id, route, errors)

    # ── Step 4: Compose ──────────────────────────────────────────────────────
    message = templates.compose_careers(fields, cv, mailer.config, submission_id)

    # ── Step 5: Hand off to transport ────────────────────────────────────────
    return _dispatch(mailer, message, submission_id, route, CAREERS_FAILURE)
