"""
End-to-end route tests through Flask's test client with recording mailers.

Coverage:
  - POST /api/contact: success, validation errors, honeypot, malformed body, delivery failure
  - POST /api/careers: success with CV, missing fields/file, bad file type and size, honeypot
  - Response shapes: {ok}, {errors}, {error}
  - Security headers, /health and /api/forms
"""

import io
import logging

import pytest

from attachments import MAX_FILE_BYTES
from conftest import CAREERS_INBOX, CONTACT_INBOX

PDF = "application/pdf"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _contact_payload(**overrides) -> dict:
    payload = {
        "name": "Alex Lee",
        "email": "alex@brand.com",
        "message": "We'd like a quote for branding work.",
    }
    payload.update(overrides)
    return payload


def _careers_form(cv: bytes | None = b"%PDF-1.7 resume", content_type: str = PDF,
                  filename: str = "priya-cv.pdf", **overrides) -> dict:
    form = {
        "name": "Priya Shah",
        "email": "priya@example.org",
        "experience": "1-3 Years",
        "about": "Motion designer with two years of agency work.",
        "jobTitle": "Video Editor",
    }
    form.update(overrides)
    if cv is not None:
        form["cv"] = (io.BytesIO(cv), filename, content_type)
    return form


def _post_careers(client, form):
    return client.post("/api/careers", data=form, content_type="multipart/form-data")


# ---------------------------------------------------------------------------
# Contact
# ---------------------------------------------------------------------------

def test_contact_valid_submission_sends_once(client, contact_mailer):
    response = client.post("/api/contact", json=_contact_payload())
    assert response.status_code == 200
    assert response.get_json() == {"ok": True}
    assert len(contact_mailer.sent) == 1
    msg = contact_mailer.sent[0]
    assert msg.reply_to == "alex@brand.com"
    assert msg.to_address == CONTACT_INBOX


def test_contact_validation_errors_return_422(client, contact_mailer):
    response = client.post("/api/contact", json=_contact_payload(name="A", email="nope", service="Unknown"))
    assert response.status_code == 422
    errors = response.get_json()["errors"]
    assert set(errors) == {"name", "email", "service"}
    assert contact_mailer.sent == []


def test_contact_short_name_after_sanitizing_never_sends(client, contact_mailer):
    response = client.post("/api/contact", json=_contact_payload(name="<b>A</b>"))
    assert response.status_code == 422
    assert "name" in response.get_json()["errors"]
    assert contact_mailer.sent == []


def test_contact_honeypot_returns_success_without_sending(client, contact_mailer, caplog):
    with caplog.at_level(logging.WARNING):
        response = client.post("/api/contact", json=_contact_payload(website="http://spam.example"))
    assert response.status_code == 200
    assert response.get_json() == {"ok": True}
    assert contact_mailer.sent == []
    assert "honeypot" in caplog.text
    assert "spam.example" not in caplog.text


def test_contact_honeypot_skips_validation(client, contact_mailer):
    response = client.post("/api/contact", json={"website": "x"})
    assert response.status_code == 200
    assert contact_mailer.sent == []


@pytest.mark.parametrize("body", [b"{not json", b"[1, 2, 3]", b"\"string\"", b""])
def test_contact_malformed_body_returns_400(client, contact_mailer, body):
    response = client.post("/api/contact", data=body, content_type="application/json")
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid request body."}
    assert contact_mailer.sent == []


def test_contact_newlines_in_name_are_flattened(client, contact_mailer):
    response = client.post("/api/contact", json=_contact_payload(name="Alex\r\nBcc: x@evil.com"))
    assert response.status_code == 200
    assert "\n" not in contact_mailer.sent[0].subject


def test_contact_html_tags_removed_and_escaped(client, contact_mailer):
    client.post("/api/contact", json=_contact_payload(
        message="<script>alert('x')</script>Please call me & my team soon."))
    msg = contact_mailer.sent[0]
    assert "<script>" not in msg.body_text
    assert "<script>" not in msg.body_html
    assert "alert(&#x27;x&#x27;)Please call me &amp; my team soon." in msg.body_html


def test_contact_delivery_failure_returns_generic_500(client, contact_mailer):
    contact_mailer.fail_with = "connection_failed"
    response = client.post("/api/contact", json=_contact_payload())
    assert response.status_code == 500
    assert response.get_json() == {"error": "Unable to process request at this time."}
    assert "connection" not in response.get_data(as_text=True)


# ---------------------------------------------------------------------------
# Careers
# ---------------------------------------------------------------------------

def test_careers_valid_application_attaches_cv(client, careers_mailer):
    response = _post_careers(client, _careers_form(portfolio="https://behance.net/priya"))
    assert response.status_code == 200
    assert response.get_json() == {"ok": True}
    assert len(careers_mailer.sent) == 1
    msg = careers_mailer.sent[0]
    assert msg.to_address == CAREERS_INBOX
    assert msg.reply_to == "priya@example.org"
    assert msg.subject == "New Application: Video Editor — Priya Shah"
    (cv,) = msg.attachments
    assert cv.filename == "priya-cv.pdf"
    assert cv.media_type == PDF
    assert cv.content == b"%PDF-1.7 resume"


def test_careers_missing_experience_and_file(client, careers_mailer):
    form = _careers_form(cv=None)
    del form["experience"]
    response = _post_careers(client, form)
    assert response.status_code == 422
    errors = response.get_json()["errors"]
    assert "experience" in errors
    assert errors["file"] == "A CV file is required."
    assert careers_mailer.sent == []


def test_careers_empty_file_counts_as_missing(client, careers_mailer):
    response = _post_careers(client, _careers_form(cv=b""))
    assert response.status_code == 422
    assert response.get_json()["errors"]["file"] == "A CV file is required."


def test_careers_rejects_text_plain(client, careers_mailer):
    response = _post_careers(client, _careers_form(cv=b"hello", content_type="text/plain", filename="cv.pdf"))
    assert response.status_code == 422
    assert response.get_json()["errors"] == {"file": "Only PDF, DOC, or DOCX files are accepted."}
    assert careers_mailer.sent == []


def test_careers_accepts_exactly_five_mib(client, careers_mailer):
    response = _post_careers(client, _careers_form(cv=b"x" * MAX_FILE_BYTES))
    assert response.status_code == 200
    assert careers_mailer.sent[0].attachments[0].size_bytes == MAX_FILE_BYTES


def test_careers_rejects_one_byte_over(client, careers_mailer):
    response = _post_careers(client, _careers_form(cv=b"x" * (MAX_FILE_BYTES + 1)))
    assert response.status_code == 422
    assert response.get_json()["errors"] == {"file": "CV must be 5 MB or smaller."}
    assert careers_mailer.sent == []


def test_careers_invalid_urls_reported(client, careers_mailer):
    response = _post_careers(client, _careers_form(linkedin="not a url", github="ftp://github.com/x"))
    assert response.status_code == 422
    assert set(response.get_json()["errors"]) == {"linkedin", "github"}


def test_careers_honeypot_returns_success_without_sending(client, careers_mailer):
    response = _post_careers(client, _careers_form(website="filled"))
    assert response.status_code == 200
    assert response.get_json() == {"ok": True}
    assert careers_mailer.sent == []


def test_careers_json_body_is_malformed(client, careers_mailer):
    response = client.post("/api/careers", json={"name": "Priya"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid request body."}


def test_careers_multipart_without_boundary_is_malformed(client, careers_mailer):
    response = client.post("/api/careers", data=b"garbage", content_type="multipart/form-data")
    assert response.status_code == 400


def test_careers_truncated_multipart_is_malformed(client, careers_mailer):
    body = b"--XYZ\r\nthis is not a valid part header\r\ngarbage without terminator"
    response = client.post("/api/careers", data=body,
                           content_type="multipart/form-data; boundary=XYZ")
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid request body."}
    assert careers_mailer.sent == []


def test_careers_delivery_failure_returns_generic_500(client, careers_mailer):
    careers_mailer.fail_with = "smtp_error"
    response = _post_careers(client, _careers_form())
    assert response.status_code == 500
    assert response.get_json() == {
        "error": "Unable to process your application at this time. Please try again."
    }


def test_oversized_request_returns_413(client, careers_mailer):
    response = _post_careers(client, _careers_form(cv=b"x" * (7 * 1024 * 1024)))
    assert response.status_code == 413
    assert response.get_json() == {"error": "Request body too large."}
    assert careers_mailer.sent == []


# ---------------------------------------------------------------------------
# Ambient endpoints
# ---------------------------------------------------------------------------

def test_security_headers_on_every_response(client):
    response = client.get("/health")
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"


def test_health_hides_credentials(client):
    response = client.get("/health")
    body = response.get_json()
    assert body["status"] == "healthy"
    assert set(body["transport"]) == {"contact", "careers"}
    assert "secret-password" not in response.get_data(as_text=True)


def test_form_rules_endpoint(client):
    body = client.get("/api/forms").get_json()
    assert body["careers"]["attachment"]["required"] is True
    assert "Fresher" in body["careers"]["choices"]["experience"]


def test_unknown_method_is_json(client):
    response = client.get("/api/contact")
    assert response.status_code == 405
    assert "error" in response.get_json()
