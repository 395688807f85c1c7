"""
Forms Service
=============
Language  : Python
Framework : Flask + Gunicorn

Server side of the website's two public forms.

Architecture: isolated layers behind two POST endpoints.
  validation.py   — sanitizer and per-field rules
  honeypot.py     — hidden-field bot trap
  attachments.py  — CV upload guard
  templates.py    — form registry and notification renderers
  transport.py    — pooled SMTP client (one per route)
  pipeline.py     — per-submission processing steps

Endpoints:
  POST /api/contact   — JSON body
  POST /api/careers   — multipart form with a "cv" file
  GET  /api/forms     — field rules for the page forms
  GET  /health
"""

import atexit
import logging
import os

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.formparser import parse_form_data

import pipeline
import settings as settings_module
import templates
from transport import SMTPMailer

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [forms-service] %(levelname)s %(message)s'
)
log = logging.getLogger(__name__)

# Above the 5 MiB CV cap so oversize files reach the attachment guard
MAX_REQUEST_BYTES = 6 * 1024 * 1024

FORM_MIMETYPES = {"multipart/form-data", "application/x-www-form-urlencoded"}

SECURITY_HEADERS = {
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "X-XSS-Protection": "1; mode=block",
}


def _bad_request():
    return jsonify({"error": "Invalid request body."}), 400


def _respond(result: pipeline.SubmissionResult):
    return jsonify(result.body()), result.status_code


def _mailers():
    return current_app.extensions["forms_mailers"]


def contact():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return _bad_request()
    result = pipeline.process_contact(data, _mailers()["contact"], request.remote_addr)
    return _respond(result)


def _parse_form():
    """
    Strict form parse: a truncated body or missing boundary raises ValueError
    instead of yielding an empty form. Oversize bodies still raise 413.
    """
    _, form, files = parse_form_data(
        request.environ,
        max_form_memory_size=request.max_form_memory_size,
        max_content_length=request.max_content_length,
        silent=False,
        max_form_parts=request.max_form_parts,
    )
    return form, files


def careers():
    if request.mimetype not in FORM_MIMETYPES:
        return _bad_request()
    try:
        form, files = _parse_form()
    except ValueError:
        return _bad_request()
    result = pipeline.process_careers(
        form, files.get("cv"), _mailers()["careers"], request.remote_addr,
    )
    return _respond(result)


def health():
    mailers = _mailers()
    return jsonify({
        "status": "healthy",
        "service": "forms-service",
        "language": "Python",
        "forms": sorted(templates.FORM_TYPES),
        "transport": {route: mailer.summary() for route, mailer in mailers.items()},
    })


def form_type_list():
    return jsonify({
        name: {
            "description": spec.description,
            "fields": spec.fields,
            "required_fields": spec.required_fields,
            "choices": spec.choices,
            "attachment": spec.attachment,
        }
        for name, spec in templates.FORM_TYPES.items()
    })


def _add_security_headers(response):
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


def _http_error(e: HTTPException):
    if e.code == 413:
        return jsonify({"error": "Request body too large."}), 413
    return jsonify({"error": e.name}), e.code


def create_app(config: settings_module.Settings | None = None,
               contact_mailer=None, careers_mailer=None) -> Flask:
    """
    App factory. Mailers are built here from config unless injected (tests
    pass recording fakes). Mailers created here are closed at process exit.
    """
    config = config or settings_module.load()
    verbose = not config.is_production

    owned = []
    if contact_mailer is None:
        contact_mailer = SMTPMailer(config.contact, verbose_errors=verbose, console_fallback=verbose)
        owned.append(contact_mailer)
    if careers_mailer is None:
        careers_mailer = SMTPMailer(config.careers, verbose_errors=verbose, console_fallback=verbose)
        owned.append(careers_mailer)
    for mailer in owned:
        atexit.register(mailer.close)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = MAX_REQUEST_BYTES
    app.extensions["forms_mailers"] = {"contact": contact_mailer, "careers": careers_mailer}
    app.extensions["forms_settings"] = config

    app.add_url_rule('/api/contact', view_func=contact, methods=['POST'])
    app.add_url_rule('/api/careers', view_func=careers, methods=['POST'])
    app.add_url_rule('/api/forms', view_func=form_type_list, methods=['GET'])
    app.add_url_rule('/health', view_func=health, methods=['GET'])
    app.after_request(_add_security_headers)
    app.register_error_handler(HTTPException, _http_error)
    return app


app = create_app()


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 3000))
    log.info(f"Forms Service (Python) starting on :{port}")
    for route, mailer in app.extensions["forms_mailers"].items():
        smtp = mailer.summary()
        log.info(f"  {route:<8} → SMTP {smtp['host']}:{smtp['port']} (mode={smtp['mode']}, auth={smtp['auth']})")
    app.run(host='0.0.0.0', port=port)
