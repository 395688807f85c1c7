"""
templates.py — Form Registry and Notification Renderers
=========================================================
Defines the two public forms and turns a validated submission into the
email the agency inbox receives.

render_*() returns (subject, body_text, body_html).
compose_*() wraps that into an OutboundMessage addressed for the route.

Every user-supplied value goes through _e() at the point it is placed into
HTML, even though validation.sanitize() already stripped tags: stripping only
removes well-formed tags, escaping also covers stray quotes and brackets.

Optional fields are never omitted. They render as a placeholder so each
notification has the same layout.
"""

import html
from dataclasses import dataclass, field
from urllib.parse import quote

from attachments import ALLOWED_MEDIA_TYPES, MAX_FILE_BYTES, AttachmentDescriptor
from settings import MailSettings
from transport import OutboundMessage
from validation import (
    CAREERS_MAX_LENGTHS,
    CONTACT_MAX_LENGTHS,
    EXPERIENCE_LEVELS,
    SERVICE_CATALOG,
)

BRAND = "7ZeroMedia"
RULE = "─────────────────────────────"
PLACEHOLDER = "—"
NOT_SPECIFIED = "Not specified"


@dataclass
class FormSpec:
    description:     str
    fields:          list[str]
    required_fields: list[str]
    choices:         dict[str, list[str]] = field(default_factory=dict)
    attachment:      dict | None = None


# ── Registry ──────────────────────────────────────────────────────────────────

FORM_TYPES: dict[str, FormSpec] = {
    "contact": FormSpec(
        description="Project inquiry from the contact page",
        fields=list(CONTACT_MAX_LENGTHS),
        required_fields=["name", "email", "message"],
        choices={"service": list(SERVICE_CATALOG)},
    ),
    "careers": FormSpec(
        description="Job application with CV upload",
        fields=list(CAREERS_MAX_LENGTHS),
        required_fields=["name", "email", "experience", "about"],
        choices={"experience": list(EXPERIENCE_LEVELS)},
        attachment={
            "field": "cv",
            "required": True,
            "media_types": sorted(ALLOWED_MEDIA_TYPES),
            "max_bytes": MAX_FILE_BYTES,
        },
    ),
}


def _e(value: str) -> str:
    return html.escape(value, quote=True)


# ── HTML building blocks ──────────────────────────────────────────────────────

_LABEL_STYLE = ("margin:0 0 4px;font-size:10px;font-weight:700;letter-spacing:0.15em;"
                "text-transform:uppercase;color:#F97316;")
_LINK_STYLE = "color:#F97316;text-decoration:none;"
_PILL_STYLE = ("margin:0;display:inline-block;font-size:13px;font-weight:600;color:#F97316;"
               "background:rgba(249,115,22,0.10);border:1px solid rgba(249,115,22,0.25);"
               "border-radius:100px;padding:4px 14px;")
_BUTTON_STYLE = ("display:inline-block;background:linear-gradient(135deg,#F97316 0%,#ea6c0a 100%);"
                 "color:#ffffff;font-size:13px;font-weight:700;text-decoration:none;"
                 "padding:12px 28px;border-radius:10px;")


def _html_wrap(title: str, eyebrow: str, heading_extra: str, body_inner: str, footer: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title}</title>
</head>
<body style="margin:0;padding:0;background:#F8F8F8;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',sans-serif;">
  <table width="100%" cellpadding="0" cellspacing="0" style="background:#F8F8F8;padding:40px 20px;">
    <tr><td align="center">
      <table width="600" cellpadding="0" cellspacing="0"
             style="background:#ffffff;border-radius:16px;overflow:hidden;border:1px solid rgba(0,0,0,0.06);">
        <!-- Header -->
        <tr>
          <td style="background:linear-gradient(135deg,#F97316 0%,#ea6c0a 100%);padding:28px 36px;">
            <p style="margin:0;font-size:11px;font-weight:700;letter-spacing:0.2em;
                      text-transform:uppercase;color:rgba(255,255,255,0.75);">{eyebrow}</p>
            <h1 style="margin:8px 0 0;font-size:22px;font-weight:700;color:#ffffff;line-height:1.3;">{title}</h1>
            {heading_extra}
          </td>
        </tr>
        <!-- Body -->
        <tr>
          <td style="padding:36px;">
            {body_inner}
          </td>
        </tr>
        <!-- Footer -->
        <tr>
          <td style="padding:20px 36px;border-top:1px solid rgba(0,0,0,0.06);">
            <p style="margin:0;font-size:11px;color:rgba(0,0,0,0.35);line-height:1.6;">{footer}</p>
          </td>
        </tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def _field_row(label: str, inner: str) -> str:
    return f"""
              <tr><td style="padding:0 0 20px;">
                <p style="{_LABEL_STYLE}">{label}</p>
                {inner}
              </td></tr>"""


def _text_row(label: str, value: str, placeholder: str = PLACEHOLDER, bold: bool = False) -> str:
    weight = "font-weight:600;" if bold else ""
    return _field_row(label, f'<p style="margin:0;font-size:15px;color:#111111;{weight}">'
                             f'{_e(value or placeholder)}</p>')


def _pill_row(label: str, value: str, placeholder: str = NOT_SPECIFIED) -> str:
    return _field_row(label, f'<p style="{_PILL_STYLE}">{_e(value or placeholder)}</p>')


def _link_row(label: str, url: str, href_prefix: str = "") -> str:
    if not url:
        return _text_row(label, "")
    return _field_row(label, f'<p style="margin:0;font-size:14px;">'
                             f'<a href="{_e(href_prefix + url)}" style="{_LINK_STYLE}">{_e(url)}</a></p>')


def _free_text_row(label: str, value: str) -> str:
    return f"""
              <tr><td style="padding:0 0 4px;">
                <p style="{_LABEL_STYLE}margin-bottom:10px;">{label}</p>
                <div style="background:#F8F8F8;border-radius:12px;padding:16px 20px;border:1px solid rgba(0,0,0,0.06);">
                  <p style="margin:0;font-size:14px;line-height:1.7;color:#444444;white-space:pre-wrap;">{_e(value)}</p>
                </div>
              </td></tr>"""


def _reply_button(email: str, name: str, subject: str) -> str:
    href = f"mailto:{email}?subject={quote(subject)}"
    return f"""
            <table width="100%" cellpadding="0" cellspacing="0" style="margin-top:32px;">
              <tr><td>
                <a href="{_e(href)}" style="{_BUTTON_STYLE}">Reply to {_e(name)}</a>
              </td></tr>
            </table>"""


# ── Contact ───────────────────────────────────────────────────────────────────

def render_contact(f: dict[str, str]) -> tuple[str, str, str]:
    text = "\n".join([
        f"New contact inquiry received via {BRAND} website.",
        "",
        f"Name:     {f['name']}",
        f"Email:    {f['email']}",
        f"Company:  {f.get('company') or PLACEHOLDER}",
        f"Service:  {f.get('service') or NOT_SPECIFIED}",
        "",
        "Message:",
        f["message"],
        "",
        RULE,
        "This email was sent automatically. Do not reply to this address.",
    ])

    rows = "".join([
        _text_row("Name", f["name"], bold=True),
        _link_row("Email", f["email"], href_prefix="mailto:"),
        _text_row("Company / Brand", f.get("company", "")),
        _pill_row("Service Interested In", f.get("service", "")),
        _free_text_row("Message", f["message"]),
    ])
    body_inner = (
        f'<table width="100%" cellpadding="0" cellspacing="0">{rows}\n            </table>'
        + _reply_button(f["email"], f["name"], f"Re: Your inquiry to {BRAND}")
    )
    html_body = _html_wrap(
        "New Contact Inquiry", BRAND, "", body_inner,
        f"Sent automatically from the {BRAND} contact form. Do not reply to this system email.",
    )
    return f"New Contact Inquiry from {f['name']}", text, html_body


def compose_contact(fields: dict[str, str], mail: MailSettings, submission_id: str) -> OutboundMessage:
    subject, text, html_body = render_contact(fields)
    return OutboundMessage(
        to_address=mail.to_address,
        from_address=mail.from_address,
        reply_to=fields["email"],
        subject=subject,
        body_text=text,
        body_html=html_body,
        submission_id=submission_id,
    )


# ── Careers ───────────────────────────────────────────────────────────────────

def render_careers(f: dict[str, str], cv_filename: str | None) -> tuple[str, str, str]:
    job_title = f.get("jobTitle", "")
    cv_line = f"CV attached: {cv_filename}" if cv_filename else "No CV attached."

    text = "\n".join([
        f"New job application received via {BRAND} website.",
        f"Position: {job_title or NOT_SPECIFIED}",
        "",
        f"Name:        {f['name']}",
        f"Email:       {f['email']}",
        f"Experience:  {f['experience']}",
        f"Portfolio:   {f.get('portfolio') or PLACEHOLDER}",
        f"LinkedIn:    {f.get('linkedin') or PLACEHOLDER}",
        f"GitHub:      {f.get('github') or PLACEHOLDER}",
        "",
        "About the candidate:",
        f["about"],
        "",
        RULE,
        cv_line,
        f"This message was sent automatically from the {BRAND} careers form.",
    ])

    heading_extra = (
        '<p style="margin:8px 0 0;font-size:14px;color:rgba(255,255,255,0.85);">'
        f'Position: <strong>{_e(job_title or NOT_SPECIFIED)}</strong></p>'
    )
    rows = "".join([
        _text_row("Full Name", f["name"], bold=True),
        _link_row("Email", f["email"], href_prefix="mailto:"),
        _pill_row("Experience Level", f["experience"]),
        _link_row("Portfolio", f.get("portfolio", "")),
        _link_row("LinkedIn", f.get("linkedin", "")),
        _link_row("GitHub", f.get("github", "")),
        _free_text_row("About the Candidate", f["about"]),
    ])
    cv_notice = (
        f"<strong>CV is attached</strong> to this email as <em>{_e(cv_filename)}</em>."
        if cv_filename else "<strong>No CV</strong> was attached to this application."
    )
    body_inner = (
        f'<table width="100%" cellpadding="0" cellspacing="0">{rows}\n            </table>'
        f"""
            <table width="100%" cellpadding="0" cellspacing="0"
                   style="margin-top:28px;background:#F8F8F8;border-radius:12px;border:1px solid rgba(0,0,0,0.06);padding:16px 20px;">
              <tr><td><p style="margin:0;font-size:13px;color:#555555;">{cv_notice}</p></td></tr>
            </table>"""
        + _reply_button(
            f["email"], f["name"],
            f"Re: Your application for {job_title or 'the position'} at {BRAND}",
        )
    )
    html_body = _html_wrap(
        "New Application Received", f"{BRAND} — Careers", heading_extra, body_inner,
        f"Sent automatically from the {BRAND} careers form. Do not reply to this system email.",
    )
    subject = f"New Application: {job_title or 'Open Position'} — {f['name']}"
    return subject, text, html_body


def compose_careers(fields: dict[str, str], cv: AttachmentDescriptor | None,
                    mail: MailSettings, submission_id: str) -> OutboundMessage:
    subject, text, html_body = render_careers(fields, cv.filename if cv else None)
    return OutboundMessage(
        to_address=mail.to_address,
        from_address=mail.from_address,
        reply_to=fields["email"],
        subject=subject,
        body_text=text,
        body_html=html_body,
        submission_id=submission_id,
        attachments=(cv,) if cv else (),
    )
