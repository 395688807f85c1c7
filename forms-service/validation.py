"""
validation.py — Input Sanitizer and Field Validator
=====================================================
sanitize() cleans a raw value; validate_contact() / validate_careers() judge
the cleaned fields. Both are pure: no I/O, no mutation of their input.

Validators return a dict of field -> message. Empty dict = valid. Every field
is checked on every call so the form can show all problems at once.
"""

import re
from urllib.parse import urlsplit

# ── Closed value sets ─────────────────────────────────────────────────────────

SERVICE_CATALOG = (
    "Marketing Strategy",
    "Brand Identity",
    "Content Creation",
    "Filming & Production",
    "Social Media",
    "Other",
)

EXPERIENCE_LEVELS = (
    "Fresher",
    "1-3 Years",
    "3-5 Years",
    "5+ Years",
    "Currently Attending College",
)

# ── Field length caps ─────────────────────────────────────────────────────────

CONTACT_MAX_LENGTHS = {
    "name":    120,
    "email":   254,
    "company": 120,
    "service": 60,
    "message": 4000,
}

CAREERS_MAX_LENGTHS = {
    "name":       120,
    "email":      254,
    "portfolio":  512,
    "linkedin":   512,
    "github":     512,
    "experience": 60,
    "about":      4000,
    "jobTitle":   120,
}

MIN_NAME_LENGTH = 2
MIN_BODY_LENGTH = 10

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]{2,}")
TAG_RE = re.compile(r"<[^>]*>")
NEWLINE_RE = re.compile(r"[\r\n]")

URL_FIELDS = {
    "portfolio": "Portfolio must be a valid URL.",
    "linkedin":  "LinkedIn must be a valid URL.",
    "github":    "GitHub must be a valid URL.",
}


# ── Sanitizer ─────────────────────────────────────────────────────────────────

def sanitize(value, max_length: int = 2000, collapse_newlines: bool = False) -> str:
    """
    Strip tags, optionally flatten CR/LF to spaces, trim, then cap the length.
    The capped value is trimmed again so a cut that lands after a space never
    leaves trailing whitespace (e.g. "ab   cd" capped at 4 gives "ab").
    Anything that is not a str (None, numbers, uploads) becomes "".

    collapse_newlines is used for every contact field because name and email
    end up in the Reply-To and Subject headers.
    """
    if not isinstance(value, str):
        return ""
    cleaned = TAG_RE.sub("", value)
    if collapse_newlines:
        cleaned = NEWLINE_RE.sub(" ", cleaned)
    return cleaned.strip()[:max_length].strip()


def sanitize_fields(raw: dict, max_lengths: dict[str, int],
                    collapse_newlines: bool = False) -> dict[str, str]:
    """Sanitize every known field. Unknown keys in raw are dropped."""
    return {
        field: sanitize(raw.get(field), limit, collapse_newlines)
        for field, limit in max_lengths.items()
    }


# ── Rule helpers ──────────────────────────────────────────────────────────────

def is_valid_email(value: str) -> bool:
    return bool(value) and EMAIL_RE.fullmatch(value) is not None


def is_valid_url(value: str) -> bool:
    """Absolute http(s) URL with a host. Whitespace anywhere is rejected."""
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.netloc)


def _check_identity(fields: dict[str, str], errors: dict[str, str]) -> None:
    if len(fields.get("name", "")) < MIN_NAME_LENGTH:
        errors["name"] = "Name must be at least 2 characters."
    if not is_valid_email(fields.get("email", "")):
        errors["email"] = "A valid email address is required."


# ── Validators ────────────────────────────────────────────────────────────────

def validate_contact(fields: dict[str, str]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_identity(fields, errors)

    if len(fields.get("message", "")) < MIN_BODY_LENGTH:
        errors["message"] = "Please tell us a bit more (at least 10 characters)."

    service = fields.get("service", "")
    if service and service not in SERVICE_CATALOG:
        errors["service"] = "Invalid service selection."

    return errors


def validate_careers(fields: dict[str, str]) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_identity(fields, errors)

    for field, message in URL_FIELDS.items():
        value = fields.get(field, "")
        if value and not is_valid_url(value):
            errors[field] = message

    if fields.get("experience", "") not in EXPERIENCE_LEVELS:
        errors["experience"] = "A valid experience level is required."

    if len(fields.get("about", "")) < MIN_BODY_LENGTH:
        errors["about"] = "Please provide more detail (at least 10 characters)."

    return errors
