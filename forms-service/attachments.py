"""
attachments.py — CV Upload Guard
==================================
Checks the uploaded CV on the careers form: present, an allowed document
type, and no larger than 5 MiB.

The type check trusts the media type declared by the uploading client. The
bytes are not sniffed, so a renamed file with a spoofed Content-Type passes.
"""

from dataclasses import dataclass

from validation import sanitize

ALLOWED_MEDIA_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})

MAX_FILE_BYTES = 5 * 1024 * 1024

MAX_FILENAME_LENGTH = 255
DEFAULT_FILENAME = "cv"

MISSING_ERROR = "A CV file is required."
TYPE_ERROR = "Only PDF, DOC, or DOCX files are accepted."
SIZE_ERROR = "CV must be 5 MB or smaller."


@dataclass(frozen=True)
class AttachmentDescriptor:
    filename: str
    media_type: str
    content: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.content)


def read_upload(upload) -> AttachmentDescriptor | None:
    """
    Turn an uploaded file (werkzeug FileStorage or anything with filename,
    content_type and read()) into a descriptor held fully in memory.
    An absent or zero-byte upload counts as no file.
    """
    if upload is None:
        return None
    content = upload.read()
    if not content:
        return None
    # Filename lands in a MIME header parameter; flatten it like a header value
    filename = sanitize(upload.filename, MAX_FILENAME_LENGTH, collapse_newlines=True)
    media_type = (upload.content_type or "").split(";")[0].strip().lower()
    return AttachmentDescriptor(
        filename=filename or DEFAULT_FILENAME,
        media_type=media_type,
        content=content,
    )


def check_attachment(attachment: AttachmentDescriptor | None) -> str | None:
    """Returns an error message, or None when the file is acceptable."""
    if attachment is None:
        return MISSING_ERROR
    if attachment.media_type not in ALLOWED_MEDIA_TYPES:
        return TYPE_ERROR
    if attachment.size_bytes > MAX_FILE_BYTES:
        return SIZE_ERROR
    return None
