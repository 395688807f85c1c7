"""
honeypot.py — Bot Trap
========================
Both forms render a hidden "website" input that humans never see. Anything
that fills it in is treated as a bot: the pipeline answers with a normal
success response and sends nothing.

The caller never learns a wire was tripped. The hit is still written to the
log as a security alert so a false positive (e.g. an autofill extension
populating the hidden field) can be found and the applicant contacted.
"""

import logging

log = logging.getLogger(__name__)

HONEYPOT_FIELD = "website"


def is_bot(fields) -> bool:
    """True when the trap field carries any non-empty value."""
    return bool(fields.get(HONEYPOT_FIELD))


def report(route: str, submission_id: str, remote_addr: str | None) -> None:
    """
    Out-of-band audit line. Deliberately omits every submitted value:
    the trap content and form fields are untrusted and may be large.
    """
    log.warning("=" * 60)
    log.warning("SECURITY ALERT — honeypot field populated")
    log.warning(f"  route         : {route}")
    log.warning(f"  submission_id : {submission_id}")
    log.warning(f"  remote_addr   : {remote_addr or '(unknown)'}")
    log.warning("  Action: submission dropped, success returned to caller")
    log.warning("=" * 60)
