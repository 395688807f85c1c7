"""
transport.py — Mail Transport Layer
=====================================
This is the ONLY file that knows about SMTP. Everything above this layer
hands over an OutboundMessage and gets back a TransportResult.

One SMTPMailer per route, built by the app factory at startup and closed at
process exit. Each mailer keeps a small pool of authenticated connections,
opened lazily on first send and reused across requests.

Connection security follows the port: 465 is implicit TLS (SMTP_SSL),
anything else connects in plain text and upgrades with STARTTLS when the
server offers it.

At most pool_size SMTP sessions are open per route at once; a send that
cannot get a slot within the socket timeout fails like a connection error.

If SMTP_HOST is empty a development mailer (console_fallback=True) logs the
message instead of sending it. In production an empty host is a delivery
failure, so the caller sees the generic error rather than a false success.
"""

import logging
import queue
import re
import smtplib
import threading
from dataclasses import dataclass
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid, parseaddr

from settings import MailSettings

log = logging.getLogger(__name__)

_HEADER_BREAK_RE = re.compile(r"[\r\n]+")


@dataclass(frozen=True)
class OutboundMessage:
    """Normalized message envelope. Transport layer speaks only this."""
    to_address: str
    from_address: str
    reply_to: str
    subject: str
    body_text: str
    body_html: str
    submission_id: str
    attachments: tuple = ()


@dataclass
class TransportResult:
    success: bool
    error: str | None = None


def _header(value: str) -> str:
    return _HEADER_BREAK_RE.sub(" ", value).strip()


def build_mime(msg: OutboundMessage) -> MIMEMultipart:
    """multipart/mixed → (multipart/alternative text+html) + one part per attachment."""
    body = MIMEMultipart('alternative')
    body.attach(MIMEText(msg.body_text, 'plain', 'utf-8'))
    body.attach(MIMEText(msg.body_html, 'html', 'utf-8'))

    if msg.attachments:
        mime = MIMEMultipart('mixed')
        mime.attach(body)
        for attachment in msg.attachments:
            subtype = attachment.media_type.partition('/')[2]
            part = MIMEApplication(attachment.content, _subtype=subtype or 'octet-stream')
            part.add_header('Content-Disposition', 'attachment', filename=_header(attachment.filename))
            mime.attach(part)
    else:
        mime = body

    domain = parseaddr(msg.from_address)[1].split('@')[-1] or None
    mime['Subject']  = _header(msg.subject)
    mime['From']     = _header(msg.from_address)
    mime['To']       = _header(msg.to_address)
    mime['Reply-To'] = _header(msg.reply_to)
    mime['Date']     = formatdate(localtime=False)
    mime['Message-ID'] = make_msgid(domain=domain)
    mime['X-Submission-ID'] = msg.submission_id
    return mime


class SMTPMailer:
    """Pooled SMTP client for one route's credential set. Safe to share across threads."""

    def __init__(self, config: MailSettings, verbose_errors: bool = False,
                 console_fallback: bool = False, smtp_factory=None, ssl_factory=None):
        self.config = config
        self.verbose_errors = verbose_errors
        self.console_fallback = console_fallback
        self._smtp_factory = smtp_factory or smtplib.SMTP
        self._ssl_factory = ssl_factory or smtplib.SMTP_SSL
        self._idle: queue.LifoQueue = queue.LifoQueue(maxsize=max(config.pool_size, 1))
        self._slots = threading.BoundedSemaphore(max(config.pool_size, 1))
        self._lock = threading.Lock()
        self._closed = False

    # ── Connection management ────────────────────────────────────────────────

    def _connect(self) -> smtplib.SMTP:
        cfg = self.config
        log.info(f"Connecting to SMTP {cfg.host}:{cfg.port} (mode={cfg.mode})")
        if cfg.implicit_tls:
            conn = self._ssl_factory(cfg.host, cfg.port, timeout=cfg.timeout)
        else:
            conn = self._smtp_factory(cfg.host, cfg.port, timeout=cfg.timeout)
        try:
            if not cfg.implicit_tls:
                conn.ehlo()
                if conn.has_extn('starttls'):
                    conn.starttls()
                    conn.ehlo()
            if cfg.user and cfg.password:
                conn.login(cfg.user, cfg.password)
        except BaseException:
            conn.close()
            raise
        return conn

    def _acquire(self) -> smtplib.SMTP:
        while True:
            try:
                conn = self._idle.get_nowait()
            except queue.Empty:
                return self._connect()
            try:
                if conn.noop()[0] == 250:
                    return conn
            except (smtplib.SMTPException, OSError):
                pass
            self._discard(conn)

    def _release(self, conn: smtplib.SMTP) -> None:
        with self._lock:
            if self._closed:
                self._discard(conn)
                return
            try:
                self._idle.put_nowait(conn)
            except queue.Full:
                self._discard(conn)

    @staticmethod
    def _discard(conn) -> None:
        try:
            conn.quit()
        except (smtplib.SMTPException, OSError):
            conn.close()

    def close(self) -> None:
        """Drain the pool. Called once at process exit."""
        with self._lock:
            self._closed = True
        while True:
            try:
                self._discard(self._idle.get_nowait())
            except queue.Empty:
                break

    # ── Sending ──────────────────────────────────────────────────────────────

    def _smtp_send(self, msg: OutboundMessage) -> TransportResult:
        mime = build_mime(msg)
        envelope_from = parseaddr(msg.from_address)[1]

        if not self._slots.acquire(timeout=self.config.timeout):
            raise TimeoutError(f"no free SMTP session after {self.config.timeout}s")
        try:
            conn = self._acquire()
            try:
                conn.sendmail(envelope_from, [msg.to_address], mime.as_string())
            except BaseException:
                self._discard(conn)
                raise
            self._release(conn)
        finally:
            self._slots.release()

        log.info(f"[{msg.submission_id}] Delivered: to={msg.to_address} "
                 f"attachments={len(msg.attachments)}")
        return TransportResult(success=True)

    def _log_failure(self, msg: OutboundMessage, kind: str, exc: Exception) -> None:
        if self.verbose_errors:
            log.error(f"[{msg.submission_id}] {kind} via {self.config.host}:{self.config.port}: {exc!r}")
        else:
            log.error(f"[{msg.submission_id}] {kind} — detail suppressed in production")

    def send(self, msg: OutboundMessage) -> TransportResult:
        """Public interface. Pipeline calls this. Never raises for delivery problems; no retry."""
        if not self.config.host:
            if not self.console_fallback:
                log.error(f"[{msg.submission_id}] SMTP_HOST not set — message not delivered")
                return TransportResult(success=False, error="not_configured")
            log.warning(f"[{msg.submission_id}] SMTP_HOST not set — falling back to console output")
            _console_fallback(msg)
            return TransportResult(success=True)

        try:
            return self._smtp_send(msg)
        except smtplib.SMTPException as e:
            self._log_failure(msg, "SMTP error", e)
            return TransportResult(success=False, error="smtp_error")
        except OSError as e:
            self._log_failure(msg, "Connection failed", e)
            return TransportResult(success=False, error="connection_failed")
        except Exception as e:
            self._log_failure(msg, "Transport error", e)
            return TransportResult(success=False, error="transport_error")

    def summary(self) -> dict:
        return self.config.summary()


def _console_fallback(msg: OutboundMessage) -> None:
    """Local development only: log the envelope instead of sending it."""
    log.info("=" * 60)
    log.info("EMAIL (console fallback — no SMTP configured)")
    log.info(f"  submission_id : {msg.submission_id}")
    log.info(f"  to            : {msg.to_address}")
    log.info(f"  reply_to      : {msg.reply_to}")
    log.info(f"  subject       : {msg.subject}")
    log.info(f"  attachments   : {[a.filename for a in msg.attachments]}")
    log.info(f"  body          : {msg.body_text[:300]}{'...' if len(msg.body_text) > 300 else ''}")
    log.info("=" * 60)
