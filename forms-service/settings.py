"""
settings.py — Environment Configuration
=========================================
Read once at app creation. Each form route gets its own MailSettings so the
contact inbox and the HR inbox can authenticate with separate credentials.

Configuration (environment variables):
  SMTP_HOST       — SMTP server hostname, shared by both routes (empty = console fallback)
  SMTP_PORT       — 465 for implicit TLS, anything else uses STARTTLS when offered (default: 587)
  SMTP_TIMEOUT    — Socket timeout in seconds (default: 10)
  SMTP_POOL_SIZE  — Max concurrent SMTP sessions per route, also the idle pool size (default: 5)

  SMTP_USER / SMTP_PASS / SMTP_FROM           — contact route credentials
  SMTP_HR_USER / SMTP_HR_PASS / SMTP_HR_FROM  — careers route credentials

  CONTACT_INBOX   — Where contact inquiries land (default: info@7zero.media)
  CAREERS_INBOX   — Where job applications land (default: hr@laneway.in)
  APP_ENV         — production | development | test (default: production)
"""

import os
from dataclasses import dataclass

IMPLICIT_TLS_PORT = 465

# Transport errors are only logged with detail outside production
VERBOSE_ENVS = {"development", "test"}


@dataclass(frozen=True)
class MailSettings:
    host: str
    port: int
    user: str
    password: str
    from_address: str
    to_address: str
    timeout: float = 10.0
    pool_size: int = 5

    @property
    def implicit_tls(self) -> bool:
        return self.port == IMPLICIT_TLS_PORT

    @property
    def mode(self) -> str:
        if not self.host:
            return "console"
        return "tls" if self.implicit_tls else "starttls"

    def summary(self) -> dict:
        """Safe to expose on /health: no password, no username."""
        return {
            "host": self.host or "(not set — console fallback)",
            "port": self.port,
            "mode": self.mode,
            "auth": bool(self.user),
            "to": self.to_address,
        }


@dataclass(frozen=True)
class Settings:
    environment: str
    contact: MailSettings
    careers: MailSettings

    @property
    def is_production(self) -> bool:
        return self.environment not in VERBOSE_ENVS


def _default_from(display_name: str, user: str) -> str:
    return f'"{display_name}" <{user}>' if user else f'"{display_name}" <noreply@7zero.media>'


def _mail_settings(env, user_var: str, pass_var: str, from_var: str,
                   inbox_var: str, default_inbox: str, display_name: str) -> MailSettings:
    user = env.get(user_var, '')
    return MailSettings(
        host=env.get('SMTP_HOST', 'localhost'),
        port=int(env.get('SMTP_PORT', '587')),
        user=user,
        password=env.get(pass_var, ''),
        from_address=env.get(from_var) or _default_from(display_name, user),
        to_address=env.get(inbox_var, default_inbox),
        timeout=float(env.get('SMTP_TIMEOUT', '10')),
        pool_size=int(env.get('SMTP_POOL_SIZE', '5')),
    )


def load(env=None) -> Settings:
    """Build Settings from a mapping (defaults to os.environ)."""
    env = os.environ if env is None else env
    return Settings(
        environment=env.get('APP_ENV', 'production').lower(),
        contact=_mail_settings(
            env, 'SMTP_USER', 'SMTP_PASS', 'SMTP_FROM',
            'CONTACT_INBOX', 'info@7zero.media', '7ZeroMedia',
        ),
        careers=_mail_settings(
            env, 'SMTP_HR_USER', 'SMTP_HR_PASS', 'SMTP_HR_FROM',
            'CAREERS_INBOX', 'hr@laneway.in', '7ZeroMedia Careers',
        ),
    )
