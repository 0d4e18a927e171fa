from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Any, Iterable

from roleready.core.config import settings

logger = logging.getLogger(__name__)

_SMTP_TIMEOUT_SECONDS = 15


def _recipients(recipient_emails: Iterable[str]) -> list[str]:
    recipients = [email for email in dict.fromkeys(recipient_emails) if email]
    if not recipients and settings.admin_notify_email:
        recipients = [settings.admin_notify_email]
    return recipients


def _delivery_attempts() -> list[tuple[int, bool]]:
    """(port, starttls) pairs to try in order."""
    primary = (settings.smtp_port, settings.smtp_use_tls)
    if not settings.smtp_fallback_ssl:
        return [primary]
    fallback = (465, False) if settings.smtp_use_tls else (587, True)
    return [primary, fallback]


def _deliver(msg: EmailMessage, port: int, starttls: bool, context: ssl.SSLContext) -> None:
    host = settings.smtp_host or ""
    if starttls:
        server: smtplib.SMTP = smtplib.SMTP(host, port, timeout=_SMTP_TIMEOUT_SECONDS)
    else:
        server = smtplib.SMTP_SSL(host, port, context=context, timeout=_SMTP_TIMEOUT_SECONDS)
    with server:
        if starttls:
            server.starttls(context=context)
        # App passwords are often pasted with spaces every 4 chars.
        password = (settings.smtp_password or "").replace(" ", "")
        if settings.smtp_user and password:
            server.login(settings.smtp_user, password)
        server.send_message(msg)


def build_validation_request_message(recipients: list[str], payload: dict[str, Any]) -> EmailMessage:
    skill = payload.get("skill_name") or "Unknown skill"
    routed = "you as their mentor" if payload.get("recipient_type") == "mentor" else "the admin team"

    msg = EmailMessage()
    msg["Subject"] = f"[RoleReady] Skill validation requested: {skill}"
    msg["From"] = settings.smtp_from or settings.smtp_user or recipients[0]
    msg["To"] = ", ".join(recipients)
    lines = [
        f"{payload.get('user_name')} <{payload.get('user_email')}> asked for {skill} "
        f"({payload.get('level')}) to be validated.",
        f"The request was routed to {routed}.",
    ]
    if payload.get("reason"):
        lines.append(f"Reason: {payload['reason']}")
    lines += [f"Requested at: {payload.get('requested_at')}", "", "Review it in the validation queue."]
    msg.set_content("\n".join(lines))
    return msg


def send_validation_request_notice(recipient_emails: Iterable[str], payload: dict[str, Any]) -> bool:
    """Email reviewers about a new validation request. Returns False instead of raising."""
    recipients = _recipients(recipient_emails)
    if not settings.smtp_host or not recipients:
        logger.info("validation_email_skipped reason=smtp_not_configured")
        return False

    msg = build_validation_request_message(recipients, payload)
    context = ssl.create_default_context()
    for attempt, (port, starttls) in enumerate(_delivery_attempts(), start=1):
        mode = "STARTTLS" if starttls else "SSL"
        try:
            _deliver(msg, port, starttls, context)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "validation_email_failed host=%s port=%s mode=%s attempt=%s error=%s",
                settings.smtp_host,
                port,
                mode,
                attempt,
                exc,
            )
            continue
        logger.info(
            "validation_email_sent host=%s port=%s mode=%s recipients=%s",
            settings.smtp_host,
            port,
            mode,
            len(recipients),
        )
        return True
    return False
