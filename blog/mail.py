# blog/mail.py
import logging
import smtplib
from email.message import EmailMessage

from flask import current_app

log = logging.getLogger(__name__)


def build_contact_message(name: str, email: str, message: str, sender: str, to: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"Contact Form Message from {name}"
    msg["From"] = sender
    msg["To"] = to
    msg["Reply-To"] = email
    msg.set_content(f"Name: {name}\nEmail: {email}\n\nMessage:\n{message}")
    return msg


def send_contact_message(name: str, email: str, message: str) -> bool:
    """Relay a visitor message to the site owner. Best effort: returns False on any failure."""
    cfg = current_app.config
    host, to = cfg.get("SMTP_HOST"), cfg.get("CONTACT_TO")
    if not host or not to:
        log.warning("contact relay not configured (SMTP_HOST / CONTACT_TO missing)")
        return False

    sender = cfg.get("SMTP_USER") or to
    try:
        msg = build_contact_message(name, email, message, sender=sender, to=to)
    except ValueError as e:
        # header injection attempt or malformed address
        log.warning("contact message from %r rejected: %s", email, e)
        return False
    try:
        with smtplib.SMTP(host, cfg.get("SMTP_PORT", 587), timeout=10) as smtp:
            if cfg.get("SMTP_USE_TLS", True):
                smtp.starttls()
            if cfg.get("SMTP_USER"):
                smtp.login(cfg["SMTP_USER"], cfg.get("SMTP_PASSWORD", ""))
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        log.error("contact message from %s not sent: %s", email, e)
        return False
    log.info("contact message from %s sent", email)
    return True
