"""
Mailer Service
Renders transactional emails from Jinja2 templates and sends them over SMTP
FILE: lumi/services/mailer.py
"""
import asyncio
import logging
import re
import smtplib
import ssl
from email.errors import MessageError
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from jinja2 import Environment, PackageLoader, select_autoescape
from pydantic import BaseModel

from lumi.core.config import EmailSettings

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"[^\s@<>\",]+@[^\s@<>\",]+\.[^\s@<>\",]+")


def is_valid_address(value: Optional[str]) -> bool:
    """A single bare address such as ada@example.com (no display name, no line breaks)"""
    return bool(value) and ADDRESS_PATTERN.fullmatch(value) is not None


def is_header_safe(value: Optional[str]) -> bool:
    """True when the value can be placed in a message header"""
    return value is None or not any(c in value for c in "\r\n\0")


class EmailDeliveryError(Exception):
    """Raised when the SMTP transport fails to deliver a message"""
    pass


class OutgoingEmail(BaseModel):
    to: str
    subject: str
    html: str
    text: str
    sender_name: str


templates = Environment(
    loader=PackageLoader("lumi", "templates/email"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_email(template: str, **context) -> tuple:
    """
    Render the HTML and plain-text variants of a template

    Returns:
        (html, text)
    """
    html = templates.get_template(f"{template}.html").render(**context)
    text = templates.get_template(f"{template}.txt").render(**context)
    return html, text


def _link(settings: EmailSettings, path: str) -> str:
    return f"{settings.app_url.rstrip('/')}{path}"


def build_verification_email(
    settings: EmailSettings,
    email: str,
    name: str,
    token: str,
    subject: Optional[str] = None,
    sender_name: Optional[str] = None
) -> OutgoingEmail:
    url = _link(settings, f"/verify?token={token}")
    html, text = render_email(
        "verification",
        app_name=settings.app_name,
        name=name,
        email=email,
        action_url=url,
    )
    return OutgoingEmail(
        to=email,
        subject=subject or f"Verify Your Email - {settings.app_name}",
        html=html,
        text=text,
        sender_name=sender_name or settings.app_name,
    )


def build_password_reset_email(
    settings: EmailSettings,
    email: str,
    name: str,
    token: str
) -> OutgoingEmail:
    url = _link(settings, f"/reset-password?token={token}")
    html, text = render_email(
        "password_reset",
        app_name=settings.app_name,
        name=name,
        email=email,
        action_url=url,
    )
    return OutgoingEmail(
        to=email,
        subject=f"Reset Your Password - {settings.app_name}",
        html=html,
        text=text,
        sender_name=settings.app_name,
    )


def build_friend_invitation_email(
    settings: EmailSettings,
    email: str,
    inviter_name: str,
    token: str
) -> OutgoingEmail:
    """Invitation addressed by the local part of the recipient's address"""
    url = _link(settings, f"/signup?invite={token}")
    html, text = render_email(
        "friend_invitation",
        app_name=settings.app_name,
        name=email.split("@")[0],
        email=email,
        inviter_name=inviter_name,
        action_url=url,
    )
    return OutgoingEmail(
        to=email,
        subject=f"{inviter_name} invited you to join {settings.app_name}!",
        html=html,
        text=text,
        sender_name=f"{inviter_name} via {settings.app_name}",
    )


def _send_smtp(settings: EmailSettings, message: OutgoingEmail) -> None:
    """Blocking SMTP delivery; run in a worker thread"""
    msg = MIMEMultipart("alternative")
    msg["From"] = f'"{message.sender_name}" <{settings.gmail_user}>'
    msg["To"] = message.to
    msg["Subject"] = message.subject

    msg.attach(MIMEText(message.text, "plain", "utf-8"))
    msg.attach(MIMEText(message.html, "html", "utf-8"))

    if settings.smtp_use_ssl:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, context=context, timeout=30) as s:
            if settings.gmail_user:
                s.login(settings.gmail_user, settings.gmail_app_password)
            s.sendmail(settings.gmail_user, [message.to], msg.as_string())
    else:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as s:
            s.ehlo()
            s.starttls(context=ssl.create_default_context())
            s.ehlo()
            if settings.gmail_user:
                s.login(settings.gmail_user, settings.gmail_app_password)
            s.sendmail(settings.gmail_user, [message.to], msg.as_string())


async def send_email(settings: EmailSettings, message: OutgoingEmail) -> None:
    """
    Deliver a rendered email

    The "dummy" transport only logs the message.

    Raises:
        EmailDeliveryError: If the message cannot be built or SMTP delivery fails
    """
    if settings.email_transport.lower() == "dummy":
        logger.info(
            f"📧 DUMMY EMAIL (not sent) - To: {message.to}, Subject: {message.subject}\n"
            f"{message.text}"
        )
        return

    try:
        await asyncio.to_thread(_send_smtp, settings, message)
    except (smtplib.SMTPException, MessageError, OSError) as e:
        logger.error(f"❌ SMTP error sending to {message.to}: {e}")
        raise EmailDeliveryError(str(e)) from e

    logger.info(f"✅ Email sent to {message.to}: {message.subject}")
