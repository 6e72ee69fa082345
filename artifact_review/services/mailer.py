from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from html import escape
from typing import Protocol

import httpx

from artifact_review.core.config import settings
from artifact_review.core.errors import api_error

logger = logging.getLogger(__name__)

_TOKEN_PARAM = re.compile(r"(token=)[^&\s]+")


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str


class Mailer(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


def redact_tokens(text: str) -> str:
    return _TOKEN_PARAM.sub(r"\1<redacted>", text)


class LogMailer:
    """Development backend: writes messages to the log and keeps the latest ones."""

    def __init__(self, keep: int = 100):
        self.sent: deque[EmailMessage] = deque(maxlen=keep)

    async def send(self, message: EmailMessage) -> None:
        self.sent.append(message)
        logger.info("Email to %s: %s\n%s", message.to, message.subject, redact_tokens(message.text))


class ResendMailer:
    def __init__(self, api_key: str, api_url: str, sender: str, timeout: float = 10.0):
        self.api_key = api_key
        self.api_url = api_url
        self.sender = sender
        self.timeout = timeout

    async def send(self, message: EmailMessage) -> None:
        payload = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Email delivery to %s failed: %s", message.to, exc)
            raise api_error(502, "email_delivery_failed", "Could not send email", {"to": message.to}) from exc


def magic_link_email(to: str, url: str, ttl_minutes: int) -> EmailMessage:
    safe_url = escape(url, quote=True)
    html = (
        "<!DOCTYPE html><html><body>"
        "<h1>Sign in to Artifact Review</h1>"
        f"<p>Click the link below to sign in. It expires in {ttl_minutes} minutes.</p>"
        f'<p><a href="{safe_url}">Sign in to Artifact Review</a></p>'
        "<p>If you didn't request this email, you can safely ignore it.</p>"
        "</body></html>"
    )
    text = (
        f"Sign in to Artifact Review: {url}\n"
        f"This link expires in {ttl_minutes} minutes. "
        "If you didn't request this email, you can safely ignore it."
    )
    return EmailMessage(to=to, subject="Sign in to Artifact Review", html=html, text=text)


def build_mailer(backend: str | None = None) -> Mailer:
    backend = (backend or settings.mailer_backend).lower()
    if backend == "log":
        return LogMailer()
    if backend == "resend":
        if not settings.resend_api_key:
            raise ValueError("RESEND_API_KEY is required for the resend mailer backend")
        return ResendMailer(settings.resend_api_key, settings.resend_api_url, settings.mail_from)
    raise ValueError(f"Unsupported mailer backend: {backend}")


mailer: Mailer = build_mailer()
