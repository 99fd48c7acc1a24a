"""
Payroll CTC Engine - Email Service

Handles transactional email sending for the approval workflow.
Supports SendGrid, Mailgun, or SMTP; falls back to a logging mock.
"""

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class EmailProvider:
    """Email provider types."""
    SMTP = "smtp"
    SENDGRID = "sendgrid"
    MAILGUN = "mailgun"
    MOCK = "mock"


@dataclass
class EmailMessage:
    """Email message data structure."""
    to: List[str]
    subject: str
    body_text: str
    body_html: Optional[str] = None
    cc: Optional[List[str]] = None
    reply_to: Optional[str] = None


class EmailService:
    """Service for sending transactional emails."""

    def __init__(self):
        self.from_email = settings.email_from
        self.from_name = settings.email_from_name
        self.provider = settings.email_provider

        # SMTP settings
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.smtp_use_tls = settings.smtp_use_tls

        # SendGrid settings
        self.sendgrid_api_key = settings.sendgrid_api_key

        # Mailgun settings
        self.mailgun_api_key = settings.mailgun_api_key
        self.mailgun_domain = settings.mailgun_domain

    def _determine_provider(self) -> str:
        """Determine which email provider to use based on configuration."""
        if self.provider == EmailProvider.MOCK:
            return EmailProvider.MOCK
        if self.sendgrid_api_key:
            return EmailProvider.SENDGRID
        elif self.mailgun_api_key and self.mailgun_domain:
            return EmailProvider.MAILGUN
        elif self.smtp_host:
            return EmailProvider.SMTP
        else:
            return EmailProvider.MOCK

    async def send_email(self, message: EmailMessage) -> bool:
        """
        Send an email using the configured provider.

        Returns False instead of raising when delivery fails.
        """
        provider = self._determine_provider()

        try:
            if provider == EmailProvider.SENDGRID:
                return await self._send_via_sendgrid(message)
            elif provider == EmailProvider.MAILGUN:
                return await self._send_via_mailgun(message)
            elif provider == EmailProvider.SMTP:
                return await self._send_via_smtp(message)
            else:
                return await self._send_mock(message)
        except Exception as e:
            logger.error(f"Failed to send email via {provider}: {e}")
            return False

    async def _send_via_sendgrid(self, message: EmailMessage) -> bool:
        """Send email via SendGrid API."""
        payload = {
            "personalizations": [
                {"to": [{"email": email} for email in message.to]}
            ],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": message.subject,
            "content": [{"type": "text/plain", "value": message.body_text}],
        }
        if message.body_html:
            payload["content"].append({"type": "text/html", "value": message.body_html})
        if message.cc:
            payload["personalizations"][0]["cc"] = [{"email": email} for email in message.cc]
        if message.reply_to:
            payload["reply_to"] = {"email": message.reply_to}

        async with httpx.AsyncClient() as client:
            response = await client.post(
                "https://api.sendgrid.com/v3/mail/send",
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.sendgrid_api_key}",
                    "Content-Type": "application/json",
                },
            )

        if response.status_code in [200, 202]:
            logger.info(f"Email sent via SendGrid to {message.to}")
            return True
        logger.error(f"SendGrid API error: {response.status_code} - {response.text}")
        return False

    async def _send_via_mailgun(self, message: EmailMessage) -> bool:
        """Send email via Mailgun API."""
        data = {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": message.to,
            "subject": message.subject,
            "text": message.body_text,
        }
        if message.body_html:
            data["html"] = message.body_html
        if message.cc:
            data["cc"] = message.cc
        if message.reply_to:
            data["h:Reply-To"] = message.reply_to

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"https://api.mailgun.net/v3/{self.mailgun_domain}/messages",
                data=data,
                auth=("api", self.mailgun_api_key),
            )

        if response.status_code == 200:
            logger.info(f"Email sent via Mailgun to {message.to}")
            return True
        logger.error(f"Mailgun API error: {response.status_code} - {response.text}")
        return False

    async def _send_via_smtp(self, message: EmailMessage) -> bool:
        """Send email via SMTP."""
        msg = MIMEMultipart('alternative')
        msg['Subject'] = message.subject
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = ', '.join(message.to)
        if message.cc:
            msg['Cc'] = ', '.join(message.cc)
        if message.reply_to:
            msg['Reply-To'] = message.reply_to

        msg.attach(MIMEText(message.body_text, 'plain'))
        if message.body_html:
            msg.attach(MIMEText(message.body_html, 'html'))

        recipients = message.to + (message.cc or [])

        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            if self.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.smtp_username and self.smtp_password:
                server.login(self.smtp_username, self.smtp_password)
            server.sendmail(self.from_email, recipients, msg.as_string())

        logger.info(f"Email sent via SMTP to {message.to}")
        return True

    async def _send_mock(self, message: EmailMessage) -> bool:
        """Mock email sending for development."""
        logger.info(f"[MOCK EMAIL] To: {message.to} | Subject: {message.subject}")
        logger.debug(f"[MOCK EMAIL] Body: {message.body_text[:200]}...")
        return True

    # ===========================================
    # WORKFLOW EMAIL TEMPLATES
    # ===========================================

    async def send_workflow_email(
        self,
        to_email: str,
        recipient_name: str,
        subject: str,
        message: str,
    ) -> bool:
        """Send a short workflow notice (approval request, decision, release)."""
        body_html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1d4ed8;">{subject}</h2>
                <p>Hi {recipient_name},</p>
                <p>{message}</p>
                <p>Regards,<br>{self.from_name}</p>
            </div>
        </body>
        </html>
        """

        body_text = f"Hi {recipient_name},\n\n{message}\n\nRegards,\n{self.from_name}\n"

        return await self.send_email(EmailMessage(
            to=[to_email],
            subject=subject,
            body_text=body_text,
            body_html=body_html,
        ))
