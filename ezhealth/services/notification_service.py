"""Notification service for appointment e-mails."""

import asyncio
import html
import smtplib
from email.message import EmailMessage

import structlog

from ezhealth.config import Settings

logger = structlog.get_logger(__name__)


class NotificationService:
    """Sends transactional e-mail over SMTP.

    Delivery is best-effort: every public method returns a bool and never
    raises, so callers can fire and forget.
    """

    def __init__(self, settings: Settings):
        """Initialize with SMTP settings."""
        self.settings = settings

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=10) as server:
            server.starttls()
            server.login(self.settings.smtp_username, self.settings.smtp_password)
            server.send_message(message)

    async def send_email(self, to: str, subject: str, html_content: str) -> bool:
        """
        Send an HTML e-mail.

        Args:
            to: Recipient address
            subject: Subject line
            html_content: HTML body

        Returns:
            True if the message was handed to the SMTP server
        """
        if not self.settings.email_enabled:
            logger.info("email_disabled", to=to, subject=subject)
            return False

        message = EmailMessage()
        message["From"] = self.settings.email_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_content, subtype="html")

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email_send_failed", to=to, subject=subject, error=str(e))
            return False

        logger.info("email_sent", to=to, subject=subject)
        return True

    async def send_appointment_status_email(
        self,
        to: str,
        patient_name: str,
        appointment: dict,
    ) -> bool:
        """
        Tell a patient their appointment was accepted or rejected.

        Args:
            to: Patient e-mail address
            patient_name: Greeting name
            appointment: Appointment row after the status change

        Returns:
            True if the e-mail was sent
        """
        status = appointment["status"]
        when = html.escape(
            f"{appointment['appointment_date']} at {appointment['appointment_time']}"
        )
        link = html.escape(appointment.get("meeting_link") or "")

        if status == "Accepted":
            subject = "Your appointment has been accepted"
            details = (
                f"<p>Your appointment on <strong>{when}</strong> has been accepted.</p>"
                f'<p>Join the consultation here: <a href="{link}">{link}</a></p>'
            )
        else:
            subject = "Your appointment has been rejected"
            details = (
                f"<p>Unfortunately your appointment on <strong>{when}</strong> "
                "could not be accepted. Please book another slot.</p>"
            )

        html_content = f"<p>Hello {html.escape(patient_name)},</p>{details}<p>EZHealth Team</p>"
        return await self.send_email(to, subject, html_content)
