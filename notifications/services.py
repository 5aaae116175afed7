"""
Outbound messaging: in-app notifications, ticket emails and SMS.

Every sink here is best-effort. Failures are logged and swallowed so that
a booking never fails because a message could not be delivered.
"""
import logging
import smtplib
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.db import DatabaseError, transaction
from django.utils.html import escape
from .models import Notification
from utils.constants import NotificationMessage

logger = logging.getLogger("notifications")

_session = None


def _get_session():
    """Lazily build a pooled session that retries transient gateway errors."""
    global _session
    if _session is None:
        session = requests.Session()
        retry_strategy = Retry(
            total=2,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=10)
        session.mount("https://", adapter)
        _session = session
    return _session


class NotificationService:

    @staticmethod
    def notify(user, subject, message, type="info"):
        """
        Stores an in-app notification for ``user``.

        Returns:
            Notification | None: The stored row, or None if the write failed
        """
        try:
            with transaction.atomic():
                notification = Notification.objects.create(
                    user=user, subject=subject, message=message, type=type
                )
        except DatabaseError as exc:
            logger.error(f"Failed to store notification '{subject}' for user {user.pk}: {exc}")
            return None
        logger.info(f"Notification '{subject}' stored for user {user.pk}")
        return notification

    @staticmethod
    def send_ticket_email(address, details):
        """
        Emails the ticket summary to ``address``.

        Args:
            address (str): Recipient email
            details (dict): ticket_number, origin, destination, status, bus and
                optionally seat

        Returns:
            bool: True if the mail backend accepted the message
        """
        if not address:
            logger.warning(f"No email address for ticket {details.get('ticket_number')}, skipping")
            return False

        rows = [
            ("Ticket Number", details.get("ticket_number")),
            ("From", details.get("origin")),
            ("To", details.get("destination")),
            ("Bus", details.get("bus")),
            ("Seat", details.get("seat")),
            ("Status", details.get("status")),
        ]
        lines = [f"{label}: {value}" for label, value in rows if value]
        html_rows = "".join(
            f"<tr><td><strong>{escape(label)}</strong></td><td>{escape(str(value))}</td></tr>"
            for label, value in rows
            if value
        )
        html = (
            f"<div><h1>{escape(NotificationMessage.EMAIL_SUBJECT)}</h1>"
            f"<table>{html_rows}</table>"
            f"<p>{escape(NotificationMessage.EMAIL_FOOTER)}</p></div>"
        )

        try:
            send_mail(
                subject=NotificationMessage.EMAIL_SUBJECT,
                message="\n".join(lines + ["", NotificationMessage.EMAIL_FOOTER]),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[address],
                html_message=html,
            )
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            logger.error(f"Failed to send ticket email to {address}: {exc}")
            return False
        logger.info(f"Ticket email sent to {address} for {details.get('ticket_number')}")
        return True

    @staticmethod
    def send_sms(to, body, sender=None):
        """
        Sends one SMS through the Arkesel v1 API.

        Returns:
            dict | None: Gateway response, or None if nothing was sent
        """
        if not to:
            logger.warning("SMS skipped: no recipient phone number")
            return None
        if not settings.ARKESEL_API_KEY:
            logger.warning(f"SMS to {to} skipped: ARKESEL_API_KEY is not configured")
            return None

        params = {
            "action": "send-sms",
            "api_key": settings.ARKESEL_API_KEY,
            "to": to,
            "from": sender or settings.SMS_SENDER_ID,
            "sms": body,
        }
        try:
            response = _get_session().get(
                settings.ARKESEL_SMS_V1_URL, params=params, timeout=settings.SMS_TIMEOUT_SECONDS
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error(f"Failed to send SMS to {to}: {exc}")
            return None
        logger.info(f"SMS sent to {to}")
        return data

    @staticmethod
    def send_bulk_sms(recipients, message, sender=None):
        """
        Sends one message to many numbers through the Arkesel v2 API.

        Returns:
            dict | None: Gateway response, or None if nothing was sent
        """
        recipients = [r for r in recipients if r]
        if not recipients:
            logger.info("Bulk SMS skipped: no recipients")
            return None
        if not settings.ARKESEL_API_KEY:
            logger.warning(f"Bulk SMS to {len(recipients)} recipients skipped: ARKESEL_API_KEY is not configured")
            return None

        payload = {
            "sender": sender or settings.SMS_SENDER_ID,
            "message": message,
            "recipients": recipients,
        }
        try:
            response = _get_session().post(
                settings.ARKESEL_SMS_V2_URL,
                json=payload,
                headers={"api-key": settings.ARKESEL_API_KEY},
                timeout=settings.SMS_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error(f"Failed to send bulk SMS to {len(recipients)} recipients: {exc}")
            return None
        logger.info(f"Bulk SMS sent to {len(recipients)} recipients")
        return data

    @staticmethod
    def notify_operators(subject, message, type="warning"):
        """
        Stores the same notification for every active admin and staff user.

        Returns:
            int: Number of users notified
        """
        User = get_user_model()
        operators = User.objects.filter(is_active=True, role__name__in=["admin", "staff"])
        count = 0
        for operator in operators:
            if NotificationService.notify(operator, subject, message, type=type):
                count += 1
        return count
