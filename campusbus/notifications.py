import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from fastapi import BackgroundTasks

from campusbus.config import settings

logger = logging.getLogger(__name__)

MAIL_TAG = "(LNMIIT Bus)"


class EmailNotifier:
    """Best-effort email delivery over SMTP.

    ``send`` never raises: the booking change it reports on has already been
    committed, so a delivery failure is only logged.
    """

    def __init__(
        self,
        host: str = None,
        port: int = None,
        sender: str = None,
        password: str = None
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.sender = sender if sender is not None else settings.SMTP_EMAIL
        self.password = password if password is not None else settings.SMTP_PASSWORD

    @property
    def enabled(self) -> bool:
        return bool(self.sender and self.password)

    def send(self, to_address: Optional[str], subject: str, body: str) -> bool:
        if not to_address:
            logger.info("Skipping email %r: recipient has no email address", subject)
            return False
        if not self.enabled:
            logger.info("Email disabled, not sending %r to %s", subject, to_address)
            return False

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_address
        msg.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
                smtp.starttls()
                smtp.login(self.sender, self.password)
                smtp.send_message(msg)
        except Exception:
            logger.exception("Failed to send email %r to %s", subject, to_address)
            return False

        logger.info("Email %r sent to %s", subject, to_address)
        return True


class DeferredNotifier:
    """Queues emails on the request's background tasks so they go out after the response"""

    def __init__(self, background_tasks: BackgroundTasks, notifier: EmailNotifier):
        self.background_tasks = background_tasks
        self.notifier = notifier

    def send(self, to_address: Optional[str], subject: str, body: str):
        self.background_tasks.add_task(self.notifier.send, to_address, subject, body)


email_notifier = EmailNotifier()

def get_notifier(background_tasks: BackgroundTasks) -> DeferredNotifier:
    return DeferredNotifier(background_tasks, email_notifier)


# Message templates
def booking_confirmed_message(name: str, bus_number: str, route: str, seat_number: int, departure_time: str):
    return (
        f"Booking Confirmed {MAIL_TAG}",
        f"Hi {name},\n\nYour booking is confirmed!\n\n"
        f"Bus: {bus_number} ({route})\nSeat: {seat_number}\nDeparture: {departure_time}\n\n"
        f"Thank you for using the service."
    )

def booking_cancelled_message(name: str, bus_number: str, seat_number: int):
    return (
        f"Booking Cancelled {MAIL_TAG}",
        f"Hi {name},\n\nYour booking for seat {seat_number} on bus {bus_number} "
        f"has been successfully cancelled."
    )

def waiting_list_promoted_message(name: str, bus_number: str, route: str, seat_number: int, departure_time: str):
    return (
        f"You're off the waiting list! {MAIL_TAG}",
        f"Great news, {name}!\n\nA seat has become available on bus {bus_number} ({route}) "
        f"departing at {departure_time}. Your seat number is {seat_number}.\n\n"
        f"Your booking is confirmed."
    )
