from typing import Optional

from wingshop.adapters.mailer import MailerError
from wingshop.config import settings
from wingshop.utils.log import get_logger

log = get_logger("contact")


class ContactServiceException(Exception):
    pass


class ContactValidationError(ContactServiceException):
    pass


class ContactService:
    def __init__(self, mailer):
        self.mailer = mailer

    def submit(self, name: Optional[str], email: Optional[str], message: Optional[str]) -> dict:
        if any(v is not None and not isinstance(v, str) for v in (name, email, message)):
            raise ContactValidationError("name, email and message must be text")
        name = (name or "").strip()
        email = (email or "").strip()
        message = (message or "").strip()
        if not email or not message:
            raise ContactValidationError("email and message are required")

        try:
            return self.mailer.send(
                sender=settings.CONTACT_FROM_EMAIL,
                to=settings.CONTACT_TO_EMAIL,
                subject=f"Contact Form Submission from {name or email}",
                text=f"Name: {name}\nEmail: {email}\nMessage:\n{message}",
                reply_to=email,
            )
        except MailerError as e:
            log.error(f"send failed: {e}")
            raise ContactServiceException("Failed to send") from e
