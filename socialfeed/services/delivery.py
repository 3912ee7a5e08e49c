"""Out-of-band passcode delivery.

Every backend is attempted once and reports a boolean; failures are logged
here and never retried.
"""
import logging

from socialfeed.config import settings
from socialfeed.services import email, sms
from socialfeed.services.identifiers import EMAIL, PHONE

LOGGER = logging.getLogger(__name__)

BACKENDS = ("log", "smtp", "twilio", "live")


def deliver_passcode(method: str, destination: str, code: str) -> bool:
    backend = settings.passcode_delivery
    if backend not in BACKENDS:
        LOGGER.error("Unknown passcode delivery backend %r", backend)
        return False
    if method == EMAIL and backend in ("smtp", "live"):
        return _send_email(destination, code)
    if method == PHONE and backend in ("twilio", "live"):
        return _send_sms(destination, code)
    if method not in (EMAIL, PHONE):
        LOGGER.error("Unknown delivery method %r", method)
        return False
    return _log_only(method, destination, code)


def _log_only(method: str, destination: str, code: str) -> bool:
    LOGGER.warning("[DEV ONLY] %s passcode for %s: %s", method, destination, code)
    return True


def _send_email(destination: str, code: str) -> bool:
    try:
        email.send_passcode_email(destination, code)
    except email.EmailSendError as exc:
        LOGGER.error("Email delivery failed to=%s: %s", destination, exc)
        return False
    return True


def _send_sms(destination: str, code: str) -> bool:
    try:
        sms.send_passcode_sms(destination, code)
    except sms.SmsSendError as exc:
        LOGGER.error("SMS delivery failed to=%s: %s", destination, exc)
        return False
    return True
