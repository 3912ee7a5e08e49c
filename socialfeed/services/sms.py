from __future__ import annotations

import base64
import logging
import re
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from socialfeed.config import settings

LOGGER = logging.getLogger(__name__)

TWILIO_MESSAGES_ENDPOINT = (
    "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
)


class SmsSendError(RuntimeError):
    pass


def send_passcode_sms(to_phone: str, code: str) -> None:
    account_sid = settings.twilio_account_sid
    auth_token = settings.twilio_auth_token
    from_phone = settings.twilio_phone_number
    if not account_sid or not auth_token or not from_phone:
        raise SmsSendError("Twilio is not configured")

    to_number = to_e164(to_phone)
    from_number = to_e164(from_phone)
    body = build_sms_body(code, settings.otp_ttl_seconds)
    LOGGER.info("Sending passcode SMS to=%s from=%s", to_number, from_number)
    payload = urlencode({"To": to_number, "From": from_number, "Body": body}).encode(
        "utf-8"
    )
    token = base64.b64encode(f"{account_sid}:{auth_token}".encode("utf-8")).decode(
        "ascii"
    )
    request = Request(
        TWILIO_MESSAGES_ENDPOINT.format(account_sid=account_sid),
        data=payload,
        headers={
            "Authorization": f"Basic {token}",
            "Content-Type": "application/x-www-form-urlencoded",
        },
        method="POST",
    )
    try:
        with urlopen(request, timeout=10) as response:
            response.read()
    except HTTPError as exc:
        error_body = exc.read().decode("utf-8", errors="replace")
        LOGGER.error("Twilio API error to=%s response=%s", to_number, error_body)
        raise SmsSendError("Failed to send passcode SMS") from exc
    except URLError as exc:
        raise SmsSendError("Failed to reach Twilio API") from exc


def to_e164(phone_number: str) -> str:
    """Format stored digits for the carrier; lookups keep the bare digits."""
    digits = re.sub(r"[^0-9]", "", phone_number.strip())
    if not digits:
        raise SmsSendError("Phone number is missing")
    if len(digits) == 10:
        default_code = re.sub(r"[^0-9]", "", settings.default_country_code)
        if not default_code:
            raise SmsSendError("Default country code is not configured")
        digits = f"{default_code}{digits}"
    if len(digits) < 10 or len(digits) > 15:
        raise SmsSendError("Phone number must include a valid country code")
    return f"+{digits}"


def build_sms_body(code: str, ttl_seconds: int) -> str:
    minutes = max(1, ttl_seconds // 60)
    return f"Your verification code is {code}. It expires in {minutes} minute(s)."
