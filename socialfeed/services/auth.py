"""Passcode sign-in flow.

``request_passcode`` resolves the identifier, issues a fresh code and hands it
to the delivery gateway. ``login`` consumes the code and mints a session.
Login failures are deliberately indistinguishable to the caller.
"""
from dataclasses import dataclass
import logging
from typing import Any

from socialfeed.models.user import Passcode
from socialfeed.schemas.users import RegisterRequest, UserResponse
from socialfeed.services.delivery import deliver_passcode
from socialfeed.services.identifiers import (
    EMAIL,
    PHONE,
    is_email_identifier,
    validate_identifier,
)
from socialfeed.services.passcodes import passcode_store
from socialfeed.services.sessions import session_store
from socialfeed.services.tokens import create_access_token, create_refresh_token
from socialfeed.services.users import UserNotFoundError, user_store

LOGGER = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    pass


class AuthenticationError(Exception):
    pass


@dataclass(frozen=True)
class LoginResult:
    user: UserResponse
    session_id: str
    access_token: str
    refresh_token: str


def request_passcode(identifier: str | None, method: str | None) -> Passcode:
    key = validate_identifier(identifier, method)
    user = user_store.find_by_key(method, key)
    if user is None:
        raise UserNotFoundError("User not found")

    passcode = passcode_store.issue(user.id)
    sent = deliver_passcode(method, key, passcode.secret)
    user_store.set_preferred_mfa(user.id, method)
    if not sent:
        # The stored code stays valid; asking again simply replaces it.
        raise DeliveryError("Failed to send verification code")
    return passcode


def register(payload: RegisterRequest) -> tuple[UserResponse, bool]:
    user = user_store.create_user(payload)
    method = payload.verification_method
    destination = user.email if method == EMAIL else user.phone_number
    passcode = passcode_store.issue(user.id)
    sent = deliver_passcode(method, destination, passcode.secret)
    if not sent:
        LOGGER.error(
            "Failed to send verification code via %s for user_id=%s", method, user.id
        )
    return user, sent


def login(identifier: Any, otp: Any) -> LoginResult:
    if not isinstance(identifier, str) or not isinstance(otp, str) or not otp:
        LOGGER.info("Login rejected: missing or malformed credentials")
        raise AuthenticationError("Invalid credentials")
    user = user_store.find_by_identifier(identifier)
    if user is None:
        LOGGER.info("Login rejected: no user for identifier")
        raise AuthenticationError("Invalid credentials")
    if not passcode_store.verify(user.id, otp):
        LOGGER.info("Login rejected: invalid passcode for user_id=%s", user.id)
        raise AuthenticationError("Invalid credentials")

    channel = EMAIL if is_email_identifier(identifier) else PHONE
    user_store.mark_verified(user.id, channel)
    session_id = session_store.create_session(user.id, channel)
    access_token = create_access_token(
        user.id,
        session_id,
        email=user.email,
        username=user.username,
        phone_number=user.phone_number,
    )
    refresh_token = create_refresh_token(user.id, session_id)
    LOGGER.info("Login accepted user_id=%s channel=%s", user.id, channel)
    return LoginResult(
        user=user,
        session_id=session_id,
        access_token=access_token,
        refresh_token=refresh_token,
    )
