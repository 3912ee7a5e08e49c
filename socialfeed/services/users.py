from datetime import datetime, timezone
import logging

from sqlalchemy import select, update

from socialfeed.database import session_scope
from socialfeed.models.user import UserEntry
from socialfeed.schemas.users import RegisterRequest, UserResponse
from socialfeed.services.identifiers import (
    EMAIL,
    PHONE,
    is_email_identifier,
    normalize_email,
    normalize_phone,
)

LOGGER = logging.getLogger(__name__)


class UserNotFoundError(LookupError):
    pass


class RegistrationConflict(ValueError):
    pass


class UserStore:
    def create_user(self, payload: RegisterRequest) -> UserResponse:
        now = datetime.now(timezone.utc)
        email = normalize_email(payload.email)
        phone_number = normalize_phone(payload.phone_number)

        with session_scope() as session:
            if session.execute(
                select(UserEntry.id).where(UserEntry.email == email)
            ).first():
                raise RegistrationConflict("User with this email already exists")
            if session.execute(
                select(UserEntry.id).where(UserEntry.username == payload.username)
            ).first():
                raise RegistrationConflict("Username is already taken")
            if session.execute(
                select(UserEntry.id).where(UserEntry.phone_number == phone_number)
            ).first():
                raise RegistrationConflict("Phone number is already registered")

            entry = UserEntry(
                email=email,
                username=payload.username,
                phone_number=phone_number,
                preferred_mfa=payload.verification_method,
                verified_email=False,
                verified_phone=False,
                created_at=now,
                updated_at=now,
            )
            session.add(entry)
            session.flush()
            LOGGER.info("Registered user_id=%s username=%s", entry.id, entry.username)
            return self._to_response(entry)

    def find_by_identifier(self, identifier: str) -> UserResponse | None:
        """Resolve an email or phone identifier to a user.

        Emails match on the normalized address; anything else is treated as a
        phone number and matched on its digits.
        """
        if not identifier or not identifier.strip():
            return None
        cleaned = identifier.strip()
        if is_email_identifier(cleaned):
            condition = UserEntry.email == normalize_email(cleaned)
        else:
            digits = normalize_phone(cleaned)
            if not digits:
                return None
            condition = UserEntry.phone_number == digits
        with session_scope() as session:
            entry = session.execute(select(UserEntry).where(condition)).scalar_one_or_none()
            if entry is None:
                return None
            return self._to_response(entry)

    def find_by_key(self, method: str, key: str) -> UserResponse | None:
        column = UserEntry.email if method == EMAIL else UserEntry.phone_number
        with session_scope() as session:
            entry = session.execute(select(UserEntry).where(column == key)).scalar_one_or_none()
            if entry is None:
                return None
            return self._to_response(entry)

    def get_user(self, user_id: int) -> UserResponse | None:
        with session_scope() as session:
            entry = session.get(UserEntry, user_id)
            if entry is None:
                return None
            return self._to_response(entry)

    def set_preferred_mfa(self, user_id: int, method: str) -> None:
        self._update(user_id, preferred_mfa=method)

    def mark_verified(self, user_id: int, channel: str) -> None:
        if channel == PHONE:
            self._update(user_id, verified_phone=True)
        else:
            self._update(user_id, verified_email=True)

    def _update(self, user_id: int, **values) -> None:
        values["updated_at"] = datetime.now(timezone.utc)
        with session_scope() as session:
            result = session.execute(
                update(UserEntry)
                .where(UserEntry.id == user_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise UserNotFoundError("User not found")

    def _to_response(self, entry: UserEntry) -> UserResponse:
        return UserResponse(
            id=entry.id,
            email=entry.email,
            username=entry.username,
            phone_number=entry.phone_number,
            preferred_mfa=entry.preferred_mfa,
            verified_email=bool(entry.verified_email),
            verified_phone=bool(entry.verified_phone),
            created_at=entry.created_at,
        )


user_store = UserStore()
