from datetime import datetime, timedelta, timezone
import enum
import logging
import secrets
from typing import Callable

from sqlalchemy import update

from socialfeed.config import settings
from socialfeed.database import session_scope
from socialfeed.models.user import Passcode, UserEntry, as_utc
from socialfeed.services.users import UserNotFoundError

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerifyOutcome(str, enum.Enum):
    ACCEPTED = "accepted"
    ABSENT = "absent"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


class PasscodeStore:
    """Issues and consumes the single passcode held on each user row."""

    def __init__(
        self,
        ttl_seconds: int,
        code_length: int,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._code_length = code_length
        self._clock = clock

    def issue(self, user_id: int) -> Passcode:
        now = as_utc(self._clock())
        passcode = Passcode(
            secret=self._generate_code(),
            expires_at=now + timedelta(seconds=self._ttl_seconds),
        )
        with session_scope() as session:
            result = session.execute(
                update(UserEntry)
                .where(UserEntry.id == user_id)
                .values(
                    otp_secret=passcode.secret,
                    otp_expiry=passcode.expires_at,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise UserNotFoundError("User not found")
        LOGGER.info(
            "Issued passcode user_id=%s expires_at=%s",
            user_id,
            passcode.expires_at.isoformat(),
        )
        return passcode

    def check(self, user_id: int, code: str) -> VerifyOutcome:
        now = as_utc(self._clock())
        submitted = code or ""
        with session_scope() as session:
            entry = session.get(UserEntry, user_id)
            stored = entry.passcode if entry is not None else None
            if stored is None:
                outcome = VerifyOutcome.ABSENT
            elif stored.is_expired(now):
                outcome = VerifyOutcome.EXPIRED
            elif stored.secret != submitted:
                outcome = VerifyOutcome.MISMATCH
            else:
                # Compare-and-clear so two concurrent submissions cannot both win.
                result = session.execute(
                    update(UserEntry)
                    .where(
                        UserEntry.id == user_id,
                        UserEntry.otp_secret == submitted,
                        UserEntry.otp_expiry >= now,
                    )
                    .values(otp_secret=None, otp_expiry=None, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    outcome = VerifyOutcome.ACCEPTED
                else:
                    outcome = VerifyOutcome.ABSENT
        LOGGER.info("Passcode check user_id=%s outcome=%s", user_id, outcome.value)
        return outcome

    def verify(self, user_id: int, code: str) -> bool:
        return self.check(user_id, code) is VerifyOutcome.ACCEPTED

    def _generate_code(self) -> str:
        value = secrets.randbelow(10**self._code_length)
        return str(value).zfill(self._code_length)


passcode_store = PasscodeStore(settings.otp_ttl_seconds, settings.otp_length)
