from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String

from socialfeed.database import Base


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back without tzinfo; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Passcode:
    secret: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return as_utc(now) > as_utc(self.expires_at)


class UserEntry(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=True, unique=True)
    username = Column(String(50), nullable=False, unique=True)
    phone_number = Column(String(32), nullable=True, unique=True)
    preferred_mfa = Column(String(16), nullable=True)
    verified_email = Column(Boolean, nullable=False, default=False)
    verified_phone = Column(Boolean, nullable=False, default=False)
    otp_secret = Column(String(16), nullable=True)
    otp_expiry = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "(otp_secret IS NULL AND otp_expiry IS NULL)"
            " OR (otp_secret IS NOT NULL AND otp_expiry IS NOT NULL)",
            name="ck_users_otp_pair",
        ),
    )

    @property
    def passcode(self) -> Optional[Passcode]:
        if self.otp_secret is None or self.otp_expiry is None:
            return None
        return Passcode(secret=self.otp_secret, expires_at=as_utc(self.otp_expiry))

    @passcode.setter
    def passcode(self, value: Optional[Passcode]) -> None:
        if value is None:
            self.otp_secret = None
            self.otp_expiry = None
        else:
            self.otp_secret = value.secret
            self.otp_expiry = value.expires_at

    def __repr__(self) -> str:
        return f"<UserEntry(id={self.id}, username={self.username!r})>"
