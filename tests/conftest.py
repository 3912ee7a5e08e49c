import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

_DB_DIR = tempfile.mkdtemp(prefix="socialfeed-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-bytes!!"
os.environ["PASSCODE_DELIVERY"] = "log"
os.environ["OTP_DEBUG"] = "false"

import pytest
from fastapi.testclient import TestClient

from socialfeed.database import drop_db, init_db
from socialfeed.main import app
from socialfeed.schemas.users import RegisterRequest
from socialfeed.services.users import user_store


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def database():
    init_db()
    yield
    drop_db()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def make_user():
    counter = {"n": 0}

    def _make_user(email=None, username=None, phone_number=None, method="email"):
        counter["n"] += 1
        n = counter["n"]
        payload = RegisterRequest(
            email=email or f"user{n}@example.com",
            username=username or f"user{n}",
            phone_number=phone_number or f"206555{n:04d}",
            verification_method=method,
        )
        return user_store.create_user(payload)

    return _make_user


@pytest.fixture
def sent_codes(monkeypatch):
    """Capture passcodes handed to the delivery gateway by the auth flow."""
    sent = []

    def _record(method, destination, code):
        sent.append({"method": method, "destination": destination, "code": code})
        return True

    monkeypatch.setattr("socialfeed.services.auth.deliver_passcode", _record)
    return sent
