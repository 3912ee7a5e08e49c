from datetime import timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from socialfeed.database import session_scope
from socialfeed.models.user import Passcode, UserEntry
from socialfeed.services.passcodes import PasscodeStore, VerifyOutcome
from socialfeed.services.users import UserNotFoundError


def _stored_passcode(user_id):
    with session_scope() as session:
        return session.get(UserEntry, user_id).passcode


@pytest.fixture
def store(clock):
    return PasscodeStore(ttl_seconds=600, code_length=6, clock=clock)


@pytest.fixture
def codes(monkeypatch):
    """Make the generator hand out the given values in order."""

    def _use(*values):
        iterator = iter(values)
        monkeypatch.setattr(
            "socialfeed.services.passcodes.secrets.randbelow", lambda _: next(iterator)
        )

    return _use


class TestIssue:
    def test_code_is_zero_padded_to_six_digits(self, store, make_user, codes):
        codes(42)
        user = make_user()

        passcode = store.issue(user.id)

        assert passcode.secret == "000042"

    def test_generated_codes_are_numeric(self, store, make_user):
        user = make_user()

        for _ in range(20):
            secret = store.issue(user.id).secret
            assert len(secret) == 6
            assert secret.isdigit()

    def test_persists_secret_with_ten_minute_expiry(self, store, make_user, clock, codes):
        codes(482913)
        user = make_user()

        store.issue(user.id)

        stored = _stored_passcode(user.id)
        assert stored.secret == "482913"
        assert stored.expires_at == clock.now + timedelta(minutes=10)

    def test_unknown_user_raises(self, store):
        with pytest.raises(UserNotFoundError):
            store.issue(9999)


class TestVerify:
    def test_code_is_accepted_exactly_once(self, store, make_user):
        user = make_user()
        passcode = store.issue(user.id)

        assert store.verify(user.id, passcode.secret) is True
        assert store.verify(user.id, passcode.secret) is False

    def test_success_clears_both_fields(self, store, make_user):
        user = make_user()
        passcode = store.issue(user.id)

        store.verify(user.id, passcode.secret)

        with session_scope() as session:
            entry = session.get(UserEntry, user.id)
            assert entry.otp_secret is None
            assert entry.otp_expiry is None

    def test_expired_code_is_rejected(self, store, make_user, clock):
        user = make_user()
        passcode = store.issue(user.id)

        clock.advance(minutes=10, seconds=1)

        assert store.check(user.id, passcode.secret) is VerifyOutcome.EXPIRED
        assert store.verify(user.id, passcode.secret) is False

    def test_code_is_still_valid_at_the_expiry_instant(self, store, make_user, clock):
        user = make_user()
        passcode = store.issue(user.id)

        clock.advance(minutes=10)

        assert store.verify(user.id, passcode.secret) is True

    def test_mismatch_keeps_the_code_usable(self, store, make_user, codes):
        codes(123456)
        user = make_user()
        store.issue(user.id)

        assert store.check(user.id, "654321") is VerifyOutcome.MISMATCH
        assert store.verify(user.id, "123456") is True

    def test_user_without_passcode_is_rejected_without_error(self, store, make_user):
        user = make_user()

        assert store.check(user.id, "000000") is VerifyOutcome.ABSENT
        assert store.verify(user.id, "000000") is False

    def test_unknown_user_is_rejected_without_error(self, store):
        assert store.verify(4242, "000000") is False

    def test_code_must_match_exactly(self, store, make_user, codes):
        codes(777777)
        user = make_user()
        store.issue(user.id)

        assert store.check(user.id, " 777777 ") is VerifyOutcome.MISMATCH
        assert store.check(user.id, "777777\n") is VerifyOutcome.MISMATCH
        assert store.verify(user.id, "777777") is True

    def test_reissue_supersedes_previous_code(self, store, make_user, codes):
        codes(111111, 222222)
        user = make_user()

        assert store.issue(user.id).secret == "111111"
        assert store.issue(user.id).secret == "222222"

        assert store.verify(user.id, "111111") is False
        assert store.verify(user.id, "222222") is True

    def test_code_only_works_for_the_user_it_was_issued_to(
        self, store, make_user, clock, codes
    ):
        codes(482913)
        first = make_user()
        second = make_user()
        store.issue(first.id)

        clock.advance(minutes=5)

        assert store.verify(first.id, "482913") is True
        assert store.verify(first.id, "482913") is False
        assert store.verify(second.id, "482913") is False

    def test_code_consumed_between_read_and_clear_is_rejected(
        self, store, make_user, monkeypatch
    ):
        user = make_user()
        passcode = store.issue(user.id)
        original_get = Session.get

        def _get_then_consume(session, model, ident):
            entry = original_get(session, model, ident)
            # Another request clears the row after this one has read it.
            with session_scope() as other:
                other.execute(
                    update(UserEntry)
                    .where(UserEntry.id == ident)
                    .values(otp_secret=None, otp_expiry=None)
                    .execution_options(synchronize_session=False)
                )
            return entry

        monkeypatch.setattr(Session, "get", _get_then_consume)

        assert store.check(user.id, passcode.secret) is VerifyOutcome.ABSENT


class TestPasscodePair:
    def test_property_is_none_when_nothing_issued(self, make_user):
        user = make_user()

        assert _stored_passcode(user.id) is None

    def test_setter_writes_and_clears_both_columns(self, make_user, clock):
        user = make_user()
        value = Passcode(secret="135790", expires_at=clock.now + timedelta(minutes=10))

        with session_scope() as session:
            session.get(UserEntry, user.id).passcode = value
        assert _stored_passcode(user.id) == value

        with session_scope() as session:
            session.get(UserEntry, user.id).passcode = None
        with session_scope() as session:
            entry = session.get(UserEntry, user.id)
            assert (entry.otp_secret, entry.otp_expiry) == (None, None)

    def test_database_rejects_secret_without_expiry(self, make_user):
        user = make_user()

        with pytest.raises(IntegrityError):
            with session_scope() as session:
                session.execute(
                    update(UserEntry)
                    .where(UserEntry.id == user.id)
                    .values(otp_secret="123456")
                    .execution_options(synchronize_session=False)
                )
