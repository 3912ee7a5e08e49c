import pytest

from socialfeed.services.identifiers import (
    IdentifierError,
    is_email_identifier,
    looks_like_phone,
    normalize_phone,
    validate_identifier,
)


def test_phone_formats_normalize_to_the_same_key():
    assert normalize_phone("(206) 555-0100") == "2065550100"
    assert normalize_phone("2065550100") == "2065550100"
    assert normalize_phone("+1 206-555-0100") == "12065550100"


def test_phone_normalization_is_idempotent():
    once = normalize_phone("(206) 555-0100")
    assert normalize_phone(once) == once


def test_email_identifiers_are_detected_by_at_sign():
    assert is_email_identifier("someone@example.com") is True
    assert is_email_identifier("2065550100") is False


def test_only_ascii_digits_survive_normalization():
    assert normalize_phone("٢٠٦ 555-0100") == "5550100"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("(206) 555-0100", True),
        ("+1-206-555-0100", True),
        ("206 555 0100", True),
        ("206.555.0100", False),
        ("call me", False),
        ("()-+", False),
        ("٢٠٦٥٥٥٠١٠٠", False),
    ],
)
def test_looks_like_phone(value, expected):
    assert looks_like_phone(value) is expected


class TestValidateIdentifier:
    def test_returns_normalized_email(self):
        assert validate_identifier("A@B.com", "email") == "a@b.com"

    def test_returns_phone_digits(self):
        assert validate_identifier("(206) 555-0100", "phone") == "2065550100"

    @pytest.mark.parametrize("identifier", [None, "", "   "])
    def test_missing_identifier(self, identifier):
        with pytest.raises(IdentifierError, match="Identifier"):
            validate_identifier(identifier, "email")

    @pytest.mark.parametrize("method", [None, "", "sms", "EMAIL"])
    def test_invalid_method(self, method):
        with pytest.raises(IdentifierError, match="Valid method"):
            validate_identifier("a@b.com", method)

    def test_email_method_requires_at_sign(self):
        with pytest.raises(IdentifierError, match="Invalid email format"):
            validate_identifier("2065550100", "email")

    def test_phone_method_rejects_letters(self):
        with pytest.raises(IdentifierError, match="Invalid phone number format"):
            validate_identifier("a@b.com", "phone")

    def test_phone_method_rejects_non_ascii_digits(self):
        with pytest.raises(IdentifierError, match="Invalid phone number format"):
            validate_identifier("٢٠٦٥٥٥٠١٠٠", "phone")
