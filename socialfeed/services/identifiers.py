import re

_PHONE_CHARACTERS = re.compile(r"^[0-9\s()+\-]+$", re.ASCII)

EMAIL = "email"
PHONE = "phone"
METHODS = (EMAIL, PHONE)


class IdentifierError(ValueError):
    pass


def is_email_identifier(identifier: str) -> bool:
    return "@" in identifier


def normalize_phone(phone_number: str) -> str:
    return re.sub(r"[^0-9]", "", phone_number)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def looks_like_phone(identifier: str) -> bool:
    return bool(_PHONE_CHARACTERS.match(identifier)) and bool(
        normalize_phone(identifier)
    )


def validate_identifier(identifier: str | None, method: str | None) -> str:
    """Check ``identifier`` against the declared delivery ``method``.

    Returns the normalized lookup key. Raises :class:`IdentifierError` with a
    client-safe message when the pair is missing or malformed.
    """
    if identifier is None or not identifier.strip():
        raise IdentifierError("Identifier (email or phone) is required")
    if method not in METHODS:
        raise IdentifierError("Valid method (email or phone) is required")
    cleaned = identifier.strip()
    if method == EMAIL:
        if not is_email_identifier(cleaned):
            raise IdentifierError("Invalid email format")
        return normalize_email(cleaned)
    if not looks_like_phone(cleaned):
        raise IdentifierError("Invalid phone number format")
    return normalize_phone(cleaned)
