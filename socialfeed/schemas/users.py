from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from socialfeed.services.identifiers import looks_like_phone


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(min_length=3, max_length=255)
    username: str = Field(min_length=1, max_length=50)
    phone_number: str = Field(alias="phoneNumber", min_length=1, max_length=32)
    verification_method: Literal["email", "phone"] = Field(alias="verificationMethod")

    @model_validator(mode="before")
    @classmethod
    def require_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        phone_number = data.get("phoneNumber", data.get("phone_number"))
        if not data.get("email") or not data.get("username") or not phone_number:
            raise ValueError("Email, username, and phone number are required")
        method = data.get("verificationMethod", data.get("verification_method"))
        if method not in ("email", "phone"):
            raise ValueError("A valid verification method (email or phone) is required")
        return data

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        cleaned = value.strip()
        if "@" not in cleaned:
            raise ValueError("Invalid email format")
        return cleaned

    @field_validator("username")
    @classmethod
    def normalize_username(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("This field is required")
        return cleaned

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, value: str) -> str:
        cleaned = value.strip()
        if not looks_like_phone(cleaned):
            raise ValueError("Invalid phone number format")
        return cleaned


class UserResponse(BaseModel):
    id: int
    email: Optional[str] = None
    username: str
    phone_number: Optional[str] = None
    preferred_mfa: Optional[str] = None
    verified_email: bool = False
    verified_phone: bool = False
    created_at: datetime


class RegisteredUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    email: Optional[str] = None
    username: str
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    verification_sent: bool = Field(alias="verificationSent")
    verification_method: str = Field(alias="verificationMethod")


class RegisterResponse(BaseModel):
    success: bool = True
    user: RegisteredUser
    message: str
