from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    email: Optional[str] = None
    username: Optional[str] = None
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")


class SessionResponse(BaseModel):
    user: SessionUser
    expires: datetime
    channel: Optional[str] = None


class LoginResponse(BaseModel):
    user: SessionUser
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in_seconds: int
    refresh_expires_in_seconds: int


class TokenRefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=10, max_length=2048)


class TokenRefreshResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in_seconds: int
