from typing import Any, Optional

from pydantic import BaseModel


class PasscodeRequest(BaseModel):
    # Checked in the service so malformed input maps to the documented 400s.
    identifier: Optional[str] = None
    method: Optional[str] = None


class PasscodeResponse(BaseModel):
    success: bool = True
    otp: Optional[str] = None


class LoginRequest(BaseModel):
    # Any shape is accepted; bad credentials of every kind end in the same 401.
    identifier: Any = None
    otp: Any = None
