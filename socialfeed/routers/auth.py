from fastapi import APIRouter, Depends, Header, HTTPException, status

from socialfeed.config import settings
from socialfeed.schemas.otp import LoginRequest, PasscodeRequest, PasscodeResponse
from socialfeed.schemas.tokens import (
    LoginResponse,
    SessionResponse,
    SessionUser,
    TokenRefreshRequest,
    TokenRefreshResponse,
)
from socialfeed.schemas.users import RegisteredUser, RegisterRequest, RegisterResponse
from socialfeed.routers.deps import bearer_token, get_session_claims
from socialfeed.services import auth as auth_service
from socialfeed.services.identifiers import IdentifierError
from socialfeed.services.sessions import session_store
from socialfeed.services.tokens import (
    SessionClaims,
    TokenError,
    create_access_token,
    decode_refresh_token,
)
from socialfeed.services.users import RegistrationConflict, UserNotFoundError, user_store

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED
)
def register(payload: RegisterRequest) -> RegisterResponse:
    try:
        user, sent = auth_service.register(payload)
    except RegistrationConflict as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    method = payload.verification_method
    if sent:
        message = f"Verification code sent to your {method}"
    else:
        message = f"Account created but failed to send verification code to your {method}"
    return RegisterResponse(
        success=True,
        user=RegisteredUser(
            id=user.id,
            email=user.email,
            username=user.username,
            phone_number=user.phone_number,
            verification_sent=sent,
            verification_method=method,
        ),
        message=message,
    )


@router.post(
    "/send-otp", response_model=PasscodeResponse, response_model_exclude_none=True
)
def send_otp(payload: PasscodeRequest) -> PasscodeResponse:
    try:
        passcode = auth_service.request_passcode(payload.identifier, payload.method)
    except IdentifierError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except UserNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except auth_service.DeliveryError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return PasscodeResponse(
        success=True,
        otp=passcode.secret if settings.otp_debug else None,
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest) -> LoginResponse:
    try:
        result = auth_service.login(payload.identifier, payload.otp)
    except auth_service.AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        ) from exc
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    user = result.user
    return LoginResponse(
        user=SessionUser(
            id=user.id,
            email=user.email,
            username=user.username,
            phone_number=user.phone_number,
        ),
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        token_type="bearer",
        expires_in_seconds=settings.access_token_expire_minutes * 60,
        refresh_expires_in_seconds=settings.refresh_token_expire_days * 86400,
    )


@router.get("/session", response_model=SessionResponse)
def get_session(claims: SessionClaims = Depends(get_session_claims)) -> SessionResponse:
    return SessionResponse(
        user=SessionUser(
            id=claims.user_id,
            email=claims.email,
            username=claims.username,
            phone_number=claims.phone_number,
        ),
        expires=claims.expires_at,
        channel=session_store.get_channel(claims.session_id),
    )


@router.post("/refresh", response_model=TokenRefreshResponse)
def refresh_tokens(payload: TokenRefreshRequest) -> TokenRefreshResponse:
    try:
        refresh_data = decode_refresh_token(payload.refresh_token)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    user_id = session_store.get_user_id(refresh_data.session_id)
    user = user_store.get_user(refresh_data.user_id)
    if user_id is None or user_id != refresh_data.user_id or user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )
    access_token = create_access_token(
        user.id,
        refresh_data.session_id,
        email=user.email,
        username=user.username,
        phone_number=user.phone_number,
    )
    return TokenRefreshResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in_seconds=settings.access_token_expire_minutes * 60,
    )


@router.post("/logout")
def logout(authorization: str | None = Header(default=None)) -> dict:
    token = bearer_token(authorization)
    try:
        refresh_data = decode_refresh_token(token)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    if not session_store.revoke_session(refresh_data.session_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token",
        )
    return {"message": "Logged out"}
