from fastapi import Depends, Header, HTTPException, status

from socialfeed.services.sessions import session_store
from socialfeed.services.tokens import SessionClaims, TokenError, decode_access_token


def bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header",
        )
    return token


def get_session_claims(authorization: str | None = Header(default=None)) -> SessionClaims:
    token = bearer_token(authorization)
    try:
        claims = decode_access_token(token)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    user_id = session_store.get_user_id(claims.session_id)
    if user_id is None or user_id != claims.user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token",
        )
    return claims


def get_current_user_id(claims: SessionClaims = Depends(get_session_claims)) -> int:
    return claims.user_id
