from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from chronos.core.config import settings
from chronos.core.revocation import TokenRevocationStore, get_revocation_store
from chronos.core.security import verify_token
from chronos.db import SessionDep
from chronos.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    session: SessionDep,
    token: str = Depends(oauth2_scheme),
    revocation_store: TokenRevocationStore = Depends(get_revocation_store),
) -> User:
    try:
        payload = verify_token(token, token_type="access")
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise _unauthorized("Could not validate credentials") from None

    jti = payload.get("jti")
    if jti and revocation_store.is_revoked(jti):
        raise _unauthorized("Token has been revoked")

    user = session.get(User, user_id)
    if not user or not user.is_active:
        raise _unauthorized("Inactive or missing user")
    return user
