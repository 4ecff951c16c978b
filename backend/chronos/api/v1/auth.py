import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import or_
from sqlmodel import select

from chronos.api.deps import get_current_user, oauth2_scheme
from chronos.core.config import settings
from chronos.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotAuthorizedError,
)
from chronos.core.limiter import limiter
from chronos.core.revocation import TokenRevocationStore, get_revocation_store
from chronos.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    token_ttl_seconds,
    verify_password,
    verify_token,
)
from chronos.db import SessionDep
from chronos.models import User
from chronos.schemas import (
    ApiResponse,
    ChangeEmailRequest,
    ChangePasswordRequest,
    LogoutRequest,
    RefreshTokenRequest,
    ResendVerificationRequest,
    TokenPair,
    UserCreate,
    UserLogin,
    UserRead,
)
from chronos.services import accounts

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_tokens(user_id) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )


def _revoke(store: TokenRevocationStore, payload: dict) -> None:
    jti = payload.get("jti")
    if jti:
        store.revoke(jti, token_ttl_seconds(payload))


def _parse_user_id(value) -> UUID:
    try:
        return UUID(value)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid refresh token payload") from None


@router.post(
    "/register",
    response_model=ApiResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def register_user(
    request: Request, payload: UserCreate, session: SessionDep
) -> ApiResponse[UserRead]:
    user = accounts.register_user(session, payload)
    message = (
        "User registered"
        if user.is_email_verified
        else "User registered, check your inbox to verify your email"
    )
    return ApiResponse(data=UserRead.model_validate(user), message=message)


@router.post(
    "/login",
    response_model=ApiResponse[TokenPair],
    summary="Login and obtain tokens",
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(
    request: Request, payload: UserLogin, session: SessionDep
) -> ApiResponse[TokenPair]:
    identifier = payload.username.strip()
    user = session.exec(
        select(User).where(
            or_(User.username == identifier, User.email == identifier.lower())
        )
    ).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise AuthenticationError("Incorrect username or password")
    if not user.is_active:
        raise AuthenticationError("User is inactive")
    if settings.EMAIL_VERIFICATION_REQUIRED and not user.is_email_verified:
        raise NotAuthorizedError("Please verify your email before logging in")

    return ApiResponse(data=_issue_tokens(user.id))


@router.post(
    "/refresh",
    response_model=ApiResponse[TokenPair],
    summary="Refresh access token",
)
def refresh_tokens(
    payload: RefreshTokenRequest,
    session: SessionDep,
    revocation_store: TokenRevocationStore = Depends(get_revocation_store),
) -> ApiResponse[TokenPair]:
    try:
        refresh_payload = verify_token(payload.refresh_token, token_type="refresh")
    except ValueError:
        raise AuthenticationError("Invalid refresh token") from None

    jti = refresh_payload.get("jti")
    if jti and revocation_store.is_revoked(jti):
        raise AuthenticationError("Refresh token has been revoked")

    user_id = refresh_payload.get("sub")
    user = session.get(User, _parse_user_id(user_id))
    if not user or not user.is_active:
        raise AuthenticationError("Inactive or missing user")

    # Refresh tokens are single use
    if jti:
        revocation_store.revoke(jti, token_ttl_seconds(refresh_payload))
    return ApiResponse(data=_issue_tokens(user.id))


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    summary="Revoke the current tokens",
)
def logout(
    payload: LogoutRequest | None = None,
    token: str = Depends(oauth2_scheme),
    current_user: User = Depends(get_current_user),
    revocation_store: TokenRevocationStore = Depends(get_revocation_store),
) -> ApiResponse[None]:
    access_payload = verify_token(token, token_type="access")
    _revoke(revocation_store, access_payload)

    if payload and payload.refresh_token:
        try:
            _revoke(
                revocation_store,
                verify_token(payload.refresh_token, token_type="refresh"),
            )
        except ValueError:
            logger.info("Ignoring invalid refresh token on logout of %s", current_user.id)

    logger.info("User %s logged out", current_user.id)
    return ApiResponse(message="Logged out")


@router.put(
    "/change-password",
    response_model=ApiResponse[None],
    summary="Change the current user's password",
)
def change_password(
    payload: ChangePasswordRequest,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    if not verify_password(payload.current_password, current_user.hashed_password):
        raise ConflictError("Current password is incorrect")

    current_user.hashed_password = get_password_hash(payload.new_password)
    current_user.touch()
    session.add(current_user)
    session.commit()
    logger.info("User %s changed password", current_user.id)
    return ApiResponse(message="Password changed")


@router.get(
    "/verify-email",
    response_model=ApiResponse[UserRead],
    summary="Confirm the email address of a new account",
)
def verify_email(
    session: SessionDep,
    token: str = Query(min_length=1),
) -> ApiResponse[UserRead]:
    user = accounts.verify_email(session, token)
    return ApiResponse(data=UserRead.model_validate(user), message="Email verified")


@router.post(
    "/resend-verification",
    response_model=ApiResponse[None],
    summary="Send a new verification email",
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def resend_verification(
    request: Request, payload: ResendVerificationRequest, session: SessionDep
) -> ApiResponse[None]:
    accounts.resend_verification(session, payload.email)
    return ApiResponse(
        message="If the address belongs to an unverified account, a new link was sent"
    )


@router.post(
    "/change-email",
    response_model=ApiResponse[None],
    summary="Request a change of the current user's email",
)
def change_email(
    payload: ChangeEmailRequest,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    accounts.request_email_change(
        session, current_user, payload.new_email, payload.password
    )
    return ApiResponse(message="Verification email sent to new email address")


@router.get(
    "/verify-email-change",
    response_model=ApiResponse[UserRead],
    summary="Confirm a requested email change",
)
def verify_email_change(
    session: SessionDep,
    token: str = Query(min_length=1),
) -> ApiResponse[UserRead]:
    user = accounts.confirm_email_change(session, token)
    return ApiResponse(data=UserRead.model_validate(user), message="Email changed")
