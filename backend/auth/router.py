# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – registration, activation, login, refresh, logout, password
reset, access-token validation.

The router only does transport work: field validation, cookies, and mapping
a failed :class:`identity.result.Result` to an HTTP error.  All state
changes happen inside :class:`identity.lifecycle.IdentityLifecycle`.

Security notes
--------------
* The refresh token travels in an httpOnly cookie scoped to ``/`` whose
  max-age matches the refresh token lifetime.
* Each login / registration / refresh rotates that cookie; the previous
  refresh token stops working immediately.
"""

import re
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse

from auth.schemas import (
    AuthResponse,
    CredentialsRequest,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    UserInfoResponse,
    ValidateTokenRequest,
)
from auth.views import activation_error_html, activation_success_html
from core.config import settings
from core.logger import get_logger
from identity.lifecycle import IdentityLifecycle
from identity.result import ErrorKind, Result
from identity.types import AuthSession

router = APIRouter(prefix="/auth", tags=["auth"])

log = get_logger("auth")

_STATUS = {
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def get_identity(request: Request) -> IdentityLifecycle:
    """Dependency: the lifecycle built by the application factory."""
    return request.app.state.identity


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bad_request(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"kind": ErrorKind.BAD_REQUEST.value, "message": message},
    )


def _unwrap(result: Result):
    """Return the result value or raise the matching HTTPException."""
    if result.ok:
        return result.value
    raise HTTPException(
        status_code=_STATUS[result.error.kind],
        detail={"kind": result.error.kind.value, "message": result.error.message},
    )


def _validate_email(email: str) -> None:
    # Syntax only; the address is stored exactly as sent (case-sensitive)
    try:
        validate_email(email or "", check_deliverability=False)
    except EmailNotValidError:
        raise _bad_request("Invalid email address")


def _validate_new_password(pw: str) -> Optional[str]:
    """
    Return an error string if the password does not meet the minimum policy,
    or None if it is acceptable.

    Policy: >= 8 chars, at least one uppercase, one lowercase, one digit.
    """
    if len(pw) < 8:
        return "Password must be at least 8 characters"
    if not re.search(r"[A-Z]", pw):
        return "Password must contain at least one uppercase letter"
    if not re.search(r"[a-z]", pw):
        return "Password must contain at least one lowercase letter"
    if not re.search(r"[0-9]", pw):
        return "Password must contain at least one digit"
    return None


def _validate_password(pw: str) -> None:
    err = _validate_new_password(pw or "")
    if err:
        raise _bad_request(err)


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token,
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite=settings.refresh_cookie_samesite,
        path="/",
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
    )


def _session_response(response: Response, session: AuthSession) -> AuthResponse:
    _set_refresh_cookie(response, session.tokens.refresh_token)
    return AuthResponse(
        access_token=session.tokens.access_token,
        refresh_token=session.tokens.refresh_token,
        user=UserInfoResponse(id=session.user.id, email=session.user.email),
    )


def _login_url() -> str:
    return f"{settings.client_url.rstrip('/')}/login"


# ---------------------------------------------------------------------------
# POST /auth/validate-token
# ---------------------------------------------------------------------------


@router.post("/validate-token", response_model=UserInfoResponse)
def validate_token(body: ValidateTokenRequest, identity: IdentityLifecycle = Depends(get_identity)):
    """Verify an access token and return the identity it carries."""
    if not body.token:
        raise _bad_request("Token is required")
    user = _unwrap(identity.validate_access_token(body.token))
    return UserInfoResponse(id=user.id, email=user.email)


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=AuthResponse)
async def login(
    body: CredentialsRequest,
    response: Response,
    identity: IdentityLifecycle = Depends(get_identity),
):
    _validate_email(body.email)
    _validate_password(body.password)
    session = _unwrap(await identity.login(body.email, body.password))
    return _session_response(response, session)


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    identity: IdentityLifecycle = Depends(get_identity),
):
    refresh_token = request.cookies.get(settings.refresh_cookie_name)
    if not refresh_token:
        raise _bad_request("Refresh token missing")
    _unwrap(await identity.logout(refresh_token))
    response.delete_cookie(settings.refresh_cookie_name, path="/")
    return MessageResponse(detail="Logged out")


# ---------------------------------------------------------------------------
# POST /auth/registration
# ---------------------------------------------------------------------------


@router.post("/registration", response_model=AuthResponse)
async def registration(
    body: CredentialsRequest,
    response: Response,
    identity: IdentityLifecycle = Depends(get_identity),
):
    """Create an unactivated account and mail its activation link."""
    _validate_email(body.email)
    _validate_password(body.password)
    session = _unwrap(await identity.register(body.email, body.password))
    return _session_response(response, session)


# ---------------------------------------------------------------------------
# GET /auth/activate/{link}
# ---------------------------------------------------------------------------


@router.get("/activate/{link}", response_class=HTMLResponse)
async def activate(link: str, identity: IdentityLifecycle = Depends(get_identity)):
    """Target of the mailed activation link.  Always answers with a page."""
    result = await identity.activate(link)
    if result.ok:
        return HTMLResponse(activation_success_html(_login_url()))
    log.warning("Activation failed: %s", result.error.message)
    return HTMLResponse(
        activation_error_html(_login_url(), result.error.message),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


# ---------------------------------------------------------------------------
# GET /auth/refresh
# ---------------------------------------------------------------------------


@router.get("/refresh", response_model=AuthResponse)
async def refresh(
    request: Request,
    response: Response,
    identity: IdentityLifecycle = Depends(get_identity),
):
    """Exchange the refresh cookie for a new token pair (rotates the cookie)."""
    session = _unwrap(await identity.refresh(request.cookies.get(settings.refresh_cookie_name)))
    return _session_response(response, session)


# ---------------------------------------------------------------------------
# POST /auth/forgot-password
# ---------------------------------------------------------------------------


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    identity: IdentityLifecycle = Depends(get_identity),
):
    _validate_email(body.email)
    _unwrap(await identity.forgot_password(body.email))
    return MessageResponse(detail="Reset link sent")


# ---------------------------------------------------------------------------
# POST /auth/reset-password/{token}
# ---------------------------------------------------------------------------


@router.post("/reset-password/{token}", response_model=MessageResponse)
async def reset_password(
    token: str,
    body: ResetPasswordRequest,
    identity: IdentityLifecycle = Depends(get_identity),
):
    _validate_password(body.password)
    _unwrap(await identity.reset_password(token, body.password))
    return MessageResponse(detail="Password reset successfully")
