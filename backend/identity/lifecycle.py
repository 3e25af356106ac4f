# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Identity lifecycle – registration, activation, login, refresh, logout and
password reset.

Every operation receives already-validated input and returns a
:class:`identity.result.Result`.  Expected failures (duplicate email, wrong
password, stale token …) come back as a failed result; storage faults on
reads propagate as exceptions and end up as a 500.

Two flows persist first and notify second:

* register        – user row, then activation notification
* forgot_password – reset ticket, then reset notification

If the notification still fails after the notifier's retries, the row that
was just written is deleted again before the failure is returned.  A failing
deletion is logged and never replaces the original error.
"""

from typing import Optional

from starlette.concurrency import run_in_threadpool

from core.errors import DeliveryError, DirectoryError, DuplicateEntryError, InvalidTokenError
from core.logger import get_logger
from core.security import Hasher, Signer, TokenKind, new_activation_link, new_reset_ticket
from identity.directory import Directory
from identity.notifier import RetryingNotifier, redact_email
from identity.result import ErrorKind, Result, failure, success
from identity.sessions import SessionManager
from identity.types import AuthSession, NotificationKind, UserSummary

log = get_logger("identity")

USER_EXISTS = "User with this email already exists"
REGISTRATION_FAILED = "Registration failed"
ACTIVATION_SEND_FAILED = "Failed to send activation email. Please try registering again later."
USER_NOT_FOUND = "User not found"
INCORRECT_PASSWORD = "Incorrect password"
USER_NOT_ACTIVATED = "Account is not activated. Check your email for the activation link."
INVALID_ACTIVATION_LINK = "Invalid activation link"
ACCESS_TOKEN_MISSING = "Access token missing"
INVALID_ACCESS_TOKEN = "Invalid access token"
REFRESH_TOKEN_MISSING = "Refresh token missing"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
RESET_TICKET_FAILED = "Failed to create reset token"
RESET_SEND_FAILED = "Failed to send reset password email. Please try again later."
RESET_TICKET_USED = "Reset link is invalid or has already been used"


class IdentityLifecycle:
    def __init__(
        self,
        directory: Directory,
        sessions: SessionManager,
        notifier: RetryingNotifier,
        hasher: Hasher,
        signer: Signer,
        *,
        activation_base_url: str,
        reset_base_url: str,
        notify_attempts: Optional[int] = None,
    ) -> None:
        self._directory = directory
        self._sessions = sessions
        self._notifier = notifier
        self._hasher = hasher
        self._signer = signer
        self._activation_base_url = activation_base_url.rstrip("/")
        self._reset_base_url = reset_base_url.rstrip("/")
        self._notify_attempts = notify_attempts

    # -----------------------------------------------------------------------
    # Tokens
    # -----------------------------------------------------------------------

    def validate_access_token(self, token: Optional[str]) -> Result[UserSummary]:
        if not token:
            return failure(ErrorKind.UNAUTHORIZED, ACCESS_TOKEN_MISSING)
        try:
            claims = self._signer.verify(token, TokenKind.ACCESS)
        except InvalidTokenError:
            return failure(ErrorKind.UNAUTHORIZED, INVALID_ACCESS_TOKEN)
        if not claims.get("id") or not claims.get("email"):
            return failure(ErrorKind.UNAUTHORIZED, INVALID_ACCESS_TOKEN)
        return success(UserSummary(id=claims["id"], email=claims["email"]))

    async def _start_session(self, identity: UserSummary) -> Result[AuthSession]:
        tokens = await self._sessions.issue_and_store(identity.id, identity)
        return success(AuthSession(tokens=tokens, user=identity))

    # -----------------------------------------------------------------------
    # Registration / activation
    # -----------------------------------------------------------------------

    async def register(self, email: str, password: str) -> Result[AuthSession]:
        if await self._directory.find_user_by_email(email) is not None:
            return failure(ErrorKind.BAD_REQUEST, USER_EXISTS)

        password_hash = await run_in_threadpool(self._hasher.hash, password)
        activation_link = new_activation_link()

        try:
            user = await self._directory.create_user(email, password_hash, activation_link)
        except DuplicateEntryError:
            # Lost the race against a concurrent registration for this email
            return failure(ErrorKind.BAD_REQUEST, USER_EXISTS)
        except DirectoryError:
            log.exception("Failed to create user %s", redact_email(email))
            return failure(ErrorKind.BAD_REQUEST, REGISTRATION_FAILED)

        try:
            await self._notifier.deliver(
                NotificationKind.ACTIVATION,
                email,
                f"{self._activation_base_url}/{activation_link}",
                self._notify_attempts,
            )
        except DeliveryError as exc:
            log.error("Failed to send activation email, deleting user %s: %s", user.id, exc)
            await self._discard_user(user.id)
            return failure(ErrorKind.BAD_REQUEST, ACTIVATION_SEND_FAILED)

        log.info("Registered user %s", user.id)
        return await self._start_session(UserSummary.of(user))

    async def _discard_user(self, user_id: str) -> None:
        try:
            await self._directory.delete_user(user_id)
        except Exception:
            log.exception("Compensation failed: could not delete user %s", user_id)
        else:
            log.info("User %s deleted successfully", user_id)

    async def activate(self, activation_link: str) -> Result[None]:
        user = await self._directory.find_user_by_activation_link(activation_link)
        if user is None:
            return failure(ErrorKind.NOT_FOUND, INVALID_ACTIVATION_LINK)
        if user.is_activated:
            return success()
        await self._directory.update_user(user.id, is_activated=True)
        log.info("Activated user %s", user.id)
        return success()

    # -----------------------------------------------------------------------
    # Sessions
    # -----------------------------------------------------------------------

    async def login(self, email: str, password: str) -> Result[AuthSession]:
        # Order is fixed: existence, then password, then activation
        user = await self._directory.find_user_by_email(email)
        if user is None:
            return failure(ErrorKind.NOT_FOUND, USER_NOT_FOUND)
        if not await run_in_threadpool(self._hasher.matches, password, user.password_hash):
            return failure(ErrorKind.UNAUTHORIZED, INCORRECT_PASSWORD)
        if not user.is_activated:
            return failure(ErrorKind.UNAUTHORIZED, USER_NOT_ACTIVATED)
        log.info("Login for user %s", user.id)
        return await self._start_session(UserSummary.of(user))

    async def refresh(self, refresh_token: Optional[str]) -> Result[AuthSession]:
        if not refresh_token:
            return failure(ErrorKind.UNAUTHORIZED, REFRESH_TOKEN_MISSING)
        try:
            claims = self._signer.verify(refresh_token, TokenKind.REFRESH)
        except InvalidTokenError:
            return failure(ErrorKind.UNAUTHORIZED, INVALID_REFRESH_TOKEN)

        # The store, not the signature, decides whether the token is current
        if await self._directory.find_session_by_token(refresh_token) is None:
            user_id = claims.get("id")
            log.warning("Superseded refresh token presented for user %s; revoking session", user_id)
            if user_id:
                await self._directory.delete_session_by_user(user_id)
            return failure(ErrorKind.UNAUTHORIZED, INVALID_REFRESH_TOKEN)

        user = await self._directory.find_user_by_id(claims.get("id", ""))
        if user is None:
            return failure(ErrorKind.NOT_FOUND, USER_NOT_FOUND)
        return await self._start_session(UserSummary.of(user))

    async def logout(self, refresh_token: str) -> Result[None]:
        await self._directory.delete_session_by_token(refresh_token)
        return success()

    # -----------------------------------------------------------------------
    # Password reset
    # -----------------------------------------------------------------------

    async def forgot_password(self, email: str) -> Result[None]:
        user = await self._directory.find_user_by_email(email)
        if user is None:
            return failure(ErrorKind.NOT_FOUND, USER_NOT_FOUND)

        ticket = new_reset_ticket()
        try:
            await self._directory.create_reset_ticket(user.id, ticket)
        except DirectoryError:
            log.exception("Failed to create reset ticket for user %s", user.id)
            return failure(ErrorKind.BAD_REQUEST, RESET_TICKET_FAILED)

        try:
            await self._notifier.deliver(
                NotificationKind.RESET,
                email,
                f"{self._reset_base_url}/{ticket}",
                self._notify_attempts,
            )
        except DeliveryError as exc:
            log.error("Failed to send reset password email for user %s: %s", user.id, exc)
            await self._discard_ticket(ticket)
            return failure(ErrorKind.BAD_REQUEST, RESET_SEND_FAILED)

        log.info("Reset link issued for user %s", user.id)
        return success()

    async def _discard_ticket(self, ticket: str) -> None:
        try:
            await self._directory.delete_reset_ticket(ticket)
        except Exception:
            log.exception("Compensation failed: could not delete reset ticket")

    async def reset_password(self, ticket: str, new_password: str) -> Result[None]:
        row = await self._directory.find_reset_ticket(ticket)
        if row is None:
            return failure(ErrorKind.UNAUTHORIZED, RESET_TICKET_USED)

        user = await self._directory.find_user_by_id(row.user_id)
        if user is None:
            return failure(ErrorKind.NOT_FOUND, USER_NOT_FOUND)

        password_hash = await run_in_threadpool(self._hasher.hash, new_password)
        await self._directory.update_user(user.id, password_hash=password_hash)
        await self._directory.delete_reset_ticket(ticket)
        log.info("Password reset for user %s", user.id)
        return success()
