# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Outbound activation / reset notifications.

* :class:`HttpNotifier`     – one POST to the mail gateway per call
* :class:`LoggingNotifier`  – development stand-in when no gateway is set
* :class:`RetryingNotifier` – wraps either with a :class:`RetryPolicy`

Only ``RetryingNotifier`` retries.  Callers get a single
:class:`core.errors.DeliveryError` once every attempt has failed and decide
for themselves what to roll back.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Protocol

import httpx

from core.errors import DeliveryError
from core.logger import get_logger
from identity.types import NotificationKind

log = get_logger("notifier")


def redact_email(email: str) -> str:
    """``alice@example.com`` → ``al***@example.com``; keeps PII out of logs."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class Notifier(Protocol):
    async def send(self, kind: NotificationKind, address: str, link: str) -> None:
        """Attempt one delivery.  Raise on failure."""
        ...


# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------


class HttpNotifier:
    """
    POSTs ``{"email": ..., "link": ...}`` to ``<base_url>/activation`` or
    ``<base_url>/reset``.  A non-2xx status, a transport error or exceeding
    *timeout* all count as a failed attempt.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def send(self, kind: NotificationKind, address: str, link: str) -> None:
        try:
            await asyncio.wait_for(self._post(kind, address, link), self._timeout)
        except asyncio.TimeoutError as exc:
            # httpx only bounds each connect/read/write, not the whole exchange
            raise TimeoutError(f"mail gateway did not answer within {self._timeout}s") from exc

    async def _post(self, kind: NotificationKind, address: str, link: str) -> None:
        url = f"{self._base_url}/{kind.value}"
        payload = {"email": address, "link": link}
        if self._client is not None:
            resp = await self._client.post(url, json=payload, timeout=self._timeout)
            resp.raise_for_status()
            return
        async with httpx.AsyncClient() as client:
            resp = await client.post(url, json=payload, timeout=self._timeout)
            resp.raise_for_status()


class LoggingNotifier:
    """Logs the link instead of sending it.  Never fails."""

    async def send(self, kind: NotificationKind, address: str, link: str) -> None:
        log.info(
            "[dev-mail] %s notification for %s: %s",
            kind.value,
            redact_email(address),
            link,
        )


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------


def linear_backoff(unit: float = 1.0) -> Callable[[int], float]:
    """Attempt *n* (1-based) waits ``n * unit`` seconds before the next try."""
    return lambda attempt: attempt * unit


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 2
    backoff: Callable[[int], float] = field(default_factory=linear_backoff)

    def delay_after(self, attempt: int) -> float:
        return self.backoff(attempt)


class RetryingNotifier:
    """
    Delivers through *notifier* up to ``attempts`` times.

    Between tries it awaits *sleep* (``asyncio.sleep`` by default) for the
    policy's backoff delay; nothing waits after the final attempt.  The
    suspension only affects the calling operation.
    """

    def __init__(
        self,
        notifier: Notifier,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._notifier = notifier
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    async def deliver(
        self,
        kind: NotificationKind,
        address: str,
        link: str,
        attempts: Optional[int] = None,
    ) -> None:
        attempts = attempts if attempts is not None else self._policy.attempts
        if attempts < 1:
            raise ValueError("attempts must be >= 1")

        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                await self._notifier.send(kind, address, link)
                return
            except Exception as exc:
                last_error = exc
                log.warning(
                    "Failed to send %s notification to %s (attempt %d/%d): %s",
                    kind.value,
                    redact_email(address),
                    attempt,
                    attempts,
                    exc,
                )
                if attempt < attempts:
                    await self._sleep(self._policy.delay_after(attempt))

        raise DeliveryError(
            f"Failed to send {kind.value} notification after {attempts} attempts: {last_error}",
            last_error=last_error,
        )
