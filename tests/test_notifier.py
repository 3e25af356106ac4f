"""Tests for RetryingNotifier, RetryPolicy and the notification transports."""

import asyncio
import json
import time

import httpx
import pytest

from conftest import FakeNotifier
from core.errors import DeliveryError
from identity.notifier import (
    HttpNotifier,
    LoggingNotifier,
    RetryingNotifier,
    RetryPolicy,
    linear_backoff,
    redact_email,
)
from identity.types import NotificationKind

_LINK = "http://api.test/auth/activate/abc"


class TestRetryingNotifier:
    async def test_two_attempts_one_delay_then_failure(self, sleep):
        transport = FakeNotifier(failures=99)
        notifier = RetryingNotifier(transport, RetryPolicy(attempts=2), sleep=sleep)

        with pytest.raises(DeliveryError) as excinfo:
            await notifier.deliver(NotificationKind.ACTIVATION, "a@x.com", _LINK)

        assert len(transport.attempts) == 2
        assert sleep.delays == [1.0]
        assert isinstance(excinfo.value.last_error, ConnectionError)

    async def test_success_on_first_attempt_does_not_wait(self, sleep):
        transport = FakeNotifier()
        notifier = RetryingNotifier(transport, sleep=sleep)

        await notifier.deliver(NotificationKind.RESET, "a@x.com", _LINK)

        assert transport.delivered == [(NotificationKind.RESET, "a@x.com", _LINK)]
        assert sleep.delays == []

    async def test_recovers_on_second_attempt(self, sleep):
        transport = FakeNotifier(failures=1)
        notifier = RetryingNotifier(transport, sleep=sleep)

        await notifier.deliver(NotificationKind.ACTIVATION, "a@x.com", _LINK)

        assert len(transport.attempts) == 2
        assert len(transport.delivered) == 1
        assert sleep.delays == [1.0]

    async def test_linear_backoff_between_attempts(self, sleep):
        transport = FakeNotifier(failures=99)
        policy = RetryPolicy(attempts=4, backoff=linear_backoff(0.5))
        notifier = RetryingNotifier(transport, policy, sleep=sleep)

        with pytest.raises(DeliveryError):
            await notifier.deliver(NotificationKind.ACTIVATION, "a@x.com", _LINK)

        assert len(transport.attempts) == 4
        assert sleep.delays == [0.5, 1.0, 1.5]

    async def test_explicit_attempts_override_policy(self, sleep):
        transport = FakeNotifier(failures=99)
        notifier = RetryingNotifier(transport, RetryPolicy(attempts=5), sleep=sleep)

        with pytest.raises(DeliveryError):
            await notifier.deliver(NotificationKind.RESET, "a@x.com", _LINK, attempts=1)

        assert len(transport.attempts) == 1
        assert sleep.delays == []

    async def test_rejects_zero_attempts(self, sleep):
        notifier = RetryingNotifier(FakeNotifier(), sleep=sleep)
        with pytest.raises(ValueError):
            await notifier.deliver(NotificationKind.RESET, "a@x.com", _LINK, attempts=0)

    async def test_each_failure_is_logged(self, sleep, authgate_logs):
        notifier = RetryingNotifier(FakeNotifier(failures=99), sleep=sleep)
        with pytest.raises(DeliveryError):
            await notifier.deliver(NotificationKind.ACTIVATION, "alice@x.com", _LINK)
        warnings = [r for r in authgate_logs.records if "attempt" in r.getMessage()]
        assert len(warnings) == 2
        assert all("alice@x.com" not in r.getMessage() for r in warnings)


class TestHttpNotifier:
    async def test_posts_email_and_link_to_kind_endpoint(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            notifier = HttpNotifier("http://mail.test/", client=client)
            await notifier.send(NotificationKind.ACTIVATION, "a@x.com", _LINK)
            await notifier.send(NotificationKind.RESET, "a@x.com", "http://client.test/reset-password/t")

        assert [str(r.url) for r in seen] == ["http://mail.test/activation", "http://mail.test/reset"]
        assert json.loads(seen[0].content) == {"email": "a@x.com", "link": _LINK}

    async def test_error_status_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(502))
        async with httpx.AsyncClient(transport=transport) as client:
            notifier = HttpNotifier("http://mail.test", client=client)
            with pytest.raises(httpx.HTTPStatusError):
                await notifier.send(NotificationKind.RESET, "a@x.com", _LINK)

    async def test_timeout_counts_as_failed_attempt(self, sleep):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            notifier = RetryingNotifier(HttpNotifier("http://mail.test", client=client), sleep=sleep)
            with pytest.raises(DeliveryError) as excinfo:
                await notifier.deliver(NotificationKind.ACTIVATION, "a@x.com", _LINK)

        assert isinstance(excinfo.value.last_error, httpx.TimeoutException)
        assert sleep.delays == [1.0]

    async def test_stalled_gateway_is_cut_off_at_timeout(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            notifier = HttpNotifier("http://mail.test", timeout=0.05, client=client)
            started = time.monotonic()
            with pytest.raises(TimeoutError):
                await notifier.send(NotificationKind.ACTIVATION, "a@x.com", _LINK)

        assert time.monotonic() - started < 1

    async def test_trickling_response_fails_the_attempt(self, sleep):
        async def trickle():
            for _ in range(50):
                await asyncio.sleep(0.02)
                yield b"."

        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=trickle())

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            notifier = RetryingNotifier(HttpNotifier("http://mail.test", timeout=0.1, client=client), sleep=sleep)
            started = time.monotonic()
            with pytest.raises(DeliveryError) as excinfo:
                await notifier.deliver(NotificationKind.RESET, "a@x.com", _LINK)

        # two bounded attempts, well short of the full 1s body
        assert time.monotonic() - started < 0.9
        assert isinstance(excinfo.value.last_error, TimeoutError)
        assert sleep.delays == [1.0]


async def test_logging_notifier_never_fails(authgate_logs):
    await LoggingNotifier().send(NotificationKind.ACTIVATION, "alice@x.com", _LINK)
    assert _LINK in authgate_logs.text


def test_redact_email():
    assert redact_email("alice@example.com") == "al***@example.com"
    assert redact_email("nonsense") == "redacted"
