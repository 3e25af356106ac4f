"""Shared fixtures: in-memory directory, fake notifier, fast hasher."""

import os

# Settings are read once at import; pin the test configuration before any
# application module is imported.
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret-that-is-long-enough-0001"  # nosec B105
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-that-is-long-enough-0002"  # nosec B105
os.environ["DIRECTORY_BACKEND"] = "memory"
os.environ["MAIL_SERVICE_URL"] = ""
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["REFRESH_COOKIE_SECURE"] = "false"
os.environ["REFRESH_COOKIE_SAMESITE"] = "lax"

import logging  # noqa: E402
from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402

from core.security import Hasher, Signer  # noqa: E402
from identity.lifecycle import IdentityLifecycle  # noqa: E402
from identity.memory import InMemoryDirectory  # noqa: E402
from identity.notifier import RetryingNotifier, RetryPolicy, linear_backoff  # noqa: E402
from identity.sessions import SessionManager  # noqa: E402

ACCESS_SECRET = os.environ["JWT_ACCESS_SECRET"]
REFRESH_SECRET = os.environ["JWT_REFRESH_SECRET"]

ACTIVATION_BASE = "http://api.test/auth/activate"
RESET_BASE = "http://client.test/reset-password"


class FakeNotifier:
    """Records every attempt; the first ``failures`` attempts raise."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.attempts = []
        self.delivered = []

    async def send(self, kind, address, link):
        self.attempts.append((kind, address, link))
        if len(self.attempts) <= self.failures:
            raise ConnectionError("mail gateway unreachable")
        self.delivered.append((kind, address, link))

    def last_token(self) -> str:
        """The opaque value at the end of the last delivered link."""
        return self.delivered[-1][2].rsplit("/", 1)[1]


class FakeSleep:
    def __init__(self) -> None:
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def authgate_logs(caplog):
    """caplog wired to the application logger (which does not propagate)."""
    app_logger = logging.getLogger("authgate")
    app_logger.addHandler(caplog.handler)
    caplog.set_level(logging.INFO, logger="authgate")
    yield caplog
    app_logger.removeHandler(caplog.handler)


@pytest.fixture
def directory():
    return InMemoryDirectory()


@pytest.fixture
def signer():
    return Signer(ACCESS_SECRET, REFRESH_SECRET)


@pytest.fixture
def hasher():
    return Hasher(rounds=1000)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def sleep():
    return FakeSleep()


@pytest.fixture
def make_lifecycle(directory, signer, hasher, sleep):
    """Build a lifecycle around *transport* (a FakeNotifier by default)."""

    def _make(transport=None, attempts: int = 2) -> IdentityLifecycle:
        sessions = SessionManager(
            directory,
            signer,
            access_ttl=timedelta(minutes=15),
            refresh_ttl=timedelta(days=30),
        )
        retrying = RetryingNotifier(
            transport if transport is not None else FakeNotifier(),
            RetryPolicy(attempts=attempts, backoff=linear_backoff(1.0)),
            sleep=sleep,
        )
        return IdentityLifecycle(
            directory,
            sessions,
            retrying,
            hasher,
            signer,
            activation_base_url=ACTIVATION_BASE,
            reset_base_url=RESET_BASE,
            notify_attempts=attempts,
        )

    return _make


@pytest.fixture
def lifecycle(make_lifecycle, notifier):
    return make_lifecycle(notifier)
