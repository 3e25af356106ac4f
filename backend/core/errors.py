# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Exceptions raised by the leaf components (signer, notifier, directory).

These never reach an HTTP client directly: the identity lifecycle turns the
expected ones into ``Result`` failures, anything else surfaces as a 500.
"""

from typing import Optional


class ConfigError(RuntimeError):
    """Required configuration is missing.  Fatal – raised at startup."""


class InvalidTokenError(Exception):
    """A token failed signature, format, expiry or kind verification."""


class DeliveryError(Exception):
    """A notification could not be delivered after every attempt."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.last_error = last_error


class DirectoryError(Exception):
    """The directory backend failed to complete an operation."""


class DuplicateEntryError(DirectoryError):
    """A write violated a uniqueness constraint (email, session, ticket)."""
