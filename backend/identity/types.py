# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""Plain value types passed between the directory and the identity services."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class User:
    id: str
    email: str
    password_hash: str
    activation_link: Optional[str]
    is_activated: bool
    created_at: datetime


@dataclass(frozen=True)
class Session:
    user_id: str
    refresh_token: str


@dataclass(frozen=True)
class ResetTicket:
    user_id: str
    ticket: str
    created_at: datetime


@dataclass(frozen=True)
class UserSummary:
    """The public identity embedded in tokens and returned to clients."""

    id: str
    email: str

    @classmethod
    def of(cls, user: User) -> "UserSummary":
        return cls(id=user.id, email=user.email)

    def as_claims(self) -> dict:
        return {"id": self.id, "email": self.email}


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AuthSession:
    """What login, registration and refresh hand back."""

    tokens: TokenPair
    user: UserSummary


class NotificationKind(str, Enum):
    ACTIVATION = "activation"
    RESET = "reset"
