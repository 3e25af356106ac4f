# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Dict-backed directory.  Enforces the same uniqueness rules as the SQL schema
so that behaviour observed against it carries over.  Nothing is persisted;
use it for development (DIRECTORY_BACKEND=memory) and in tests.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Optional

from core.errors import DirectoryError, DuplicateEntryError
from identity.types import ResetTicket, Session, User


class InMemoryDirectory:
    def __init__(self) -> None:
        self.users: Dict[str, User] = {}
        self.sessions: Dict[str, Session] = {}          # user_id -> session
        self.reset_tickets: Dict[str, ResetTicket] = {}  # ticket  -> row

    # -- users -----------------------------------------------------------

    async def find_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_user_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def find_user_by_activation_link(self, activation_link: str) -> Optional[User]:
        return next(
            (u for u in self.users.values() if u.activation_link == activation_link),
            None,
        )

    async def create_user(self, email: str, password_hash: str, activation_link: str) -> User:
        if await self.find_user_by_email(email) is not None:
            raise DuplicateEntryError(f"email already registered: {email}")
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            activation_link=activation_link,
            is_activated=False,
            created_at=datetime.now(timezone.utc),
        )
        self.users[user.id] = user
        return user

    async def update_user(
        self,
        user_id: str,
        *,
        password_hash: Optional[str] = None,
        is_activated: Optional[bool] = None,
    ) -> None:
        user = self.users.get(user_id)
        if user is None:
            raise DirectoryError(f"no such user: {user_id}")
        changes = {}
        if password_hash is not None:
            changes["password_hash"] = password_hash
        if is_activated is not None:
            changes["is_activated"] = is_activated
        self.users[user_id] = replace(user, **changes)

    async def delete_user(self, user_id: str) -> None:
        self.users.pop(user_id, None)
        self.sessions.pop(user_id, None)
        for ticket in [t.ticket for t in self.reset_tickets.values() if t.user_id == user_id]:
            del self.reset_tickets[ticket]

    # -- sessions --------------------------------------------------------

    async def find_session_by_user(self, user_id: str) -> Optional[Session]:
        return self.sessions.get(user_id)

    async def find_session_by_token(self, refresh_token: str) -> Optional[Session]:
        return next(
            (s for s in self.sessions.values() if s.refresh_token == refresh_token),
            None,
        )

    def _check_token_free(self, user_id: str, refresh_token: str) -> None:
        holder = next((s for s in self.sessions.values() if s.refresh_token == refresh_token), None)
        if holder is not None and holder.user_id != user_id:
            raise DuplicateEntryError("refresh token already stored for another session")

    async def create_session(self, user_id: str, refresh_token: str) -> None:
        if user_id in self.sessions:
            raise DuplicateEntryError(f"session already exists for user {user_id}")
        self._check_token_free(user_id, refresh_token)
        self.sessions[user_id] = Session(user_id=user_id, refresh_token=refresh_token)

    async def update_session(self, user_id: str, refresh_token: str) -> None:
        if user_id not in self.sessions:
            raise DirectoryError(f"no session for user {user_id}")
        self._check_token_free(user_id, refresh_token)
        self.sessions[user_id] = Session(user_id=user_id, refresh_token=refresh_token)

    async def delete_session_by_token(self, refresh_token: str) -> None:
        session = await self.find_session_by_token(refresh_token)
        if session is not None:
            del self.sessions[session.user_id]

    async def delete_session_by_user(self, user_id: str) -> None:
        self.sessions.pop(user_id, None)

    # -- reset tickets ---------------------------------------------------

    async def create_reset_ticket(self, user_id: str, ticket: str) -> ResetTicket:
        if ticket in self.reset_tickets:
            raise DuplicateEntryError("reset ticket already exists")
        row = ResetTicket(user_id=user_id, ticket=ticket, created_at=datetime.now(timezone.utc))
        self.reset_tickets[ticket] = row
        return row

    async def find_reset_ticket(self, ticket: str) -> Optional[ResetTicket]:
        return self.reset_tickets.get(ticket)

    async def delete_reset_ticket(self, ticket: str) -> None:
        self.reset_tickets.pop(ticket, None)
