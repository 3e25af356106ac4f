# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
The storage interface the identity services depend on.

Implementations
---------------
* :class:`identity.sql_directory.SqlDirectory`  – SQLAlchemy (production)
* :class:`identity.memory.InMemoryDirectory`    – dicts (development, tests)

Contract
--------
* ``find_*`` return ``None`` for a missing row; any other failure raises.
* Writes raise :class:`core.errors.DuplicateEntryError` on a uniqueness
  violation (email, session per user, reset ticket) and
  :class:`core.errors.DirectoryError` for anything else.
* Deletes of a missing row are no-ops.
"""

from typing import Optional, Protocol

from identity.types import ResetTicket, Session, User


class Directory(Protocol):
    # -- users -----------------------------------------------------------

    async def find_user_by_email(self, email: str) -> Optional[User]: ...

    async def find_user_by_id(self, user_id: str) -> Optional[User]: ...

    async def find_user_by_activation_link(self, activation_link: str) -> Optional[User]: ...

    async def create_user(self, email: str, password_hash: str, activation_link: str) -> User: ...

    async def update_user(
        self,
        user_id: str,
        *,
        password_hash: Optional[str] = None,
        is_activated: Optional[bool] = None,
    ) -> None: ...

    async def delete_user(self, user_id: str) -> None: ...

    # -- sessions --------------------------------------------------------

    async def find_session_by_user(self, user_id: str) -> Optional[Session]: ...

    async def find_session_by_token(self, refresh_token: str) -> Optional[Session]: ...

    async def create_session(self, user_id: str, refresh_token: str) -> None: ...

    async def update_session(self, user_id: str, refresh_token: str) -> None: ...

    async def delete_session_by_token(self, refresh_token: str) -> None: ...

    async def delete_session_by_user(self, user_id: str) -> None: ...

    # -- reset tickets ---------------------------------------------------

    async def create_reset_ticket(self, user_id: str, ticket: str) -> ResetTicket: ...

    async def find_reset_ticket(self, ticket: str) -> Optional[ResetTicket]: ...

    async def delete_reset_ticket(self, ticket: str) -> None: ...
