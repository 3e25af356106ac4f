# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy-backed directory.

Every method opens its own short-lived ORM session, runs one unit of work,
commits, and closes.  The blocking driver calls happen in Starlette's thread
pool so that an awaiting request never stalls the event loop.

Uniqueness (email, one session per user, ticket value) is enforced by the
schema; a violation surfaces as :class:`DuplicateEntryError`.
"""

from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DbSession, sessionmaker
from starlette.concurrency import run_in_threadpool

from core.errors import DirectoryError, DuplicateEntryError
from identity.types import ResetTicket, Session, User
from models.reset_ticket import ResetTicket as ResetTicketRow
from models.session import UserSession
from models.user import User as UserRow

T = TypeVar("T")


def _user(row: Optional[UserRow]) -> Optional[User]:
    if row is None:
        return None
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        activation_link=row.activation_link,
        is_activated=row.is_activated,
        created_at=row.created_at,
    )


def _session(row: Optional[UserSession]) -> Optional[Session]:
    if row is None:
        return None
    return Session(user_id=row.user_id, refresh_token=row.refresh_token)


def _ticket(row: Optional[ResetTicketRow]) -> Optional[ResetTicket]:
    if row is None:
        return None
    return ResetTicket(user_id=row.user_id, ticket=row.ticket, created_at=row.created_at)


class SqlDirectory:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    # -- unit-of-work plumbing -------------------------------------------

    def _unit(self, work: Callable[[DbSession], T]) -> T:
        db = self._session_factory()
        try:
            result = work(db)
            db.commit()
            return result
        except IntegrityError as exc:
            db.rollback()
            raise DuplicateEntryError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise DirectoryError(str(exc)) from exc
        finally:
            db.close()

    async def _run(self, work: Callable[[DbSession], T]) -> T:
        return await run_in_threadpool(self._unit, work)

    # -- users -----------------------------------------------------------

    async def find_user_by_email(self, email: str) -> Optional[User]:
        return await self._run(
            lambda db: _user(db.query(UserRow).filter(UserRow.email == email).first())
        )

    async def find_user_by_id(self, user_id: str) -> Optional[User]:
        return await self._run(
            lambda db: _user(db.query(UserRow).filter(UserRow.id == user_id).first())
        )

    async def find_user_by_activation_link(self, activation_link: str) -> Optional[User]:
        return await self._run(
            lambda db: _user(
                db.query(UserRow).filter(UserRow.activation_link == activation_link).first()
            )
        )

    async def create_user(self, email: str, password_hash: str, activation_link: str) -> User:
        def work(db: DbSession) -> User:
            row = UserRow(
                email=email,
                password_hash=password_hash,
                activation_link=activation_link,
                is_activated=False,
            )
            db.add(row)
            db.flush()
            db.refresh(row)  # pick up server-side created_at
            return _user(row)

        return await self._run(work)

    async def update_user(
        self,
        user_id: str,
        *,
        password_hash: Optional[str] = None,
        is_activated: Optional[bool] = None,
    ) -> None:
        def work(db: DbSession) -> None:
            row = db.query(UserRow).filter(UserRow.id == user_id).first()
            if row is None:
                raise DirectoryError(f"no such user: {user_id}")
            if password_hash is not None:
                row.password_hash = password_hash
            if is_activated is not None:
                row.is_activated = is_activated

        await self._run(work)

    async def delete_user(self, user_id: str) -> None:
        # Dependent rows go explicitly: SQLite does not enforce ON DELETE CASCADE
        def work(db: DbSession) -> None:
            db.query(UserSession).filter(UserSession.user_id == user_id).delete()
            db.query(ResetTicketRow).filter(ResetTicketRow.user_id == user_id).delete()
            db.query(UserRow).filter(UserRow.id == user_id).delete()

        await self._run(work)

    # -- sessions --------------------------------------------------------

    async def find_session_by_user(self, user_id: str) -> Optional[Session]:
        return await self._run(
            lambda db: _session(
                db.query(UserSession).filter(UserSession.user_id == user_id).first()
            )
        )

    async def find_session_by_token(self, refresh_token: str) -> Optional[Session]:
        return await self._run(
            lambda db: _session(
                db.query(UserSession).filter(UserSession.refresh_token == refresh_token).first()
            )
        )

    async def create_session(self, user_id: str, refresh_token: str) -> None:
        await self._run(
            lambda db: db.add(UserSession(user_id=user_id, refresh_token=refresh_token))
        )

    async def update_session(self, user_id: str, refresh_token: str) -> None:
        def work(db: DbSession) -> None:
            updated = (
                db.query(UserSession)
                .filter(UserSession.user_id == user_id)
                .update({UserSession.refresh_token: refresh_token})
            )
            if not updated:
                raise DirectoryError(f"no session for user {user_id}")

        await self._run(work)

    async def delete_session_by_token(self, refresh_token: str) -> None:
        await self._run(
            lambda db: db.query(UserSession)
            .filter(UserSession.refresh_token == refresh_token)
            .delete()
        )

    async def delete_session_by_user(self, user_id: str) -> None:
        await self._run(
            lambda db: db.query(UserSession).filter(UserSession.user_id == user_id).delete()
        )

    # -- reset tickets ---------------------------------------------------

    async def create_reset_ticket(self, user_id: str, ticket: str) -> ResetTicket:
        def work(db: DbSession) -> ResetTicket:
            row = ResetTicketRow(user_id=user_id, ticket=ticket)
            db.add(row)
            db.flush()
            db.refresh(row)
            return _ticket(row)

        return await self._run(work)

    async def find_reset_ticket(self, ticket: str) -> Optional[ResetTicket]:
        return await self._run(
            lambda db: _ticket(
                db.query(ResetTicketRow).filter(ResetTicketRow.ticket == ticket).first()
            )
        )

    async def delete_reset_ticket(self, ticket: str) -> None:
        await self._run(
            lambda db: db.query(ResetTicketRow).filter(ResetTicketRow.ticket == ticket).delete()
        )
