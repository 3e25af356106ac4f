# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""Refresh-session ORM model – one row per user, holding the live refresh token."""

from sqlalchemy import Column, ForeignKey, Integer, String

from database import Base


class UserSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # unique=True enforces "at most one session per user"
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    refresh_token = Column(String(512), nullable=False, unique=True, index=True)
