# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""User ORM model."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.dialects import mysql
from sqlalchemy.sql import func

from database import Base

EMAIL_TYPE = String(255).with_variant(mysql.VARCHAR(255, collation="utf8mb4_bin"), "mysql")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Unique at the DB level: two concurrent registrations cannot both insert.
    # Compared case-sensitively; MySQL needs a binary collation for that.
    email = Column(EMAIL_TYPE, unique=True, nullable=False, index=True)
    # passlib hash string, salt embedded
    password_hash = Column(String(255), nullable=False)
    activation_link = Column(String(64), unique=True, nullable=True, index=True)
    is_activated = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
