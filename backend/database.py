# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy declarative base and the session-factory builder used by the SQL
directory.  The engine is created by the process entry point, not at import.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_session_factory(database_url: str, **engine_kwargs) -> sessionmaker:
    """
    Build an engine for *database_url* and return a session factory bound to
    it.  Extra keyword arguments are passed through to ``create_engine``.
    """
    if database_url.startswith("sqlite"):
        # Sessions are opened from the thread pool, not the creating thread
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
    # pool_pre_ping keeps idle connections alive across MySQL's wait_timeout
    engine = create_engine(database_url, pool_pre_ping=True, **engine_kwargs)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
