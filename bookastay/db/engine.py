"""
SQLAlchemy engine singleton for the booking store.

One engine is created per process and shared by the API, the scheduler thread
and the one-shot sync entrypoint. Services never import it directly: they take
an ``Engine`` argument so tests can hand them an in-memory database instead.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from bookastay.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")

engine: Engine = create_engine(
    DATABASE_URL,
    future=True,
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,  # calendar sync runs every 10 minutes; connections go stale in between
    pool_recycle=3600,
    echo=False,
)


def check_engine_health(db_engine: Engine = engine) -> bool:
    """
    Check that the booking store accepts connections.

    Used by the /ready probe.

    Args:
        db_engine: Engine to probe (defaults to the process engine)

    Returns:
        bool: True if a trivial query succeeds, False otherwise
    """
    try:
        with db_engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
