from typing import Any

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from bookastay.metrics import db_operations
from bookastay.models.verification_sessions import VerificationSession
from bookastay.utils.datetime import utc_now


def insert_verification_session(conn: Connection, row: dict[str, Any]) -> None:
    now = utc_now()
    conn.execute(
        insert(VerificationSession).values({"created_at": now, "updated_at": now, **row})
    )
    db_operations.labels(operation="insert", table="verification_sessions").inc()


def update_verification_session(conn: Connection, reference: str, values: dict[str, Any]) -> int:
    """
    Update a verification session by reference.

    Args:
        conn: Active connection inside a transaction
        reference: Session reference
        values: Columns to set

    Returns:
        int: Rows updated (0 when the reference is unknown)
    """
    result = conn.execute(
        update(VerificationSession)
        .where(VerificationSession.reference == reference)
        .values(**values, updated_at=utc_now())
    )
    db_operations.labels(operation="update", table="verification_sessions").inc()
    return result.rowcount
