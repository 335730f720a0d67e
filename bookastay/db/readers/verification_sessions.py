from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from bookastay.models.verification_sessions import VerificationSession


def get_verification_session(conn: Connection, reference: str) -> Optional[dict[str, Any]]:
    """
    Fetch a pre-booking verification session.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        reference (str): Shufti Pro reference ("verify_...").

    Returns:
        Optional[dict]: Session columns, or None if unknown.
    """
    stmt = select(VerificationSession.__table__).where(
        VerificationSession.reference == reference
    )
    row = conn.execute(stmt).mappings().first()
    return dict(row) if row else None
