"""
FastAPI dependency injection providers.

Routes receive the database engine, the gateway collaborators and the admin
check through ``Depends``, so tests can swap any of them with
``app.dependency_overrides``.
"""

from __future__ import annotations

import hmac
from typing import Generator, Optional

from fastapi import Header, HTTPException, Request, status
from sqlalchemy.engine import Engine

from bookastay.config import ADMIN_API_KEY
from bookastay.db.engine import engine
from bookastay.services.collaborators import Collaborators, build_collaborators


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: sqlite_engine
        >>> client = TestClient(app)
    """
    yield engine


def get_collaborators(request: Request) -> Collaborators:
    """
    Gateway clients built at startup and kept on ``app.state``.

    Built on first use when the startup hook has not run (e.g. a bare TestClient).
    """
    collaborators = getattr(request.app.state, "collaborators", None)
    if collaborators is None:
        collaborators = build_collaborators()
        request.app.state.collaborators = collaborators
    return collaborators


def require_admin(x_admin_key: Optional[str] = Header(None)) -> None:
    """
    Reject requests whose ``X-Admin-Key`` header does not match ADMIN_API_KEY.

    Raises:
        HTTPException: 503 when no admin key is configured, 401 on a missing or wrong key
    """
    if not ADMIN_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API is not configured",
        )
    if not x_admin_key or not hmac.compare_digest(x_admin_key, ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
        )
