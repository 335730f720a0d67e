"""
Unit tests for FastAPI dependency injection.
"""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from bookastay.dependencies import get_collaborators, get_db_engine, require_admin
from bookastay.services.collaborators import Collaborators


@pytest.mark.unit
def test_get_db_engine_dependency() -> None:
    """Test that get_db_engine returns the engine instance."""
    engine = next(get_db_engine())

    assert isinstance(engine, Engine)


@pytest.mark.unit
def test_dependency_injection_provides_same_engine() -> None:
    """Test that multiple calls get the same engine instance."""
    assert next(get_db_engine()) is next(get_db_engine())


@pytest.mark.unit
def test_dependency_injection_can_be_overridden() -> None:
    """Test that dependency can be overridden for testing."""
    app = FastAPI()

    @app.get("/test")
    def test_endpoint(engine: Engine = Depends(get_db_engine)) -> dict[str, str]:
        return {"engine_name": engine.name}

    mock_engine = Mock(spec=Engine)
    mock_engine.name = "mock_engine"
    app.dependency_overrides[get_db_engine] = lambda: mock_engine

    response = TestClient(app).get("/test")

    assert response.json() == {"engine_name": "mock_engine"}


@pytest.mark.unit
@patch("bookastay.dependencies.build_collaborators")
def test_collaborators_are_built_once_and_kept_on_app_state(mock_build: Mock) -> None:
    mock_build.return_value = Mock(spec=Collaborators)
    app = FastAPI()

    @app.get("/test")
    def test_endpoint(collaborators: Collaborators = Depends(get_collaborators)) -> dict[str, int]:
        return {"id": id(collaborators)}

    client = TestClient(app)
    first = client.get("/test").json()
    second = client.get("/test").json()

    assert first == second
    mock_build.assert_called_once()
    assert app.state.collaborators is mock_build.return_value


@pytest.mark.unit
def test_require_admin() -> None:
    with patch("bookastay.dependencies.ADMIN_API_KEY", "secret"):
        require_admin("secret")
        with pytest.raises(HTTPException) as wrong:
            require_admin("guess")
        with pytest.raises(HTTPException) as missing:
            require_admin(None)

    with patch("bookastay.dependencies.ADMIN_API_KEY", None):
        with pytest.raises(HTTPException) as unconfigured:
            require_admin("secret")

    assert wrong.value.status_code == 401
    assert missing.value.status_code == 401
    assert unconfigured.value.status_code == 503
