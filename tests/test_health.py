# tests/test_health.py
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError


def test_root_responds(client: TestClient) -> None:
    """Verify that the root endpoint describes the service."""
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["name"] == "Puzzle Gate"


def test_health_reports_database(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["database"] == "healthy"


def test_health_degrades_when_database_fails(client: TestClient, db_session, mocker) -> None:
    mocker.patch.object(
        db_session, "execute", side_effect=OperationalError("SELECT 1", {}, Exception("down"))
    )
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "degraded", "database": "unhealthy", "version": "0.1.0"}


def test_responses_carry_request_id(client: TestClient) -> None:
    r = client.get("/", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"


def test_unhandled_errors_are_localized_500(client: TestClient, db_session, mocker) -> None:
    mocker.patch(
        "puzzle_gate.api.v1.endpoints.minigames.QrAccessValidator.validate_and_consume",
        side_effect=RuntimeError("boom"),
    )
    with TestClient(client.app, raise_server_exceptions=False) as plain:
        r = plain.get(
            "/api/v1/minigames/access",
            params={"game": 1, "token": "x"},
            headers={"Accept-Language": "en"},
        )
    assert r.status_code == 500
    assert r.json()["detail"] == "Server error, please try again"
    assert "error" not in r.json()
