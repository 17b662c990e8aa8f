"""
Tests for the HTTP drift endpoint and the startup verification.
"""
import pytest
from unittest.mock import patch
from fastapi import FastAPI
from fastapi.testclient import TestClient
from conftest import make_database, tracking_row
from driftwatch.app import create_app
from driftwatch.core.migrations.errors import ConfigurationError
from driftwatch.modules.system_endpoints import get_settings_loader, router

DATABASE_PATCH = "driftwatch.services.database.connection_manager.Database"


def test_startup_records_outcome_and_endpoint_reports_drift(settings):
    database = make_database(rows=[tracking_row(1), tracking_row(2)])
    with patch(DATABASE_PATCH, return_value=database):
        with TestClient(create_app(settings)) as client:
            assert client.app.state.startup_outcome.status.value == "drift"

            response = client.get("/api/system/migrations/drift")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "drift"
    assert body["report"]["missing"] == ["003_gamification"]
    assert body["exit_code"] == 1


def test_missing_tracking_table_is_a_valid_answer(settings):
    with patch(DATABASE_PATCH, return_value=make_database(table_exists=False)):
        with TestClient(create_app(settings)) as client:
            response = client.get("/api/system/migrations/drift")

    assert response.status_code == 200
    assert response.json()["status"] == "no_tracking_table"


def test_unreachable_database_returns_503(settings):
    database = make_database()
    database.connect.side_effect = ConnectionRefusedError("refused")
    with patch(DATABASE_PATCH, return_value=database):
        with TestClient(create_app(settings)) as client:
            response = client.get("/api/system/migrations/drift")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "error"
    assert body["report"] is None
    assert body["error_type"] == "MigrationConnectionError"


def test_fail_on_drift_refuses_to_start(settings):
    strict = settings.with_overrides(fail_on_drift=True)
    with patch(DATABASE_PATCH, return_value=make_database(rows=[tracking_row(1)])):
        with pytest.raises(RuntimeError, match="Startup migration check failed"):
            with TestClient(create_app(strict)):
                pass


def test_root(settings):
    database = make_database(rows=[tracking_row(1), tracking_row(2), tracking_row(3)])
    with patch(DATABASE_PATCH, return_value=database):
        with TestClient(create_app(settings)) as client:
            assert client.get("/").json() == {"status": "online", "system": "driftwatch"}


def test_read_failure_returns_503_with_body(settings):
    database = make_database()
    database.fetch_all.side_effect = ConnectionResetError("connection reset by peer")
    with patch(DATABASE_PATCH, return_value=database):
        with TestClient(create_app(settings)) as client:
            response = client.get("/api/system/migrations/drift")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "error"
    assert body["report"] is None
    assert body["error_type"] == "MigrationConnectionError"


def test_unconfigured_endpoint_returns_503_with_body():
    def unconfigured():
        raise ConfigurationError("DATABASE_URL must be set")

    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_settings_loader] = lambda: unconfigured

    response = TestClient(app).get("/api/system/migrations/drift")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "error"
    assert body["error_type"] == "ConfigurationError"
    assert body["target"] == "unconfigured"


def test_unconfigured_startup_records_error_outcome(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in ("DATABASE_URL", "PGHOST", "DRIFTWATCH_FAIL_ON_DRIFT"):
        monkeypatch.delenv(key, raising=False)

    with TestClient(create_app()) as client:
        outcome = client.app.state.startup_outcome

    assert outcome.status.value == "error"
    assert outcome.error_type == "ConfigurationError"
    assert outcome.exit_code == 4


def test_unconfigured_startup_refuses_to_start_when_strict(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in ("DATABASE_URL", "PGHOST"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DRIFTWATCH_FAIL_ON_DRIFT", "true")

    with pytest.raises(RuntimeError, match="Startup migration check failed"):
        with TestClient(create_app()):
            pass
