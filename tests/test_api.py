# =============================================================================
# tests/test_api.py - HTTP API Tests
# =============================================================================
# Exercises the FastAPI routes with TestClient. Authentication is replaced
# by a dependency override except in TestAuth, which signs real HS256
# tokens.
# =============================================================================

import time
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.auth import AuthUser, get_current_user
from app.config import settings
from app.main import app

STAFF_ID = uuid4()


@pytest.fixture
def client(fake_db):
    app.dependency_overrides[get_current_user] = lambda: AuthUser(id=STAFF_ID, email="owner@talo.studio")
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Auth
# =============================================================================

class TestAuth:
    """Token verification with the legacy HS256 secret."""

    SECRET = "test-jwt-secret-with-enough-length"

    def _token(self, **claims):
        payload = {
            "sub": str(STAFF_ID),
            "email": "owner@talo.studio",
            "role": "authenticated",
            "aud": "authenticated",
            "exp": int(time.time()) + 3600,
            **claims,
        }
        return jwt.encode(payload, self.SECRET, algorithm="HS256")

    def test_valid_token(self, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", self.SECRET)

        response = TestClient(app).get(
            "/api/v1/auth/verify",
            headers={"Authorization": f"Bearer {self._token()}"},
        )

        assert response.status_code == 200
        assert response.json()["user_id"] == str(STAFF_ID)
        assert response.json()["valid"] is True

    def test_expired_token(self, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", self.SECRET)

        response = TestClient(app).get(
            "/api/v1/auth/verify",
            headers={"Authorization": f"Bearer {self._token(exp=int(time.time()) - 60)}"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"

    def test_wrong_audience(self, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", self.SECRET)

        response = TestClient(app).get(
            "/api/v1/auth/verify",
            headers={"Authorization": f"Bearer {self._token(aud='anon')}"},
        )

        assert response.status_code == 401

    def test_missing_token(self):
        response = TestClient(app).get("/api/v1/fred/metrics")
        assert response.status_code in (401, 403)


# =============================================================================
# Routes
# =============================================================================

class TestHealth:
    """Tests for unauthenticated health endpoints."""

    def test_health(self, client):
        body = client.get("/api/v1/health").json()
        assert body["status"] == "healthy"
        assert body["version"] == "1.0.0"

    def test_live(self, client):
        assert client.get("/api/v1/health/live").json()["status"] == "alive"


class TestImportRoutes:
    """Tests for /api/v1/imports."""

    def test_validate(self, client, client_list_csv, attendance_csv):
        response = client.post("/api/v1/imports/validate", json={
            "client_list_content": client_list_csv,
            "client_attendance_content": attendance_csv,
        })

        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_validate_missing_content(self, client):
        response = client.post("/api/v1/imports/validate", json={"client_list_content": "a,b\n1,2\n"})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "MISSING_CSV_CONTENT"
        assert body["valid"] is False

    def test_import_upload(self, client, fake_db, client_list_csv, attendance_csv):
        response = client.post(
            "/api/v1/imports/arketa",
            files={
                "client_list": ("clients.csv", client_list_csv.encode("utf-8"), "text/csv"),
                "client_attendance": ("attendance.csv", attendance_csv.encode("utf-8"), "text/csv"),
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["new_customers"] == 3
        assert fake_db.rows("csv_imports")[0]["filename"] == "clients.csv, attendance.csv"

        listing = client.get("/api/v1/imports", params={"limit": 5}).json()
        assert listing["count"] == 1
        assert listing["imports"][0]["status"] == "completed"

    def test_import_requires_both_files(self, client, client_list_csv):
        response = client.post(
            "/api/v1/imports/arketa",
            files={"client_list": ("clients.csv", client_list_csv.encode("utf-8"), "text/csv")},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["errors"] == ["Both client_list and client_attendance CSV files are required"]


class TestSegmentRoutes:
    """Tests for /api/v1/segments."""

    def test_calculate(self, client, fake_db):
        fake_db.add_row("customers", {"id": 5, "status": "membership"})

        response = client.post("/api/v1/segments/calculate", json={"customer_id": 5})

        assert response.status_code == 200
        assert response.json()["segment_type"] == "membership"

    def test_calculate_missing_customer(self, client):
        response = client.post("/api/v1/segments/calculate", json={"customer_id": 404})

        assert response.status_code == 404
        assert response.json()["code"] == "CUSTOMER_NOT_FOUND"

    def test_snapshot_and_changes(self, client, fake_db):
        fake_db.add_row("customers", {"id": 5, "status": "prospect"})

        snapshot = client.post("/api/v1/segments/snapshots", json={"source": "manual_trigger"}).json()
        fake_db.add_row("customers", {"id": 6, "status": "prospect"})

        fetched = client.get(f"/api/v1/segments/snapshots/{snapshot['snapshot_id']}")
        assert fetched.status_code == 200

        changes = client.post("/api/v1/segments/changes", json={"snapshot_id": snapshot["snapshot_id"]}).json()
        assert changes["change_summary"] == {"new_customer": 1}

    def test_changes_unknown_snapshot(self, client):
        response = client.post("/api/v1/segments/changes", json={"snapshot_id": "missing"})
        assert response.status_code == 404


class TestFredRoutes:
    """Tests for /api/v1/fred."""

    def test_metric_catalogue(self, client):
        metrics = client.get("/api/v1/fred/metrics").json()
        assert any(m["name"] == "about_to_churn" for m in metrics)

    def test_empty_question(self, client):
        response = client.post("/api/v1/fred/ask", json={"question": ""})

        assert response.status_code == 400
        assert response.json()["code"] == "EMPTY_QUESTION"


class TestDashboardRoutes:
    """Tests for dashboard and settings endpoints."""

    def test_intro_duration_default(self, client):
        assert client.get("/api/v1/settings/intro-duration").json() == {"days": 14}

    def test_dashboard_metrics(self, client, fake_db, customer_rows):
        for row in customer_rows:
            fake_db.add_row("customers", row)

        body = client.get("/api/v1/dashboard/metrics").json()

        assert body["active_customers"] == 3
        assert body["revenue_this_month"] is None
        assert body["executive_kpis"] is not None
