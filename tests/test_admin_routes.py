"""Tests for the admin console API."""

import pytest

from smileforward.core.auth import issue_staff_token
from smileforward.core.password import hash_password
from smileforward.persistence.models.audit_log import AuditLog
from smileforward.persistence.models.generation import Generation
from smileforward.persistence.models.lead import Lead
from smileforward.persistence.models.user import User


@pytest.fixture
def staff(seed_session):
    user = User(email="staff@clinic.es", hashed_password=hash_password("s3cret-pass"), is_active=True)
    seed_session.add(user)
    seed_session.commit()
    return user


@pytest.fixture
def auth_headers(staff):
    token = issue_staff_token(staff.id, staff.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def lead(seed_session):
    lead = Lead(name="Ana", email="ana@example.com", phone="+34 600 123 456", status="pending")
    seed_session.add(lead)
    seed_session.flush()
    seed_session.add(
        Generation(
            lead_id=lead.id,
            type="image",
            status="completed",
            output_path="smile_abc.png",
            metadata_={"public_url": "https://storage.googleapis.com/generated/smile_abc.png"},
        )
    )
    seed_session.commit()
    return lead


def audit_actions(seed_session) -> list[str]:
    seed_session.expire_all()
    return [log.action for log in seed_session.query(AuditLog).order_by(AuditLog.id)]


class TestAuth:
    def test_login_and_me(self, client, staff, seed_session):
        response = client.post("/api/v1/auth/login", json={"email": "Staff@Clinic.es", "password": "s3cret-pass"})

        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "staff@clinic.es"
        assert audit_actions(seed_session) == ["login"]

    def test_bad_password_is_audited(self, client, staff, seed_session):
        response = client.post("/api/v1/auth/login", json={"email": "staff@clinic.es", "password": "wrong"})

        assert response.status_code == 401
        assert audit_actions(seed_session) == ["login_failed"]

    def test_admin_requires_token(self, client):
        assert client.get("/api/v1/admin/leads").status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get("/api/v1/admin/leads", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401


class TestLeads:
    def test_list_with_total_and_filter(self, client, auth_headers, lead, seed_session):
        seed_session.add(Lead(name="Luis", email="luis@example.com", phone="+34600000001", status="converted"))
        seed_session.commit()

        everything = client.get("/api/v1/admin/leads", headers=auth_headers).json()
        converted = client.get("/api/v1/admin/leads?status=converted", headers=auth_headers).json()

        assert everything["total"] == 2
        assert converted["total"] == 1
        assert converted["leads"][0]["name"] == "Luis"

    def test_detail_includes_generations_and_whatsapp(self, client, auth_headers, lead):
        body = client.get(f"/api/v1/admin/leads/{lead.id}", headers=auth_headers).json()

        assert body["whatsapp_url"] == "https://wa.me/34600123456"
        assert body["generations"][0]["public_url"] == "https://storage.googleapis.com/generated/smile_abc.png"

    def test_detail_unknown(self, client, auth_headers):
        assert client.get("/api/v1/admin/leads/999", headers=auth_headers).status_code == 404

    def test_status_change_is_audited(self, client, auth_headers, lead, seed_session):
        response = client.patch(
            f"/api/v1/admin/leads/{lead.id}/status", json={"status": "contacted"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "contacted"
        seed_session.expire_all()
        log = seed_session.query(AuditLog).one()
        assert log.action == "lead_status_changed"
        assert log.details == {"from": "pending", "to": "contacted"}
        assert log.user_email == "staff@clinic.es"

    def test_invalid_status(self, client, auth_headers, lead):
        response = client.patch(
            f"/api/v1/admin/leads/{lead.id}/status", json={"status": "archived"}, headers=auth_headers
        )

        assert response.status_code == 400


class TestVideoAndReporting:
    def test_request_video(self, client, auth_headers, lead, seed_session):
        response = client.post(f"/api/v1/admin/leads/{lead.id}/video", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["operation_name"] == "models/veo/operations/op-1"
        assert audit_actions(seed_session) == ["video_generation_requested"]

    def test_dashboard(self, client, auth_headers, lead):
        stats = client.get("/api/v1/admin/dashboard", headers=auth_headers).json()

        assert stats["total_leads"] == 1
        assert stats["image_generations"] == 1
        assert len(stats["daily_generations"]) == 30

    def test_audit_logs(self, client, auth_headers, lead):
        client.patch(f"/api/v1/admin/leads/{lead.id}/status", json={"status": "rejected"}, headers=auth_headers)

        body = client.get("/api/v1/admin/audit-logs?resource_type=lead", headers=auth_headers).json()

        assert body["total"] == 1
        assert body["logs"][0]["resource_id"] == lead.id
