"""Tests for the public lead endpoints."""

from smileforward.persistence.models.generation import Generation
from smileforward.persistence.models.lead import Lead
from smileforward.persistence.models.session import SmileSession


def lead_payload(**overrides):
    payload = {"name": "Ana", "email": "ana@example.com", "phone": "+34 600 123 456"}
    payload.update(overrides)
    return payload


class TestCreateLead:
    def test_creates_lead_and_links_generation(self, client, seed_session):
        generation = Generation(type="image", status="completed", output_path="smile_abc.png", metadata_={})
        seed_session.add(generation)
        seed_session.commit()

        response = client.post(
            "/api/v1/leads",
            json=lead_payload(
                generation_id=generation.id,
                session_id="0b8e7a4e-0000-4000-8000-000000000001",
                analysis={"variations": []},
                results=[{"type": "image", "url": "https://example/img.png"}],
            ),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "pending"

        seed_session.expire_all()
        assert seed_session.get(Generation, generation.id).lead_id == body["data"]["id"]
        saved = seed_session.get(SmileSession, "0b8e7a4e-0000-4000-8000-000000000001")
        assert saved.lead_id == body["data"]["id"]

    def test_invalid_email(self, client):
        response = client.post("/api/v1/leads", json=lead_payload(email="not-an-email"))

        assert response.status_code == 422

    def test_invalid_phone(self, client):
        response = client.post("/api/v1/leads", json=lead_payload(phone="12"))

        assert response.status_code == 422

    def test_missing_name(self, client):
        response = client.post("/api/v1/leads", json=lead_payload(name=""))

        assert response.status_code == 422


class TestSurvey:
    def test_survey_is_merged_into_lead(self, client, seed_session):
        lead = Lead(name="Ana", email="ana@example.com", phone="+34600123456", status="pending")
        seed_session.add(lead)
        seed_session.commit()

        response = client.post(
            f"/api/v1/leads/{lead.id}/survey",
            json={"ageRange": "18-30", "improvement": "alignment", "budget": "mid"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["survey_data"] == {
            "ageRange": "18-30",
            "improvement": "alignment",
            "budget": "mid",
        }

    def test_unknown_lead(self, client):
        response = client.post("/api/v1/leads/999/survey", json={"ageRange": "55+"})

        assert response.status_code == 404
