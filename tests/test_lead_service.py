"""Tests for lead capture and management."""

import pytest

from smileforward.domain.services.lead_service import LeadNotFoundError, LeadService
from smileforward.persistence.models.lead import LeadStatus
from smileforward.persistence.repositories.generation_repository import GenerationRepository
from smileforward.persistence.repositories.session_repository import SessionRepository


@pytest.fixture
def lead_service(db_session):
    return LeadService(db_session)


@pytest.fixture
async def image(db_session):
    return await GenerationRepository(db_session).create(
        type="image", status="completed", output_path="smile_abc.png",
        metadata_={"public_url": "https://storage.googleapis.com/generated/smile_abc.png"},
    )


class TestCreateLead:
    async def test_creates_pending_lead_and_links_generation(self, lead_service, image):
        lead = await lead_service.create_lead(
            name=" Ana ", email="Ana@Example.com", phone="+34 600 123 456", generation_id=image.id,
        )

        assert lead.status == LeadStatus.PENDING.value
        assert lead.name == "Ana"
        assert lead.email == "ana@example.com"

        loaded = await lead_service.get_lead(lead.id)
        assert [g.id for g in loaded.generations] == [image.id]

    async def test_saves_session_history(self, db_session, lead_service, image):
        lead = await lead_service.create_lead(
            name="Ana", email="ana@example.com", phone="+34600123456",
            generation_id=image.id,
            session_id="0b8e7a4e-0000-4000-8000-000000000001",
            original_image_url="3f1c.jpg",
            analysis={"variations": []},
            results=[{"type": "image", "url": "https://example/img.png"}],
        )

        session = await SessionRepository(db_session).get_latest_for_lead(lead.id)
        assert session.id == "0b8e7a4e-0000-4000-8000-000000000001"
        assert session.original_image_url == "3f1c.jpg"
        assert session.results == [{"type": "image", "url": "https://example/img.png"}]

    async def test_resubmission_returns_the_captured_lead(self, db_session, lead_service, image):
        form = dict(
            name="Ana", email="ana@example.com", phone="+34600123456",
            generation_id=image.id,
            session_id="0b8e7a4e-0000-4000-8000-000000000002",
            analysis={"variations": []},
            results=[{"type": "image", "url": "https://example/img.png"}],
        )

        first = await lead_service.create_lead(**form)
        second = await lead_service.create_lead(**form)

        assert second.id == first.id
        assert [g.id for g in second.generations] == [image.id]
        assert await lead_service.count_leads() == 1
        session = await SessionRepository(db_session).get_latest_for_lead(first.id)
        assert session.id == "0b8e7a4e-0000-4000-8000-000000000002"

    async def test_resubmission_for_owned_generation_updates_contact(self, lead_service, image):
        first = await lead_service.create_lead("Ana", "ana@example.com", "+34600123456", generation_id=image.id)
        second = await lead_service.create_lead("Ana Ruiz", "ana.ruiz@example.com", "+34600000001", generation_id=image.id)

        assert second.id == first.id
        assert second.name == "Ana Ruiz"
        assert second.email == "ana.ruiz@example.com"
        assert [g.id for g in second.generations] == [image.id]
        assert await lead_service.count_leads() == 1

    async def test_generation_owned_by_other_lead_is_not_relinked(self, lead_service, image):
        owner = await lead_service.create_lead("Ana", "ana@example.com", "+34600123456", generation_id=image.id)
        other = await lead_service.create_lead("Luis", "luis@example.com", "+34600000001")

        assert await lead_service.link_generation(other.id, image.id) is False
        assert [g.id for g in (await lead_service.get_lead(owner.id)).generations] == [image.id]

    async def test_missing_generation_does_not_fail(self, lead_service):
        lead = await lead_service.create_lead("Ana", "ana@example.com", "+34600123456", generation_id=404)

        assert lead.id is not None


class TestUpdates:
    async def test_update_survey_merges(self, lead_service):
        lead = await lead_service.create_lead("Ana", "ana@example.com", "+34600123456")

        await lead_service.update_survey(lead.id, {"ageRange": "18-30"})
        updated = await lead_service.update_survey(lead.id, {"improvement": "color"})

        assert updated.survey_data == {"ageRange": "18-30", "improvement": "color"}

    async def test_update_survey_unknown_lead(self, lead_service):
        with pytest.raises(LeadNotFoundError):
            await lead_service.update_survey(999, {"ageRange": "55+"})

    async def test_update_status(self, lead_service):
        lead = await lead_service.create_lead("Ana", "ana@example.com", "+34600123456")

        updated = await lead_service.update_status(lead.id, "contacted")

        assert updated.status == LeadStatus.CONTACTED.value

    async def test_update_status_rejects_unknown_value(self, lead_service):
        lead = await lead_service.create_lead("Ana", "ana@example.com", "+34600123456")

        with pytest.raises(ValueError):
            await lead_service.update_status(lead.id, "archived")

    async def test_update_status_unknown_lead(self, lead_service):
        with pytest.raises(LeadNotFoundError):
            await lead_service.update_status(999, "contacted")


class TestListing:
    async def test_list_and_count_by_status(self, lead_service):
        a = await lead_service.create_lead("Ana", "ana@example.com", "+34600123456")
        await lead_service.create_lead("Luis", "luis@example.com", "+34600000001")
        await lead_service.update_status(a.id, "converted")

        assert await lead_service.count_leads() == 2
        assert await lead_service.count_leads(status="converted") == 1
        converted = await lead_service.list_leads(status="converted")
        assert [lead.id for lead in converted] == [a.id]
