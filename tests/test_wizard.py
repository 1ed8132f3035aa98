"""Tests for the wizard controller."""

import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from smileforward.widget.client import ApiResult, LeadForm, SurveyForm, WidgetApiClient
from smileforward.widget.config import WidgetConfig
from smileforward.widget.media import MediaError
from smileforward.widget.wizard import (
    InvalidTransition,
    ProcessingPhase,
    WizardController,
    WizardStep,
    select_prompt_options,
)

IMAGE_URI = "data:image/jpeg;base64,AAAA"
GENERATED_URL = "https://example/img.png"

PLAN = {
    "variations": [
        {
            "type": "original_bg",
            "prompt_data": {"Subject": "Same person", "Editing_Instructions": "Align incisal plane"},
        }
    ]
}


def ok(data=None, raw=None) -> ApiResult:
    return ApiResult(success=True, data=data, raw=raw or {})


def fail(message: str) -> ApiResult:
    return ApiResult(success=False, error=message)


@pytest.fixture
def api():
    """Widget API client whose calls all succeed."""
    api = MagicMock(spec=WidgetApiClient)
    api.validate_face = AsyncMock(return_value=ok({"is_valid": True, "rejection_reason": ""}))
    api.upload_photo = AsyncMock(return_value=ok({"path": "3f1c.jpg"}))
    api.analyze_face = AsyncMock(return_value=ok(PLAN))
    api.generate_smile = AsyncMock(
        return_value=ok(GENERATED_URL, raw={"success": True, "public_url": GENERATED_URL, "generation_id": 11})
    )
    api.submit_lead = AsyncMock(return_value=ok({"id": 5, "name": "Ana"}))
    api.submit_survey = AsyncMock(return_value=ok({"id": 5}))
    return api


@pytest.fixture
def config():
    return WidgetConfig(base_url="http://test", clinic_whatsapp_number="+34 600 123 456")


@pytest.fixture
def recorder():
    """Collects on_change steps and toasts."""

    class Recorder:
        def __init__(self):
            self.steps = []
            self.phases = []
            self.toasts = []

        def on_change(self, session):
            self.steps.append(session.step)
            self.phases.append(session.phase)

        def on_toast(self, level, message):
            self.toasts.append((level, message))

    return Recorder()


@pytest.fixture
def wizard(api, config, recorder):
    return WizardController(
        api,
        config,
        preprocessor=lambda data, content_type, **kwargs: IMAGE_URI,
        on_change=recorder.on_change,
        on_toast=recorder.on_toast,
        sleep=AsyncMock(),
    )


async def reach_lead_form(wizard):
    assert await wizard.select_file(b"jpeg", "image/jpeg", "me.jpg") is True
    wizard.unlock()


class TestProcessing:
    """Tests for the UPLOAD -> PROCESSING -> LOCKED_RESULT path."""

    async def test_all_steps_succeed_reaches_locked_result_once(self, wizard, recorder):
        assert await wizard.select_file(b"jpeg", "image/jpeg", "me.jpg") is True

        assert wizard.step == WizardStep.LOCKED_RESULT
        assert wizard.history.count(WizardStep.LOCKED_RESULT) == 1
        # UPLOAD only as the initial step, never revisited
        assert wizard.history.count(WizardStep.UPLOAD) == 1
        assert recorder.toasts == []

    async def test_end_to_end_result_holds_generated_image(self, wizard, api):
        await wizard.select_file(b"jpeg", "image/jpeg", "me.jpg")

        assert wizard.step == WizardStep.LOCKED_RESULT
        assert wizard.session.generated_image_url == GENERATED_URL
        assert wizard.session.generation_id == 11
        assert wizard.session.upload_path == "3f1c.jpg"
        api.generate_smile.assert_awaited_once_with(
            IMAGE_URI, PLAN["variations"][0]["prompt_data"], input_path="3f1c.jpg"
        )

    async def test_phases_advance_in_order(self, wizard, recorder):
        await wizard.select_file(b"jpeg", "image/jpeg")

        phases = [p for p in recorder.phases if p is not None]
        assert phases == [
            ProcessingPhase.VALIDATING,
            ProcessingPhase.SCANNING,
            ProcessingPhase.ANALYZING,
            ProcessingPhase.DESIGNING,
            ProcessingPhase.COMPLETE,
        ]

    async def test_calls_run_sequentially(self, wizard, api):
        order = []
        api.validate_face.side_effect = lambda *a: order.append("validate") or ok({"is_valid": True})
        api.upload_photo.side_effect = lambda *a: order.append("upload") or ok({"path": "p.jpg"})
        api.analyze_face.side_effect = lambda *a: order.append("analyze") or ok(PLAN)
        api.generate_smile.side_effect = lambda *a, **k: order.append("generate") or ok(
            GENERATED_URL, raw={"generation_id": 1}
        )

        await wizard.select_file(b"jpeg", "image/jpeg")

        assert order == ["validate", "upload", "analyze", "generate"]

    async def test_pauses_before_locked_result(self, api, config):
        sleep = AsyncMock()
        wizard = WizardController(api, config, preprocessor=lambda *a, **k: IMAGE_URI, sleep=sleep)

        await wizard.select_file(b"jpeg", "image/jpeg")

        sleep.assert_awaited_once_with(config.completion_pause)

    async def test_invalid_face_returns_to_upload_without_generation(self, wizard, api, recorder):
        api.validate_face.return_value = ok({"is_valid": False, "rejection_reason": "Mouth is covered"})

        assert await wizard.select_file(b"jpeg", "image/jpeg") is False

        assert wizard.step == WizardStep.UPLOAD
        assert wizard.session.last_error == "Mouth is covered"
        assert recorder.toasts == [("error", "Mouth is covered")]
        api.upload_photo.assert_not_called()
        api.analyze_face.assert_not_called()
        api.generate_smile.assert_not_called()

    async def test_camel_case_validation_flag_is_accepted(self, wizard, api):
        api.validate_face.return_value = ok({"isValid": True})

        assert await wizard.select_file(b"jpeg", "image/jpeg") is True

    async def test_validation_transport_failure_returns_to_upload(self, wizard, api):
        api.validate_face.return_value = fail("Network error. Please check your connection.")

        await wizard.select_file(b"jpeg", "image/jpeg")

        assert wizard.step == WizardStep.UPLOAD
        api.generate_smile.assert_not_called()

    async def test_generation_failure_after_validation_returns_to_upload(self, wizard, api):
        api.generate_smile.return_value = fail("Image generation failed")

        assert await wizard.select_file(b"jpeg", "image/jpeg") is False

        assert wizard.step == WizardStep.UPLOAD
        assert WizardStep.LOCKED_RESULT not in wizard.history
        assert wizard.session.last_error == "Image generation failed"
        assert wizard.session.generated_image_url is None

    async def test_upload_failure_aborts(self, wizard, api):
        api.upload_photo.return_value = fail("Failed to upload photo")

        await wizard.select_file(b"jpeg", "image/jpeg")

        assert wizard.step == WizardStep.UPLOAD
        api.analyze_face.assert_not_called()

    async def test_empty_plan_aborts(self, wizard, api):
        api.analyze_face.return_value = ok({"variations": []})

        await wizard.select_file(b"jpeg", "image/jpeg")

        assert wizard.step == WizardStep.UPLOAD
        api.generate_smile.assert_not_called()

    async def test_non_image_file_blocked_before_network(self, wizard, api, recorder):
        assert await wizard.select_file(b"%PDF", "application/pdf", "scan.pdf") is False

        assert wizard.step == WizardStep.UPLOAD
        assert recorder.toasts == [("error", "Please select an image file.")]
        api.validate_face.assert_not_called()

    async def test_undecodable_image_blocked_before_network(self, api, config):
        def broken(*args, **kwargs):
            raise MediaError("Could not read image")

        wizard = WizardController(api, config, preprocessor=broken, sleep=AsyncMock())

        assert await wizard.select_file(b"junk", "image/png") is False
        assert wizard.step == WizardStep.UPLOAD
        api.validate_face.assert_not_called()

    async def test_oversized_photo_shows_read_error(self, api, config, recorder, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        buf = io.BytesIO()
        Image.new("RGB", (100, 100)).save(buf, format="PNG")
        wizard = WizardController(api, config, on_toast=recorder.on_toast, sleep=AsyncMock())

        assert await wizard.select_file(buf.getvalue(), "image/png", "huge.png") is False

        assert wizard.step == WizardStep.UPLOAD
        assert recorder.toasts == [("error", "We could not read that image. Please try another photo.")]
        api.validate_face.assert_not_called()

    async def test_select_file_outside_upload_is_invalid(self, wizard):
        await wizard.select_file(b"jpeg", "image/jpeg")

        with pytest.raises(InvalidTransition):
            await wizard.select_file(b"jpeg", "image/jpeg")


class TestLeadForm:
    """Tests for the gated lead form."""

    async def test_unlock_requires_locked_result(self, wizard):
        with pytest.raises(InvalidTransition):
            wizard.unlock()

    async def test_submit_lead_moves_to_result(self, wizard, api):
        await reach_lead_form(wizard)
        lead = LeadForm(name="Ana", email="ana@example.com", phone="+34600123456")

        assert await wizard.submit_lead(lead) is True

        assert wizard.step == WizardStep.RESULT
        assert wizard.session.lead_id == 5
        kwargs = api.submit_lead.await_args.kwargs
        assert kwargs["generation_id"] == 11
        assert kwargs["generated_image_url"] == GENERATED_URL
        assert kwargs["analysis"] == PLAN

    async def test_lead_failure_stays_and_resubmits(self, wizard, api, recorder):
        await reach_lead_form(wizard)
        lead = LeadForm(name="Ana", email="ana@example.com", phone="+34600123456")
        api.submit_lead.return_value = fail("Database unavailable")

        assert await wizard.submit_lead(lead) is False
        assert wizard.step == WizardStep.LEAD_FORM
        assert ("error", "Database unavailable") in recorder.toasts

        api.submit_lead.return_value = ok({"id": 9})
        assert await wizard.submit_lead(lead) is True

        assert wizard.step == WizardStep.RESULT
        first, second = api.submit_lead.await_args_list
        assert first.args == second.args
        assert first.kwargs == second.kwargs


class TestVideoBranch:
    """Tests for RESULT -> SURVEY -> VERIFICATION."""

    async def test_survey_hands_off_to_whatsapp(self, wizard, api):
        await reach_lead_form(wizard)
        await wizard.submit_lead(LeadForm("Ana", "ana@example.com", "+34600123456"))
        wizard.request_video()
        assert wizard.step == WizardStep.SURVEY

        assert await wizard.submit_survey(SurveyForm(age_range="18-30")) is True

        assert wizard.step == WizardStep.VERIFICATION
        assert wizard.session.verification_url.startswith("https://wa.me/34600123456?text=")
        api.submit_survey.assert_awaited_once()
        assert api.submit_survey.await_args.args[0] == 5

    async def test_survey_failure_stays_on_survey(self, wizard, api, recorder):
        await reach_lead_form(wizard)
        await wizard.submit_lead(LeadForm("Ana", "ana@example.com", "+34600123456"))
        wizard.request_video()
        api.submit_survey.return_value = fail("Lead not found")

        assert await wizard.submit_survey(SurveyForm(age_range="55+")) is False

        assert wizard.step == WizardStep.SURVEY
        assert ("error", "Lead not found") in recorder.toasts

    async def test_request_video_requires_result(self, wizard):
        with pytest.raises(InvalidTransition):
            wizard.request_video()


class TestReset:
    async def test_reset_from_any_step_clears_session(self, wizard):
        await reach_lead_form(wizard)
        old_session_id = wizard.session.session_id

        wizard.reset()

        assert wizard.step == WizardStep.UPLOAD
        assert wizard.session.generated_image_url is None
        assert wizard.session.session_id != old_session_id


class TestSelectPromptOptions:
    def test_prefers_original_bg(self):
        plan = {
            "variations": [
                {"type": "lifestyle_social", "prompt_data": {"Subject": "social"}},
                {"type": "original_bg", "prompt_data": {"Subject": "clinical"}},
            ]
        }
        assert select_prompt_options(plan) == {"Subject": "clinical"}

    def test_falls_back_to_first(self):
        plan = {"variations": [{"type": "lifestyle_outdoor", "prompt_data": {"Subject": "outdoor"}}]}
        assert select_prompt_options(plan) == {"Subject": "outdoor"}

    def test_none_without_variations(self):
        assert select_prompt_options({}) is None
