"""Wizard controller for the selfie-to-smile flow.

    UPLOAD -> PROCESSING -> LOCKED_RESULT -> LEAD_FORM -> RESULT
                                                           |
                                            SURVEY -> VERIFICATION

Any failure while processing returns to UPLOAD. Form failures keep the
current step so the user can resubmit.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from smileforward.core.phone import whatsapp_link
from smileforward.widget.client import ApiResult, LeadForm, SurveyForm, WidgetApiClient
from smileforward.widget.config import WidgetConfig
from smileforward.widget.media import MediaError, is_image_type, preprocess_image

logger = logging.getLogger(__name__)

PRIMARY_VARIATION = "original_bg"


class WizardStep(str, Enum):
    UPLOAD = "upload"
    PROCESSING = "processing"
    LOCKED_RESULT = "locked_result"
    LEAD_FORM = "lead_form"
    RESULT = "result"
    SURVEY = "survey"
    VERIFICATION = "verification"


class ProcessingPhase(str, Enum):
    VALIDATING = "validating"
    SCANNING = "scanning"
    ANALYZING = "analyzing"
    DESIGNING = "designing"
    COMPLETE = "complete"


class InvalidTransition(Exception):
    """Raised when an action is not allowed in the current step."""
    pass


@dataclass
class WizardSession:
    """Ephemeral state of one wizard run."""

    step: WizardStep = WizardStep.UPLOAD
    phase: ProcessingPhase | None = None
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    file_name: str | None = None
    image_data_uri: str | None = None
    upload_path: str | None = None
    analysis: dict[str, Any] | None = None
    generated_image_url: str | None = None
    generation_id: int | None = None
    lead_id: int | None = None
    verification_url: str | None = None
    last_error: str | None = None


def select_prompt_options(analysis: dict[str, Any]) -> dict[str, Any] | None:
    """Prompt data of the ``original_bg`` variation, else the first one."""
    variations = analysis.get("variations") or []
    if not variations:
        return None
    chosen = next((v for v in variations if v.get("type") == PRIMARY_VARIATION), variations[0])
    return chosen.get("prompt_data") or {}


class WizardController:
    """Sequences the wizard's network calls and routes their failures.

    Observers get ``on_change(session)`` after every step or phase change
    and ``on_toast(level, message)`` for user notifications.
    """

    def __init__(
        self,
        api: WidgetApiClient,
        config: WidgetConfig,
        preprocessor: Callable[..., str] = preprocess_image,
        on_change: Callable[[WizardSession], None] | None = None,
        on_toast: Callable[[str, str], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.api = api
        self.config = config
        self._preprocess = preprocessor
        self._on_change = on_change
        self._on_toast = on_toast
        self._sleep = sleep
        self.session = WizardSession()
        self.history: list[WizardStep] = [WizardStep.UPLOAD]

    @property
    def step(self) -> WizardStep:
        return self.session.step

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self.session)

    def _toast(self, level: str, message: str) -> None:
        if self._on_toast:
            self._on_toast(level, message)

    def _require(self, *steps: WizardStep) -> None:
        if self.session.step not in steps:
            allowed = ", ".join(s.value for s in steps)
            raise InvalidTransition(f"Cannot do this from {self.session.step.value} (expected {allowed})")

    def _transition(self, step: WizardStep) -> None:
        logger.debug(f"Wizard {self.session.step.value} -> {step.value}")
        self.session.step = step
        if step != WizardStep.PROCESSING:
            self.session.phase = None
        self.history.append(step)
        self._notify()

    def _set_phase(self, phase: ProcessingPhase) -> None:
        self.session.phase = phase
        self._notify()

    def _abort(self, message: str) -> bool:
        """Return to UPLOAD with a fresh session, keeping the error."""
        logger.info(f"Wizard aborted: {message}")
        self.session = WizardSession(last_error=message)
        self._toast("error", message)
        self._transition(WizardStep.UPLOAD)
        return False

    async def select_file(self, data: bytes, content_type: str, filename: str | None = None) -> bool:
        """Run validation, upload, analysis and generation for a selected photo.

        Returns:
            True if the locked result was reached
        """
        self._require(WizardStep.UPLOAD)

        if not is_image_type(content_type):
            self.session.last_error = "Please select an image file."
            self._toast("error", self.session.last_error)
            self._notify()
            return False

        try:
            image = self._preprocess(
                data,
                content_type,
                max_edge=self.config.max_image_edge,
                quality=self.config.jpeg_quality,
            )
        except MediaError as e:
            logger.info(f"Could not preprocess {filename}: {e}")
            self.session.last_error = "We could not read that image. Please try another photo."
            self._toast("error", self.session.last_error)
            self._notify()
            return False

        self.session.file_name = filename
        self.session.image_data_uri = image
        self.session.last_error = None
        self.session.phase = ProcessingPhase.VALIDATING
        self._transition(WizardStep.PROCESSING)

        result = await self.api.validate_face(image)
        if not result.success:
            return self._abort(result.error or "Validation failed.")
        verdict = result.data if isinstance(result.data, dict) else {}
        if not verdict.get("is_valid", verdict.get("isValid", False)):
            return self._abort(verdict.get("rejection_reason") or "Photo not suitable.")

        self._set_phase(ProcessingPhase.SCANNING)
        result = await self.api.upload_photo(image)
        if not result.success:
            return self._abort(result.error or "Upload failed.")
        self.session.upload_path = (result.data or {}).get("path")

        self._set_phase(ProcessingPhase.ANALYZING)
        result = await self.api.analyze_face(image)
        if not result.success:
            return self._abort(result.error or "Analysis failed.")
        analysis = result.data if isinstance(result.data, dict) else {}
        prompt_options = select_prompt_options(analysis)
        if prompt_options is None:
            return self._abort("The analysis returned no smile design. Please try another photo.")
        self.session.analysis = analysis

        self._set_phase(ProcessingPhase.DESIGNING)
        result = await self.api.generate_smile(image, prompt_options, input_path=self.session.upload_path)
        if not result.success:
            return self._abort(result.error or "Smile generation failed.")
        self.session.generated_image_url = result.data
        self.session.generation_id = result.raw.get("generation_id")

        self._set_phase(ProcessingPhase.COMPLETE)
        await self._sleep(self.config.completion_pause)
        self._transition(WizardStep.LOCKED_RESULT)
        return True

    def unlock(self) -> None:
        """Show the lead form over the locked result."""
        self._require(WizardStep.LOCKED_RESULT)
        self._transition(WizardStep.LEAD_FORM)

    async def submit_lead(self, lead: LeadForm) -> bool:
        """Persist the lead; on failure stay on the form."""
        self._require(WizardStep.LEAD_FORM)

        result: ApiResult = await self.api.submit_lead(
            lead,
            generated_image_url=self.session.generated_image_url,
            analysis=self.session.analysis,
            session_id=self.session.session_id,
            generation_id=self.session.generation_id,
            original_image_path=self.session.upload_path,
        )
        if not result.success:
            self.session.last_error = result.error or "Could not save your details."
            self._toast("error", self.session.last_error)
            self._notify()
            return False

        self.session.lead_id = (result.data or {}).get("id")
        self.session.last_error = None
        self._toast("success", "Your smile design is unlocked!")
        self._transition(WizardStep.RESULT)
        return True

    def request_video(self) -> None:
        """Open the video preference survey."""
        self._require(WizardStep.RESULT)
        self._transition(WizardStep.SURVEY)

    async def submit_survey(self, survey: SurveyForm) -> bool:
        """Save preferences and hand off to the clinic's WhatsApp."""
        self._require(WizardStep.SURVEY)
        if self.session.lead_id is None:
            raise InvalidTransition("No lead to attach the survey to")

        result = await self.api.submit_survey(self.session.lead_id, survey)
        if not result.success:
            self.session.last_error = result.error or "Could not save your preferences."
            self._toast("error", self.session.last_error)
            self._notify()
            return False

        self.session.verification_url = whatsapp_link(
            self.config.clinic_whatsapp_number, self.config.whatsapp_message
        )
        self.session.last_error = None
        self._transition(WizardStep.VERIFICATION)
        return True

    def reset(self) -> None:
        """Start over from any step."""
        self.session = WizardSession()
        self._transition(WizardStep.UPLOAD)
