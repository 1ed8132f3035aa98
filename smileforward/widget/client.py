"""HTTP client for the widget's calls to the Smile Forward API.

Every method returns an ``ApiResult``. Transport errors, non-2xx responses,
``{success: false}`` payloads and undecodable bodies all become
``ApiResult(success=False, error=...)``; nothing is raised to the caller.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from smileforward.widget.config import WidgetConfig

logger = logging.getLogger(__name__)


@dataclass
class ApiResult:
    """Normalized outcome of one API call."""

    success: bool
    data: Any = None
    error: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, error: str, raw: dict[str, Any] | None = None) -> "ApiResult":
        return cls(success=False, error=error, raw=raw or {})


@dataclass
class LeadForm:
    """Contact details entered behind the gate."""

    name: str
    email: str
    phone: str


@dataclass
class SurveyForm:
    """Video preferences collected before the clinic hand-off."""

    age_range: str
    improvement: str | None = None
    timeframe: str | None = None

    def to_payload(self) -> dict[str, str]:
        payload = {"ageRange": self.age_range}
        if self.improvement:
            payload["improvement"] = self.improvement
        if self.timeframe:
            payload["timeframe"] = self.timeframe
        return payload


def _error_message(body: Any, status_code: int) -> str:
    """Pull a readable message out of an error body of any shape."""
    if isinstance(body, dict):
        error = body.get("error") or body.get("detail") or body.get("message")
        if isinstance(error, str) and error:
            return error
        if isinstance(error, list) and error:
            first = error[0]
            if isinstance(first, dict) and first.get("msg"):
                return str(first["msg"])
            return str(first)
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"Request failed with status {status_code}"


class WidgetApiClient:
    """Async wrapper over the proxy and lead capture endpoints."""

    def __init__(
        self,
        config: WidgetConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "WidgetApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _post(self, path: str, payload: dict[str, Any]) -> ApiResult:
        try:
            response = await self._http.post(path, json=payload)
        except httpx.TimeoutException:
            logger.warning(f"Request to {path} timed out")
            return ApiResult.failure("The request timed out. Please try again.")
        except httpx.HTTPError as e:
            logger.warning(f"Request to {path} failed: {e}")
            return ApiResult.failure("Network error. Please check your connection.")

        try:
            body = response.json()
        except ValueError:
            logger.warning(f"Non-JSON response from {path} (HTTP {response.status_code})")
            return ApiResult.failure(f"Invalid response from server (HTTP {response.status_code})")

        if response.is_error:
            message = _error_message(body, response.status_code)
            logger.info(f"{path} returned HTTP {response.status_code}: {message}")
            return ApiResult.failure(message, body if isinstance(body, dict) else None)

        if not isinstance(body, dict):
            return ApiResult(success=True, data=body)

        if body.get("success") is False:
            return ApiResult.failure(_error_message(body, response.status_code), body)

        return ApiResult(success=True, data=body.get("data", body), raw=body)

    def _function(self, name: str) -> str:
        return f"{self.config.functions_prefix}/{name}"

    def _api(self, path: str) -> str:
        return f"{self.config.api_prefix}{path}"

    async def validate_face(self, image_data_uri: str) -> ApiResult:
        """Gatekeeper check. Data is ``{is_valid, rejection_reason}``."""
        return await self._post(
            self._function("analyze-face"),
            {"image_base64": image_data_uri, "mode": "validate"},
        )

    async def analyze_face(self, image_data_uri: str) -> ApiResult:
        """Restoration plan. Data is ``{variations: [...]}``."""
        return await self._post(
            self._function("analyze-face"),
            {"image_base64": image_data_uri, "mode": "analyze"},
        )

    async def upload_photo(self, image_data_uri: str) -> ApiResult:
        """Store the raw selfie. Data is ``{path}``."""
        return await self._post(self._function("upload"), {"image_base64": image_data_uri})

    async def generate_smile(
        self,
        image_data_uri: str,
        prompt_options: dict[str, Any] | None,
        input_path: str | None = None,
    ) -> ApiResult:
        """Generate the makeover image. Data is its public URL."""
        payload: dict[str, Any] = {
            "image_base64": image_data_uri,
            "prompt_options": prompt_options or {},
        }
        if input_path:
            payload["input_path"] = input_path

        result = await self._post(self._function("generate-smile"), payload)
        if not result.success:
            return result

        public_url = result.raw.get("public_url")
        if not public_url:
            return ApiResult.failure("No image was returned. Please try again.", result.raw)
        return ApiResult(success=True, data=public_url, raw=result.raw)

    async def submit_lead(
        self,
        lead: LeadForm,
        generated_image_url: str | None,
        analysis: dict[str, Any] | None,
        session_id: str | None,
        generation_id: int | None = None,
        original_image_path: str | None = None,
    ) -> ApiResult:
        """Persist the lead and link the generated image. Data is the lead."""
        payload: dict[str, Any] = {
            "name": lead.name,
            "email": lead.email,
            "phone": lead.phone,
            "generation_id": generation_id,
            "session_id": session_id,
            "original_image_url": original_image_path,
            "analysis": analysis,
            "results": [{"type": "image", "url": generated_image_url}] if generated_image_url else [],
        }
        return await self._post(self._api("/leads"), payload)

    async def submit_survey(self, lead_id: int, survey: SurveyForm) -> ApiResult:
        """Store video preferences on the lead."""
        return await self._post(self._api(f"/leads/{lead_id}/survey"), survey.to_payload())

    async def generate_video(self, lead_id: int) -> ApiResult:
        """Start a video job. Raw body has ``generation_id`` and ``operation_name``."""
        return await self._post(self._function("generate-video"), {"lead_id": lead_id})

    async def check_video(self, generation_id: int) -> ApiResult:
        """Advance a video job. Data is the record or ``{status: "pending", id}``."""
        return await self._post(self._function("check-video"), {"generation_id": generation_id})
