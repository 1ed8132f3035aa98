"""Tests for the widget HTTP client."""

import json

import httpx
import pytest

from smileforward.widget.client import LeadForm, SurveyForm, WidgetApiClient
from smileforward.widget.config import WidgetConfig

IMAGE_URI = "data:image/jpeg;base64,AAAA"


def make_client(handler) -> WidgetApiClient:
    config = WidgetConfig(base_url="http://smile.test")
    return WidgetApiClient(config, transport=httpx.MockTransport(handler))


class TestRequests:
    async def test_validate_face_posts_mode(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": {"is_valid": True, "rejection_reason": ""}})

        async with make_client(handler) as client:
            result = await client.validate_face(IMAGE_URI)

        assert seen["path"] == "/functions/v1/analyze-face"
        assert seen["body"] == {"image_base64": IMAGE_URI, "mode": "validate"}
        assert result.success is True
        assert result.data == {"is_valid": True, "rejection_reason": ""}

    async def test_generate_smile_returns_public_url(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"success": True, "public_url": "https://example/img.png", "generation_id": 3},
            )

        async with make_client(handler) as client:
            result = await client.generate_smile(IMAGE_URI, {"Subject": "x"})

        assert result.success is True
        assert result.data == "https://example/img.png"
        assert result.raw["generation_id"] == 3

    async def test_generate_smile_without_url_is_failure(self):
        async with make_client(lambda r: httpx.Response(200, json={"success": True})) as client:
            result = await client.generate_smile(IMAGE_URI, None)

        assert result.success is False

    async def test_submit_lead_payload(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"success": True, "data": {"id": 12}})

        async with make_client(handler) as client:
            result = await client.submit_lead(
                LeadForm("Ana", "ana@example.com", "+34600123456"),
                generated_image_url="https://example/img.png",
                analysis={"variations": []},
                session_id="abc",
                generation_id=3,
            )

        assert seen["path"] == "/api/v1/leads"
        assert seen["body"]["generation_id"] == 3
        assert seen["body"]["results"] == [{"type": "image", "url": "https://example/img.png"}]
        assert result.data == {"id": 12}

    async def test_submit_survey_uses_camel_case_keys(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": {"id": 12}})

        async with make_client(handler) as client:
            await client.submit_survey(12, SurveyForm(age_range="55+", improvement="color"))

        assert seen["path"] == "/api/v1/leads/12/survey"
        assert seen["body"] == {"ageRange": "55+", "improvement": "color"}

    async def test_check_video_returns_record(self):
        record = {"id": 4, "status": "completed", "public_url": "https://example/v.mp4"}
        async with make_client(lambda r: httpx.Response(200, json=record)) as client:
            result = await client.check_video(4)

        assert result.success is True
        assert result.data == record


class TestFailureNormalization:
    @pytest.mark.parametrize(
        "response, message",
        [
            (httpx.Response(502, json={"success": False, "error": "Model overloaded"}), "Model overloaded"),
            (httpx.Response(404, json={"detail": "Lead not found"}), "Lead not found"),
            (
                httpx.Response(422, json={"detail": [{"msg": "field required", "loc": ["body", "email"]}]}),
                "field required",
            ),
            (httpx.Response(500, json=["unexpected"]), "Request failed with status 500"),
            (httpx.Response(200, json={"success": False, "error": "Photo rejected"}), "Photo rejected"),
        ],
    )
    async def test_error_shapes(self, response, message):
        async with make_client(lambda r: response) as client:
            result = await client.analyze_face(IMAGE_URI)

        assert result.success is False
        assert result.error == message

    async def test_non_json_body(self):
        async with make_client(lambda r: httpx.Response(503, text="<html>down</html>")) as client:
            result = await client.upload_photo(IMAGE_URI)

        assert result.success is False
        assert "HTTP 503" in result.error

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            result = await client.generate_video(1)

        assert result.success is False
        assert result.error == "Network error. Please check your connection."

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with make_client(handler) as client:
            result = await client.check_video(1)

        assert result.success is False
        assert "timed out" in result.error
