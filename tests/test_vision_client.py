from __future__ import annotations

import httpx
import pytest

from tests._fixtures import LOCATION, OPERATION_ID
from tmgpt.clients.vision_client import VisionAsyncClient, operation_id_from_location
from tmgpt.core.exceptions import ExternalServiceError, OcrJobFailedError, OcrTimeoutError

ANALYZE_PATH = "/vision/v3.2/read/analyze"
RESULT_PATH = f"/vision/v3.2/read/analyzeResults/{OPERATION_ID}"

SUCCEEDED = {
    "status": "succeeded",
    "analyzeResult": {
        "readResults": [
            {"page": 1, "lines": [{"text": "Azure Storage"}, {"text": "Key Vault"}]},
            {"page": 2, "lines": [{"text": "App Service"}]},
        ]
    },
}


def make_handler(statuses: list[dict], calls: dict):
    answers = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == ANALYZE_PATH:
            calls["submit"] = calls.get("submit", 0) + 1
            calls["key"] = request.headers.get("Ocp-Apim-Subscription-Key")
            calls["body"] = request.content
            return httpx.Response(202, headers={"Operation-Location": LOCATION})
        if request.method == "GET" and request.url.path == RESULT_PATH:
            calls["poll"] = calls.get("poll", 0) + 1
            return httpx.Response(200, json=answers.pop(0))
        return httpx.Response(404, json={"detail": "not found"})

    return handler


@pytest.mark.asyncio
async def test_polls_until_succeeded_and_joins_lines(vision_settings) -> None:
    calls: dict = {}
    statuses = [{"status": "notStarted"}, {"status": "running"}, {"status": "running"}, SUCCEEDED]
    transport = httpx.MockTransport(make_handler(statuses, calls))

    async with VisionAsyncClient(vision_settings, transport=transport) as client:
        document = await client.extract_text(b"image-bytes")

    assert calls["submit"] == 1
    assert calls["poll"] == 4  # three non-terminal answers + the terminal one
    assert calls["key"] == "vision-key"
    assert calls["body"] == b"image-bytes"
    assert document.lines == ["Azure Storage", "Key Vault", "App Service"]
    assert document.text == "Azure Storage\nKey Vault\nApp Service\n"


@pytest.mark.asyncio
async def test_immediate_success_polls_once(vision_settings) -> None:
    calls: dict = {}
    transport = httpx.MockTransport(make_handler([SUCCEEDED], calls))

    async with VisionAsyncClient(vision_settings, transport=transport) as client:
        operation_id = await client.submit(b"x")
        result = await client.wait_for_result(operation_id)

    assert operation_id == OPERATION_ID
    assert calls["poll"] == 1
    assert len(result.pages) == 2


@pytest.mark.asyncio
async def test_failed_job_raises(vision_settings) -> None:
    calls: dict = {}
    transport = httpx.MockTransport(
        make_handler([{"status": "running"}, {"status": "failed"}], calls)
    )

    async with VisionAsyncClient(vision_settings, transport=transport) as client:
        with pytest.raises(OcrJobFailedError) as exc_info:
            await client.extract_text(b"x")

    assert exc_info.value.error_code == "OCR_JOB_FAILED"
    assert exc_info.value.details["operation_id"] == OPERATION_ID
    assert calls["poll"] == 2


@pytest.mark.asyncio
async def test_max_polls_raises_timeout(vision_settings) -> None:
    settings = vision_settings.model_copy(update={"OCR_MAX_POLLS": 3})
    calls: dict = {}
    transport = httpx.MockTransport(make_handler([{"status": "running"}] * 5, calls))

    async with VisionAsyncClient(settings, transport=transport) as client:
        with pytest.raises(OcrTimeoutError) as exc_info:
            await client.extract_text(b"x")

    assert calls["poll"] == 3
    assert exc_info.value.details["last_status"] == "running"


@pytest.mark.asyncio
async def test_deadline_raises_timeout(vision_settings) -> None:
    settings = vision_settings.model_copy(
        update={"OCR_TIMEOUT_SECONDS": 0.05, "OCR_POLL_INTERVAL_SECONDS": 0.01}
    )
    calls: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(202, headers={"Operation-Location": LOCATION})
        calls["poll"] = calls.get("poll", 0) + 1
        return httpx.Response(200, json={"status": "running"})

    async with VisionAsyncClient(settings, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(OcrTimeoutError) as exc_info:
            await client.extract_text(b"x")

    assert exc_info.value.error_code == "OCR_TIMEOUT"
    assert exc_info.value.details["last_status"] == "running"
    assert calls["poll"] >= 1


@pytest.mark.asyncio
async def test_zero_timeout_polls_without_limit(vision_settings) -> None:
    settings = vision_settings.model_copy(
        update={"OCR_TIMEOUT_SECONDS": 0.0, "OCR_MAX_POLLS": None}
    )
    calls: dict = {}
    statuses = [{"status": "running"}] * 25 + [SUCCEEDED]
    transport = httpx.MockTransport(make_handler(statuses, calls))

    async with VisionAsyncClient(settings, transport=transport) as client:
        document = await client.extract_text(b"x")

    assert calls["poll"] == 26
    assert document.lines == ["Azure Storage", "Key Vault", "App Service"]


@pytest.mark.asyncio
async def test_non_json_result_is_bad_response(vision_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    async with VisionAsyncClient(vision_settings, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ExternalServiceError) as exc_info:
            await client.get_result(OPERATION_ID)

    assert exc_info.value.error_code == "OCR_BAD_RESPONSE"
    assert exc_info.value.details["body"] == "<html>gateway</html>"


@pytest.mark.asyncio
async def test_http_error_is_translated(vision_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"code": "401", "message": "Access denied"}})

    async with VisionAsyncClient(vision_settings, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ExternalServiceError) as exc_info:
            await client.submit(b"x")

    assert exc_info.value.error_code == "OCR_HTTP_ERROR"
    assert exc_info.value.details["http_code"] == 401


@pytest.mark.asyncio
async def test_client_must_be_started(vision_settings) -> None:
    client = VisionAsyncClient(vision_settings)
    with pytest.raises(RuntimeError):
        await client.submit(b"x")


def test_operation_id_from_location() -> None:
    assert operation_id_from_location(LOCATION) == OPERATION_ID
    assert operation_id_from_location(LOCATION + "?foo=bar") == OPERATION_ID
    with pytest.raises(ExternalServiceError):
        operation_id_from_location(None)
