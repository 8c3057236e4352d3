import asyncio
import logging
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx

from tmgpt.clients.errors import read_json, translate_http_errors
from tmgpt.core.config import VisionSettings
from tmgpt.core.exceptions import ExternalServiceError, OcrJobFailedError, OcrTimeoutError
from tmgpt.core.models import (
    ExtractedDocument,
    OcrPage,
    OcrStatus,
    ReadOperationResult,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "OCR"


def operation_id_from_location(location: Optional[str]) -> str:
    """Take the job handle from an ``Operation-Location`` header.

    The header is the full result URL; the handle is its last path segment.
    """
    path = urlsplit(location or "").path.rstrip("/")
    operation_id = path.rsplit("/", 1)[-1] if path else ""
    if not operation_id:
        raise ExternalServiceError(
            service_name=SERVICE_NAME,
            error_type="bad_response",
            message="OCR submission returned no Operation-Location",
            details={"operation_location": location},
        )
    return operation_id


def parse_read_result(data: dict[str, Any]) -> ReadOperationResult:
    """Normalize a read-operation status payload."""
    analyze = data.get("analyzeResult") or {}
    pages_data = analyze.get("readResults") or []
    pages = [OcrPage.model_validate(p) for p in pages_data if isinstance(p, dict)]
    return ReadOperationResult(status=str(data.get("status", "")), pages=pages, raw=data)


class VisionAsyncClient:
    """Client for the computer vision "read" API.

    Usage::

        async with VisionAsyncClient(settings.vision) as client:
            document = await client.extract_text(image_bytes)
    """

    def __init__(
        self,
        settings: VisionSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.base_url = settings.COMPUTER_VISION_API_ENDPOINT.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "VisionAsyncClient":
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/vision/{self.settings.COMPUTER_VISION_API_VERSION}",
            headers={
                "Ocp-Apim-Subscription-Key": self.settings.COMPUTER_VISION_API_KEY.get_secret_value()
            },
            timeout=self.settings.OCR_CLIENT_TIMEOUT_SECONDS,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client is not started. Use 'async with VisionAsyncClient(...)'.")
        return self._client

    async def submit(self, image_bytes: bytes) -> str:
        """Start a read operation and return its operation id."""
        with translate_http_errors(SERVICE_NAME):
            resp = await self._http().post(
                "/read/analyze",
                content=image_bytes,
                headers={"Content-Type": "application/octet-stream"},
            )
            resp.raise_for_status()
        operation_id = operation_id_from_location(resp.headers.get("Operation-Location"))
        logger.info(
            "OCR job submitted (%d bytes)",
            len(image_bytes),
            extra={"operation_id": operation_id},
        )
        return operation_id

    async def get_result(self, operation_id: str) -> ReadOperationResult:
        with translate_http_errors(SERVICE_NAME):
            resp = await self._http().get(f"/read/analyzeResults/{operation_id}")
            resp.raise_for_status()
        data = read_json(resp, SERVICE_NAME)
        if not isinstance(data, dict):
            raise ExternalServiceError(
                service_name=SERVICE_NAME,
                error_type="bad_response",
                details={"operation_id": operation_id},
            )
        return parse_read_result(data)

    async def wait_for_result(self, operation_id: str) -> ReadOperationResult:
        """Poll until the operation is terminal.

        notStarted, running and unrecognized statuses wait one poll interval
        and ask again. Succeeded returns the result, failed raises
        OcrJobFailedError, and an exhausted poll budget raises OcrTimeoutError.
        """
        interval = self.settings.OCR_POLL_INTERVAL_SECONDS
        max_polls = self.settings.OCR_MAX_POLLS
        timeout = self.settings.OCR_TIMEOUT_SECONDS
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout else None
        polls = 0

        while True:
            result = await self.get_result(operation_id)
            polls += 1
            status = result.parsed_status
            logger.debug(
                "OCR status check",
                extra={
                    "operation_id": operation_id,
                    "poll_attempt": polls,
                    "status": result.status,
                },
            )

            if status is OcrStatus.SUCCEEDED:
                logger.info(
                    "OCR ready after %d checks",
                    polls,
                    extra={"operation_id": operation_id},
                )
                return result
            if status is OcrStatus.FAILED:
                raise OcrJobFailedError(operation_id, details={"polls": polls})

            if max_polls is not None and polls >= max_polls:
                raise OcrTimeoutError(operation_id, polls, result.status)
            if deadline is not None and loop.time() >= deadline:
                raise OcrTimeoutError(operation_id, polls, result.status)

            await asyncio.sleep(interval)

    async def extract_text(self, image_bytes: bytes) -> ExtractedDocument:
        """Submit an image and return every recognized line, page by page."""
        operation_id = await self.submit(image_bytes)
        result = await self.wait_for_result(operation_id)
        return ExtractedDocument.from_pages(result.pages)


def read_local_image(path: Path) -> bytes:
    logger.info("Reading local image %s", path.name)
    return path.read_bytes()
