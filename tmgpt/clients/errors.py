from __future__ import annotations

from contextlib import contextmanager
from http import HTTPStatus
from typing import Any, Iterator

import httpx

from tmgpt.core.exceptions import ExternalServiceError

ERROR_BODY_MAX_CHARS = 500


def _error_body(response: httpx.Response) -> str:
    try:
        return response.text[:ERROR_BODY_MAX_CHARS]
    except Exception:
        return ""


@contextmanager
def translate_http_errors(service_name: str) -> Iterator[None]:
    """Re-raise httpx failures inside the block as ExternalServiceError."""
    try:
        yield
    except httpx.HTTPStatusError as e:
        code = e.response.status_code
        raise ExternalServiceError(
            service_name=service_name,
            error_type="rate_limit" if code == HTTPStatus.TOO_MANY_REQUESTS else "http_error",
            message=f"{service_name} returned HTTP {code}",
            details={
                "http_code": code,
                "url": str(e.request.url),
                "body": _error_body(e.response),
            },
        ) from e
    except httpx.TimeoutException as e:
        raise ExternalServiceError(
            service_name=service_name,
            error_type="timeout",
            details={"reason": str(e)},
        ) from e
    except httpx.RequestError as e:
        raise ExternalServiceError(
            service_name=service_name,
            error_type="unavailable",
            details={"reason": str(e)},
        ) from e


def read_json(response: httpx.Response, service_name: str) -> Any:
    """Decode a JSON body; anything else is a bad_response from that service."""
    try:
        return response.json()
    except ValueError as e:
        raise ExternalServiceError(
            service_name=service_name,
            error_type="bad_response",
            message=f"{service_name} response not JSON",
            details={"url": str(response.request.url), "body": _error_body(response)},
        ) from e
