import logging
from typing import Any, Optional

import httpx

from tmgpt.clients.errors import read_json, translate_http_errors
from tmgpt.core.config import CompletionSettings
from tmgpt.core.exceptions import ExternalServiceError
from tmgpt.processors.prompts import CompletionParams

logger = logging.getLogger(__name__)

SERVICE_NAME = "LLM"


def build_payload(prompt: str, params: CompletionParams) -> dict[str, Any]:
    payload: dict[str, Any] = {"prompt": prompt}
    if params.max_tokens is not None:
        payload["max_tokens"] = params.max_tokens
    if params.temperature is not None:
        payload["temperature"] = params.temperature
    if params.top_p is not None:
        payload["top_p"] = params.top_p
    return payload


def first_choice_text(data: Any) -> str:
    """Return the first choice's text of a completions response."""
    choices = data.get("choices") if isinstance(data, dict) else None
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        text = choices[0].get("text")
        if isinstance(text, str):
            return text.strip()
    raise ExternalServiceError(
        service_name=SERVICE_NAME,
        error_type="bad_response",
        message="LLM completion response has no choices[0].text",
    )


class CompletionsAsyncClient:
    def __init__(
        self,
        settings: CompletionSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.base_url = settings.OPENAI_API_ENDPOINT.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "CompletionsAsyncClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"api-key": self.settings.OPENAI_API_KEY.get_secret_value()},
            timeout=self.settings.LLM_REQUEST_TIMEOUT_SECONDS,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def complete(self, prompt: str, params: CompletionParams) -> str:
        """Send one prompt to the configured deployment; return the first completion."""
        if self._client is None:
            raise RuntimeError("Client is not started. Use 'async with CompletionsAsyncClient(...)'.")
        url = f"/openai/deployments/{self.settings.OPENAI_DEPLOYMENT}/completions"
        logger.debug("LLM input: %s", prompt)
        with translate_http_errors(SERVICE_NAME):
            resp = await self._client.post(
                url,
                params={"api-version": self.settings.OPENAI_API_VERSION},
                json=build_payload(prompt, params),
            )
            resp.raise_for_status()
        data = read_json(resp, SERVICE_NAME)
        text = first_choice_text(data)
        logger.debug("LLM output: %s", text)
        return text
