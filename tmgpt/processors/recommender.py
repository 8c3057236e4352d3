from __future__ import annotations

import logging
from typing import Protocol, Sequence

from tmgpt.processors.prompts import (
    SECURITY_RECOMMENDATIONS,
    SERVICE_IDENTIFICATION,
    CompletionParams,
    PromptTemplate,
)

logger = logging.getLogger(__name__)


class CompletionPort(Protocol):
    async def complete(self, prompt: str, params: CompletionParams) -> str: ...


class Recommender:
    """Runs prompt templates against a completion service."""

    def __init__(self, client: CompletionPort) -> None:
        self._client = client

    async def run(self, template: PromptTemplate, text: str) -> str:
        completion = await self._client.complete(template.render(text), template.params)
        logger.info(
            "Completion '%s' returned %d chars",
            template.name,
            len(completion),
            extra={"stage": template.name},
        )
        return completion

    async def generate(self, templates: Sequence[PromptTemplate], text: str) -> list[str]:
        """One completion per template, in template order."""
        results: list[str] = []
        for template in templates:
            results.append(await self.run(template, text))
        return results

    async def identify_services(self, text: str) -> str:
        return await self.run(SERVICE_IDENTIFICATION, text)

    async def recommend(self, text: str) -> list[str]:
        return await self.generate([SECURITY_RECOMMENDATIONS], text)
