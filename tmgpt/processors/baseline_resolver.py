from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol

from tmgpt.core.config import RepositorySettings
from tmgpt.core.models import BaselineResult, RepoEntry
from tmgpt.processors.baseline_matching import find_baseline_match, normalize_service_name

logger = logging.getLogger(__name__)

MISS_PLACEHOLDER = ""


class RepoPort(Protocol):
    async def list_directory(self, owner: str, repo: str, path: str, ref: str) -> list[RepoEntry]: ...

    async def get_raw_content(self, owner: str, repo: str, path: str, ref: str) -> bytes: ...

    def web_url(self, owner: str, repo: str, path: str, ref: str) -> str: ...


class BaselineResolver:
    """Finds the security baseline document for each service name.

    One lookup never aborts the batch: misses come back with the empty
    placeholder, failures with ``error`` set.
    """

    def __init__(self, client: RepoPort, settings: RepositorySettings) -> None:
        self._client = client
        self.owner = settings.BASELINE_REPO_OWNER
        self.repo = settings.BASELINE_REPO_NAME
        self.path = settings.BASELINE_REPO_PATH
        self.ref = settings.BASELINE_REPO_REF
        self.mode = settings.BASELINE_RESULT_MODE
        self.extra_lookups = list(settings.BASELINE_EXTRA_LOOKUPS)
        self.fuzzy_threshold: Optional[float] = settings.BASELINE_FUZZY_THRESHOLD

    async def lookup(self, service: str) -> BaselineResult:
        normalized = normalize_service_name(service)
        entries = await self._client.list_directory(self.owner, self.repo, self.path, self.ref)
        by_name = {entry.name: entry for entry in entries if entry.type == "file"}
        matched = find_baseline_match(
            normalized, list(by_name), fuzzy_threshold=self.fuzzy_threshold
        )
        if matched is None:
            logger.info(
                "No baseline found for '%s' (normalized '%s')",
                service,
                normalized,
                extra={"service": service},
            )
            return BaselineResult(service=service, content=MISS_PLACEHOLDER)

        entry = by_name[matched]
        if self.mode == "content":
            raw = await self._client.get_raw_content(self.owner, self.repo, entry.path, self.ref)
            content = raw.decode("utf-8", errors="replace")
        else:
            content = self._client.web_url(self.owner, self.repo, entry.path, self.ref)
        logger.info("Baseline for '%s': %s", service, entry.name, extra={"service": service})
        return BaselineResult(
            service=service,
            matched_name=entry.name,
            matched_path=entry.path,
            content=content,
        )

    async def resolve(self, services: Iterable[str], include_extra: bool = True) -> list[BaselineResult]:
        """Look up every service in order, then the configured benchmark lookups."""
        candidates = list(services)
        if include_extra:
            candidates.extend(self.extra_lookups)

        results: list[BaselineResult] = []
        for service in candidates:
            try:
                results.append(await self.lookup(service))
            except Exception as e:
                logger.warning(
                    "Baseline lookup failed for '%s': %s",
                    service,
                    e,
                    extra={"service": service, "error_code": getattr(e, "error_code", None)},
                )
                results.append(
                    BaselineResult(service=service, content=MISS_PLACEHOLDER, error=str(e))
                )
        return results
