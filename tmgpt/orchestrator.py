"""
Pipeline driver: OCR -> service identification -> recommendations -> baselines.

Stages run one after another in a single task. OCR and completion failures
propagate and end the run; baseline lookups degrade per service.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from tmgpt.clients.completion_client import CompletionsAsyncClient
from tmgpt.clients.repo_client import RepoContentAsyncClient
from tmgpt.clients.vision_client import VisionAsyncClient, read_local_image
from tmgpt.core.config import Settings
from tmgpt.core.models import ExtractedDocument, RunReport
from tmgpt.processors.baseline_resolver import BaselineResolver
from tmgpt.processors.recommender import Recommender
from tmgpt.processors.service_list import parse_service_list
from tmgpt.utils.timing import StageTimers

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 58


class TextExtractor(Protocol):
    async def extract_text(self, image_bytes: bytes) -> ExtractedDocument: ...


async def run_pipeline(
    settings: Settings,
    *,
    vision: TextExtractor,
    recommender: Recommender,
    resolver: BaselineResolver,
) -> RunReport:
    timers = StageTimers()

    with timers.timer("ocr"):
        image_bytes = read_local_image(settings.app.IMAGE_FILEPATH)
        extracted = await vision.extract_text(image_bytes)
    logger.info("Extracted %d lines of text", len(extracted.lines), extra={"stage": "ocr"})

    with timers.timer("services"):
        services_text = await recommender.identify_services(extracted.text)
        services = parse_service_list(services_text)
    logger.info("Identified services: %s", services, extra={"stage": "services"})

    with timers.timer("recommendations"):
        source = services_text if settings.app.RECOMMEND_FROM == "services" else extracted.text
        recommendations = await recommender.recommend(source)

    with timers.timer("baselines"):
        baselines = await resolver.resolve(services)

    return RunReport(
        extracted=extracted,
        services_text=services_text,
        services=services,
        recommendations=recommendations,
        baselines=baselines,
        timings=timers.as_millis(),
    )


async def run(
    settings: Settings,
    *,
    vision_transport: Optional[httpx.AsyncBaseTransport] = None,
    completion_transport: Optional[httpx.AsyncBaseTransport] = None,
    repo_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RunReport:
    """Open the three service clients and run the pipeline with them."""
    async with (
        VisionAsyncClient(settings.vision, transport=vision_transport) as vision,
        CompletionsAsyncClient(settings.completion, transport=completion_transport) as llm,
        RepoContentAsyncClient(settings.repository, transport=repo_transport) as repo,
    ):
        return await run_pipeline(
            settings,
            vision=vision,
            recommender=Recommender(llm),
            resolver=BaselineResolver(repo, settings.repository),
        )


def print_report(report: RunReport) -> None:
    print(SEPARATOR)
    print("Extracted Text from Image:")
    print(report.extracted.text)

    print(SEPARATOR)
    print("Identified Services:")
    for service in report.services:
        print(f"  - {service}")

    print(SEPARATOR)
    print("Recommended Actions:")
    for recommendation in report.recommendations:
        print(recommendation)

    print(SEPARATOR)
    print("Security Baselines:")
    for result in report.baselines:
        if result.error is not None:
            print(f"[{result.service}] error: {result.error}")
        elif not result.found:
            print(f"[{result.service}] not found")
        else:
            print(f"[{result.service}] {result.matched_name}")
            print(result.content)
