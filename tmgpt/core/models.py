"""Data models passed between the pipeline stages."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class OcrStatus(str, Enum):
    """Lifecycle of a remote read operation."""

    NOT_STARTED = "notStarted"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @classmethod
    def parse(cls, raw: Any) -> Optional["OcrStatus"]:
        value = str(raw or "").strip().lower()
        for status in cls:
            if status.value.lower() == value:
                return status
        return None

    @property
    def is_terminal(self) -> bool:
        return self in (OcrStatus.SUCCEEDED, OcrStatus.FAILED)


class OcrLine(BaseModel):
    text: str = ""


class OcrPage(BaseModel):
    """Recognized lines of a single page, in reading order."""

    page: int = 1
    lines: list[OcrLine] = Field(default_factory=list)


class ReadOperationResult(BaseModel):
    """One status answer for a read operation."""

    status: str
    pages: list[OcrPage] = Field(default_factory=list)
    raw: Optional[dict[str, Any]] = None

    @property
    def parsed_status(self) -> Optional[OcrStatus]:
        return OcrStatus.parse(self.status)


class ExtractedDocument(BaseModel):
    """OCR output: ordered lines, flattened across pages."""

    lines: list[str] = Field(default_factory=list)

    @classmethod
    def from_pages(cls, pages: list[OcrPage]) -> "ExtractedDocument":
        return cls(lines=[line.text for page in pages for line in page.lines])

    @property
    def text(self) -> str:
        """Every line terminated by a newline."""
        return "".join(f"{line}\n" for line in self.lines)


class RepoEntry(BaseModel):
    """One item of a repository directory listing."""

    name: str
    path: str
    type: str = "file"


class BaselineResult(BaseModel):
    """Outcome of one baseline lookup.

    ``content`` is a deep link or the document text on a hit, and the empty
    miss placeholder otherwise. ``error`` is set when the lookup raised.
    """

    service: str
    matched_name: Optional[str] = None
    matched_path: Optional[str] = None
    content: str = ""
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return bool(self.matched_name) and self.error is None


class RunReport(BaseModel):
    """Everything the driver prints for one run."""

    extracted: ExtractedDocument
    services_text: str
    services: list[str]
    recommendations: list[str]
    baselines: list[BaselineResult]
    timings: dict[str, float] = Field(default_factory=dict)
