from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ROLE = "You are a Microsoft security engineer doing threat model analysis to identify and mitigate risk."


@dataclass(frozen=True)
class CompletionParams:
    """Tuning parameters sent with a completion request. None leaves the service default."""

    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    template: str
    params: CompletionParams

    def render(self, text: str) -> str:
        # Literal substitution; the OCR text may contain braces.
        return self.template.replace("{text}", text)


SERVICE_IDENTIFICATION = PromptTemplate(
    name="service_identification",
    template=(
        f"{ROLE} Given the following text extracted from an architecture diagram:\n"
        "{text}\n"
        "List the cloud services shown in the diagram as a single comma-separated line, "
        "using their full product names and nothing else:"
    ),
    params=CompletionParams(max_tokens=100, temperature=0.0, top_p=0.95),
)

SECURITY_RECOMMENDATIONS = PromptTemplate(
    name="security_recommendations",
    template=(
        "You are a Microsoft security engineer providing recommendations:\n"
        "{text}\n"
        "Provide security recommendations:"
    ),
    params=CompletionParams(max_tokens=256, temperature=0.2),
)
