from __future__ import annotations


def parse_service_list(text: str) -> list[str]:
    """Split a model answer into service names.

    Best-effort: the answer is free text, so anything that is not a clean
    comma-separated line comes through as odd candidate names.
    - Splits on commas.
    - Trims each segment, drops empty ones, keeps order.
    """
    return [part.strip() for part in (text or "").split(",") if part.strip()]
