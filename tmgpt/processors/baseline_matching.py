from __future__ import annotations

from typing import Iterable, Optional

from rapidfuzz import fuzz, process


def normalize_service_name(name: str) -> str:
    """'Azure Storage' -> 'azure-storage'; 'Azure App Service.' -> 'azure-app-service'."""
    return (name or "").strip().replace(" ", "-").replace(".", "").lower()


def find_baseline_match(
    normalized: str,
    file_names: Iterable[str],
    *,
    fuzzy_threshold: Optional[float] = None,
) -> Optional[str]:
    """Return the first file name containing ``normalized`` (case-insensitive).

    First match wins in listing order. When nothing contains the candidate and
    ``fuzzy_threshold`` is set, fall back to the best rapidfuzz partial_ratio
    score at or above the threshold.
    """
    if not normalized:
        return None
    needle = normalized.lower()
    names = list(file_names)
    for name in names:
        if needle in name.lower():
            return name

    if fuzzy_threshold is None or not names:
        return None
    best = process.extractOne(
        needle,
        names,
        scorer=fuzz.partial_ratio,
        processor=str.lower,
        score_cutoff=fuzzy_threshold,
    )
    return best[0] if best else None
