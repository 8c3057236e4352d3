"""
Per-stage wall-clock timings for a pipeline run.

Each stage exit is logged with ``duration_ms`` and accumulated so the driver
can show a timing summary at the end of the run.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class StageTimers:
    """Accumulate elapsed seconds per stage name."""

    def __init__(self) -> None:
        self.totals: Dict[str, float] = {}

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        start_time = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start_time
            self.totals[name] = self.totals.get(name, 0.0) + elapsed
            logger.debug(
                "Stage %s took %.3fs",
                name,
                elapsed,
                extra={"stage": name, "duration_ms": round(elapsed * 1000, 1)},
            )

    def as_millis(self) -> Dict[str, float]:
        return {name: round(seconds * 1000, 1) for name, seconds in self.totals.items()}
